from collections.abc import Callable
from dataclasses import dataclass
from typing import Any


@dataclass
class Job:
    """
    In-memory reference to executable job logic.

    `path` is where the job can be found again by a worker: a key in the job
    registry or an importable dotted module path. `name` is the attribute the
    job is exported as at that path. `perform` may be a plain function or a
    coroutine function.
    """

    name: str
    path: str
    perform: Callable[..., Any]
    queue: str | None = None
    priority: int | None = None
