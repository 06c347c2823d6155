"""
Persistence adapter contract.

Every mutation of the job table goes through one of these operations, and each
must be a single atomic write: workers are separate processes, possibly on
separate machines, so there is no in-memory lock to fall back on.
"""

from abc import ABC, abstractmethod
from typing import Any

from jobqueue.config.logging import get_logger
from jobqueue.jobs.schemas import ClaimedJob, FindArgs, SchedulePayload


class BaseAdapter(ABC):
    """Base class for job persistence adapters."""

    def __init__(self, logger: Any = None):
        self.logger = logger or get_logger("jobqueue")

    @abstractmethod
    async def schedule(self, payload: SchedulePayload) -> None:
        """Persist a new, unlocked, non-failed job."""

    @abstractmethod
    async def find(self, args: FindArgs) -> ClaimedJob | None:
        """
        Claim the next eligible job for `args.process_name`.

        Returns None when nothing is eligible or when another worker won the
        race for the candidate row.
        """

    @abstractmethod
    async def success(self, job: ClaimedJob, delete_job: bool) -> None:
        """Record that the job ran successfully."""

    @abstractmethod
    async def error(self, job: ClaimedJob, error: BaseException) -> None:
        """Record a failed attempt and push the job's run time back."""

    @abstractmethod
    async def failure(self, job: ClaimedJob, delete_job: bool) -> None:
        """Record that the job will never be attempted again."""

    @abstractmethod
    async def clear(self) -> None:
        """Remove every job regardless of state."""

    def backoff_milliseconds(self, attempts: int) -> int:
        """Delay before the next attempt: 1s, 16s, 81s, ... 10min at 5, 2.8h at 10."""
        return 1000 * attempts**4
