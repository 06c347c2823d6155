"""
Resolve a job's stored name and path back to its definition.
"""

import importlib
from typing import Any

from jobqueue.core.exceptions import JobExportNotFoundError, JobNotFoundError
from jobqueue.core.registries import JobRegistry, job_registry
from jobqueue.jobs.definitions import Job


def _import_namespace(name: str, path: str) -> Any:
    try:
        return importlib.import_module(path)
    except ModuleNotFoundError as e:
        # Only `path` itself (or a parent package) missing counts as not found
        if e.name and (path == e.name or path.startswith(f"{e.name}.")):
            raise JobNotFoundError(name, path) from e
        raise
    except (TypeError, ValueError) as e:
        # Empty or relative paths
        raise JobNotFoundError(name, path) from e


def load_job(name: str, path: str, registry: JobRegistry = job_registry) -> Job:
    """
    Find the job exported as `name` at `path`.

    The registry is consulted first; unknown paths are imported as modules.
    """
    namespace = registry.lookup(path)
    if namespace is not None:
        job = namespace.get(name)
    else:
        module = _import_namespace(name, path)
        job = getattr(module, name, None)

    if not isinstance(job, Job):
        raise JobExportNotFoundError(name, path)

    return job
