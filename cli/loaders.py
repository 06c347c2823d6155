"""Locate the application's JobManager from an import path."""

import importlib
import os
import sys
from types import ModuleType

from jobqueue.core.exceptions import JobsManagerNotFoundError, LoggerNotFoundError
from jobqueue.jobs.manager import JobManager


def _import_module(path: str) -> ModuleType:
    module_name, _, _ = path.partition(":")

    # Console scripts don't put the working directory on sys.path
    cwd = os.getcwd()
    if cwd not in sys.path:
        sys.path.insert(0, cwd)

    try:
        return importlib.import_module(module_name)
    except ModuleNotFoundError as e:
        raise JobsManagerNotFoundError(path) from e


def load_jobs_manager(path: str) -> JobManager:
    """Import `module:attribute` and return the JobManager found there."""
    _, _, attribute = path.partition(":")
    module = _import_module(path)

    manager = getattr(module, attribute, None)
    if not isinstance(manager, JobManager):
        raise JobsManagerNotFoundError(path, "is not a JobManager")
    return manager


def load_logger(path: str, name: str):
    """Return the logger exported as `name` next to the JobManager at `path`."""
    module = _import_module(path)
    if not hasattr(module, name):
        raise LoggerNotFoundError(name)
    return getattr(module, name)
