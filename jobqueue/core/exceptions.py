"""
Error taxonomy for the job subsystem.

Configuration and discovery errors propagate to whoever triggered them.
Errors raised by a job's perform are wrapped, recorded on the job row and
never allowed to stop a worker.
"""

import traceback
from typing import Any


class JobQueueError(Exception):
    """Base exception for the job subsystem."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(JobQueueError):
    """Raised when the job subsystem is wired up incorrectly."""


class AdapterRequiredError(ConfigurationError):
    def __init__(self):
        super().__init__("`adapter` is required to perform a job")


class QueuesRequiredError(ConfigurationError):
    def __init__(self):
        super().__init__("`queues` is required to find a job to run")


class JobRequiredError(ConfigurationError):
    def __init__(self):
        super().__init__("`job` is required to perform a job")


class QueueNotDefinedError(ConfigurationError):
    def __init__(self, name: str | None = None):
        message = "Scheduler requires a named `queue` to place the job in"
        if name:
            message = f"{message} (job `{name}`)"
        super().__init__(message, {"job": name})


class WorkerConfigIndexNotFoundError(ConfigurationError):
    def __init__(self, index: int):
        super().__init__(
            f"Worker index {index} not found in jobs config", {"index": index}
        )


class AdapterNotFoundError(ConfigurationError):
    def __init__(self, name: str):
        super().__init__(
            f"Adapter `{name}` not found in jobs config", {"adapter": name}
        )


class LoggerNotFoundError(ConfigurationError):
    def __init__(self, name: str):
        super().__init__(f"Logger `{name}` not found in jobs config", {"logger": name})


class JobsManagerNotFoundError(ConfigurationError):
    def __init__(self, path: str, reason: str = "could not be imported"):
        super().__init__(
            f"Jobs manager `{path}` {reason}", {"path": path, "reason": reason}
        )


class JobNotFoundError(JobQueueError):
    """Raised when a job's path does not resolve to anything."""

    def __init__(self, name: str, path: str):
        super().__init__(
            f"Job `{name}` not found: nothing registered or importable at `{path}`",
            {"name": name, "path": path},
        )


class JobExportNotFoundError(JobQueueError):
    """Raised when a job's path resolves but does not provide the job."""

    def __init__(self, name: str, path: str):
        super().__init__(
            f"Job file `{path}` does not export a job named `{name}`",
            {"name": name, "path": path},
        )


class RethrownJobError(JobQueueError):
    """
    Wraps an underlying exception while keeping it reachable.

    The original error is stored on `original_error` and chained as
    `__cause__`, so formatted tracebacks show both.
    """

    title = "RethrownJobError"

    def __init__(self, message: str, original_error: BaseException):
        self.original_error = original_error
        super().__init__(
            f"[{self.title}] {message}: {original_error}",
            {"original_error": repr(original_error)},
        )
        self.__cause__ = original_error

    @property
    def original_traceback(self) -> str:
        return "".join(traceback.format_exception(self.original_error))


class SchedulingError(RethrownJobError):
    title = "SchedulingError"


class PerformError(RethrownJobError):
    title = "PerformError"
