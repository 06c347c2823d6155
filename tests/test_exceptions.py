import pytest

from jobqueue.core.exceptions import (
    AdapterNotFoundError,
    ConfigurationError,
    JobExportNotFoundError,
    JobNotFoundError,
    JobQueueError,
    PerformError,
    QueueNotDefinedError,
    RethrownJobError,
    SchedulingError,
    WorkerConfigIndexNotFoundError,
)


def raise_value_error():
    raise ValueError("bad value")


@pytest.mark.parametrize("error_class", [SchedulingError, PerformError])
def test_rethrown_errors_keep_the_original(error_class):
    """Test that wrapped errors expose the original error and its traceback."""
    try:
        raise_value_error()
    except ValueError as e:
        original = e

    error = error_class("Something failed", original)

    assert isinstance(error, RethrownJobError)
    assert error.original_error is original
    assert error.__cause__ is original
    assert str(error) == f"[{error_class.title}] Something failed: bad value"
    assert "raise_value_error" in error.original_traceback
    assert "ValueError: bad value" in error.original_traceback


def test_configuration_errors_share_a_base():
    """Test that wiring mistakes can be caught together."""
    for error in (
        AdapterNotFoundError("sql"),
        QueueNotDefinedError("greet"),
        WorkerConfigIndexNotFoundError(3),
    ):
        assert isinstance(error, ConfigurationError)
        assert isinstance(error, JobQueueError)


def test_error_details():
    """Test that errors carry structured details for logging."""
    assert AdapterNotFoundError("sql").details == {"adapter": "sql"}
    assert WorkerConfigIndexNotFoundError(3).details == {"index": 3}
    assert "3" in str(WorkerConfigIndexNotFoundError(3))


def test_job_lookup_errors_name_the_job():
    """Test that lookup errors mention the job name and path."""
    not_found = JobNotFoundError("greet", "app.jobs")
    not_exported = JobExportNotFoundError("greet", "app.jobs")

    assert "not found" in str(not_found)
    for error in (not_found, not_exported):
        assert "greet" in str(error)
        assert "app.jobs" in str(error)
        assert error.details == {"name": "greet", "path": "app.jobs"}
