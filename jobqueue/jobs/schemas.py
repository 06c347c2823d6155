"""
Pydantic schemas passed between the engine and its adapters.
"""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

WILDCARD_QUEUE = "*"


def as_utc(value: datetime) -> datetime:
    """Convert to UTC; naive values are taken to already be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class SchedulePayload(BaseModel):
    """Everything an adapter needs to persist a new job."""

    name: str = Field(..., description="Job name, the attribute it is exported as")
    path: str = Field(..., description="Registry path or dotted module path of the job")
    args: list[Any] = Field(default_factory=list, description="Arguments for perform()")
    run_at: datetime = Field(..., description="Earliest time to run job")
    queue: str = Field(..., description="Queue the job is placed in")
    priority: int = Field(..., description="Lower is higher priority")

    @field_validator("run_at")
    @classmethod
    def normalize_run_at(cls, value: datetime) -> datetime:
        # Stored without an offset on SQLite and compared against UTC now
        return as_utc(value)


class FindArgs(BaseModel):
    """Arguments for claiming the next job."""

    process_name: str = Field(..., description="Identity of the claiming worker")
    max_runtime: float = Field(
        ..., gt=0, description="Seconds after which another worker's lock is stale"
    )
    queues: list[str] = Field(
        ..., min_length=1, description="Queues to pull from, ['*'] for all"
    )

    def is_wildcard(self) -> bool:
        return self.queues == [WILDCARD_QUEUE]


class ClaimedJob(BaseModel):
    """A job row after a successful claim, with its handler decoded."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    attempts: int
    handler: str
    queue: str
    priority: int
    run_at: datetime | None = None
    locked_at: datetime | None = None
    locked_by: str | None = None
    last_error: str | None = None
    failed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    name: str
    path: str
    args: list[Any] = Field(default_factory=list)


class JobOptions(BaseModel):
    """Per-call overrides accepted when scheduling a job."""

    wait: float | None = Field(
        default=None, ge=0, description="Seconds from now to run the job"
    )
    wait_until: datetime | None = Field(
        default=None, description="Absolute time to run the job"
    )
    queue: str | None = Field(default=None, description="Override the job's queue")
    priority: int | None = Field(default=None, description="Override the job's priority")


class WorkerConfig(BaseModel):
    """One entry of the JobManager's worker list."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    adapter: str = Field(..., description="Name of the adapter this worker uses")
    queue: str | list[str] | None = Field(
        default=None, description="Queue or queues to work, '*' for all"
    )
    count: int = Field(default=1, ge=1, description="Worker processes to run")
    max_attempts: int | None = Field(default=None, ge=1)
    max_runtime: float | None = Field(default=None, gt=0)
    sleep_delay: float | None = Field(default=None, ge=0)
    delete_failed_jobs: bool | None = None
    delete_successful_jobs: bool | None = None
    logger: Any = None
