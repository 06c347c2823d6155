"""
Job table model.
"""

import json
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import TIMESTAMP, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from jobqueue.infra.database import Base


def _utcnow() -> datetime:
    return datetime.now(UTC)


class BackgroundJob(Base):
    """
    One row per unit of scheduled work.

    The row is claimed by setting `locked_at`/`locked_by`, retried by moving
    `run_at` into the future, and made terminal by stamping `failed_at`.
    """

    __tablename__ = "background_jobs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    attempts: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default="0",
        comment="Number of times the job has been claimed",
    )
    handler: Mapped[str] = mapped_column(
        Text, nullable=False, comment="JSON of the job name, path and args"
    )
    queue: Mapped[str] = mapped_column(Text, nullable=False)
    priority: Mapped[int] = mapped_column(
        Integer, nullable=False, comment="Lower is higher priority"
    )
    run_at: Mapped[datetime | None] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=True,
        comment="Earliest time the job may be claimed",
    )

    # Worker coordination
    locked_at: Mapped[datetime | None] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True, comment="When job was locked by worker"
    )
    locked_by: Mapped[str | None] = mapped_column(
        Text, nullable=True, comment="Worker process that locked the job"
    )

    # Outcome
    last_error: Mapped[str | None] = mapped_column(
        Text, nullable=True, comment="Last error message and traceback"
    )
    failed_at: Mapped[datetime | None] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=True,
        comment="Set once the job has exhausted its attempts",
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=func.now(),
        default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=func.now(),
        default=_utcnow,
        onupdate=_utcnow,
    )

    __table_args__ = (
        Index("ix_background_jobs_priority_run_at", "priority", "run_at"),
        Index("ix_background_jobs_queue", "queue"),
    )

    @property
    def handler_data(self) -> dict[str, Any]:
        return json.loads(self.handler)

    @property
    def name(self) -> str:
        return self.handler_data["name"]

    @property
    def path(self) -> str:
        return self.handler_data["path"]

    @property
    def args(self) -> list[Any]:
        return self.handler_data.get("args") or []

    def is_failed(self) -> bool:
        """Check if the job has permanently failed."""
        return self.failed_at is not None

    def is_locked(self) -> bool:
        """Check if a worker currently holds (or held and never released) the job."""
        return self.locked_at is not None
