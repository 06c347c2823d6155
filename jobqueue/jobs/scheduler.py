"""
Producer-side scheduling of jobs.
"""

from datetime import UTC, datetime, timedelta
from typing import Any

from jobqueue.adapters.base import BaseAdapter
from jobqueue.config.logging import get_logger
from jobqueue.config.settings import Settings, get_settings
from jobqueue.core.exceptions import (
    AdapterRequiredError,
    QueueNotDefinedError,
    SchedulingError,
)
from jobqueue.jobs.definitions import Job
from jobqueue.jobs.schemas import JobOptions, SchedulePayload, as_utc


class Scheduler:
    """Turns a job definition plus arguments into a persisted job."""

    def __init__(
        self,
        adapter: BaseAdapter | None,
        logger: Any = None,
        settings: Settings | None = None,
    ):
        if adapter is None:
            raise AdapterRequiredError()

        self.adapter = adapter
        self.logger = logger or get_logger("jobqueue")
        self.settings = settings or get_settings()

    def compute_run_at(
        self, wait: float | None = None, wait_until: datetime | None = None
    ) -> datetime:
        """`wait` seconds from now, else `wait_until` in UTC, else now."""
        if wait and wait > 0:
            return datetime.now(UTC) + timedelta(seconds=wait)
        if wait_until is not None:
            return as_utc(wait_until)
        return datetime.now(UTC)

    def build_payload(
        self,
        job: Job,
        args: list[Any] | None = None,
        options: JobOptions | dict[str, Any] | None = None,
    ) -> SchedulePayload:
        if not job.queue:
            raise QueueNotDefinedError(job.name)

        options = JobOptions.model_validate(options or {})

        priority = options.priority
        if priority is None:
            priority = (
                job.priority
                if job.priority is not None
                else self.settings.job_default_priority
            )

        wait = self.settings.job_default_wait_s if options.wait is None else options.wait
        wait_until = options.wait_until or self.settings.job_default_wait_until

        return SchedulePayload(
            name=job.name,
            path=job.path,
            args=list(args or []),
            run_at=self.compute_run_at(wait=wait, wait_until=wait_until),
            queue=options.queue or job.queue,
            priority=priority,
        )

    async def schedule(
        self,
        job: Job,
        job_args: list[Any] | None = None,
        job_options: JobOptions | dict[str, Any] | None = None,
    ) -> bool:
        payload = self.build_payload(job, job_args, job_options)

        self.logger.info(
            "Scheduling job",
            name=payload.name,
            path=payload.path,
            queue=payload.queue,
            priority=payload.priority,
            run_at=payload.run_at.isoformat(),
        )

        try:
            await self.adapter.schedule(payload)
        except Exception as e:
            self.logger.error(
                "Error scheduling job", name=payload.name, path=payload.path, error=str(e)
            )
            raise SchedulingError(f"Failed to schedule job `{job.name}`", e) from e

        return True
