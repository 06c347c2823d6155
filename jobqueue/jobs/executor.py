"""
Runs a single claimed job and records its outcome.
"""

import inspect
from typing import Any

from jobqueue.adapters.base import BaseAdapter
from jobqueue.config.logging import get_logger
from jobqueue.config.settings import Settings, get_settings
from jobqueue.core.exceptions import (
    AdapterRequiredError,
    JobRequiredError,
    PerformError,
)
from jobqueue.core.registries import JobRegistry, job_registry
from jobqueue.jobs.loader import load_job
from jobqueue.jobs.schemas import ClaimedJob


class Executor:
    """
    Executes one job.

    Never retries in-process: a failed attempt is handed to the adapter's
    `error` outcome, which pushes `run_at` back so that a later poll (possibly
    by another worker) picks it up again. Attempts are counted by the
    adapter's claim, so this class only compares them to `max_attempts`.
    """

    def __init__(
        self,
        adapter: BaseAdapter | None,
        job: ClaimedJob | None,
        logger: Any = None,
        max_attempts: int | None = None,
        delete_successful_jobs: bool | None = None,
        delete_failed_jobs: bool | None = None,
        settings: Settings | None = None,
        registry: JobRegistry = job_registry,
    ):
        settings = settings or get_settings()

        if adapter is None:
            raise AdapterRequiredError()
        if job is None:
            raise JobRequiredError()

        self.adapter = adapter
        self.job = job
        self.logger = logger or get_logger("jobqueue")
        self.max_attempts = (
            settings.job_max_attempts if max_attempts is None else max_attempts
        )
        self.delete_successful_jobs = (
            settings.job_delete_successful_jobs
            if delete_successful_jobs is None
            else delete_successful_jobs
        )
        self.delete_failed_jobs = (
            settings.job_delete_failed_jobs
            if delete_failed_jobs is None
            else delete_failed_jobs
        )
        self.registry = registry

    @property
    def job_identifier(self) -> str:
        return f"{self.job.id} ({self.job.path}:{self.job.name})"

    async def perform(self) -> None:
        job = self.job
        self.logger.info(
            "Started job",
            job_id=job.id,
            name=job.name,
            path=job.path,
            attempts=job.attempts,
        )

        try:
            definition = load_job(job.name, job.path, self.registry)
            result = definition.perform(*job.args)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            await self._handle_error(e)
        else:
            await self.adapter.success(job, delete_job=self.delete_successful_jobs)
            self.logger.info(
                "Job succeeded",
                job_id=job.id,
                name=job.name,
                path=job.path,
                attempts=job.attempts,
                deleted=self.delete_successful_jobs,
            )

    async def _handle_error(self, e: Exception) -> None:
        job = self.job
        error = PerformError(f"Failed to perform job {self.job_identifier}", e)

        self.logger.error(
            "Error in job",
            job_id=job.id,
            name=job.name,
            path=job.path,
            attempts=job.attempts,
            error=str(e),
            exc_info=e,
        )
        await self.adapter.error(job, error)

        if job.attempts >= self.max_attempts:
            self.logger.warning(
                "Job failed permanently after reaching max attempts",
                job_id=job.id,
                name=job.name,
                path=job.path,
                attempts=job.attempts,
                max_attempts=self.max_attempts,
            )
            await self.adapter.failure(job, delete_job=self.delete_failed_jobs)
        else:
            self.logger.info(
                "Job scheduled for retry",
                job_id=job.id,
                name=job.name,
                path=job.path,
                attempts=job.attempts,
                backoff_ms=self.adapter.backoff_milliseconds(job.attempts),
            )
