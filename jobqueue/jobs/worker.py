"""
Worker poll loop.
"""

import asyncio
import os
import socket
from datetime import UTC, datetime
from typing import Any

from jobqueue.adapters.base import BaseAdapter
from jobqueue.config.logging import get_logger
from jobqueue.config.settings import Settings, get_settings
from jobqueue.core.exceptions import AdapterRequiredError, QueuesRequiredError
from jobqueue.core.registries import JobRegistry, job_registry
from jobqueue.jobs.executor import Executor
from jobqueue.jobs.schemas import FindArgs


def default_process_name(prefix: str, queues: list[str]) -> str:
    """Unique per OS process: `<prefix>.<queues>.<hostname>-<pid>`."""
    return f"{prefix}.{'+'.join(queues)}.{socket.gethostname()}-{os.getpid()}"


class Worker:
    """
    Claims and executes jobs one at a time.

    Single-threaded and cooperative: the loop only yields while waiting on
    the adapter, on a job's perform, or between empty polls. Run more worker
    processes for more throughput.
    """

    def __init__(
        self,
        adapter: BaseAdapter | None,
        queues: list[str] | None,
        logger: Any = None,
        process_name: str | None = None,
        max_attempts: int | None = None,
        max_runtime: float | None = None,
        sleep_delay: float | None = None,
        delete_failed_jobs: bool | None = None,
        delete_successful_jobs: bool | None = None,
        workoff: bool = False,
        clear: bool = False,
        forever: bool = True,
        settings: Settings | None = None,
        registry: JobRegistry = job_registry,
    ):
        self.settings = settings or get_settings()

        if adapter is None:
            raise AdapterRequiredError()
        if not queues:
            raise QueuesRequiredError()

        self.adapter = adapter
        self.queues = list(queues)
        self.logger = logger or get_logger("jobqueue")
        self.process_name = process_name or default_process_name(
            self.settings.worker_process_prefix, self.queues
        )
        self.max_attempts = (
            self.settings.job_max_attempts if max_attempts is None else max_attempts
        )
        self.max_runtime = (
            self.settings.job_max_runtime_s if max_runtime is None else max_runtime
        )
        # seconds; 0 is a valid delay
        self.sleep_delay = (
            self.settings.job_sleep_delay_s if sleep_delay is None else sleep_delay
        )
        self.delete_failed_jobs = (
            self.settings.job_delete_failed_jobs
            if delete_failed_jobs is None
            else delete_failed_jobs
        )
        self.delete_successful_jobs = (
            self.settings.job_delete_successful_jobs
            if delete_successful_jobs is None
            else delete_successful_jobs
        )
        self.workoff = workoff
        self.clear = clear
        self.forever = forever
        self.registry = registry
        self.last_check_time = datetime.now(UTC)

    def stop(self) -> None:
        """Finish the current job, if any, then leave the loop."""
        self.logger.warning(
            "Worker stopping after current job", process_name=self.process_name
        )
        self.forever = False

    async def run(self) -> None:
        if self.clear:
            await self.adapter.clear()
            self.logger.info("Cleared all jobs", process_name=self.process_name)
            return

        await self._work()

    async def _work(self) -> None:
        while True:
            self.last_check_time = datetime.now(UTC)

            job = await self.adapter.find(
                FindArgs(
                    process_name=self.process_name,
                    max_runtime=self.max_runtime,
                    queues=self.queues,
                )
            )

            if job is not None:
                self.logger.info(
                    "Claimed job",
                    job_id=job.id,
                    name=job.name,
                    path=job.path,
                    attempts=job.attempts,
                    process_name=self.process_name,
                )
                await Executor(
                    adapter=self.adapter,
                    job=job,
                    logger=self.logger,
                    max_attempts=self.max_attempts,
                    delete_successful_jobs=self.delete_successful_jobs,
                    delete_failed_jobs=self.delete_failed_jobs,
                    settings=self.settings,
                    registry=self.registry,
                ).perform()
            elif self.workoff:
                self.logger.info("No more jobs, worker finished", process_name=self.process_name)
                break
            elif self.forever:
                elapsed = (datetime.now(UTC) - self.last_check_time).total_seconds()
                await asyncio.sleep(max(0, self.sleep_delay - elapsed))

            if not self.forever:
                break
