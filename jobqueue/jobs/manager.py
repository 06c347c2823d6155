"""
Composition root for the job subsystem.

An application builds one JobManager, usually in a module the CLI can import
(see `Settings.jobs_manager`):

    manager = JobManager(
        adapters={"sql": SQLAlchemyAdapter(Database())},
        queues=["default", "email"],
        workers=[WorkerConfig(adapter="sql", queue="*", count=2)],
    )
    send_welcome = manager.create_job(Job(name="send_welcome", path="app.jobs", queue="email", perform=...))
    later = manager.create_scheduler(adapter="sql")
    await later(send_welcome, ["user@example.com"], {"wait": 30})
"""

from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any

from jobqueue.adapters.base import BaseAdapter
from jobqueue.config.logging import get_logger
from jobqueue.config.settings import Settings, get_settings
from jobqueue.core.exceptions import (
    AdapterNotFoundError,
    WorkerConfigIndexNotFoundError,
)
from jobqueue.core.registries import JobRegistry, job_registry
from jobqueue.jobs.definitions import Job
from jobqueue.jobs.scheduler import Scheduler
from jobqueue.jobs.schemas import JobOptions, WorkerConfig
from jobqueue.jobs.worker import Worker

ScheduleFunction = Callable[..., Awaitable[bool]]


class JobManager:
    """Binds named adapters, queue names and worker configs together."""

    def __init__(
        self,
        adapters: Mapping[str, BaseAdapter],
        queues: Sequence[str],
        logger: Any = None,
        workers: Sequence[WorkerConfig | dict[str, Any]] = (),
        settings: Settings | None = None,
        registry: JobRegistry = job_registry,
    ):
        self.adapters = dict(adapters)
        self.queues = list(queues)
        self.logger = logger or get_logger("jobqueue")
        self.workers = [WorkerConfig.model_validate(worker) for worker in workers]
        self.settings = settings or get_settings()
        self.registry = registry

    def _get_adapter(self, name: str) -> BaseAdapter:
        if name not in self.adapters:
            raise AdapterNotFoundError(name)
        return self.adapters[name]

    def create_scheduler(self, adapter: str, logger: Any = None) -> ScheduleFunction:
        """Return an async `schedule(job, args=None, options=None)` bound to one adapter."""
        scheduler = Scheduler(
            adapter=self._get_adapter(adapter),
            logger=logger or self.logger,
            settings=self.settings,
        )

        async def schedule(
            job: Job,
            args: list[Any] | None = None,
            options: JobOptions | dict[str, Any] | None = None,
        ) -> bool:
            return await scheduler.schedule(job, args, options)

        return schedule

    def create_job(self, job: Job) -> Job:
        """Register a job definition so workers in this process can find it."""
        self.registry.add(job)
        return job

    def create_worker(
        self,
        index: int,
        workoff: bool = False,
        clear: bool = False,
        process_name: str | None = None,
    ) -> Worker:
        if index < 0 or index >= len(self.workers):
            raise WorkerConfigIndexNotFoundError(index)

        config = self.workers[index]
        adapter = self._get_adapter(config.adapter)

        queue = config.queue or self.settings.job_default_queue
        queues = [queue] if isinstance(queue, str) else list(queue)

        return Worker(
            adapter=adapter,
            queues=queues,
            logger=config.logger or self.logger,
            process_name=process_name,
            max_attempts=config.max_attempts,
            max_runtime=config.max_runtime,
            sleep_delay=config.sleep_delay,
            delete_failed_jobs=config.delete_failed_jobs,
            delete_successful_jobs=config.delete_successful_jobs,
            workoff=workoff,
            clear=clear,
            settings=self.settings,
            registry=self.registry,
        )
