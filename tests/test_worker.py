"""Tests for the worker poll loop."""

import os
import socket
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from conftest import make_claimed_job
from jobqueue.core.exceptions import AdapterRequiredError, QueuesRequiredError
from jobqueue.jobs.definitions import Job
from jobqueue.jobs.schemas import FindArgs
from jobqueue.jobs.worker import Worker


def make_worker(adapter, logger, **options):
    options.setdefault("queues", ["*"])
    options.setdefault("sleep_delay", 0)
    return Worker(adapter=adapter, logger=logger, **options)


class TestConstructor:
    def test_requires_adapter(self, mock_logger):
        with pytest.raises(AdapterRequiredError):
            Worker(adapter=None, queues=["*"], logger=mock_logger)

    @pytest.mark.parametrize("queues", [None, []])
    def test_requires_queues(self, mock_adapter, mock_logger, queues):
        with pytest.raises(QueuesRequiredError):
            Worker(adapter=mock_adapter, queues=queues, logger=mock_logger)

    def test_defaults_come_from_settings(self, mock_adapter, mock_logger, settings):
        worker = Worker(
            adapter=mock_adapter, queues=["*"], logger=mock_logger, settings=settings
        )

        assert worker.max_attempts == settings.job_max_attempts
        assert worker.max_runtime == settings.job_max_runtime_s
        assert worker.sleep_delay == settings.job_sleep_delay_s
        assert worker.delete_failed_jobs is settings.job_delete_failed_jobs
        assert worker.delete_successful_jobs is settings.job_delete_successful_jobs
        assert worker.forever is True
        assert worker.workoff is False
        assert worker.clear is False
        assert isinstance(worker.last_check_time, datetime)

    def test_keeps_explicit_options(self, mock_adapter, mock_logger):
        worker = Worker(
            adapter=mock_adapter,
            queues=["default", "email"],
            logger=mock_logger,
            process_name="worker-a",
            max_attempts=10,
            max_runtime=120,
            sleep_delay=7,
            delete_failed_jobs=True,
            delete_successful_jobs=False,
            workoff=True,
            clear=True,
        )

        assert worker.adapter is mock_adapter
        assert worker.logger is mock_logger
        assert worker.queues == ["default", "email"]
        assert worker.process_name == "worker-a"
        assert worker.max_attempts == 10
        assert worker.max_runtime == 120
        assert worker.sleep_delay == 7
        assert worker.delete_failed_jobs is True
        assert worker.delete_successful_jobs is False
        assert worker.workoff is True
        assert worker.clear is True

    def test_sleep_delay_can_be_zero(self, mock_adapter, mock_logger):
        worker = make_worker(mock_adapter, mock_logger, sleep_delay=0)
        assert worker.sleep_delay == 0

    def test_default_process_name_is_unique_per_process(
        self, mock_adapter, mock_logger, settings
    ):
        worker = Worker(
            adapter=mock_adapter, queues=["email"], logger=mock_logger, settings=settings
        )

        assert worker.process_name.startswith(f"{settings.worker_process_prefix}.email.")
        assert worker.process_name.endswith(f"{socket.gethostname()}-{os.getpid()}")


class TestRun:
    @pytest.mark.asyncio
    async def test_clear_removes_jobs_and_returns(self, mock_adapter, mock_logger):
        worker = make_worker(mock_adapter, mock_logger, clear=True)

        await worker.run()

        mock_adapter.clear.assert_awaited_once_with()
        mock_adapter.find.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_tries_to_find_a_job(self, mock_adapter, mock_logger):
        worker = make_worker(
            mock_adapter, mock_logger, process_name="worker-a", max_runtime=60, forever=False
        )

        await worker.run()

        mock_adapter.find.assert_awaited_once_with(
            FindArgs(process_name="worker-a", max_runtime=60, queues=["*"])
        )

    @pytest.mark.asyncio
    @patch("jobqueue.jobs.worker.Executor")
    async def test_does_nothing_if_no_job_and_not_forever(
        self, mock_executor, mock_adapter, mock_logger
    ):
        await make_worker(mock_adapter, mock_logger, forever=False).run()

        mock_executor.assert_not_called()

    @pytest.mark.asyncio
    @patch("jobqueue.jobs.worker.Executor")
    async def test_workoff_exits_when_no_job(
        self, mock_executor, mock_adapter, mock_logger
    ):
        await make_worker(mock_adapter, mock_logger, workoff=True).run()

        mock_adapter.find.assert_awaited_once()
        mock_executor.assert_not_called()

    @pytest.mark.asyncio
    @patch("jobqueue.jobs.worker.Executor")
    async def test_workoff_loops_until_no_job(
        self, mock_executor, mock_adapter, mock_logger
    ):
        mock_executor.return_value.perform = AsyncMock()
        mock_adapter.find.side_effect = [
            make_claimed_job(id=1),
            make_claimed_job(id=2),
            None,
        ]

        await make_worker(mock_adapter, mock_logger, workoff=True).run()

        assert mock_adapter.find.await_count == 3
        assert mock_executor.call_count == 2
        assert mock_executor.return_value.perform.await_count == 2

    @pytest.mark.asyncio
    @patch("jobqueue.jobs.worker.Executor")
    async def test_builds_executor_for_found_job(
        self, mock_executor, mock_adapter, mock_logger, registry
    ):
        mock_executor.return_value.perform = AsyncMock()
        job = make_claimed_job()
        mock_adapter.find.return_value = job
        worker = make_worker(
            mock_adapter,
            mock_logger,
            forever=False,
            max_attempts=10,
            delete_successful_jobs=False,
            delete_failed_jobs=True,
            registry=registry,
        )

        await worker.run()

        mock_executor.assert_called_once_with(
            adapter=mock_adapter,
            job=job,
            logger=mock_logger,
            max_attempts=10,
            delete_successful_jobs=False,
            delete_failed_jobs=True,
            settings=worker.settings,
            registry=registry,
        )
        mock_executor.return_value.perform.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_polls_until_stopped(self, mock_adapter, mock_logger):
        worker = make_worker(mock_adapter, mock_logger, sleep_delay=0)
        calls = 0

        async def find(args):
            nonlocal calls
            calls += 1
            if calls == 3:
                worker.stop()
            return None

        mock_adapter.find.side_effect = find

        await worker.run()

        assert calls == 3
        assert worker.forever is False

    @pytest.mark.asyncio
    async def test_sleeps_for_remainder_of_delay(
        self, mock_adapter, mock_logger, monkeypatch
    ):
        worker = make_worker(mock_adapter, mock_logger, sleep_delay=5)
        sleep = AsyncMock()
        monkeypatch.setattr("jobqueue.jobs.worker.asyncio.sleep", sleep)
        mock_adapter.find.side_effect = lambda args: worker.stop() if sleep.await_count else None

        await worker.run()

        sleep.assert_awaited_once()
        (delay,) = sleep.await_args.args
        assert 4 < delay <= 5

    @pytest.mark.asyncio
    async def test_stop_lets_current_job_finish(self, mock_adapter, mock_logger, registry):
        worker = make_worker(mock_adapter, mock_logger, registry=registry)
        performed = []

        def perform():
            worker.stop()
            performed.append(True)

        registry.add(Job(name="greet", path="app.jobs", queue="default", perform=perform))
        mock_adapter.find.return_value = make_claimed_job()

        await worker.run()

        assert performed == [True]
        mock_adapter.find.assert_awaited_once()
        mock_adapter.success.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_job_errors_do_not_stop_the_loop(
        self, mock_adapter, mock_logger, registry
    ):
        registry.add(
            Job(
                name="greet",
                path="app.jobs",
                queue="default",
                perform=MagicMock(side_effect=RuntimeError("boom")),
            )
        )
        mock_adapter.find.side_effect = [make_claimed_job(), make_claimed_job(id=2), None]

        await make_worker(mock_adapter, mock_logger, workoff=True, registry=registry).run()

        assert mock_adapter.error.await_count == 2
        assert mock_adapter.find.await_count == 3

    @pytest.mark.asyncio
    async def test_adapter_errors_propagate(self, mock_adapter, mock_logger):
        mock_adapter.find.side_effect = ConnectionError("database went away")

        with pytest.raises(ConnectionError):
            await make_worker(mock_adapter, mock_logger).run()
