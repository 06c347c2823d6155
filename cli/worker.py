"""
jobqueue-worker - runs a single Worker until it finishes.

Started by the `jobqueue` runner, which passes `--index` (position in the
JobManager's worker list) and `--id` (which of that config's `count`
processes this is). Can be run by hand for one-off setups.
"""

import asyncio
import os
import signal
from typing import Optional

import typer
from rich.console import Console

from jobqueue.config.logging import bind_worker_context, setup_logging
from jobqueue.config.settings import get_settings
from jobqueue.core.exceptions import JobQueueError
from jobqueue.jobs.worker import Worker

from .loaders import load_jobs_manager, load_logger

console = Console(stderr=True)

app = typer.Typer(
    name="jobqueue-worker",
    help="Starts a single worker to process background jobs",
    add_completion=False,
)


def _exit_now(worker: Worker, signum: int, frame) -> None:
    worker.logger.warning(
        "SIGTERM received, exiting now", process_name=worker.process_name
    )
    # Skips cleanup and any catch-all in job code
    os._exit(0)


async def run_worker(worker: Worker) -> None:
    """
    Run the worker's loop with signal handling installed.

    SIGINT drains: the current job finishes and no new one is claimed.
    SIGTERM exits immediately; an abandoned job's lock goes stale after
    `max_runtime` and another worker reclaims it.
    """
    loop = asyncio.get_running_loop()
    loop.add_signal_handler(signal.SIGINT, worker.stop)
    # Runs between bytecodes, even while a blocking job holds the loop
    previous = signal.signal(
        signal.SIGTERM, lambda signum, frame: _exit_now(worker, signum, frame)
    )
    try:
        await worker.run()
    finally:
        loop.remove_signal_handler(signal.SIGINT)
        signal.signal(signal.SIGTERM, previous)


@app.command()
def main(
    index: int = typer.Option(0, "--index", help="Index of the worker config to use"),
    id: int = typer.Option(0, "--id", help="The worker ID within its config"),
    workoff: bool = typer.Option(
        False, "--workoff", help="Work off all jobs in the queue and exit"
    ),
    clear: bool = typer.Option(
        False, "--clear", help="Remove all jobs in the queue and exit"
    ),
    manager: Optional[str] = typer.Option(
        None, "--manager", help="Import path (module:attribute) of the JobManager"
    ),
    logger: Optional[str] = typer.Option(
        None, "--logger", help="Name of a logger exported next to the JobManager"
    ),
):
    """Start one worker for the config at INDEX."""
    settings = get_settings()
    setup_logging(settings)
    manager_path = manager or settings.jobs_manager

    try:
        jobs_manager = load_jobs_manager(manager_path)
        worker = jobs_manager.create_worker(index=index, workoff=workoff, clear=clear)
        if logger:
            worker.logger = load_logger(manager_path, logger)
    except JobQueueError as e:
        console.print(f"[red]{e.message}[/red]")
        raise typer.Exit(1)

    if settings.environment != "development":
        jobs_manager.registry.freeze()

    bind_worker_context(worker.process_name, worker_index=index, worker_id=id)
    worker.logger.info("Starting work", queues=worker.queues)

    asyncio.run(run_worker(worker))

    worker.logger.info("Worker finished, shutting down")


if __name__ == "__main__":
    app()
