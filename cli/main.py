"""jobqueue runner - starts, stops and supervises worker processes"""

import os
import signal
import subprocess
import sys
import time
from pathlib import Path
from typing import Optional

import typer
from rich.panel import Panel

from jobqueue.config.settings import get_settings
from jobqueue.core.exceptions import JobQueueError
from jobqueue.jobs.schemas import WorkerConfig

from .loaders import load_jobs_manager
from .utils.formatting import (
    console,
    create_workers_table,
    print_error,
    print_info,
    print_success,
    print_warning,
)

NumWorkers = list[tuple[int, int]]

app = typer.Typer(
    name="jobqueue",
    help="Runs background job workers",
    rich_markup_mode="rich",
    no_args_is_help=True,
)


def build_num_workers(configs: list[WorkerConfig]) -> NumWorkers:
    """
    Expand each config's `count` into (index, id) pairs.

    Two configs with counts 2 and 1 give [(0, 0), (0, 1), (1, 0)].
    """
    return [
        (index, worker_id)
        for index, config in enumerate(configs)
        for worker_id in range(config.count)
    ]


def worker_command(
    index: int,
    worker_id: int,
    workoff: bool = False,
    clear: bool = False,
    manager: str | None = None,
) -> list[str]:
    command = [
        sys.executable,
        "-m",
        "cli.worker",
        "--index",
        str(index),
        "--id",
        str(worker_id),
    ]
    if workoff:
        command.append("--workoff")
    if clear:
        command.append("--clear")
    if manager:
        command.extend(["--manager", manager])
    return command


def start_workers(
    num_workers: NumWorkers,
    detach: bool = False,
    workoff: bool = False,
    manager: str | None = None,
) -> list[subprocess.Popen]:
    print_warning(f"Starting {len(num_workers)} worker(s)...")

    processes = []
    for index, worker_id in num_workers:
        command = worker_command(index, worker_id, workoff=workoff, manager=manager)
        if detach:
            process = subprocess.Popen(
                command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        else:
            process = subprocess.Popen(command)
        processes.append(process)

    return processes


def wait_for_workers(processes: list[subprocess.Popen]) -> int:
    """
    Wait for attached workers to exit.

    The first Ctrl-C asks workers to finish their current job; any further
    Ctrl-C terminates them immediately.
    """
    interrupts = 0
    while True:
        try:
            return max((process.wait() for process in processes), default=0)
        except KeyboardInterrupt:
            interrupts += 1
            if interrupts == 1:
                sig = signal.SIGINT
                print_warning("SIGINT received, finishing work... (Ctrl-C again to exit now)")
            else:
                sig = signal.SIGTERM
                print_warning("Exiting now!")
            for process in processes:
                if process.poll() is None:
                    process.send_signal(sig)


def read_pids(pid_file: Path) -> list[int]:
    if not pid_file.exists():
        return []
    return [int(line) for line in pid_file.read_text().split() if line.strip()]


def write_pids(pid_file: Path, pids: list[int]) -> None:
    existing = read_pids(pid_file)
    pid_file.write_text("\n".join(str(pid) for pid in existing + pids) + "\n")


def is_running(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    return True


def stop_workers(pid_file: Path, sig: int = signal.SIGINT, poll_interval: float = 0.25) -> None:
    pids = read_pids(pid_file)
    if not pids:
        print_warning("No running workers found.")
        return

    print_warning(f"Stopping {len(pids)} worker(s) gracefully ({signal.Signals(sig).name})...")

    for pid in pids:
        if not is_running(pid):
            continue
        print_info(f"Stopping process id {pid}...")
        os.kill(pid, sig)
        while is_running(pid):
            time.sleep(poll_interval)

    pid_file.unlink(missing_ok=True)
    print_success("All workers stopped")


def _load_workers(ctx: typer.Context) -> list[WorkerConfig]:
    try:
        return load_jobs_manager(ctx.obj["manager"]).workers
    except JobQueueError as e:
        print_error(e.message)
        raise typer.Exit(1)


def _pid_file() -> Path:
    return Path(get_settings().jobs_pid_file)


@app.command()
def work(ctx: typer.Context):
    """Start workers and process jobs until stopped with Ctrl-C"""
    configs = _load_workers(ctx)
    num_workers = build_num_workers(configs)
    processes = start_workers(num_workers, manager=ctx.obj["manager"])
    raise typer.Exit(wait_for_workers(processes))


@app.command()
def workoff(ctx: typer.Context):
    """Start workers and exit once every job has been processed"""
    configs = _load_workers(ctx)
    num_workers = build_num_workers(configs)
    processes = start_workers(num_workers, workoff=True, manager=ctx.obj["manager"])
    raise typer.Exit(wait_for_workers(processes))


@app.command()
def start(ctx: typer.Context):
    """Start workers detached, in daemon mode"""
    configs = _load_workers(ctx)
    num_workers = build_num_workers(configs)
    processes = start_workers(num_workers, detach=True, manager=ctx.obj["manager"])

    pids = [process.pid for process in processes]
    write_pids(_pid_file(), pids)
    console.print(
        create_workers_table(
            num_workers, configs, pids, default_queue=get_settings().job_default_queue
        )
    )
    print_success(f"Started {len(pids)} worker(s)")


@app.command()
def stop():
    """Stop any detached workers, letting them finish their current job"""
    stop_workers(_pid_file())


@app.command()
def restart(ctx: typer.Context):
    """Stop and start detached workers"""
    stop_workers(_pid_file())
    start(ctx)


@app.command()
def clear(ctx: typer.Context):
    """Remove every job from the queue"""
    print_warning("Starting worker to clear job queue...")
    process = subprocess.Popen(
        worker_command(0, 0, clear=True, manager=ctx.obj["manager"])
    )
    raise typer.Exit(process.wait())


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    manager: Optional[str] = typer.Option(
        None,
        "--manager",
        "-m",
        help="Import path (module:attribute) of the JobManager [default: JOBS_MANAGER]",
    ),
    version: Optional[bool] = typer.Option(
        None, "--version", "-v", help="Show version and exit", is_eager=True
    ),
):
    """
    jobqueue runner

    Reads the worker list from your JobManager and runs one process per
    configured worker.
    """
    if version:
        from . import __version__

        console.print(Panel(f"jobqueue v{__version__}", border_style="cyan"))
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
        raise typer.Exit()

    ctx.obj = {"manager": manager or get_settings().jobs_manager}


if __name__ == "__main__":
    app()
