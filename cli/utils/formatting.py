"""Rich formatting helpers for runner output"""

from rich import box
from rich.console import Console
from rich.table import Table

from jobqueue.jobs.schemas import WorkerConfig

console = Console()


def print_success(message: str):
    """Print success message with green styling"""
    console.print(f"[green]✓ {message}[/green]")


def print_error(message: str):
    """Print error message with red styling"""
    console.print(f"[red]✗ {message}[/red]")


def print_warning(message: str):
    """Print warning message with yellow styling"""
    console.print(f"[yellow]⚠ {message}[/yellow]")


def print_info(message: str):
    """Print info message with blue styling"""
    console.print(f"[blue]ℹ {message}[/blue]")


def create_workers_table(
    num_workers: list[tuple[int, int]],
    configs: list[WorkerConfig],
    pids: list[int] | None = None,
    default_queue: str = "default",
) -> Table:
    """Create a table of the worker processes being started"""
    table = Table(title="Workers", box=box.ROUNDED)

    table.add_column("Index", justify="right", style="cyan", no_wrap=True)
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("Adapter", justify="left", style="magenta")
    table.add_column("Queue", justify="left", style="green")
    table.add_column("PID", justify="right", style="yellow")

    for position, (index, worker_id) in enumerate(num_workers):
        config = configs[index]
        queue = config.queue or default_queue
        queue_str = queue if isinstance(queue, str) else ", ".join(queue)
        pid = str(pids[position]) if pids else "-"
        table.add_row(str(index), str(worker_id), config.adapter, queue_str, pid)

    return table
