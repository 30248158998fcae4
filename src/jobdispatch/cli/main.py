"""jobdispatch CLI application."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Optional

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from jobdispatch import __version__
from jobdispatch.config import ConfigError, load_config, load_jobs
from jobdispatch.core.job import Job
from jobdispatch.errors import SpawnError
from jobdispatch.models import DispatchConfig, Error, Exit, Running, Standby, Status

app = typer.Typer(
    name="jobdispatch",
    help="jobdispatch - run executables as observable jobs",
    no_args_is_help=True,
)
console = Console()


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration."""
    logger.remove()

    level = "DEBUG" if verbose else "INFO"

    logger.add(
        sys.stderr,
        format="<level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
        level=level,
        colorize=True,
    )


def format_status(status: Status) -> str:
    """Render a status with rich markup."""
    match status:
        case Exit():
            return f"[green]{status}[/green]"
        case Error():
            return f"[red]{status}[/red]"
        case Running():
            return f"[blue]{status}[/blue]"
        case Standby():
            return f"[dim]{status}[/dim]"


def exit_code_for(status: Status) -> int:
    """Process exit code the CLI reports for a job status."""
    match status:
        case Exit():
            return 0
        case Error(code=code):
            return code if code > 0 else 1
        case Standby() | Running():
            return 1


def _load_settings(config_path: Path | None) -> DispatchConfig:
    try:
        return load_config(config_path)
    except ConfigError as e:
        console.print(f"[red]Error loading config: {e}[/red]")
        raise typer.Exit(1)


async def _wait_all(jobs: list[Job], poll_interval: float) -> None:
    await asyncio.gather(*(job.wait_async(poll_interval) for job in jobs))


@app.command("run")
def run(
    name: str = typer.Argument(..., help="Job name"),
    path: Path = typer.Argument(..., help="Executable to run (no arguments are passed)"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """Run one executable and wait for it to finish."""
    setup_logging(verbose)
    settings = _load_settings(config_path)

    job = Job(name, path, kill_timeout=settings.kill_timeout)
    try:
        job.start()
    except SpawnError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(1)

    with job:
        job.wait()

    console.print(f"{job.get_name()}: {format_status(job.get_status())}")
    raise typer.Exit(exit_code_for(job.get_status()))


@app.command("run-all")
def run_all(
    jobs_file: Path = typer.Argument(..., help="YAML file mapping job names to executables"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """Start every job in a file and wait for all of them concurrently."""
    setup_logging(verbose)
    settings = _load_settings(config_path)

    try:
        specs = load_jobs(jobs_file)
    except ConfigError as e:
        console.print(f"[red]Error loading jobs: {e}[/red]")
        raise typer.Exit(1)

    if not specs:
        console.print("[yellow]No jobs defined[/yellow]")
        return

    jobs = [Job(spec.name, spec.path, kill_timeout=settings.kill_timeout) for spec in specs]
    started = []
    for job in jobs:
        try:
            job.start()
            started.append(job)
        except SpawnError as e:
            console.print(f"[red]✗ {e}[/red]")

    try:
        asyncio.run(_wait_all(started, settings.poll_interval))
    finally:
        for job in started:
            job.close()

    table = Table(title="Jobs")
    table.add_column("Job", style="cyan")
    table.add_column("Path")
    table.add_column("Status")

    for job in jobs:
        table.add_row(job.get_name(), str(job.get_path()), format_status(job.get_status()))

    console.print(table)

    if any(not isinstance(job.get_status(), Exit) for job in jobs):
        raise typer.Exit(1)


@app.command("version")
def version() -> None:
    """Show the jobdispatch version."""
    console.print(f"jobdispatch {__version__}")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
