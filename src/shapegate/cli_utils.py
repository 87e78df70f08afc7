"""Shared CLI helpers: console, exit codes, message helpers, logging setup."""

from __future__ import annotations

import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

# Exit codes
EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_CONFIG_ERROR = 2

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

console = Console()
err_console = Console(stderr=True)


def _setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Configure root logging once for a CLI invocation.

    Args:
        verbose: Log at DEBUG.
        quiet: Log errors only.

    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)


def _error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[red]Error:[/red] {escape(message)}")


def _warning(message: str) -> None:
    """Print a warning message."""
    err_console.print(f"[yellow]Warning:[/yellow] {escape(message)}")


def _success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]✓[/green] {escape(message)}")


def _validate_project_path(project: str) -> Path:
    """Resolve a project directory or exit with EXIT_ERROR."""
    project_path = Path(project).resolve()
    if not project_path.exists():
        _error(f"Project directory does not exist: {project_path}")
        raise typer.Exit(code=EXIT_ERROR)
    if not project_path.is_dir():
        _error(f"Path is not a directory: {project_path}")
        raise typer.Exit(code=EXIT_ERROR)
    return project_path
