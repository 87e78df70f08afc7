"""Bless command: promote a file to a pattern's blessed references."""

import getpass
from pathlib import Path

import typer

from shapegate.cli_utils import (
    EXIT_CONFIG_ERROR,
    EXIT_ERROR,
    _error,
    _setup_logging,
    _success,
    _validate_project_path,
    _warning,
    console,
)
from shapegate.config import config_path_for, load_config, save_config
from shapegate.core.exceptions import (
    ConfigValidationError,
    ParseError,
    PatternNotFoundError,
)
from shapegate.core.types import Tier


def _current_user() -> str | None:
    try:
        return getpass.getuser()
    except (OSError, KeyError):
        return None


def bless_command(
    file: str = typer.Argument(..., help="File to bless"),
    project: str = typer.Option(
        ".",
        "--project",
        "-p",
        help="Path to project directory holding .shapegate.yml",
    ),
    pattern_id: str | None = typer.Option(
        None,
        "--pattern",
        help="Pattern id to bless into (default: the file's best match)",
    ),
    reason: str | None = typer.Option(
        None,
        "--reason",
        "-r",
        help="Why this file is a good reference",
    ),
    weight: float = typer.Option(
        Tier.BLESSED.default_weight,
        "--weight",
        "-w",
        min=0.01,
        help="Weight multiplier for pattern matching",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output",
    ),
) -> None:
    """Mark a file as a blessed pattern example.

    Blessed files weigh more than discovered ones (1.5x by default) when
    selecting the closest reference.
    """
    from shapegate.learning import bless
    from shapegate.matching import MatchEngine

    _setup_logging(verbose=verbose)
    project_path = _validate_project_path(project)
    store_path = config_path_for(project_path)

    file_path = Path(file).resolve()
    if not file_path.is_file():
        _error(f"File not found: {file}")
        raise typer.Exit(code=EXIT_ERROR)
    try:
        relative = file_path.relative_to(project_path).as_posix()
    except ValueError:
        _error(f"File is outside the project: {file_path}")
        raise typer.Exit(code=EXIT_ERROR) from None

    try:
        config = load_config(store_path)
    except ConfigValidationError as e:
        _error(str(e))
        raise typer.Exit(code=EXIT_CONFIG_ERROR) from None

    if pattern_id is None:
        engine = MatchEngine(config.patterns, root=project_path)
        try:
            match = engine.match_file(file_path)
        except ParseError as e:
            _error(f"Failed to analyze file: {e}")
            raise typer.Exit(code=EXIT_ERROR) from None
        if match.pattern is None:
            _error(f"No matching pattern found for {relative}; pass --pattern")
            raise typer.Exit(code=EXIT_ERROR)
        pattern_id = match.pattern.id

    try:
        added = bless(
            config,
            relative,
            pattern_id,
            reason=reason,
            weight=weight,
            author=_current_user(),
        )
    except PatternNotFoundError as e:
        _error(str(e))
        raise typer.Exit(code=EXIT_ERROR) from None
    except ValueError as e:
        _error(f"Cannot bless {relative}: {e}")
        raise typer.Exit(code=EXIT_ERROR) from None

    if not added:
        _warning(f"{relative} is already a golden or blessed reference of {pattern_id}")
        return

    try:
        save_config(config, store_path)
    except ConfigValidationError as e:
        _error(str(e))
        raise typer.Exit(code=EXIT_CONFIG_ERROR) from None

    _success(f"Blessed {relative}")
    console.print(f"  Pattern: {pattern_id}")
    console.print(f"  Weight: {weight:.1f}x")
    if reason:
        console.print(f"  Reason: {reason}")
