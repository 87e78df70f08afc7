"""Learn command: re-scan the codebase and merge into the pattern store."""

import typer

from shapegate.cli_utils import (
    EXIT_CONFIG_ERROR,
    EXIT_ERROR,
    _error,
    _setup_logging,
    _success,
    _validate_project_path,
    console,
)
from shapegate.config import config_path_for, load_config, save_config
from shapegate.core.exceptions import ConfigValidationError


def learn_command(
    project: str = typer.Option(
        ".",
        "--project",
        "-p",
        help="Path to project directory holding .shapegate.yml",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output",
    ),
) -> None:
    """Update patterns from the current state of the codebase.

    Existing patterns keep their golden and blessed references; their
    discovered references, counts and confidence are refreshed. Newly
    qualifying categories are added.
    """
    from shapegate.learning import PatternLearner, merge_patterns

    _setup_logging(verbose=verbose)
    project_path = _validate_project_path(project)
    store_path = config_path_for(project_path)

    try:
        config = load_config(store_path)
    except ConfigValidationError as e:
        _error(str(e))
        raise typer.Exit(code=EXIT_CONFIG_ERROR) from None

    console.print(f"Analyzing {config.language.value} code in {project_path}...")
    result = PatternLearner(project_path, config.language).learn()

    try:
        summary = merge_patterns(config.patterns, result.patterns)
    except ValueError as e:
        _error(f"Cannot merge learned patterns: {e}")
        raise typer.Exit(code=EXIT_ERROR) from None

    try:
        save_config(config, store_path)
    except ConfigValidationError as e:
        _error(str(e))
        raise typer.Exit(code=EXIT_CONFIG_ERROR) from None

    if summary.added:
        console.print(f"→ Discovered {summary.added} new pattern(s)")
    if summary.updated:
        console.print(f"→ Updated {summary.updated} existing pattern(s)")
    if not summary.added and not summary.updated:
        console.print("→ No new patterns found")
    _success("Configuration updated")
