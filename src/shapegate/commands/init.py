"""Init command: learn patterns from a codebase and write the pattern store."""

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
from shapegate.config import config_exists, config_path_for, default_config, save_config
from shapegate.core.exceptions import ConfigValidationError, UnsupportedLanguageError

LANGUAGE_LABELS = {
    "python": "Python",
    "go": "Go",
    "typescript": "TypeScript/JavaScript",
}


def init_command(
    project: str = typer.Option(
        ".",
        "--project",
        "-p",
        help="Path to project directory to scan",
    ),
    language: str | None = typer.Option(
        None,
        "--language",
        "-l",
        help="Language family (python, go, typescript); auto-detected if omitted",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite an existing pattern store",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output",
    ),
) -> None:
    """Bootstrap patterns from an existing codebase.

    Scans every source file of the project's language, groups files into
    role categories and writes the learned patterns to .shapegate.yml.

    Examples:
        shapegate init                  # Scan current directory
        shapegate init -l python        # Force the language family
        shapegate init --force          # Re-learn from scratch

    """
    from shapegate.extraction.registry import resolve_family
    from shapegate.extraction.walk import detect_project_family
    from shapegate.learning import PatternLearner

    _setup_logging(verbose=verbose)
    project_path = _validate_project_path(project)
    store_path = config_path_for(project_path)

    if config_exists(store_path) and not force:
        console.print(
            f"[yellow]Pattern store already exists:[/yellow] {store_path}. "
            "Use --force to overwrite."
        )
        return

    try:
        family = resolve_family(language) if language else detect_project_family(project_path)
    except UnsupportedLanguageError as e:
        _error(str(e))
        raise typer.Exit(code=EXIT_ERROR) from None

    console.print(f"[bold]Scanning codebase:[/bold] {project_path}")
    console.print(f"Language: {LANGUAGE_LABELS.get(family.value, family.value)}")

    result = PatternLearner(project_path, family).learn()

    config = default_config(family)
    config.patterns = result.patterns
    try:
        save_config(config, store_path)
    except ConfigValidationError as e:
        _error(str(e))
        raise typer.Exit(code=EXIT_CONFIG_ERROR) from None

    console.print(f"→ Discovered {result.files_scanned} file(s)")
    if result.skipped:
        console.print(f"→ Skipped {len(result.skipped)} file(s) that could not be parsed")
    console.print("→ Identified patterns:")
    for pattern in result.patterns:
        console.print(
            f"  • {pattern.name}: {pattern.seen_count} example(s), "
            f"confidence {pattern.confidence:.2f}"
        )
    if not result.patterns:
        console.print("  [dim](none; a pattern needs 3 examples or a golden annotation)[/dim]")
    console.print(f"→ Generated {store_path.name}")
    _success("Ready to use!")
