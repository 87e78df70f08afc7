"""Check command: match files against the learned patterns and report."""

import os
from pathlib import Path

import typer

from shapegate.cli_utils import (
    EXIT_CONFIG_ERROR,
    EXIT_ERROR,
    _error,
    _setup_logging,
    _validate_project_path,
    _warning,
    console,
)
from shapegate.config import config_path_for, load_config
from shapegate.core.exceptions import ConfigValidationError

OUTPUT_FORMATS = ("text", "json", "github")


def _github_context(repo_url: str | None, sha: str | None) -> tuple[str, str]:
    """Fill repository URL and commit SHA from the CI environment when omitted."""
    if not repo_url:
        repository = os.environ.get("GITHUB_REPOSITORY", "")
        repo_url = f"https://github.com/{repository}" if repository else ""
    if not sha:
        sha = os.environ.get("GITHUB_SHA", "")
    return repo_url, sha


def _display_path(path: Path) -> str:
    try:
        return os.path.relpath(path)
    except ValueError:
        return str(path)


def check_command(
    files: list[str] | None = typer.Argument(
        None,
        help="Files to check (default: every source file in the project)",
    ),
    project: str = typer.Option(
        ".",
        "--project",
        "-p",
        help="Path to project directory holding .shapegate.yml",
    ),
    output_format: str = typer.Option(
        "text",
        "--format",
        "-f",
        help="Output format: text, json or github",
    ),
    threshold: float | None = typer.Option(
        None,
        "--threshold",
        "-t",
        min=0.0,
        max=100.0,
        help="Auto-approve threshold (0-100), overrides the store setting",
    ),
    repo_url: str | None = typer.Option(
        None,
        "--repo-url",
        help="Repository URL for links in github format",
    ),
    sha: str | None = typer.Option(
        None,
        "--sha",
        help="Commit SHA for links in github format",
    ),
    workers: int | None = typer.Option(
        None,
        "--workers",
        "-w",
        min=1,
        help="Worker threads (default: one per core)",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output",
    ),
) -> None:
    """Check files against established patterns.

    Exits with code 1 when any file carries an error-severity deviation.

    Examples:
        shapegate check                           # Check the whole project
        shapegate check internal/svc/user.go      # Check one file
        shapegate check -f json > report.json     # JSON report for CI
        shapegate check -f github --sha $SHA      # Pull request comment

    """
    from shapegate.extraction.walk import iter_source_files
    from shapegate.matching import MatchEngine, match_files
    from shapegate.reporting import render_github, render_json, render_text

    _setup_logging(verbose=verbose)

    if output_format not in OUTPUT_FORMATS:
        _error(f"Unknown format '{output_format}'. Choose from: {', '.join(OUTPUT_FORMATS)}")
        raise typer.Exit(code=EXIT_ERROR)

    project_path = _validate_project_path(project)
    try:
        config = load_config(config_path_for(project_path))
    except ConfigValidationError as e:
        _error(str(e))
        raise typer.Exit(code=EXIT_CONFIG_ERROR) from None

    settings = config.settings
    if files:
        paths = list(files)
    else:
        paths = [
            _display_path(p) for p in iter_source_files(project_path, config.language)
        ]

    engine = MatchEngine(
        config.patterns,
        root=project_path,
        threshold=threshold if threshold is not None else settings.auto_approve_threshold,
        shape_fallback_similarity=settings.shape_fallback_similarity,
        anti_pattern_threshold=settings.anti_pattern_threshold,
    )
    batch = match_files(engine, paths, workers=workers or settings.workers)
    skipped = [path for path, _exc in batch.failures]
    for path in skipped:
        _warning(f"Skipped {path}: could not be parsed")

    if output_format == "json":
        typer.echo(
            render_json(
                batch.results,
                config.language.value,
                settings.review_lines_per_minute,
                skipped,
            )
        )
    elif output_format == "github":
        url, commit = _github_context(repo_url, sha)
        typer.echo(
            render_github(batch.results, url, commit, settings.review_lines_per_minute)
        )
    else:
        render_text(console, batch.results, settings.review_lines_per_minute, skipped)

    if any(result.has_errors for result in batch.results):
        raise typer.Exit(code=EXIT_ERROR)
