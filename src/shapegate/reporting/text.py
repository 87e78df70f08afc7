"""Human-readable report rendered to a rich console."""

from __future__ import annotations

from collections.abc import Sequence

from rich.console import Console
from rich.markup import escape

from shapegate.core.types import Tier
from shapegate.matching.types import Deviation, MatchResult
from shapegate.reporting.common import (
    SEVERITY_ICONS,
    FileStatus,
    compute_totals,
    file_status,
)

STATUS_STYLES: dict[FileStatus, tuple[str, str]] = {
    FileStatus.APPROVED: ("✓", "green"),
    FileStatus.REVIEW: ("⚠", "yellow"),
    FileStatus.ERROR: ("✗", "red"),
}

SEVERITY_STYLES = {"error": "red", "warning": "yellow", "info": "blue"}


def _print_reference(console: Console, result: MatchResult) -> None:
    reference = result.reference
    if reference is None:
        return
    if result.tier is Tier.GOLDEN:
        console.print(f"  Golden example: {escape(reference.path)}")
        if reference.author:
            console.print(f"  Blessed by: {escape(reference.author)}")
        if reference.reason:
            console.print(f"  Reason: {escape(reference.reason)}")
    elif result.tier is Tier.BLESSED:
        console.print(f"  Reference: {escape(reference.path)} (blessed)")
    else:
        console.print(f"  Reference: {escape(reference.path)}")


def _print_deviation(console: Console, deviation: Deviation) -> None:
    icon = SEVERITY_ICONS.get(deviation.severity, "•")
    style = SEVERITY_STYLES.get(deviation.severity.value, "white")
    line = f"    [{style}]{icon}[/{style}] {escape(deviation.element)}"
    if deviation.expected:
        line += f" (expected: {escape(deviation.expected)}"
        if deviation.actual:
            line += f", found: {escape(deviation.actual)}"
        line += ")"
    if deviation.line_number:
        line += f" at line {deviation.line_number}"
    console.print(line)
    if deviation.suggestion:
        console.print(f"      [dim]Suggestion:[/dim] {escape(deviation.suggestion)}")


def print_result(console: Console, result: MatchResult) -> None:
    """Print one file's result."""
    status = file_status(result)
    icon, style = STATUS_STYLES[status]
    console.print(f"[{style}]{icon}[/{style}] [bold]{escape(result.path)}[/bold]")
    if result.pattern is not None:
        console.print(
            f"  Pattern: {escape(result.pattern.name)} ({result.raw_score:.0f}% match)"
        )
        _print_reference(console, result)

    if status is FileStatus.APPROVED:
        console.print("  [green]Auto-approved[/green]")
    elif result.deviations:
        console.print("  Deviations:")
        for deviation in result.deviations:
            _print_deviation(console, deviation)
    console.print()


def render_text(
    console: Console,
    results: Sequence[MatchResult],
    review_lines_per_minute: float = 20.0,
    skipped: Sequence[str] = (),
) -> None:
    """Print every result followed by a summary."""
    if not results and not skipped:
        console.print("No files to check.")
        return

    for result in results:
        print_result(console, result)

    totals = compute_totals(results, review_lines_per_minute)
    warning_files = totals.review_files - totals.error_files
    warning_lines = totals.review_lines - totals.error_lines

    console.rule("Summary")
    console.print(
        f"  [green]✓[/green] {totals.approved_files} file(s) auto-approved "
        f"({totals.approved_lines} lines)"
    )
    if warning_files:
        console.print(
            f"  [yellow]⚠[/yellow] {warning_files} file(s) need review ({warning_lines} lines)"
        )
    if totals.error_files:
        console.print(
            f"  [red]✗[/red] {totals.error_files} file(s) have errors ({totals.error_lines} lines)"
        )
    if skipped:
        console.print(f"  [dim]-[/dim] {len(skipped)} file(s) skipped (could not be parsed)")
    if totals.time_saved_mins > 0:
        console.print(f"\nEstimated review time saved: {totals.time_saved_mins} minutes")
