"""Shared helpers for the report renderers."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from shapegate.core.types import PatternCategory, Severity, Tier
from shapegate.matching.types import MatchResult

# Used when a file cannot be read or is empty
FALLBACK_LINE_COUNT = 100

DEFAULT_REVIEW_GUIDE: list[str] = [
    "Verify code follows team conventions",
    "Check error handling",
    "Ensure proper documentation",
]

REVIEW_GUIDES: dict[PatternCategory, list[str]] = {
    PatternCategory.COMPONENT: [
        "Verify props interface is complete and typed",
        "Check for proper error boundaries",
        "Ensure useEffect cleanup functions exist",
        "Validate accessibility (aria labels, keyboard nav)",
    ],
    PatternCategory.HOOK: [
        "Verify hook follows rules of hooks",
        "Check dependency arrays are complete",
        "Ensure cleanup on unmount",
        "Validate return type consistency",
    ],
    PatternCategory.API: [
        "Verify input validation and sanitization",
        "Check error handling and status codes",
        "Ensure authentication/authorization checks",
        "Validate response types match API contract",
    ],
    PatternCategory.SERVICE: [
        "Verify error handling is comprehensive",
        "Check for proper logging",
        "Ensure dependencies are injected",
        "Validate business logic edge cases",
    ],
    PatternCategory.HANDLER: [
        "Verify request validation",
        "Check error responses are consistent",
        "Ensure proper HTTP status codes",
        "Validate authentication middleware",
    ],
    PatternCategory.STORE: [
        "Verify state immutability",
        "Check for proper action typing",
        "Ensure selectors are memoized",
        "Validate async action handling",
    ],
}

SEVERITY_ICONS: dict[Severity, str] = {
    Severity.ERROR: "✗",
    Severity.WARNING: "⚠",
    Severity.INFO: "ℹ",
}


class FileStatus(str, Enum):
    """Review status of one checked file."""

    APPROVED = "approved"
    REVIEW = "review"
    ERROR = "error"


def review_guide(category: PatternCategory | None) -> list[str]:
    """Return the review checklist for a pattern category."""
    if category is None:
        return list(DEFAULT_REVIEW_GUIDE)
    return list(REVIEW_GUIDES.get(category, DEFAULT_REVIEW_GUIDE))


def count_lines(path: str | Path) -> int:
    """Count a file's lines, falling back to 100 when unreadable or empty."""
    try:
        with open(path, encoding="utf-8", errors="replace") as f:
            count = sum(1 for _ in f)
    except OSError:
        return FALLBACK_LINE_COUNT
    return count or FALLBACK_LINE_COUNT


def file_status(result: MatchResult) -> FileStatus:
    """Return error, approved or review.

    An error-severity deviation outranks auto-approval: the file is listed
    for review even when its raw score cleared the threshold.
    """
    if result.has_errors:
        return FileStatus.ERROR
    if result.auto_approve:
        return FileStatus.APPROVED
    return FileStatus.REVIEW


def pattern_label(result: MatchResult) -> str:
    """Return the matched pattern's name or "unknown"."""
    return result.pattern.name if result.pattern is not None else "unknown"


def tier_label(tier: Tier | None) -> str:
    """Return the persisted key of a tier ("annotated_golden", ...)."""
    return tier.store_key if tier is not None else ""


@dataclass
class ReportTotals:
    """Aggregate counts over a set of results."""

    total_files: int = 0
    approved_files: int = 0
    review_files: int = 0
    error_files: int = 0
    approved_lines: int = 0
    review_lines: int = 0
    error_lines: int = 0
    time_saved_mins: int = 0


def compute_totals(
    results: Sequence[MatchResult],
    review_lines_per_minute: float,
    line_counts: dict[str, int] | None = None,
) -> ReportTotals:
    """Aggregate file and line counts.

    Files with error-severity deviations count as review files too;
    ``error_files`` / ``error_lines`` break them out. Time saved is
    ``approved_lines / review_lines_per_minute``, rounded down.
    """
    totals = ReportTotals(total_files=len(results))
    for result in results:
        lines = (line_counts or {}).get(result.path) or count_lines(result.path)
        status = file_status(result)
        if status is FileStatus.APPROVED:
            totals.approved_files += 1
            totals.approved_lines += lines
            continue
        totals.review_files += 1
        totals.review_lines += lines
        if status is FileStatus.ERROR:
            totals.error_files += 1
            totals.error_lines += lines
    totals.time_saved_mins = int(totals.approved_lines / review_lines_per_minute)
    return totals
