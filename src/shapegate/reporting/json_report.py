"""JSON report rendering."""

from __future__ import annotations

from collections.abc import Sequence

from shapegate.matching.types import Deviation, MatchResult
from shapegate.reporting.common import (
    FileStatus,
    compute_totals,
    count_lines,
    file_status,
    review_guide,
    tier_label,
)
from shapegate.reporting.models import DeviationReport, FileReport, JSONReport, ReportSummary


def deviation_report(deviation: Deviation) -> DeviationReport:
    """Convert a deviation to its report model."""
    return DeviationReport(
        type=deviation.kind.value,
        element=deviation.element,
        expected=deviation.expected or None,
        actual=deviation.actual or None,
        severity=deviation.severity.value,
        suggestion=deviation.suggestion,
        line_number=deviation.line_number,
    )


def file_report(result: MatchResult, lines: int | None = None) -> FileReport:
    """Convert a match result to its report model."""
    pattern = result.pattern
    approved = file_status(result) is FileStatus.APPROVED
    return FileReport(
        file_path=result.path,
        pattern=pattern.name if pattern is not None else None,
        pattern_type=pattern.category.value if pattern is not None else None,
        score=round(result.raw_score, 2),
        weighted_score=round(result.weighted_score, 2),
        tier=tier_label(result.tier) or None,
        reference=result.reference.path if result.reference is not None else None,
        lines=lines if lines is not None else count_lines(result.path),
        deviations=[deviation_report(d) for d in result.deviations],
        review_guide=[] if approved else review_guide(
            pattern.category if pattern is not None else None
        ),
    )


def build_json_report(
    results: Sequence[MatchResult],
    language: str,
    review_lines_per_minute: float = 20.0,
    skipped: Sequence[str] = (),
) -> JSONReport:
    """Build the JSON report model for a set of results."""
    line_counts = {result.path: count_lines(result.path) for result in results}
    totals = compute_totals(results, review_lines_per_minute, line_counts)

    report = JSONReport(
        language=language,
        skipped=list(skipped),
        summary=ReportSummary(
            total_files=totals.total_files,
            approved_files=totals.approved_files,
            review_files=totals.review_files,
            approved_lines=totals.approved_lines,
            review_lines=totals.review_lines,
            time_saved_mins=totals.time_saved_mins,
        ),
    )
    for result in results:
        entry = file_report(result, line_counts[result.path])
        if file_status(result) is FileStatus.APPROVED:
            report.auto_approved.append(entry)
        else:
            report.needs_review.append(entry)
    return report


def render_json(
    results: Sequence[MatchResult],
    language: str,
    review_lines_per_minute: float = 20.0,
    skipped: Sequence[str] = (),
) -> str:
    """Render results as an indented JSON document."""
    report = build_json_report(results, language, review_lines_per_minute, skipped)
    return report.model_dump_json(indent=2)
