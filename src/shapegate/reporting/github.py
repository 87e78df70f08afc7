"""Pull request comment rendering (GitHub-flavoured markdown).

The comment ends with a machine-readable feedback block, JSON inside an HTML
comment, meant for coding assistants that pick up review feedback.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from shapegate.core.types import Severity
from shapegate.matching.types import MatchResult
from shapegate.reporting.common import (
    FileStatus,
    compute_totals,
    count_lines,
    file_status,
    pattern_label,
    review_guide,
)
from shapegate.reporting.json_report import deviation_report
from shapegate.reporting.models import AgentFeedback, FeedbackItem

FEEDBACK_MARKER = "shapegate-feedback"

MARKDOWN_ICONS: dict[Severity, str] = {
    Severity.ERROR: "❌",
    Severity.WARNING: "⚠️",
    Severity.INFO: "ℹ️",
}

_TEMPLATE_DIR = Path(__file__).parent / "templates"


def github_link(repo_url: str, sha: str, path: str, line: int | None = None) -> str:
    """Return a markdown link to a file (or line), or inline code without context."""
    if not repo_url or not sha:
        return f"`{path}`"
    base = repo_url.removesuffix(".git").rstrip("/")
    if line:
        return f"[`{path}#L{line}`]({base}/blob/{sha}/{path}#L{line})"
    return f"[`{path}`]({base}/blob/{sha}/{path})"


def build_feedback(results: Sequence[MatchResult]) -> AgentFeedback:
    """Collect the deviations of every file needing review."""
    feedback = AgentFeedback()
    for result in results:
        if file_status(result) is FileStatus.APPROVED or not result.deviations:
            continue
        feedback.files.append(
            FeedbackItem(
                file=result.path,
                pattern=result.pattern_id,
                reference=result.reference.path if result.reference is not None else None,
                score=round(result.raw_score, 2),
                issues=[deviation_report(d) for d in result.deviations],
            )
        )
    return feedback


def _environment() -> Environment:
    env = Environment(
        loader=FileSystemLoader(_TEMPLATE_DIR),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
    env.globals["link"] = github_link
    return env


def render_github(
    results: Sequence[MatchResult],
    repo_url: str = "",
    sha: str = "",
    review_lines_per_minute: float = 20.0,
) -> str:
    """Render results as a pull request comment."""
    line_counts = {result.path: count_lines(result.path) for result in results}
    totals = compute_totals(results, review_lines_per_minute, line_counts)

    approved = [r for r in results if file_status(r) is FileStatus.APPROVED]
    review = [
        {
            "result": r,
            "pattern": pattern_label(r),
            "deviations": [(MARKDOWN_ICONS[d.severity], d) for d in r.deviations],
            "checklist": review_guide(r.pattern.category if r.pattern is not None else None),
        }
        for r in results
        if file_status(r) is not FileStatus.APPROVED
    ]
    feedback = build_feedback(results)
    # "-->" inside the payload would close the HTML comment early
    feedback_json = (
        feedback.model_dump_json(indent=2, exclude_none=True).replace("-->", "--\\u003e")
        if feedback.files
        else ""
    )

    template = _environment().get_template("github_comment.md.j2")
    return template.render(
        results=results,
        approved=approved,
        review=review,
        totals=totals,
        repo_url=repo_url,
        sha=sha,
        pattern_label=pattern_label,
        feedback_marker=FEEDBACK_MARKER,
        feedback_json=feedback_json,
    )
