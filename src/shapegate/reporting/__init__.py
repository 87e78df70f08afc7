"""Report rendering for match results.

Provides:
- render_text(): rich console report
- render_json() / build_json_report(): JSON report for CI systems
- render_github(): pull request comment with an embedded feedback block

"""

from shapegate.reporting.common import FileStatus, count_lines, file_status, review_guide
from shapegate.reporting.github import build_feedback, render_github
from shapegate.reporting.json_report import build_json_report, render_json
from shapegate.reporting.models import (
    AgentFeedback,
    DeviationReport,
    FeedbackItem,
    FileReport,
    JSONReport,
    ReportSummary,
)
from shapegate.reporting.text import render_text

__all__ = [
    "AgentFeedback",
    "DeviationReport",
    "FeedbackItem",
    "FileReport",
    "FileStatus",
    "JSONReport",
    "ReportSummary",
    "build_feedback",
    "build_json_report",
    "count_lines",
    "file_status",
    "render_github",
    "render_json",
    "render_text",
    "review_guide",
]
