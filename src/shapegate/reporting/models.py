"""JSON report models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class DeviationReport(BaseModel):
    """One deviation in a JSON report."""

    type: str
    element: str
    expected: str | None = None
    actual: str | None = None
    severity: str
    suggestion: str
    line_number: int | None = None


class FileReport(BaseModel):
    """One checked file."""

    file_path: str
    pattern: str | None = None
    pattern_type: str | None = None
    score: float
    weighted_score: float
    tier: str | None = None
    reference: str | None = None
    lines: int
    deviations: list[DeviationReport] = Field(default_factory=list)
    review_guide: list[str] = Field(default_factory=list)


class ReportSummary(BaseModel):
    """Aggregate statistics."""

    total_files: int = 0
    approved_files: int = 0
    review_files: int = 0
    approved_lines: int = 0
    review_lines: int = 0
    time_saved_mins: int = 0


class JSONReport(BaseModel):
    """Structured check output for CI systems."""

    summary: ReportSummary = Field(default_factory=ReportSummary)
    auto_approved: list[FileReport] = Field(default_factory=list)
    needs_review: list[FileReport] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
    language: str


class FeedbackItem(BaseModel):
    """Per-file entry of the machine-readable feedback block."""

    file: str
    pattern: str | None = None
    reference: str | None = None
    score: float
    issues: list[DeviationReport] = Field(default_factory=list)


class AgentFeedback(BaseModel):
    """Feedback block embedded in review comments for coding assistants."""

    version: str = "1"
    instructions: str = (
        "Each item lists structural deviations from the closest reference file. "
        "Apply the suggestions, then re-run `shapegate check` on the listed files."
    )
    files: list[FeedbackItem] = Field(default_factory=list)
