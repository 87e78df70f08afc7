"""Tests for the text, JSON and pull request comment reports."""

import dataclasses
import io
import json
from pathlib import Path

import pytest
from rich.console import Console

from shapegate.core.types import DeviationKind, PatternCategory, Severity, Tier
from shapegate.matching.types import Deviation, MatchResult
from shapegate.patterns.models import ReferenceExample
from shapegate.reporting import (
    FileStatus,
    build_feedback,
    build_json_report,
    count_lines,
    file_status,
    render_github,
    render_json,
    render_text,
    review_guide,
)
from shapegate.reporting.common import DEFAULT_REVIEW_GUIDE, FALLBACK_LINE_COUNT, compute_totals
from shapegate.reporting.github import FEEDBACK_MARKER, github_link

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def results(tmp_path: Path, make_pattern) -> list[MatchResult]:
    """One approved, one needing review, one with an error, one unmatched."""
    approved_path = tmp_path / "approved_service.py"
    approved_path.write_text("x = 1\n" * 40, encoding="utf-8")
    review_path = tmp_path / "review_service.py"
    review_path.write_text("x = 1\n" * 10, encoding="utf-8")

    pattern = make_pattern(references={Tier.DISCOVERED: ["ref_service.py"]})
    reference = ReferenceExample(path="ref_service.py")
    missing_import = Deviation(
        kind=DeviationKind.MISSING,
        element="import",
        expected="logging",
        severity=Severity.WARNING,
        suggestion="Add import 'logging'",
        line_number=3,
    )
    anti = Deviation(
        kind=DeviationKind.DIFFERENT,
        element="anti_pattern",
        expected="not resembling legacy.py",
        actual="97% similar to legacy.py",
        severity=Severity.ERROR,
        suggestion="Stop --> using the legacy wiring",
    )
    novel = Deviation(
        kind=DeviationKind.NOVEL,
        element="pattern",
        expected="a known pattern",
        actual="no match",
        suggestion="No patterns configured; run `shapegate init` to learn patterns",
    )
    return [
        MatchResult(
            path=str(approved_path),
            pattern=pattern,
            raw_score=97.0,
            weighted_score=97.0,
            tier=Tier.DISCOVERED,
            reference=reference,
            auto_approve=True,
        ),
        MatchResult(
            path=str(review_path),
            pattern=pattern,
            raw_score=61.25,
            weighted_score=61.25,
            tier=Tier.DISCOVERED,
            reference=reference,
            deviations=(missing_import,),
        ),
        MatchResult(
            path=str(tmp_path / "gone_service.py"),
            pattern=pattern,
            raw_score=92.0,
            weighted_score=92.0,
            tier=Tier.DISCOVERED,
            reference=reference,
            deviations=(anti,),
        ),
        MatchResult(
            path=str(tmp_path / "novel.py"),
            pattern=None,
            raw_score=0.0,
            weighted_score=0.0,
            deviations=(novel,),
        ),
    ]


# =============================================================================
# Shared helpers
# =============================================================================


class TestCommon:
    """Status, line counting and totals."""

    def test_file_status(self, results: list[MatchResult]) -> None:
        """Each result maps to one status."""
        assert [file_status(r) for r in results] == [
            FileStatus.APPROVED,
            FileStatus.REVIEW,
            FileStatus.ERROR,
            FileStatus.REVIEW,
        ]

    def test_error_outranks_approval(self, results: list[MatchResult]) -> None:
        """An approved score with an error deviation still needs review."""
        flagged = dataclasses.replace(results[2], auto_approve=True)
        assert file_status(flagged) is FileStatus.ERROR
        report = build_json_report([flagged], "python")
        assert report.auto_approved == []
        assert [f.file_path for f in report.needs_review] == [flagged.path]

    def test_count_lines_fallback(self, tmp_path: Path) -> None:
        """Unreadable and empty files count as 100 lines."""
        empty = tmp_path / "empty.py"
        empty.write_text("", encoding="utf-8")
        assert count_lines(tmp_path / "missing.py") == FALLBACK_LINE_COUNT
        assert count_lines(empty) == FALLBACK_LINE_COUNT

    def test_totals(self, results: list[MatchResult]) -> None:
        """Error files count as review files and are broken out."""
        totals = compute_totals(results, review_lines_per_minute=20)
        assert totals.total_files == 4
        assert totals.approved_files == 1
        assert totals.approved_lines == 40
        assert totals.review_files == 3
        assert totals.review_lines == 10 + 100 + 100
        assert totals.error_files == 1
        assert totals.time_saved_mins == 2

    def test_review_guide(self) -> None:
        """Unknown or missing categories get the default checklist."""
        assert review_guide(None) == DEFAULT_REVIEW_GUIDE
        assert "Check for proper logging" in review_guide(PatternCategory.SERVICE)
        assert review_guide(PatternCategory.MODEL) == DEFAULT_REVIEW_GUIDE


# =============================================================================
# JSON
# =============================================================================


class TestJSONReport:
    """Structured report."""

    def test_sections(self, results: list[MatchResult]) -> None:
        """Approved and review files land in their own lists."""
        report = build_json_report(results, "python", skipped=["broken.py"])
        assert report.language == "python"
        assert report.skipped == ["broken.py"]
        assert [f.file_path for f in report.auto_approved] == [results[0].path]
        assert [f.file_path for f in report.needs_review] == [r.path for r in results[1:]]
        assert report.summary.time_saved_mins == 2

    def test_file_entries(self, results: list[MatchResult]) -> None:
        """Entries carry pattern, tier, reference and a checklist when reviewed."""
        report = build_json_report(results, "python")
        approved = report.auto_approved[0]
        assert approved.review_guide == []
        assert approved.tier == "discovered"
        review = report.needs_review[0]
        assert review.pattern == "service"
        assert review.pattern_type == "service"
        assert review.reference == "ref_service.py"
        assert review.lines == 10
        assert review.deviations[0].type == "missing"
        assert review.deviations[0].line_number == 3
        assert review.review_guide
        unmatched = report.needs_review[-1]
        assert unmatched.pattern is None
        assert unmatched.review_guide == DEFAULT_REVIEW_GUIDE

    def test_render_is_valid_json(self, results: list[MatchResult]) -> None:
        """render_json emits a parseable document."""
        data = json.loads(render_json(results, "go", 20.0))
        assert data["summary"]["total_files"] == 4
        assert data["summary"]["approved_lines"] == 40
        assert data["language"] == "go"


# =============================================================================
# GitHub comment
# =============================================================================


class TestGitHubReport:
    """Pull request comment."""

    def test_links(self) -> None:
        """Links need both repository URL and SHA."""
        assert github_link("", "", "a.go") == "`a.go`"
        assert (
            github_link("https://github.com/o/r.git", "abc", "a.go", 12)
            == "[`a.go#L12`](https://github.com/o/r/blob/abc/a.go#L12)"
        )

    def test_comment_sections(self, results: list[MatchResult]) -> None:
        """Header, approved table, review section and checklist are rendered."""
        comment = render_github(results, "https://github.com/o/r", "abc")
        assert comment.startswith("## 🤖 shapegate - AI Code Review")
        assert "**4 files** analyzed | **1** auto-approved | **3** need review" in comment
        assert "<summary>✅ <strong>Auto-approved</strong> (1 files, 40 lines)</summary>" in comment
        assert "### 🔍 Needs Human Review" in comment
        assert "- ⚠️ **import** at [`" in comment
        assert "  - Expected: `logging`" in comment
        assert "- [ ] Verify error handling is comprehensive" in comment
        assert "Review time saved: ~2 min" in comment

    def test_feedback_block(self, results: list[MatchResult]) -> None:
        """The feedback JSON parses and cannot close its HTML comment early."""
        comment = render_github(results)
        start = comment.index(f"<!-- {FEEDBACK_MARKER}\n") + len(f"<!-- {FEEDBACK_MARKER}\n")
        end = comment.index("\n-->", start)
        payload = json.loads(comment[start:end])
        assert [item["file"] for item in payload["files"]] == [r.path for r in results[1:]]
        assert "-->" not in comment[start:end]
        assert payload["files"][1]["issues"][0]["suggestion"] == "Stop --> using the legacy wiring"

    def test_feedback_skips_approved(self, results: list[MatchResult]) -> None:
        """Approved files carry no feedback."""
        feedback = build_feedback(results)
        assert results[0].path not in [item.file for item in feedback.files]

    def test_empty(self) -> None:
        """No results renders the empty-change note and no feedback block."""
        comment = render_github([])
        assert "No files to check in this change." in comment
        assert FEEDBACK_MARKER not in comment


# =============================================================================
# Text
# =============================================================================


class TestTextReport:
    """Console report."""

    def _render(self, results: list[MatchResult], skipped: list[str] | None = None) -> str:
        buffer = io.StringIO()
        console = Console(file=buffer, width=200, color_system=None)
        render_text(console, results, 20.0, skipped or [])
        return buffer.getvalue()

    def test_summary(self, results: list[MatchResult]) -> None:
        """Each status is counted in the summary."""
        output = self._render(results, ["broken.py"])
        assert "Auto-approved" in output
        assert "1 file(s) auto-approved (40 lines)" in output
        assert "2 file(s) need review (110 lines)" in output
        assert "1 file(s) have errors (100 lines)" in output
        assert "1 file(s) skipped" in output
        assert "Estimated review time saved: 2 minutes" in output

    def test_deviation_lines(self, results: list[MatchResult]) -> None:
        """Deviations show expected values and suggestions."""
        output = self._render(results)
        assert "import (expected: logging) at line 3" in output
        assert "Suggestion: Add import 'logging'" in output

    def test_nothing_to_check(self) -> None:
        """An empty run says so."""
        assert "No files to check." in self._render([])
