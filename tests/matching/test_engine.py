"""Tests for the match engine: scoring, selection and degraded paths."""

from collections.abc import Callable
from pathlib import Path

import pytest

from shapegate.core.exceptions import ParseError
from shapegate.core.types import DeviationKind, PatternCategory, Severity, Tier
from shapegate.extraction.types import FileFingerprint
from shapegate.learning import PatternLearner
from shapegate.matching import MatchEngine, should_try_pattern
from shapegate.patterns.models import AntiPattern, DetectionRule

Factory = Callable[..., FileFingerprint]

HIST = {"Module": 1, "FunctionDef": 2, "If": 1, "Name": 9}


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def loader() -> Callable[[dict[str, FileFingerprint]], Callable[[str], FileFingerprint]]:
    """Build a reference loader over an in-memory {path: fingerprint} map.

    Unknown paths raise ParseError like an unreadable file. Every call is
    recorded in ``.calls``.
    """

    def _build(fingerprints: dict[str, FileFingerprint]) -> Callable[[str], FileFingerprint]:
        calls: list[str] = []

        def _load(path: str) -> FileFingerprint:
            calls.append(path)
            if path not in fingerprints:
                raise ParseError("Cannot read file", path=path)
            return fingerprints[path]

        _load.calls = calls  # type: ignore[attr-defined]
        return _load

    return _build


# =============================================================================
# Scoring
# =============================================================================


class TestScoring:
    """Raw score of one candidate against one reference."""

    def test_identical_scores_100(self, make_fingerprint: Factory) -> None:
        """Same imports, same error handling, same histogram."""
        ref = make_fingerprint(imports=("a", "b"), histogram=HIST, has_error_handling=True)
        cand = make_fingerprint(imports=("b", "a"), histogram=dict(HIST), has_error_handling=True)
        raw, deviations = MatchEngine([]).score_against_reference(cand, ref)
        assert raw == 100.0
        assert deviations == []

    def test_missing_imports_penalised(self, make_fingerprint: Factory) -> None:
        """Each reference import the candidate lacks costs 5 and one deviation."""
        ref = make_fingerprint(imports=("A", "B", "C"), histogram=HIST)
        cand = make_fingerprint(imports=("A",), histogram=dict(HIST))
        raw, deviations = MatchEngine([]).score_against_reference(cand, ref)
        assert raw == 90.0
        assert [(d.kind, d.element, d.expected) for d in deviations] == [
            (DeviationKind.MISSING, "import", "B"),
            (DeviationKind.MISSING, "import", "C"),
        ]
        assert all(d.severity is Severity.WARNING for d in deviations)

    def test_extra_candidate_imports_are_free(self, make_fingerprint: Factory) -> None:
        """Imports only the candidate has do not cost anything."""
        ref = make_fingerprint(imports=("A",), histogram=HIST)
        cand = make_fingerprint(imports=("A", "B", "C"), histogram=dict(HIST))
        raw, deviations = MatchEngine([]).score_against_reference(cand, ref)
        assert raw == 100.0
        assert deviations == []

    def test_missing_error_handling_penalised(self, make_fingerprint: Factory) -> None:
        """A reference null check the candidate lacks costs 10."""
        ref = make_fingerprint(histogram=HIST, has_error_handling=True)
        cand = make_fingerprint(histogram=dict(HIST), has_error_handling=False)
        raw, deviations = MatchEngine([]).score_against_reference(cand, ref)
        assert raw == 90.0
        assert [d.element for d in deviations] == ["error_handling"]
        assert "is None" in deviations[0].suggestion

    def test_extra_error_handling_is_free(self, make_fingerprint: Factory) -> None:
        """Only the reference-has / candidate-lacks direction is penalised."""
        ref = make_fingerprint(histogram=HIST, has_error_handling=False)
        cand = make_fingerprint(histogram=dict(HIST), has_error_handling=True)
        raw, _ = MatchEngine([]).score_against_reference(cand, ref)
        assert raw == 100.0

    def test_shape_fallback_without_histogram(self, make_fingerprint: Factory) -> None:
        """A missing histogram on either side uses the fallback factor."""
        ref = make_fingerprint(histogram=HIST)
        cand = make_fingerprint(histogram=None)
        assert MatchEngine([]).score_against_reference(cand, ref)[0] == 50.0
        engine = MatchEngine([], shape_fallback_similarity=0.8)
        assert engine.score_against_reference(ref, cand)[0] == pytest.approx(80.0)

    def test_score_clamped_at_zero(self, make_fingerprint: Factory) -> None:
        """Penalties never push the score below zero."""
        ref = make_fingerprint(imports=tuple(f"m{i}" for i in range(30)), histogram=HIST)
        cand = make_fingerprint(histogram=dict(HIST))
        raw, deviations = MatchEngine([]).score_against_reference(cand, ref)
        assert raw == 0.0
        assert len(deviations) == 30


# =============================================================================
# Pre-filter
# =============================================================================


class TestShouldTryPattern:
    """Path pre-filter."""

    def test_unconstrained_rule_always_passes(self, make_pattern) -> None:
        """A rule with no file glob and no path segment applies everywhere."""
        pattern = make_pattern(detection=DetectionRule(func_pattern="Handler$"))
        assert should_try_pattern("anything/at/all.go", pattern)

    def test_glob_or_segment(self, make_pattern) -> None:
        """Either the file glob or the path segment is enough."""
        pattern = make_pattern(
            detection=DetectionRule(file_pattern="*service*", path_segment="/services/")
        )
        assert should_try_pattern("internal/user_service.go", pattern)
        assert should_try_pattern("internal/services/user.go", pattern)
        assert should_try_pattern("services/user.go", pattern)
        assert not should_try_pattern("internal/user.go", pattern)


# =============================================================================
# Selection
# =============================================================================


class TestSelection:
    """Choosing the best comparison."""

    def test_weighted_score_selects_raw_score_approves(
        self, make_fingerprint: Factory, make_pattern, loader
    ) -> None:
        """Golden wins on weight even though discovered has the higher raw score."""
        cand = make_fingerprint(histogram={"A": 24, "B": 7})
        refs = {
            "gold.py": make_fingerprint(
                path="gold.py", imports=("w", "x", "y", "z"), histogram={"A": 24, "B": 7}
            ),
            "disc.py": make_fingerprint(path="disc.py", histogram={"A": 1}),
        }
        pattern = make_pattern(references={Tier.GOLDEN: ["gold.py"], Tier.DISCOVERED: ["disc.py"]})
        result = MatchEngine([pattern], reference_loader=loader(refs)).match_fingerprint(cand)
        assert result.tier is Tier.GOLDEN
        assert result.reference is not None and result.reference.path == "gold.py"
        assert result.raw_score == 80.0
        assert result.weighted_score == 160.0
        assert result.auto_approve is False

    def test_discovered_alone_auto_approves(
        self, make_fingerprint: Factory, make_pattern, loader
    ) -> None:
        """Raw 96 against a threshold of 95 approves."""
        cand = make_fingerprint(histogram={"A": 24, "B": 7})
        refs = {"disc.py": make_fingerprint(path="disc.py", histogram={"A": 1})}
        pattern = make_pattern(references={Tier.DISCOVERED: ["disc.py"]})
        result = MatchEngine([pattern], reference_loader=loader(refs)).match_fingerprint(cand)
        assert result.raw_score == pytest.approx(96.0)
        assert result.auto_approve is True

    def test_threshold_is_inclusive(self, make_fingerprint: Factory, make_pattern, loader) -> None:
        """A raw score equal to the threshold approves."""
        cand = make_fingerprint(imports=("a",), histogram=HIST)
        refs = {"r.py": make_fingerprint(path="r.py", imports=("a", "b"), histogram=HIST)}
        pattern = make_pattern(references={Tier.DISCOVERED: ["r.py"]})
        engine = MatchEngine([pattern], threshold=95.0, reference_loader=loader(refs))
        assert engine.match_fingerprint(cand).auto_approve is True

    def test_same_file_in_higher_tier_wins(
        self, make_fingerprint: Factory, make_pattern, loader
    ) -> None:
        """Equal raw scores: the higher tier weight decides."""
        cand = make_fingerprint(histogram=HIST)
        refs = {
            "b.py": make_fingerprint(path="b.py", histogram=HIST),
            "d.py": make_fingerprint(path="d.py", histogram=HIST),
        }
        pattern = make_pattern(references={Tier.BLESSED: ["b.py"], Tier.DISCOVERED: ["d.py"]})
        result = MatchEngine([pattern], reference_loader=loader(refs)).match_fingerprint(cand)
        assert result.tier is Tier.BLESSED
        assert result.weighted_score == 150.0

    def test_ties_keep_first_reference(
        self, make_fingerprint: Factory, make_pattern, loader
    ) -> None:
        """Equal weighted scores within a tier keep declaration order."""
        cand = make_fingerprint(histogram=HIST)
        refs = {p: make_fingerprint(path=p, histogram=HIST) for p in ("one.py", "two.py")}
        pattern = make_pattern(references={Tier.DISCOVERED: ["one.py", "two.py"]})
        result = MatchEngine([pattern], reference_loader=loader(refs)).match_fingerprint(cand)
        assert result.reference is not None and result.reference.path == "one.py"

    def test_ties_across_patterns_keep_lowest_id(
        self, make_fingerprint: Factory, make_pattern, loader
    ) -> None:
        """Patterns are visited sorted by id regardless of input order."""
        cand = make_fingerprint(histogram=HIST)
        refs = {"r.py": make_fingerprint(path="r.py", histogram=HIST)}
        patterns = [
            make_pattern("service_pattern", references={Tier.DISCOVERED: ["r.py"]}),
            make_pattern(
                "handler_pattern",
                PatternCategory.HANDLER,
                references={Tier.DISCOVERED: ["r.py"]},
            ),
        ]
        engine = MatchEngine(patterns, reference_loader=loader(refs))
        assert [p.id for p in engine.patterns] == ["handler_pattern", "service_pattern"]
        assert engine.match_fingerprint(cand).pattern_id == "handler_pattern"

    def test_deterministic(self, make_fingerprint: Factory, make_pattern, loader) -> None:
        """Matching the same candidate twice yields equal results."""
        cand = make_fingerprint(imports=("a",), histogram={"A": 3, "B": 1})
        refs = {
            "x.py": make_fingerprint(path="x.py", imports=("a", "b"), histogram={"A": 1}),
            "y.py": make_fingerprint(path="y.py", histogram={"B": 1}),
        }
        pattern = make_pattern(references={Tier.DISCOVERED: ["x.py", "y.py"]})
        engine = MatchEngine([pattern], reference_loader=loader(refs))
        assert engine.match_fingerprint(cand) == engine.match_fingerprint(cand)


# =============================================================================
# No match
# =============================================================================


class TestNoMatch:
    """Terminal results when nothing applies."""

    def test_no_patterns(self, make_fingerprint: Factory) -> None:
        """An empty pattern set yields one novel deviation."""
        result = MatchEngine([]).match_fingerprint(make_fingerprint())
        assert result.pattern is None
        assert not result.matched
        assert result.raw_score == 0.0
        assert result.auto_approve is False
        assert len(result.deviations) == 1
        assert result.deviations[0].kind is DeviationKind.NOVEL
        assert result.deviations[0].severity is Severity.WARNING
        assert "No patterns configured" in result.deviations[0].suggestion

    def test_all_patterns_filtered(self, make_fingerprint: Factory, make_pattern, loader) -> None:
        """Patterns pruned by the pre-filter leave a no-match result."""
        pattern = make_pattern(
            detection=DetectionRule(path_segment="/services/"),
            references={Tier.DISCOVERED: ["internal/services/a.go"]},
        )
        engine = MatchEngine([pattern], reference_loader=loader({}))
        result = engine.match_fingerprint(make_fingerprint(path="lib/strings.py"))
        assert result.pattern is None
        assert "skipped by their detection rules" in result.deviations[0].suggestion

    def test_patterns_without_references_dropped(self, make_pattern) -> None:
        """A pattern with an empty index never enters the engine."""
        engine = MatchEngine([make_pattern()])
        assert engine.patterns == ()


# =============================================================================
# Degraded references and anti-patterns
# =============================================================================


class TestDegradedReference:
    """Unloadable references score a flat fallback."""

    def test_missing_reference_file(
        self, tmp_path: Path, make_fingerprint: Factory, make_pattern
    ) -> None:
        """The default loader on a missing file yields 50 and an info deviation."""
        pattern = make_pattern(references={Tier.DISCOVERED: ["gone/service.py"]})
        engine = MatchEngine([pattern], root=tmp_path)
        result = engine.match_fingerprint(make_fingerprint(histogram=HIST))
        assert result.raw_score == 50.0
        assert result.pattern_id == "service_pattern"
        assert result.auto_approve is False
        assert [(d.element, d.severity) for d in result.deviations] == [
            ("reference", Severity.INFO)
        ]

    def test_unavailable_reference_loses_to_available(
        self, make_fingerprint: Factory, make_pattern, loader
    ) -> None:
        """A loadable reference scoring above 50 wins over a missing one."""
        refs = {"ok.py": make_fingerprint(path="ok.py", histogram=HIST)}
        pattern = make_pattern(references={Tier.DISCOVERED: ["missing.py", "ok.py"]})
        engine = MatchEngine([pattern], reference_loader=loader(refs))
        result = engine.match_fingerprint(make_fingerprint(histogram=HIST))
        assert result.reference is not None and result.reference.path == "ok.py"
        assert result.raw_score == 100.0

    def test_references_loaded_once(self, make_fingerprint: Factory, make_pattern, loader) -> None:
        """Reference fingerprints, failures included, are cached per engine."""
        refs = {"ok.py": make_fingerprint(path="ok.py", histogram=HIST)}
        load = loader(refs)
        pattern = make_pattern(references={Tier.DISCOVERED: ["ok.py", "missing.py"]})
        engine = MatchEngine([pattern], reference_loader=load)
        assert engine.warm_references() == 2
        engine.match_fingerprint(make_fingerprint(histogram=HIST))
        engine.match_fingerprint(make_fingerprint(histogram=HIST))
        assert sorted(load.calls) == ["missing.py", "ok.py"]


class TestAntiPatterns:
    """Resemblance to deprecated implementations."""

    def test_similar_anti_pattern_is_error(
        self, make_fingerprint: Factory, make_pattern, loader
    ) -> None:
        """A raw score >= 90 against an anti-pattern adds an error deviation."""
        refs = {
            "good.py": make_fingerprint(path="good.py", histogram={"A": 1}),
            "legacy.py": make_fingerprint(path="legacy.py", histogram=HIST),
        }
        pattern = make_pattern(
            references={Tier.DISCOVERED: ["good.py"]},
            anti_patterns=[
                AntiPattern(
                    path="legacy.py",
                    pattern="service",
                    reason="Legacy wiring",
                    migration_guide="docs/services.md",
                )
            ],
        )
        engine = MatchEngine([pattern], reference_loader=loader(refs))
        result = engine.match_fingerprint(make_fingerprint(histogram=HIST))
        assert result.has_errors
        anti = [d for d in result.deviations if d.element == "anti_pattern"]
        assert len(anti) == 1
        assert anti[0].kind is DeviationKind.DIFFERENT
        assert anti[0].severity is Severity.ERROR
        assert "docs/services.md" in anti[0].suggestion

    def test_dissimilar_anti_pattern_ignored(
        self, make_fingerprint: Factory, make_pattern, loader
    ) -> None:
        """Below the threshold nothing is reported."""
        refs = {
            "good.py": make_fingerprint(path="good.py", histogram=HIST),
            "legacy.py": make_fingerprint(path="legacy.py", histogram={"Other": 5}),
        }
        pattern = make_pattern(
            references={Tier.DISCOVERED: ["good.py"]},
            anti_patterns=[AntiPattern(path="legacy.py", pattern="service")],
        )
        engine = MatchEngine([pattern], reference_loader=loader(refs))
        result = engine.match_fingerprint(make_fingerprint(histogram=HIST))
        assert not result.has_errors
        assert result.deviations == ()


# =============================================================================
# Files on disk
# =============================================================================


class TestMatchFile:
    """End to end against a learned project."""

    def test_new_service_matches_learned_pattern(
        self, python_project: Path, python_service_source: str
    ) -> None:
        """A structurally identical new service scores 100 and is approved."""
        patterns = PatternLearner(python_project, "python").learn().patterns
        candidate = python_project / "shop" / "services" / "invoice_service.py"
        candidate.write_text(python_service_source.format(name="Invoice"), encoding="utf-8")

        result = MatchEngine(patterns, root=python_project).match_file(candidate)
        assert result.pattern_id == "service_pattern"
        assert result.raw_score == 100.0
        assert result.auto_approve is True
        assert result.tier is Tier.DISCOVERED

    def test_unparseable_candidate_raises(self, tmp_path: Path) -> None:
        """Candidate extraction failures propagate as ParseError."""
        bad = tmp_path / "bad.py"
        bad.write_text("def broken(:\n", encoding="utf-8")
        with pytest.raises(ParseError):
            MatchEngine([]).match_file(bad)
