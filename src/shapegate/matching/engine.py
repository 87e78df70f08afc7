"""Match engine: score a candidate against every applicable pattern.

Iteration order is part of the contract, since ties keep the earlier
comparison:

    patterns sorted by id
      -> tiers golden, blessed, discovered
        -> references in declaration order

Each (pattern, tier, reference) triple yields one comparison. Selection is a
fold over all comparisons keeping the highest weighted score; a later
comparison replaces the current best only when strictly greater.

Scoring a comparison, starting from 100:
    1. -5 for every reference import the candidate lacks.
    2. -10 when the reference checks results against the null sentinel and
       the candidate does not.
    3. Multiply by the cosine similarity of the node-kind histograms.
    4. Clamp to [0, 100].

A reference that cannot be loaded scores a flat 50 instead of aborting.
"""

from __future__ import annotations

import fnmatch
import logging
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from functools import reduce
from pathlib import Path, PurePath

from shapegate.core.exceptions import ParseError, ReferenceUnavailable
from shapegate.core.types import DeviationKind, LanguageFamily, Severity, Tier
from shapegate.extraction import extract_fingerprint
from shapegate.extraction.types import FileFingerprint
from shapegate.matching.similarity import cosine_similarity
from shapegate.matching.types import Deviation, MatchResult
from shapegate.patterns.models import AntiPattern, Pattern, ReferenceExample

logger = logging.getLogger(__name__)

DEFAULT_AUTO_APPROVE_THRESHOLD = 95.0
DEFAULT_SHAPE_FALLBACK_SIMILARITY = 0.5
DEFAULT_ANTI_PATTERN_THRESHOLD = 90.0

BASE_SCORE = 100.0
MISSING_IMPORT_PENALTY = 5.0
MISSING_ERROR_HANDLING_PENALTY = 10.0
UNAVAILABLE_REFERENCE_SCORE = 50.0

NULL_CHECK_HINTS: dict[LanguageFamily, str] = {
    LanguageFamily.PYTHON: "if result is None: ...",
    LanguageFamily.GO: "if err != nil { return err }",
    LanguageFamily.TYPESCRIPT: "if (result === null || result === undefined) { ... }",
}

ReferenceLoader = Callable[[str], FileFingerprint]


@dataclass(frozen=True, slots=True)
class Comparison:
    """Score of one (pattern, tier, reference) triple."""

    pattern: Pattern
    tier: Tier
    reference: ReferenceExample
    raw_score: float
    weighted_score: float
    deviations: tuple[Deviation, ...]


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def _keep_best(best: Comparison | None, candidate: Comparison) -> Comparison:
    """Fold step: the first comparison seeds, only strictly greater replaces."""
    if best is None or candidate.weighted_score > best.weighted_score:
        return candidate
    return best


def should_try_pattern(path: str, pattern: Pattern) -> bool:
    """Cheap pre-filter on the candidate path.

    A rule with neither a file glob nor a path segment always passes. Otherwise
    the path must satisfy at least one of the constraints it specifies.
    Never contributes to the score.
    """
    rule = pattern.detection
    if not rule.constrains_path:
        return True

    posix = PurePath(path).as_posix()
    if rule.file_pattern and fnmatch.fnmatch(PurePath(posix).name, rule.file_pattern):
        return True
    return bool(rule.path_segment and rule.path_segment in f"/{posix}")


class MatchEngine:
    """Scores candidate files against a fixed set of patterns.

    The pattern set is read-only for the engine's lifetime. Reference
    fingerprints are cached per engine; call ``warm_references()`` before
    fanning out to worker threads so workers only read the cache.

    Args:
        patterns: Learned patterns. Patterns without references are dropped.
        root: Directory reference paths are relative to.
        threshold: Raw score at or above which a file is auto-approved.
        shape_fallback_similarity: Shape factor used when either side has
            no node-kind histogram.
        anti_pattern_threshold: Raw score at or above which similarity to an
            anti-pattern is reported.
        reference_loader: Callable turning a reference path into a
            fingerprint. Defaults to extracting ``root / path``.

    """

    def __init__(
        self,
        patterns: Iterable[Pattern],
        root: str | Path = ".",
        *,
        threshold: float = DEFAULT_AUTO_APPROVE_THRESHOLD,
        shape_fallback_similarity: float = DEFAULT_SHAPE_FALLBACK_SIMILARITY,
        anti_pattern_threshold: float = DEFAULT_ANTI_PATTERN_THRESHOLD,
        reference_loader: ReferenceLoader | None = None,
    ) -> None:
        self.root = Path(root)
        self.threshold = threshold
        self.shape_fallback_similarity = shape_fallback_similarity
        self.anti_pattern_threshold = anti_pattern_threshold
        self._loader = reference_loader or self._extract_reference
        self._cache: dict[str, FileFingerprint | ReferenceUnavailable] = {}

        usable: list[Pattern] = []
        for pattern in patterns:
            if not pattern.has_references:
                logger.warning("Ignoring pattern %s: it has no reference examples", pattern.id)
                continue
            usable.append(pattern)
        self.patterns: tuple[Pattern, ...] = tuple(sorted(usable, key=lambda p: p.id))

    def __repr__(self) -> str:
        """Return a string representation of the engine."""
        return (
            f"MatchEngine(patterns={len(self.patterns)}, root={str(self.root)!r}, "
            f"threshold={self.threshold})"
        )

    # =========================================================================
    # Reference loading
    # =========================================================================

    def _extract_reference(self, path: str) -> FileFingerprint:
        return extract_fingerprint(self.root / path)

    def load_reference(self, path: str) -> FileFingerprint:
        """Return a reference fingerprint, loading it once per engine.

        Raises:
            ReferenceUnavailable: If the file is missing or fails to parse.

        """
        cached = self._cache.get(path)
        if cached is None:
            try:
                cached = self._loader(path)
            except (ParseError, OSError) as e:
                logger.warning("Reference %s unavailable, using fallback score: %s", path, e)
                cached = ReferenceUnavailable(path, e)
            self._cache[path] = cached
        if isinstance(cached, ReferenceUnavailable):
            raise ReferenceUnavailable(path, cached.cause)
        return cached

    def warm_references(self) -> int:
        """Load every reference and anti-pattern fingerprint into the cache.

        Returns:
            Number of distinct paths cached.

        """
        for pattern in self.patterns:
            paths = pattern.references.paths() + [ap.path for ap in pattern.anti_patterns]
            for path in paths:
                try:
                    self.load_reference(path)
                except ReferenceUnavailable:
                    pass  # cached as unavailable; scored with the fallback later
        return len(self._cache)

    # =========================================================================
    # Scoring
    # =========================================================================

    def score_against_reference(
        self, candidate: FileFingerprint, reference: FileFingerprint
    ) -> tuple[float, list[Deviation]]:
        """Score a candidate against one reference fingerprint.

        Returns:
            Tuple of (raw score in [0, 100], deviations in emission order).

        """
        deviations: list[Deviation] = []
        score = BASE_SCORE

        candidate_imports = set(candidate.imports)
        for name in reference.imports:
            if name in candidate_imports:
                continue
            score -= MISSING_IMPORT_PENALTY
            deviations.append(
                Deviation(
                    kind=DeviationKind.MISSING,
                    element="import",
                    expected=name,
                    actual="",
                    severity=Severity.WARNING,
                    suggestion=f"Add import {name!r}",
                )
            )

        if reference.has_error_handling and not candidate.has_error_handling:
            score -= MISSING_ERROR_HANDLING_PENALTY
            hint = NULL_CHECK_HINTS.get(candidate.family, "check results before use")
            deviations.append(
                Deviation(
                    kind=DeviationKind.MISSING,
                    element="error_handling",
                    expected="result checked against null sentinel",
                    actual="no null check",
                    severity=Severity.WARNING,
                    suggestion=f"Add error handling: {hint}",
                )
            )

        score *= self.shape_similarity(candidate, reference)
        return _clamp(score), deviations

    def shape_similarity(self, candidate: FileFingerprint, reference: FileFingerprint) -> float:
        """Return the histogram cosine, or the fallback when one side has none."""
        if candidate.node_histogram is None or reference.node_histogram is None:
            return self.shape_fallback_similarity
        return cosine_similarity(candidate.node_histogram, reference.node_histogram)

    def _compare(
        self,
        candidate: FileFingerprint,
        pattern: Pattern,
        tier: Tier,
        example: ReferenceExample,
    ) -> Comparison:
        try:
            reference = self.load_reference(example.path)
        except ReferenceUnavailable as e:
            raw = UNAVAILABLE_REFERENCE_SCORE
            deviations = [
                Deviation(
                    kind=DeviationKind.MISSING,
                    element="reference",
                    expected=example.path,
                    actual="unavailable",
                    severity=Severity.INFO,
                    suggestion=(
                        f"Reference {example.path} could not be loaded ({e.cause}); "
                        "run `shapegate learn` to refresh patterns"
                    ),
                )
            ]
        else:
            raw, deviations = self.score_against_reference(candidate, reference)

        return Comparison(
            pattern=pattern,
            tier=tier,
            reference=example,
            raw_score=raw,
            weighted_score=raw * example.weight,
            deviations=tuple(deviations),
        )

    def _relative(self, path: str) -> str:
        candidate = Path(path)
        if candidate.is_absolute():
            try:
                return candidate.relative_to(self.root.resolve()).as_posix()
            except ValueError:
                return candidate.as_posix()
        return candidate.as_posix()

    def comparisons(self, candidate: FileFingerprint) -> Iterator[Comparison]:
        """Yield one comparison per applicable triple, in iteration order."""
        path = self._relative(candidate.path)
        for pattern in self.patterns:
            if not should_try_pattern(path, pattern):
                logger.debug("Pre-filter skipped %s for %s", pattern.id, path)
                continue
            for tier, example in pattern.references.iter_references():
                yield self._compare(candidate, pattern, tier, example)

    # =========================================================================
    # Anti-patterns
    # =========================================================================

    def _anti_pattern_deviations(
        self, candidate: FileFingerprint, anti_patterns: Iterable[AntiPattern]
    ) -> list[Deviation]:
        deviations: list[Deviation] = []
        for anti in anti_patterns:
            try:
                reference = self.load_reference(anti.path)
            except ReferenceUnavailable:
                continue
            raw, _ = self.score_against_reference(candidate, reference)
            if raw < self.anti_pattern_threshold:
                continue
            suggestion = anti.reason or "Avoid the deprecated implementation"
            if anti.migration_guide:
                suggestion = f"{suggestion}. Migration guide: {anti.migration_guide}"
            deviations.append(
                Deviation(
                    kind=DeviationKind.DIFFERENT,
                    element="anti_pattern",
                    expected=f"not resembling {anti.path}",
                    actual=f"{raw:.0f}% similar to {anti.path}",
                    severity=Severity.ERROR,
                    suggestion=suggestion,
                )
            )
        return deviations

    # =========================================================================
    # Public API
    # =========================================================================

    def _no_match(self, path: str) -> MatchResult:
        if not self.patterns:
            message = "No patterns configured; run `shapegate init` to learn patterns"
        else:
            message = (
                f"No pattern applies to this path; all {len(self.patterns)} pattern(s) "
                "were skipped by their detection rules. This may be a new pattern"
            )
        return MatchResult(
            path=path,
            pattern=None,
            raw_score=0.0,
            weighted_score=0.0,
            deviations=(
                Deviation(
                    kind=DeviationKind.NOVEL,
                    element="pattern",
                    expected="a known pattern",
                    actual="no match",
                    severity=Severity.WARNING,
                    suggestion=message,
                ),
            ),
            auto_approve=False,
        )

    def match_fingerprint(self, candidate: FileFingerprint) -> MatchResult:
        """Select the best comparison for an already-extracted candidate.

        Always returns exactly one result, also when nothing matches.
        """
        best = reduce(_keep_best, self.comparisons(candidate), None)
        if best is None:
            return self._no_match(candidate.path)

        deviations = list(best.deviations)
        deviations.extend(self._anti_pattern_deviations(candidate, best.pattern.anti_patterns))

        result = MatchResult(
            path=candidate.path,
            pattern=best.pattern,
            raw_score=best.raw_score,
            weighted_score=best.weighted_score,
            tier=best.tier,
            reference=best.reference,
            deviations=tuple(deviations),
            auto_approve=best.raw_score >= self.threshold,
        )
        logger.debug("Matched %r", result)
        return result

    def match_file(
        self, path: str | Path, family: str | LanguageFamily | None = None
    ) -> MatchResult:
        """Extract a candidate file and match it.

        Raises:
            ParseError: If the candidate itself cannot be extracted.

        """
        return self.match_fingerprint(extract_fingerprint(path, family))
