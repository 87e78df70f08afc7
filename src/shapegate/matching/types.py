"""Match engine value types.

Deviations and match results are immutable: the engine builds a fresh
result for every candidate and never mutates one after it is returned.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from shapegate.core.types import DeviationKind, Severity, Tier
from shapegate.patterns.models import Pattern, ReferenceExample


@dataclass(frozen=True, slots=True)
class Deviation:
    """One discrete difference between a candidate and its reference.

    Attributes:
        kind: missing, different or novel.
        element: Free-form label ("import", "error_handling", ...).
        expected: What the reference has.
        actual: What the candidate has.
        severity: error, warning or info.
        suggestion: Actionable fix.
        line_number: Candidate line the deviation refers to, if known.

    """

    kind: DeviationKind
    element: str
    expected: str = ""
    actual: str = ""
    severity: Severity = Severity.WARNING
    suggestion: str = ""
    line_number: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dict."""
        data: dict[str, Any] = {
            "type": self.kind.value,
            "element": self.element,
            "expected": self.expected,
            "actual": self.actual,
            "severity": self.severity.value,
            "suggestion": self.suggestion,
        }
        if self.line_number is not None:
            data["line"] = self.line_number
        return data


@dataclass(frozen=True, slots=True)
class MatchResult:
    """Outcome of matching one candidate file.

    ``pattern`` is None when nothing matched. ``auto_approve`` is derived
    from ``raw_score`` only; ``weighted_score`` decides which comparison
    wins.
    """

    path: str
    pattern: Pattern | None
    raw_score: float
    weighted_score: float
    tier: Tier | None = None
    reference: ReferenceExample | None = None
    deviations: tuple[Deviation, ...] = field(default_factory=tuple)
    auto_approve: bool = False

    @property
    def matched(self) -> bool:
        """Return True when a pattern was matched."""
        return self.pattern is not None

    @property
    def has_errors(self) -> bool:
        """Return True when any deviation has error severity."""
        return any(d.severity is Severity.ERROR for d in self.deviations)

    @property
    def pattern_id(self) -> str | None:
        """Return the matched pattern id, if any."""
        return self.pattern.id if self.pattern is not None else None

    def __repr__(self) -> str:
        """Return a compact representation."""
        return (
            f"MatchResult(path={self.path!r}, pattern={self.pattern_id!r}, "
            f"raw={self.raw_score:.1f}, weighted={self.weighted_score:.1f}, "
            f"approve={self.auto_approve}, deviations={len(self.deviations)})"
        )
