"""Persisted pattern records.

Pydantic models for everything the pattern store holds: patterns, their
detection rules and inferred structure, the three-tier reference index, and
the golden / anti-pattern records supplied by source annotations.

The reference index keeps one ordered list of tiers. It is persisted as
three keyed lists (``annotated_golden``, ``config_blessed``, ``discovered``)
directly on the pattern record.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from datetime import date
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SerializationInfo,
    SerializerFunctionWrapHandler,
    model_serializer,
    model_validator,
)

from shapegate.core.types import TIER_ORDER, ElementKind, PatternCategory, Tier

logger = logging.getLogger(__name__)


# =============================================================================
# Detection and structure
# =============================================================================


class DetectionRule(BaseModel):
    """Cheap path/name pre-filter for a pattern. Never used for scoring.

    Attributes:
        file_pattern: Glob matched against the file name (e.g. "*handler*").
        func_pattern: Regex a function name of the pattern usually matches.
        type_pattern: Regex a type name of the pattern usually matches.
        path_segment: Substring matched against "/" + the posix path
            (e.g. "/handlers/").

    """

    model_config = ConfigDict(extra="ignore")

    file_pattern: str = ""
    func_pattern: str = ""
    type_pattern: str = ""
    path_segment: str = ""

    @property
    def constrains_path(self) -> bool:
        """Return True when the rule can prune candidates by path."""
        return bool(self.file_pattern or self.path_segment)


class StructureElement(BaseModel):
    """One expected structural element with a literal-match rule."""

    model_config = ConfigDict(extra="ignore")

    name: str
    kind: ElementKind = ElementKind.IMPORT
    rule: str = Field(description="Regex that matches the element literally")


class CodeStructure(BaseModel):
    """Expected structure of files following a pattern."""

    model_config = ConfigDict(extra="ignore")

    elements: list[StructureElement] = Field(default_factory=list)
    required: list[str] = Field(default_factory=list)
    optional: list[str] = Field(default_factory=list)


# =============================================================================
# Reference examples
# =============================================================================


class ReferenceExample(BaseModel):
    """A reference file a candidate can be compared against.

    Attributes:
        path: Path of the reference file, relative to the project root.
        weight: Tier multiplier applied to raw scores.
        function: Function the example was annotated on, if any.
        author: Who blessed or annotated the example.
        blessed_date: When the example was blessed.
        reason: Why the example is a good (or golden) reference.
        quality_score: Annotated quality score 0-100.
        similarity_score: Similarity recorded at discovery time.
        seen_count: Times the example was seen while learning.

    """

    model_config = ConfigDict(extra="ignore")

    path: str
    weight: float = Field(default=1.0, gt=0.0)
    function: str | None = None
    author: str | None = None
    blessed_date: date | None = None
    reason: str | None = None
    quality_score: int | None = Field(default=None, ge=0, le=100)
    similarity_score: float | None = None
    seen_count: int | None = None


class GoldenExample(BaseModel):
    """A golden example declared by a source annotation."""

    model_config = ConfigDict(extra="ignore")

    path: str
    function: str | None = None
    pattern: str
    version: str | None = None
    author: str | None = None
    blessed_date: date | None = None
    reason: str | None = None
    quality_score: int | None = Field(default=None, ge=0, le=100)
    weight: float = Field(default=Tier.GOLDEN.default_weight, gt=0.0)

    def to_reference(self) -> ReferenceExample:
        """Convert to a golden-tier reference example."""
        return ReferenceExample(
            path=self.path,
            weight=self.weight,
            function=self.function,
            author=self.author,
            blessed_date=self.blessed_date,
            reason=self.reason,
            quality_score=self.quality_score,
        )


class AntiPattern(BaseModel):
    """A deprecated implementation declared by a source annotation."""

    model_config = ConfigDict(extra="ignore")

    path: str
    function: str | None = None
    pattern: str
    reason: str | None = None
    deprecated: date | None = None
    migration_guide: str | None = None


# =============================================================================
# Reference index
# =============================================================================


class ReferenceIndex(BaseModel):
    """Per-pattern collection of weighted references, one list per tier.

    Tiers are iterated golden -> blessed -> discovered and examples within a
    tier in declaration order. A path appears in at most one tier.
    """

    model_config = ConfigDict(extra="ignore")

    tiers: dict[Tier, list[ReferenceExample]] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _accept_store_keys(cls, data: Any) -> Any:
        """Accept the persisted keyed form as well as ``{"tiers": ...}``."""
        if not isinstance(data, dict) or "tiers" in data:
            return data
        tiers: dict[str, Any] = {}
        for tier in TIER_ORDER:
            value = data.get(tier.store_key, data.get(tier.value))
            if value is not None:
                tiers[tier.value] = value
        return {"tiers": tiers}

    @model_validator(mode="after")
    def _normalize(self) -> ReferenceIndex:
        self.tiers = {tier: list(self.tiers.get(tier, [])) for tier in TIER_ORDER}
        self.check_weight_ordering()
        return self

    @model_serializer(mode="wrap")
    def _serialize(
        self, handler: SerializerFunctionWrapHandler, info: SerializationInfo
    ) -> dict[str, Any]:
        data = handler(self)
        tiers = data.get("tiers", {})
        return {Tier(key).store_key: value for key, value in tiers.items()}

    # --- queries ---

    def examples(self, tier: Tier) -> list[ReferenceExample]:
        """Return the examples of one tier in declaration order."""
        return self.tiers.get(tier, [])

    def iter_references(self) -> Iterator[tuple[Tier, ReferenceExample]]:
        """Yield (tier, example) in tier priority then declaration order."""
        for tier in TIER_ORDER:
            for example in self.tiers.get(tier, []):
                yield tier, example

    def tier_of(self, path: str) -> Tier | None:
        """Return the tier holding a path, or None."""
        for tier, example in self.iter_references():
            if example.path == path:
                return tier
        return None

    def paths(self) -> list[str]:
        """Return every reference path in iteration order."""
        return [example.path for _tier, example in self.iter_references()]

    @property
    def is_empty(self) -> bool:
        """Return True when no tier holds any example."""
        return not any(self.tiers.get(tier) for tier in TIER_ORDER)

    def __len__(self) -> int:
        """Return the total number of examples across tiers."""
        return sum(len(self.tiers.get(tier, [])) for tier in TIER_ORDER)

    # --- mutation ---

    def add(self, tier: Tier, example: ReferenceExample) -> bool:
        """Add an example to a tier.

        A path already present in the same or a higher tier is left alone.
        A path present in a lower tier is promoted (removed there first).

        Returns:
            True if the example was added.

        Raises:
            ValueError: If the weight would break tier ordering.

        """
        current = self.tier_of(example.path)
        if current is not None:
            if TIER_ORDER.index(current) <= TIER_ORDER.index(tier):
                logger.debug(
                    "Skipping %s for tier %s: already in tier %s",
                    example.path,
                    tier.value,
                    current.value,
                )
                return False
            self.remove(example.path)

        self.tiers.setdefault(tier, []).append(example)
        try:
            self.check_weight_ordering()
        except ValueError:
            self.tiers[tier].pop()
            raise
        return True

    def remove(self, path: str) -> bool:
        """Remove a path from whichever tier holds it."""
        for tier in TIER_ORDER:
            examples = self.tiers.get(tier, [])
            for idx, example in enumerate(examples):
                if example.path == path:
                    del examples[idx]
                    return True
        return False

    def replace_tier(self, tier: Tier, examples: list[ReferenceExample]) -> None:
        """Replace one tier wholesale, dropping paths held by higher tiers."""
        higher = {
            example.path
            for other in TIER_ORDER[: TIER_ORDER.index(tier)]
            for example in self.tiers.get(other, [])
        }
        self.tiers[tier] = [e for e in examples if e.path not in higher]
        self.check_weight_ordering()

    def check_weight_ordering(self) -> None:
        """Ensure every weight in a tier is >= every weight in the tiers below.

        Raises:
            ValueError: On a violation.

        """
        for upper, lower in zip(TIER_ORDER, TIER_ORDER[1:], strict=False):
            upper_examples = self.tiers.get(upper, [])
            lower_examples = self.tiers.get(lower, [])
            if not upper_examples or not lower_examples:
                continue
            upper_min = min(e.weight for e in upper_examples)
            lower_max = max(e.weight for e in lower_examples)
            if upper_min < lower_max:
                raise ValueError(
                    f"{upper.value} weight {upper_min} is below "
                    f"{lower.value} weight {lower_max}; tier weights must satisfy "
                    "golden >= blessed >= discovered"
                )


# =============================================================================
# Pattern
# =============================================================================


class Pattern(BaseModel):
    """A learned structural pattern with its weighted references.

    Attributes:
        id: Stable identifier (e.g. "service_pattern").
        name: Display name.
        category: Role category the pattern represents.
        version: Pattern definition version.
        detection: Pre-filter rule.
        structure: Inferred required/optional imports.
        references: Three-tier reference index.
        anti_patterns: Deprecated implementations to steer away from.
        confidence: 0-1 confidence from the number of examples seen.
        seen_count: Number of files grouped into the pattern when learned.

    """

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    category: PatternCategory
    version: str = "1.0"
    detection: DetectionRule = Field(default_factory=DetectionRule)
    structure: CodeStructure = Field(default_factory=CodeStructure)
    references: ReferenceIndex = Field(default_factory=ReferenceIndex)
    anti_patterns: list[AntiPattern] = Field(default_factory=list)
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    seen_count: int = Field(default=0, ge=0)

    @model_validator(mode="before")
    @classmethod
    def _collect_tiers(cls, data: Any) -> Any:
        """Gather the persisted tier lists into ``references``."""
        if not isinstance(data, dict) or "references" in data:
            return data
        data = dict(data)
        refs = {
            tier.store_key: data.pop(tier.store_key)
            for tier in TIER_ORDER
            if tier.store_key in data
        }
        data["references"] = refs
        return data

    @model_serializer(mode="wrap")
    def _flatten_tiers(
        self, handler: SerializerFunctionWrapHandler, info: SerializationInfo
    ) -> dict[str, Any]:
        data = handler(self)
        refs = data.pop("references", None) or {}
        anti_patterns = data.pop("anti_patterns", None)
        data.update(refs)
        if anti_patterns is not None:
            data["anti_patterns"] = anti_patterns
        return data

    @property
    def reference_tiers(self) -> list[tuple[Tier, list[ReferenceExample]]]:
        """Return (tier, examples) pairs in priority order."""
        return [(tier, self.references.examples(tier)) for tier in TIER_ORDER]

    @property
    def has_references(self) -> bool:
        """Return True when at least one reference exists."""
        return not self.references.is_empty

    def __repr__(self) -> str:
        """Return a compact representation."""
        counts = ", ".join(f"{t.value}={len(ex)}" for t, ex in self.reference_tiers)
        return (
            f"Pattern(id={self.id!r}, category={self.category.value!r}, "
            f"confidence={self.confidence:.2f}, {counts})"
        )
