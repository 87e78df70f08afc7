"""Pattern builder: group of same-category fingerprints -> Pattern.

The builder is pure: it never reads files. Goldens, blessed examples and
anti-patterns arrive as already-parsed records.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from collections.abc import Iterable, Sequence

from shapegate.core.types import ElementKind, PatternCategory, Tier
from shapegate.extraction.types import FileFingerprint
from shapegate.patterns.models import (
    AntiPattern,
    CodeStructure,
    DetectionRule,
    GoldenExample,
    Pattern,
    ReferenceExample,
    ReferenceIndex,
    StructureElement,
)

logger = logging.getLogger(__name__)

MIN_GROUP_SIZE = 3
REQUIRED_IMPORT_RATIO = 0.8
OPTIONAL_IMPORT_MIN_COUNT = 2

# (min group size, confidence), checked top to bottom
CONFIDENCE_STEPS: list[tuple[int, float]] = [
    (10, 0.9),
    (5, 0.75),
    (3, 0.6),
]
BASE_CONFIDENCE = 0.5

DETECTION: dict[PatternCategory, DetectionRule] = {
    PatternCategory.HANDLER: DetectionRule(
        file_pattern="*handler*", func_pattern=r"Handler$", path_segment="/handlers/"
    ),
    PatternCategory.SERVICE: DetectionRule(
        file_pattern="*service*", type_pattern=r"Service$", path_segment="/services/"
    ),
    PatternCategory.REPOSITORY: DetectionRule(
        file_pattern="*repo*", type_pattern=r"Repository$", path_segment="/repositor"
    ),
    PatternCategory.MIDDLEWARE: DetectionRule(
        file_pattern="*middleware*", func_pattern=r"Middleware$", path_segment="/middleware/"
    ),
    PatternCategory.MODEL: DetectionRule(path_segment="/models/"),
    PatternCategory.COMPONENT: DetectionRule(path_segment="/components/"),
    PatternCategory.HOOK: DetectionRule(file_pattern="use*", path_segment="/hooks/"),
    PatternCategory.CONTEXT: DetectionRule(file_pattern="*context*", path_segment="/context"),
    PatternCategory.PAGE: DetectionRule(path_segment="/pages/"),
    PatternCategory.API: DetectionRule(path_segment="/api/"),
    PatternCategory.STORE: DetectionRule(file_pattern="*store*", path_segment="/store"),
    PatternCategory.TYPE_DEFINITION: DetectionRule(path_segment="/types/"),
    PatternCategory.STORYBOOK: DetectionRule(file_pattern="*.stories.*"),
    PatternCategory.STYLED: DetectionRule(file_pattern="*.styled.*"),
    PatternCategory.UTIL: DetectionRule(),
}


def pattern_id_for(category: PatternCategory) -> str:
    """Return the stable pattern id for a category."""
    return f"{category.value}_pattern"


def detection_rule_for(category: PatternCategory) -> DetectionRule:
    """Return a copy of the detection rule for a category."""
    return DETECTION.get(category, DetectionRule()).model_copy()


def calculate_confidence(group_size: int) -> float:
    """Map a group size to a confidence step (>=10: 0.9, >=5: 0.75, >=3: 0.6)."""
    for minimum, confidence in CONFIDENCE_STEPS:
        if group_size >= minimum:
            return confidence
    return BASE_CONFIDENCE


def infer_structure(group: Sequence[FileFingerprint]) -> CodeStructure:
    """Infer required and optional imports from a fingerprint group.

    An import is required when it appears in at least 80% of the group.
    Imports seen in two or more members but below that cut are optional.
    Both lists keep first-seen order.
    """
    if not group:
        return CodeStructure()

    counts: Counter[str] = Counter()
    first_seen: list[str] = []
    for fingerprint in group:
        for name in fingerprint.imports:
            if name not in counts:
                first_seen.append(name)
            counts[name] += 1

    size = len(group)
    required = [name for name in first_seen if counts[name] / size >= REQUIRED_IMPORT_RATIO]
    optional = [
        name
        for name in first_seen
        if name not in required and counts[name] >= OPTIONAL_IMPORT_MIN_COUNT
    ]
    elements = [
        StructureElement(name=name, kind=ElementKind.IMPORT, rule=re.escape(name))
        for name in required
    ]
    return CodeStructure(elements=elements, required=required, optional=optional)


def build_pattern(
    category: PatternCategory,
    group: Sequence[FileFingerprint],
    goldens: Iterable[GoldenExample] = (),
    anti_patterns: Iterable[AntiPattern] = (),
    blessed: Iterable[ReferenceExample] = (),
) -> Pattern | None:
    """Aggregate a category's fingerprints into a Pattern.

    Args:
        category: Category shared by every member of the group.
        group: Discovered fingerprints classified into the category.
        goldens: Golden examples annotated for the category.
        anti_patterns: Anti-patterns annotated for the category.
        blessed: Previously blessed references for the category.

    Returns:
        The built Pattern, or None when the group has fewer than three
        members and no golden example backs the category.

    """
    golden_list = list(goldens)
    if len(group) < MIN_GROUP_SIZE and not golden_list:
        logger.debug(
            "Not building %s: %d example(s) and no golden example",
            category.value,
            len(group),
        )
        return None

    references = ReferenceIndex()
    for golden in golden_list:
        references.add(Tier.GOLDEN, golden.to_reference())
    for example in blessed:
        references.add(Tier.BLESSED, example)
    for fingerprint in group:
        # add() skips paths already held by the golden or blessed tier
        references.add(
            Tier.DISCOVERED,
            ReferenceExample(path=fingerprint.path, weight=Tier.DISCOVERED.default_weight),
        )

    pattern = Pattern(
        id=pattern_id_for(category),
        name=category.value,
        category=category,
        detection=detection_rule_for(category),
        structure=infer_structure(group),
        references=references,
        anti_patterns=list(anti_patterns),
        confidence=calculate_confidence(len(group)),
        seen_count=len(group),
    )
    logger.debug("Built %r", pattern)
    return pattern
