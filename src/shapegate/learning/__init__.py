"""Learning path: classification, pattern building and tree scanning."""

from shapegate.learning.builder import (
    DETECTION,
    build_pattern,
    calculate_confidence,
    infer_structure,
    pattern_id_for,
)
from shapegate.learning.classifier import CLASSIFICATION_RULES, ClassificationRule, classify
from shapegate.learning.scanner import (
    LearnResult,
    MergeSummary,
    PatternLearner,
    bless,
    merge_patterns,
)

__all__ = [
    "CLASSIFICATION_RULES",
    "DETECTION",
    "ClassificationRule",
    "LearnResult",
    "MergeSummary",
    "PatternLearner",
    "bless",
    "build_pattern",
    "calculate_confidence",
    "classify",
    "infer_structure",
    "merge_patterns",
    "pattern_id_for",
]
