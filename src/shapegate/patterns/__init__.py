"""Persisted pattern records and the three-tier reference index."""

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

__all__ = [
    "AntiPattern",
    "CodeStructure",
    "DetectionRule",
    "GoldenExample",
    "Pattern",
    "ReferenceExample",
    "ReferenceIndex",
    "StructureElement",
]
