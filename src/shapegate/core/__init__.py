"""Core types and exceptions shared across shapegate."""

from shapegate.core.exceptions import (
    ConfigValidationError,
    ParseError,
    PatternNotFoundError,
    ReferenceUnavailable,
    ShapegateError,
    UnsupportedLanguageError,
)
from shapegate.core.types import (
    TIER_ORDER,
    DeviationKind,
    ElementKind,
    LanguageFamily,
    NodeHistogram,
    PatternCategory,
    Severity,
    Tier,
    TypeKind,
)

__all__ = [
    "ConfigValidationError",
    "DeviationKind",
    "ElementKind",
    "LanguageFamily",
    "NodeHistogram",
    "ParseError",
    "PatternCategory",
    "PatternNotFoundError",
    "ReferenceUnavailable",
    "Severity",
    "ShapegateError",
    "TIER_ORDER",
    "Tier",
    "TypeKind",
    "UnsupportedLanguageError",
]
