"""Core type definitions for shapegate.

Enumerations shared by extraction, learning, matching and reporting.
Every enum is a ``str`` subclass so values round-trip through YAML and JSON
without custom encoders.
"""

from __future__ import annotations

from enum import Enum
from typing import TypeAlias

# Node-kind histogram: syntactic construct category -> occurrence count
NodeHistogram: TypeAlias = dict[str, int]


class LanguageFamily(str, Enum):
    """Language families with a dedicated extractor."""

    PYTHON = "python"
    GO = "go"
    TYPESCRIPT = "typescript"


class PatternCategory(str, Enum):
    """Role a source file plays in the codebase."""

    HANDLER = "handler"
    SERVICE = "service"
    REPOSITORY = "repository"
    MIDDLEWARE = "middleware"
    MODEL = "model"
    COMPONENT = "component"
    HOOK = "hook"
    CONTEXT = "context"
    PAGE = "page"
    API = "api"
    STORE = "store"
    TYPE_DEFINITION = "type-definition"
    STORYBOOK = "storybook"
    STYLED = "styled"
    UTIL = "util"


class Tier(str, Enum):
    """Priority class of a reference example.

    Declaration order is the iteration order used by the match engine.
    """

    GOLDEN = "golden"
    BLESSED = "blessed"
    DISCOVERED = "discovered"

    @property
    def default_weight(self) -> float:
        """Weight applied when an example does not override it."""
        return TIER_DEFAULT_WEIGHTS[self]

    @property
    def store_key(self) -> str:
        """Key under which this tier is persisted in the pattern store."""
        return TIER_STORE_KEYS[self]


TIER_ORDER: tuple[Tier, ...] = (Tier.GOLDEN, Tier.BLESSED, Tier.DISCOVERED)

TIER_DEFAULT_WEIGHTS: dict[Tier, float] = {
    Tier.GOLDEN: 2.0,
    Tier.BLESSED: 1.5,
    Tier.DISCOVERED: 1.0,
}

TIER_STORE_KEYS: dict[Tier, str] = {
    Tier.GOLDEN: "annotated_golden",
    Tier.BLESSED: "config_blessed",
    Tier.DISCOVERED: "discovered",
}


class TypeKind(str, Enum):
    """Shape of a type declaration."""

    STRUCT = "struct"
    INTERFACE = "interface"


class ElementKind(str, Enum):
    """Kind of a structure element inferred for a pattern."""

    IMPORT = "import"
    FUNCTION = "function"
    TYPE = "type"
    ERROR_HANDLING = "error_handling"


class DeviationKind(str, Enum):
    """How a candidate differs from its reference."""

    MISSING = "missing"
    DIFFERENT = "different"
    NOVEL = "novel"


class Severity(str, Enum):
    """Severity of a deviation."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
