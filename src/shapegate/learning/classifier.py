"""Pattern classification: fingerprint -> category.

Classification is an ordered rule cascade. Rules are evaluated top to
bottom and the first match wins; earlier, narrower rules deliberately
pre-empt later, broader ones, so the order of CLASSIFICATION_RULES is part
of the contract:

    1. Directory segments (handlers/, services/, ..., stories/)
    2. Function-name suffixes (...Handler, ...Middleware)
    3. Type-name suffixes (...Service, ...Repository)
    4. Module-name vocabulary (parser, validator, config, ...)
    5. UI framework import (component, or hook when a use* function exists)
    6. Default: util
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import PurePath

from shapegate.core.types import PatternCategory
from shapegate.extraction.types import FileFingerprint

Predicate = Callable[[FileFingerprint], bool]


@dataclass(frozen=True, slots=True)
class ClassificationRule:
    """One (predicate, category) step of the cascade.

    Attributes:
        name: Identifier used in logs and tests.
        predicate: Returns True when the rule applies.
        category: Category assigned when the rule applies.

    """

    name: str
    predicate: Predicate
    category: PatternCategory

    def __repr__(self) -> str:
        """Return a string representation of the rule."""
        return f"ClassificationRule(name={self.name!r}, category={self.category.value!r})"


# =============================================================================
# Vocabulary tables
# =============================================================================

# Directory segment rules, in precedence order
DIRECTORY_SEGMENTS: list[tuple[str, frozenset[str], PatternCategory]] = [
    ("dir_handlers", frozenset({"handlers", "controllers"}), PatternCategory.HANDLER),
    ("dir_services", frozenset({"services"}), PatternCategory.SERVICE),
    ("dir_repository", frozenset({"repository", "repositories"}), PatternCategory.REPOSITORY),
    ("dir_middleware", frozenset({"middleware", "middlewares"}), PatternCategory.MIDDLEWARE),
    ("dir_models", frozenset({"models"}), PatternCategory.MODEL),
    ("dir_pages", frozenset({"pages", "app"}), PatternCategory.PAGE),
    ("dir_api", frozenset({"api"}), PatternCategory.API),
    ("dir_store", frozenset({"store", "stores", "state", "redux"}), PatternCategory.STORE),
    ("dir_types", frozenset({"types"}), PatternCategory.TYPE_DEFINITION),
    ("dir_stories", frozenset({"stories", "__stories__"}), PatternCategory.STORYBOOK),
]

FUNCTION_SUFFIXES: list[tuple[str, PatternCategory]] = [
    ("Handler", PatternCategory.HANDLER),
    ("Middleware", PatternCategory.MIDDLEWARE),
]

TYPE_SUFFIXES: list[tuple[str, PatternCategory]] = [
    ("Service", PatternCategory.SERVICE),
    ("Repository", PatternCategory.REPOSITORY),
]

MODULE_VOCABULARY: dict[str, PatternCategory] = {
    # Analysis components are service-like
    "analyzer": PatternCategory.SERVICE,
    "parser": PatternCategory.SERVICE,
    "scanner": PatternCategory.SERVICE,
    "lexer": PatternCategory.SERVICE,
    "detector": PatternCategory.SERVICE,
    "finder": PatternCategory.SERVICE,
    "locator": PatternCategory.SERVICE,
    "discovery": PatternCategory.SERVICE,
    "matcher": PatternCategory.SERVICE,
    "comparator": PatternCategory.SERVICE,
    "validator": PatternCategory.SERVICE,
    "reporter": PatternCategory.SERVICE,
    "writer": PatternCategory.SERVICE,
    "output": PatternCategory.SERVICE,
    "formatter": PatternCategory.SERVICE,
    "service": PatternCategory.SERVICE,
    "services": PatternCategory.SERVICE,
    "config": PatternCategory.UTIL,
    "configuration": PatternCategory.UTIL,
    "settings": PatternCategory.UTIL,
    "handler": PatternCategory.HANDLER,
    "handlers": PatternCategory.HANDLER,
    "controller": PatternCategory.HANDLER,
    "controllers": PatternCategory.HANDLER,
    "repository": PatternCategory.REPOSITORY,
    "repositories": PatternCategory.REPOSITORY,
    "repo": PatternCategory.REPOSITORY,
    "repos": PatternCategory.REPOSITORY,
    "store": PatternCategory.REPOSITORY,
    "storage": PatternCategory.REPOSITORY,
    "middleware": PatternCategory.MIDDLEWARE,
    "middlewares": PatternCategory.MIDDLEWARE,
    "model": PatternCategory.MODEL,
    "models": PatternCategory.MODEL,
    "entity": PatternCategory.MODEL,
    "entities": PatternCategory.MODEL,
    "domain": PatternCategory.MODEL,
}

UI_FRAMEWORK_MODULES: frozenset[str] = frozenset(
    {"react", "react-dom", "preact", "vue", "svelte", "solid-js"}
)

HOOK_NAME_PATTERN: re.Pattern[str] = re.compile(r"^use[A-Z]\w*$")


# =============================================================================
# Predicates
# =============================================================================


def _directory_segments(fingerprint: FileFingerprint) -> set[str]:
    return {part.lower() for part in PurePath(fingerprint.path).parts[:-1]}


def _in_directory(names: frozenset[str]) -> Predicate:
    def predicate(fingerprint: FileFingerprint) -> bool:
        return bool(_directory_segments(fingerprint) & names)

    return predicate


def _is_story(fingerprint: FileFingerprint) -> bool:
    return ".stories." in PurePath(fingerprint.path).name or bool(
        _directory_segments(fingerprint) & {"stories", "__stories__"}
    )


def _function_suffix(suffix: str) -> Predicate:
    def predicate(fingerprint: FileFingerprint) -> bool:
        return any(name.endswith(suffix) for name in fingerprint.function_names)

    return predicate


def _type_suffix(suffix: str) -> Predicate:
    def predicate(fingerprint: FileFingerprint) -> bool:
        return any(name.endswith(suffix) for name in fingerprint.type_names)

    return predicate


def _module_vocabulary(category: PatternCategory) -> Predicate:
    def predicate(fingerprint: FileFingerprint) -> bool:
        return MODULE_VOCABULARY.get(fingerprint.module.lower()) is category

    return predicate


def _imports_ui_framework(fingerprint: FileFingerprint) -> bool:
    return any(imp in UI_FRAMEWORK_MODULES for imp in fingerprint.imports)


def _declares_hook(fingerprint: FileFingerprint) -> bool:
    return any(HOOK_NAME_PATTERN.match(name) for name in fingerprint.function_names)


def _ui_hook(fingerprint: FileFingerprint) -> bool:
    return _imports_ui_framework(fingerprint) and _declares_hook(fingerprint)


def _build_rules() -> tuple[ClassificationRule, ...]:
    rules: list[ClassificationRule] = []

    for name, segments, category in DIRECTORY_SEGMENTS:
        predicate = _is_story if category is PatternCategory.STORYBOOK else _in_directory(segments)
        rules.append(ClassificationRule(name, predicate, category))

    for suffix, category in FUNCTION_SUFFIXES:
        rules.append(ClassificationRule(f"func_suffix_{suffix}", _function_suffix(suffix), category))

    for suffix, category in TYPE_SUFFIXES:
        rules.append(ClassificationRule(f"type_suffix_{suffix}", _type_suffix(suffix), category))

    # One rule per vocabulary category, in first-appearance order of the table
    for category in dict.fromkeys(MODULE_VOCABULARY.values()):
        rules.append(
            ClassificationRule(f"module_{category.value}", _module_vocabulary(category), category)
        )

    rules.append(ClassificationRule("ui_hook", _ui_hook, PatternCategory.HOOK))
    rules.append(ClassificationRule("ui_component", _imports_ui_framework, PatternCategory.COMPONENT))
    rules.append(ClassificationRule("default", lambda _fp: True, PatternCategory.UTIL))
    return tuple(rules)


CLASSIFICATION_RULES: tuple[ClassificationRule, ...] = _build_rules()


def matching_rule(fingerprint: FileFingerprint) -> ClassificationRule:
    """Return the first rule that applies to a fingerprint."""
    for rule in CLASSIFICATION_RULES:
        if rule.predicate(fingerprint):
            return rule
    # unreachable: the default rule always applies
    return CLASSIFICATION_RULES[-1]


def classify(fingerprint: FileFingerprint) -> PatternCategory:
    """Assign a fingerprint to a pattern category.

    Pure and deterministic: the same fingerprint always yields the same
    category.
    """
    return matching_rule(fingerprint).category
