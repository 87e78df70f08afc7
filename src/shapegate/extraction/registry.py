"""Auto-discovery registry for language-family extractors."""

from __future__ import annotations

import importlib
import logging
import pkgutil
from pathlib import Path
from typing import TYPE_CHECKING

from shapegate.core.exceptions import UnsupportedLanguageError
from shapegate.core.types import LanguageFamily

if TYPE_CHECKING:
    from shapegate.extraction.base import BaseExtractor

logger = logging.getLogger(__name__)

_EXTRACTORS: dict[LanguageFamily, type[BaseExtractor]] = {}
_INSTANCES: dict[LanguageFamily, BaseExtractor] = {}
_discovered = False

# Aliases accepted wherever a family name is given by a user or config
FAMILY_ALIASES: dict[str, LanguageFamily] = {
    "py": LanguageFamily.PYTHON,
    "python": LanguageFamily.PYTHON,
    "go": LanguageFamily.GO,
    "golang": LanguageFamily.GO,
    "ts": LanguageFamily.TYPESCRIPT,
    "tsx": LanguageFamily.TYPESCRIPT,
    "typescript": LanguageFamily.TYPESCRIPT,
    "js": LanguageFamily.TYPESCRIPT,
    "jsx": LanguageFamily.TYPESCRIPT,
    "javascript": LanguageFamily.TYPESCRIPT,
    "react": LanguageFamily.TYPESCRIPT,
}


def register_extractor(extractor_class: type[BaseExtractor]) -> type[BaseExtractor]:
    """Register an extractor class. Used as a class decorator."""
    family = extractor_class.family.fget(extractor_class)  # type: ignore[attr-defined]
    _EXTRACTORS[family] = extractor_class
    return extractor_class


def _discover_extractors() -> None:
    """Import every module in the families/ sub-package."""
    global _discovered  # noqa: PLW0603
    if _discovered:
        return
    _discovered = True

    families_path = Path(__file__).parent / "families"
    families_package = __package__ + ".families"

    for _importer, module_name, _ispkg in pkgutil.iter_modules([str(families_path)]):
        if module_name.startswith("_"):
            continue
        importlib.import_module(f"{families_package}.{module_name}")


def resolve_family(name: str | LanguageFamily) -> LanguageFamily:
    """Map a family name or alias to a LanguageFamily.

    Raises:
        UnsupportedLanguageError: If the name is not a known family or alias.

    """
    if isinstance(name, LanguageFamily):
        return name
    family = FAMILY_ALIASES.get(name.strip().lower())
    if family is None:
        raise UnsupportedLanguageError(
            f"Unknown language family '{name}'. "
            f"Known: {', '.join(sorted({f.value for f in LanguageFamily}))}"
        )
    return family


def get_extractor(family: str | LanguageFamily) -> BaseExtractor:
    """Return the shared extractor instance for a family.

    Raises:
        UnsupportedLanguageError: If no extractor is registered for it.

    """
    _discover_extractors()
    resolved = resolve_family(family)
    if resolved not in _EXTRACTORS:
        raise UnsupportedLanguageError(
            f"No extractor registered for '{resolved.value}'",
            family=resolved.value,
        )
    instance = _INSTANCES.get(resolved)
    if instance is None:
        instance = _EXTRACTORS[resolved]()
        _INSTANCES[resolved] = instance
    return instance


def available_families() -> list[LanguageFamily]:
    """Return registered families in declaration order."""
    _discover_extractors()
    return [f for f in LanguageFamily if f in _EXTRACTORS]


def detect_family(path: str | Path) -> LanguageFamily:
    """Detect a file's language family from its suffix.

    Raises:
        UnsupportedLanguageError: If no registered extractor handles the suffix.

    """
    _discover_extractors()
    for family in available_families():
        if get_extractor(family).handles(path):
            return family
    raise UnsupportedLanguageError(
        f"No extractor handles files like '{Path(path).name}'",
        path=path,
    )
