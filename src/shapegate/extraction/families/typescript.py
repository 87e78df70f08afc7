r"""TypeScript / JavaScript extractor using line-oriented regex heuristics.

There is no parser dependency for this family, so extraction is an
approximation with known limits:

    - Imports come from one import expression applied to the whole text
      (multi-line named imports are handled, dynamic ``import()`` and
      ``require()`` are not).
    - Functions come from an ordered idiom list; the first idiom matching a
      line wins, so a line is never counted twice. Class methods and object
      literal methods are not recognised.
    - Types come from interface / type alias / class / enum idioms. Only
      interfaces are interface-like; no field names are collected.
    - No node-kind histogram is produced (``node_histogram`` is None).
      Lines matching no idiom are ignored.
"""

from __future__ import annotations

import re
from pathlib import Path

from shapegate.core.types import LanguageFamily, TypeKind
from shapegate.extraction.base import BaseExtractor
from shapegate.extraction.registry import register_extractor
from shapegate.extraction.types import (
    FileFingerprint,
    FunctionSignature,
    TypeDeclaration,
    dedupe_preserving_order,
)

_IDENT = r"[A-Za-z_$][\w$]*"

IMPORT_PATTERN: re.Pattern[str] = re.compile(
    r"^\s*import\s+(?:type\s+)?(?:[^'\";]*?\s*from\s*)?['\"]([^'\"\n]+)['\"]",
    re.MULTILINE,
)

_ARROW_TAIL = (
    r"\s*(?:async\s+)?(?:<[^>]*>\s*)?"
    rf"(?:\([^)]*\)|{_IDENT})\s*(?::\s*[^=]+?)?\s*=>"
)

# Ordered: first idiom matching a line wins
FUNCTION_IDIOMS: list[tuple[str, re.Pattern[str]]] = [
    (
        "function_declaration",
        re.compile(
            rf"^\s*(?:export\s+)?(?:default\s+)?(?:async\s+)?function\s*\*?\s*({_IDENT})\s*[(<]"
        ),
    ),
    (
        "arrow_function",
        re.compile(rf"^\s*(?:export\s+)?(?:const|let|var)\s+({_IDENT})\s*={_ARROW_TAIL}"),
    ),
    (
        "typed_arrow_function",
        re.compile(
            rf"^\s*(?:export\s+)?(?:const|let|var)\s+({_IDENT})\s*:\s*[^=]+?={_ARROW_TAIL}"
        ),
    ),
]

TYPE_IDIOMS: list[tuple[TypeKind, re.Pattern[str]]] = [
    (
        TypeKind.INTERFACE,
        re.compile(rf"^\s*(?:export\s+)?(?:declare\s+)?interface\s+({_IDENT})"),
    ),
    (
        TypeKind.STRUCT,
        re.compile(rf"^\s*(?:export\s+)?(?:declare\s+)?type\s+({_IDENT})\s*(?:<[^>]*>)?\s*="),
    ),
    (
        TypeKind.STRUCT,
        re.compile(
            rf"^\s*(?:export\s+)?(?:default\s+)?(?:declare\s+)?(?:abstract\s+)?class\s+({_IDENT})"
        ),
    ),
    (
        TypeKind.STRUCT,
        re.compile(rf"^\s*(?:export\s+)?(?:declare\s+)?(?:const\s+)?enum\s+({_IDENT})"),
    ),
]

ERROR_HANDLING_PATTERN: re.Pattern[str] = re.compile(
    r"\bif\s*\((?:[^()]|\([^()]*\))*?"
    r"(?:[!=]==?\s*(?:null|undefined)\b|\b(?:null|undefined)\s*[!=]==?)"
)


def module_name_for(path: str) -> str:
    """Return the file name up to its first dot ("Button.stories.tsx" -> "Button")."""
    return Path(path).name.split(".", 1)[0]


@register_extractor
class TypeScriptExtractor(BaseExtractor):
    """Regex-based extractor for TypeScript and JavaScript files."""

    @property
    def family(self) -> LanguageFamily:
        """Return family identifier."""
        return LanguageFamily.TYPESCRIPT

    @property
    def extensions(self) -> tuple[str, ...]:
        """Return TypeScript and JavaScript suffixes."""
        return (".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs")

    @property
    def comment_prefix(self) -> str:
        """Return TypeScript comment prefix."""
        return "//"

    @property
    def has_parser(self) -> bool:
        """No parser: regex heuristics only, no histogram."""
        return False

    @property
    def test_suffixes(self) -> tuple[str, ...]:
        """Return test file endings."""
        return tuple(
            f".{kind}{ext}" for kind in ("test", "spec") for ext in (".ts", ".tsx", ".js", ".jsx")
        )

    def extract_source(self, source: str, path: str) -> FileFingerprint:
        """Extract a fingerprint with regex idioms. Never raises on content."""
        imports = [m.group(1) for m in IMPORT_PATTERN.finditer(source)]
        functions: list[FunctionSignature] = []
        types: list[TypeDeclaration] = []

        for line_number, line in enumerate(source.splitlines(), start=1):
            for _idiom, pattern in FUNCTION_IDIOMS:
                match = pattern.match(line)
                if match:
                    functions.append(FunctionSignature(name=match.group(1), line_number=line_number))
                    break
            for kind, pattern in TYPE_IDIOMS:
                match = pattern.match(line)
                if match:
                    types.append(
                        TypeDeclaration(name=match.group(1), kind=kind, line_number=line_number)
                    )
                    break

        return FileFingerprint(
            path=path,
            family=self.family,
            module=module_name_for(path),
            imports=dedupe_preserving_order(imports),
            functions=tuple(functions),
            types=tuple(types),
            node_histogram=None,
            has_error_handling=ERROR_HANDLING_PATTERN.search(source) is not None,
        )
