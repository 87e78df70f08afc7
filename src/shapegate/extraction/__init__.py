"""Structural extraction: source files to comparable fingerprints.

Example:
    >>> from shapegate.extraction import extract_fingerprint
    >>> fingerprint = extract_fingerprint("internal/handlers/user_handler.go")
    >>> fingerprint.imports
    ('net/http', 'encoding/json')

Families with a full parser (Python via ``ast``, Go via tree-sitter) also
produce a node-kind histogram. TypeScript/JavaScript use regex heuristics
and produce none.
"""

from __future__ import annotations

from pathlib import Path

from shapegate.core.types import LanguageFamily
from shapegate.extraction.base import BaseExtractor
from shapegate.extraction.registry import (
    available_families,
    detect_family,
    get_extractor,
    register_extractor,
    resolve_family,
)
from shapegate.extraction.types import FileFingerprint, FunctionSignature, TypeDeclaration


def extract_fingerprint(
    path: str | Path, family: str | LanguageFamily | None = None
) -> FileFingerprint:
    """Extract the fingerprint of one file.

    Args:
        path: File to read.
        family: Language family; detected from the suffix when omitted.

    Returns:
        FileFingerprint for the file.

    Raises:
        ParseError: If the file is unreadable, unsupported, or invalid.

    """
    resolved = resolve_family(family) if family is not None else detect_family(path)
    return get_extractor(resolved).extract(path)


__all__ = [
    "BaseExtractor",
    "FileFingerprint",
    "FunctionSignature",
    "TypeDeclaration",
    "available_families",
    "detect_family",
    "extract_fingerprint",
    "get_extractor",
    "register_extractor",
    "resolve_family",
]
