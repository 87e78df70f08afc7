"""Source annotations for golden examples and anti-patterns.

A block opens with a header comment and continues with ``@key: value``
comment lines. The first non-comment line closes it; when that line declares
a function, the block applies to that function::

    // @shapegate:golden-example
    // @pattern: service
    // @author: alice
    // @blessed: 2025-01-15
    // @reason: canonical service layout
    // @quality-score: 95
    func NewUserService(repo UserRepository) *UserService {

    # @shapegate:anti-pattern
    # @pattern: handler
    # @reason: mixes transport and persistence
    # @deprecated: 2024-11-01
    # @migration-guide: docs/handlers.md
    def legacy_handler(request):
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path

from pydantic import ValidationError

from shapegate.core.exceptions import ParseError
from shapegate.core.types import LanguageFamily, PatternCategory
from shapegate.extraction.registry import get_extractor, resolve_family
from shapegate.extraction.walk import iter_source_files
from shapegate.patterns.models import AntiPattern, GoldenExample

logger = logging.getLogger(__name__)

ANNOTATION_TAG = "@shapegate:"
GOLDEN_EXAMPLE = "golden-example"
ANTI_PATTERN = "anti-pattern"

_FIELD_PATTERN = re.compile(r"^@([\w-]+)\s*:\s*(.*)$")

FUNCTION_DECLARATIONS: dict[LanguageFamily, re.Pattern[str]] = {
    LanguageFamily.PYTHON: re.compile(r"^\s*(?:async\s+)?def\s+(\w+)\s*\("),
    LanguageFamily.GO: re.compile(r"^\s*func\s+(?:\([^)]+\)\s+)?(\w+)\s*[(\[]"),
    LanguageFamily.TYPESCRIPT: re.compile(
        r"^\s*(?:export\s+)?(?:default\s+)?(?:async\s+)?"
        r"(?:function\s*\*?\s*([\w$]+)|(?:const|let|var)\s+([\w$]+)\s*[:=])"
    ),
}


@dataclass
class Annotation:
    """One parsed annotation block."""

    kind: str
    line_number: int
    fields: dict[str, str] = field(default_factory=dict)
    function: str | None = None

    @property
    def pattern(self) -> str:
        """Return the annotated pattern name."""
        return self.fields.get("pattern", "")


def annotation_category(value: str) -> PatternCategory | None:
    """Map an ``@pattern`` value ("service" or "service_pattern") to a category."""
    name = value.strip().lower().removesuffix("_pattern")
    try:
        return PatternCategory(name)
    except ValueError:
        return None


def _parse_date(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        logger.debug("Ignoring malformed date %r", value)
        return None


def _parse_int(value: str | None) -> int | None:
    if not value:
        return None
    match = re.match(r"^\s*(-?\d+)", value)
    if match is None:
        logger.debug("Ignoring malformed integer %r", value)
        return None
    return int(match.group(1))


def _parse_float(value: str | None) -> float | None:
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        logger.debug("Ignoring malformed number %r", value)
        return None


def _function_name(line: str, family: LanguageFamily) -> str | None:
    match = FUNCTION_DECLARATIONS[family].match(line)
    if match is None:
        return None
    return next((g for g in match.groups() if g), None)


def parse_annotations(source: str, family: LanguageFamily) -> list[Annotation]:
    """Parse every annotation block in a source text."""
    prefix = get_extractor(family).comment_prefix
    header = f"{prefix} {ANNOTATION_TAG}"

    annotations: list[Annotation] = []
    current: Annotation | None = None
    for line_number, line in enumerate(source.splitlines(), start=1):
        stripped = line.strip()

        if stripped.startswith(header):
            if current is not None:
                annotations.append(current)
            kind = stripped[len(header) :].strip()
            current = Annotation(kind=kind, line_number=line_number)
            continue

        if current is None:
            continue

        if stripped.startswith(prefix):
            body = stripped[len(prefix) :].strip()
            match = _FIELD_PATTERN.match(body)
            if match:
                current.fields[match.group(1).lower()] = match.group(2).strip()
            continue

        # First non-comment line closes the block
        current.function = _function_name(line, family)
        annotations.append(current)
        current = None

    if current is not None:
        annotations.append(current)
    return annotations


@dataclass
class AnnotationSet:
    """Golden examples and anti-patterns found in a tree."""

    goldens: list[GoldenExample] = field(default_factory=list)
    anti_patterns: list[AntiPattern] = field(default_factory=list)

    def goldens_for(self, category: PatternCategory) -> list[GoldenExample]:
        """Return goldens annotated for a category."""
        return [g for g in self.goldens if annotation_category(g.pattern) is category]

    def anti_patterns_for(self, category: PatternCategory) -> list[AntiPattern]:
        """Return anti-patterns annotated for a category."""
        return [a for a in self.anti_patterns if annotation_category(a.pattern) is category]

    def categories(self) -> set[PatternCategory]:
        """Return every category that has at least one golden example."""
        found = {annotation_category(g.pattern) for g in self.goldens}
        found.discard(None)
        return found  # type: ignore[return-value]


def _to_golden(annotation: Annotation, path: str) -> GoldenExample:
    f = annotation.fields
    weight = _parse_float(f.get("weight"))
    data = {
        "path": path,
        "function": annotation.function,
        "pattern": annotation.pattern,
        "version": f.get("version"),
        "author": f.get("author"),
        "blessed_date": _parse_date(f.get("blessed")),
        "reason": f.get("reason"),
        "quality_score": _parse_int(f.get("quality-score")),
    }
    if weight is not None:
        data["weight"] = weight
    return GoldenExample.model_validate(data)


def _to_anti_pattern(annotation: Annotation, path: str) -> AntiPattern:
    f = annotation.fields
    return AntiPattern(
        path=path,
        function=annotation.function,
        pattern=annotation.pattern,
        reason=f.get("reason"),
        deprecated=_parse_date(f.get("deprecated")),
        migration_guide=f.get("migration-guide"),
    )


def collect_annotations(
    annotations: list[Annotation], path: str, into: AnnotationSet | None = None
) -> AnnotationSet:
    """Convert parsed blocks of one file into golden / anti-pattern records.

    Blocks without an ``@pattern`` key or with invalid values are skipped.
    """
    result = into if into is not None else AnnotationSet()
    for annotation in annotations:
        if not annotation.pattern:
            logger.debug("%s:%d: annotation without @pattern", path, annotation.line_number)
            continue
        try:
            if annotation.kind == GOLDEN_EXAMPLE:
                result.goldens.append(_to_golden(annotation, path))
            elif annotation.kind == ANTI_PATTERN:
                result.anti_patterns.append(_to_anti_pattern(annotation, path))
            else:
                logger.debug(
                    "%s:%d: unknown annotation %r", path, annotation.line_number, annotation.kind
                )
        except ValidationError as e:
            logger.warning("%s:%d: invalid annotation: %s", path, annotation.line_number, e)
    return result


def find_annotations(root: str | Path, family: str | LanguageFamily) -> AnnotationSet:
    """Walk a tree and collect every golden example and anti-pattern.

    Paths are recorded relative to ``root``. Unreadable files are skipped.
    """
    resolved = resolve_family(family)
    extractor = get_extractor(resolved)
    root_path = Path(root)
    result = AnnotationSet()
    for path in iter_source_files(root_path, resolved):
        try:
            source = extractor.read_source(path)
        except ParseError as e:
            logger.warning("Skipping annotations in %s: %s", path, e)
            continue
        if ANNOTATION_TAG not in source:
            continue
        relative = path.relative_to(root_path).as_posix()
        collect_annotations(parse_annotations(source, resolved), relative, into=result)
    logger.debug(
        "Found %d golden example(s) and %d anti-pattern(s) under %s",
        len(result.goldens),
        len(result.anti_patterns),
        root_path,
    )
    return result
