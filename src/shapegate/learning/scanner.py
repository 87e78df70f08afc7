"""Learning path: scan a tree, classify, group and build patterns.

Also hosts the two store mutations that follow learning: merging freshly
learned patterns into an existing store, and blessing a file.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path

from shapegate.annotations import AnnotationSet, find_annotations
from shapegate.config import StoreConfig
from shapegate.core.exceptions import ParseError
from shapegate.core.types import LanguageFamily, PatternCategory, Tier
from shapegate.extraction.registry import get_extractor, resolve_family
from shapegate.extraction.types import FileFingerprint
from shapegate.extraction.walk import iter_source_files
from shapegate.learning.builder import build_pattern
from shapegate.learning.classifier import classify
from shapegate.patterns.models import Pattern, ReferenceExample

logger = logging.getLogger(__name__)


@dataclass
class LearnResult:
    """Outcome of a learning scan.

    Attributes:
        patterns: Built patterns sorted by id.
        files_scanned: Number of files that extracted successfully.
        skipped: (path, error) for files that failed to extract.
        groups: Category -> number of fingerprints classified into it.

    """

    patterns: list[Pattern] = field(default_factory=list)
    files_scanned: int = 0
    skipped: list[tuple[str, ParseError]] = field(default_factory=list)
    groups: dict[PatternCategory, int] = field(default_factory=dict)


@dataclass
class MergeSummary:
    """Counts from merging learned patterns into a store."""

    updated: int = 0
    added: int = 0


class PatternLearner:
    """Learns patterns from the source files of one language family.

    Args:
        root: Project root. Reference paths are stored relative to it.
        family: Language family to scan.

    """

    def __init__(self, root: str | Path, family: str | LanguageFamily) -> None:
        self.root = Path(root)
        self.family = resolve_family(family)
        self._extractor = get_extractor(self.family)

    def __repr__(self) -> str:
        """Return a string representation of the learner."""
        return f"PatternLearner(root={str(self.root)!r}, family={self.family.value!r})"

    def extract_tree(self) -> tuple[list[FileFingerprint], list[tuple[str, ParseError]]]:
        """Extract every source file, skipping files that fail.

        Returns:
            Tuple of (fingerprints with root-relative paths, skipped files).

        """
        fingerprints: list[FileFingerprint] = []
        skipped: list[tuple[str, ParseError]] = []
        for path in iter_source_files(self.root, self.family):
            relative = path.relative_to(self.root).as_posix()
            try:
                source = self._extractor.read_source(path)
                fingerprints.append(self._extractor.extract_source(source, relative))
            except ParseError as e:
                logger.warning("Skipping %s: %s", relative, e)
                skipped.append((relative, e))
        return fingerprints, skipped

    def learn(self, annotations: AnnotationSet | None = None) -> LearnResult:
        """Scan the tree and build one pattern per qualifying category.

        Args:
            annotations: Pre-collected annotations; collected from the tree
                when omitted.

        """
        if annotations is None:
            annotations = find_annotations(self.root, self.family)

        fingerprints, skipped = self.extract_tree()
        groups: dict[PatternCategory, list[FileFingerprint]] = defaultdict(list)
        for fingerprint in fingerprints:
            groups[classify(fingerprint)].append(fingerprint)

        categories = set(groups) | annotations.categories()
        patterns: list[Pattern] = []
        for category in sorted(categories, key=lambda c: c.value):
            try:
                pattern = build_pattern(
                    category,
                    groups.get(category, []),
                    goldens=annotations.goldens_for(category),
                    anti_patterns=annotations.anti_patterns_for(category),
                )
            except ValueError as e:
                logger.warning("Not building %s pattern: %s", category.value, e)
                continue
            if pattern is not None:
                patterns.append(pattern)

        patterns.sort(key=lambda p: p.id)
        logger.info(
            "Learned %d pattern(s) from %d file(s) (%d skipped)",
            len(patterns),
            len(fingerprints),
            len(skipped),
        )
        return LearnResult(
            patterns=patterns,
            files_scanned=len(fingerprints),
            skipped=skipped,
            groups={category: len(members) for category, members in groups.items()},
        )


def merge_patterns(existing: list[Pattern], learned: list[Pattern]) -> MergeSummary:
    """Merge learned patterns into an existing pattern list in place.

    Existing ids get fresh ``seen_count``, ``confidence``, structure and
    discovered tier. Their golden tier gains newly annotated goldens and
    their blessed tier is kept. Unknown ids are appended.
    """
    summary = MergeSummary()
    by_id = {pattern.id: pattern for pattern in existing}
    for new in learned:
        current = by_id.get(new.id)
        if current is None:
            existing.append(new)
            by_id[new.id] = new
            summary.added += 1
            continue

        current.seen_count = new.seen_count
        current.confidence = new.confidence
        current.structure = new.structure
        for golden in new.references.examples(Tier.GOLDEN):
            current.references.add(Tier.GOLDEN, golden)
        current.references.replace_tier(Tier.DISCOVERED, new.references.examples(Tier.DISCOVERED))

        known = {anti.path for anti in current.anti_patterns}
        current.anti_patterns.extend(a for a in new.anti_patterns if a.path not in known)
        summary.updated += 1

    existing.sort(key=lambda p: p.id)
    return summary


def bless(
    config: StoreConfig,
    path: str,
    pattern_id: str,
    reason: str | None = None,
    weight: float = Tier.BLESSED.default_weight,
    author: str | None = None,
    blessed_on: date | None = None,
) -> bool:
    """Add a file to a pattern's blessed tier.

    A file in the discovered tier is promoted; a file that is already golden
    or blessed is left alone.

    Returns:
        True if the file was added.

    Raises:
        PatternNotFoundError: If the pattern id is unknown.
        ValueError: If the weight breaks tier ordering.

    """
    pattern = config.get_pattern(pattern_id)
    example = ReferenceExample(
        path=path,
        weight=weight,
        author=author,
        blessed_date=blessed_on or date.today(),
        reason=reason,
    )
    added = pattern.references.add(Tier.BLESSED, example)
    if added:
        logger.info("Blessed %s into %s (weight %.1f)", path, pattern_id, weight)
    return added
