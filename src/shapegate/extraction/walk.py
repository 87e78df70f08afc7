"""Source tree traversal and project language detection."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from pathlib import Path

from shapegate.core.types import LanguageFamily
from shapegate.extraction.registry import available_families, get_extractor

logger = logging.getLogger(__name__)

# Directories never scanned
SKIP_DIRS: frozenset[str] = frozenset(
    {
        ".git",
        "__pycache__",
        ".venv",
        "venv",
        "node_modules",
        "vendor",
        ".pytest_cache",
        "dist",
        "build",
    }
)

# Project marker files, checked in order
PROJECT_MARKERS: list[tuple[str, LanguageFamily]] = [
    ("go.mod", LanguageFamily.GO),
    ("tsconfig.json", LanguageFamily.TYPESCRIPT),
    ("package.json", LanguageFamily.TYPESCRIPT),
    ("pyproject.toml", LanguageFamily.PYTHON),
    ("setup.py", LanguageFamily.PYTHON),
]

# Prevalence scan depth limit
MAX_DETECT_DEPTH = 5


def iter_source_files(
    root: str | Path,
    family: LanguageFamily,
    include_tests: bool = False,
) -> Iterator[Path]:
    """Yield source files of a family under root, sorted per directory.

    Skipped directories (vendored trees, caches, VCS metadata) are pruned.
    Test files are skipped unless ``include_tests`` is set.
    """
    extractor = get_extractor(family)
    root_path = Path(root)
    for current, dirs, files in os.walk(root_path, topdown=True):
        # Prune in place to prevent traversal
        dirs[:] = sorted(d for d in dirs if d not in SKIP_DIRS and not d.startswith("."))
        for name in sorted(files):
            path = Path(current) / name
            if not extractor.handles(path):
                continue
            if not include_tests and extractor.is_test_file(path):
                continue
            yield path


def detect_project_family(root: str | Path) -> LanguageFamily:
    """Guess a project's language family.

    Marker files win (go.mod, tsconfig.json, package.json, pyproject.toml,
    setup.py). Otherwise the family with the most source files in the top
    levels of the tree is chosen, defaulting to Go.
    """
    root_path = Path(root)
    for marker, family in PROJECT_MARKERS:
        if (root_path / marker).is_file():
            logger.debug("Detected %s from %s", family.value, marker)
            return family

    counts: dict[LanguageFamily, int] = dict.fromkeys(available_families(), 0)
    extractors = [get_extractor(f) for f in counts]
    base_depth = len(root_path.parts)
    for current, dirs, files in os.walk(root_path, topdown=True):
        if len(Path(current).parts) - base_depth >= MAX_DETECT_DEPTH:
            dirs[:] = []
        else:
            dirs[:] = [d for d in dirs if d not in SKIP_DIRS and not d.startswith(".")]
        for name in files:
            for extractor in extractors:
                if extractor.handles(name):
                    counts[extractor.family] += 1
                    break

    best = max(counts.items(), key=lambda item: item[1], default=(LanguageFamily.GO, 0))
    return best[0] if best[1] > 0 else LanguageFamily.GO
