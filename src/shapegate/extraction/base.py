"""BaseExtractor ABC, the abstract base for all language-family extractors."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path

from shapegate.core.exceptions import ParseError
from shapegate.core.types import LanguageFamily
from shapegate.extraction.types import FileFingerprint

logger = logging.getLogger(__name__)

# Files larger than this are not parsed (generated bundles, fixtures)
MAX_FILE_SIZE = 2 * 1024 * 1024


class BaseExtractor(ABC):
    """Abstract base class for language-family extractors.

    Each implementation turns one source file into a FileFingerprint of the
    same shape. Extractors hold no per-file state, so one instance can be
    shared by every worker in a batch.
    """

    # --- abstract properties (override in subclass) ---

    @property
    @abstractmethod
    def family(self) -> LanguageFamily:
        """Language family handled by this extractor."""

    @property
    @abstractmethod
    def extensions(self) -> tuple[str, ...]:
        """File suffixes handled by this extractor, e.g. ('.go',)."""

    @property
    @abstractmethod
    def comment_prefix(self) -> str:
        """Single-line comment prefix, e.g. '//' or '#'."""

    @property
    @abstractmethod
    def has_parser(self) -> bool:
        """True when a full parser backs this extractor (histogram available)."""

    @property
    def test_suffixes(self) -> tuple[str, ...]:
        """File name endings that mark test files. Override if needed."""
        return ()

    @property
    def test_prefixes(self) -> tuple[str, ...]:
        """File name beginnings that mark test files. Override if needed."""
        return ()

    # --- abstract extraction ---

    @abstractmethod
    def extract_source(self, source: str, path: str) -> FileFingerprint:
        """Build a fingerprint from already-read source text.

        Raises:
            ParseError: If the source is syntactically invalid.

        """

    # --- shared helpers ---

    def extract(self, path: str | Path) -> FileFingerprint:
        """Read a file and build its fingerprint.

        Args:
            path: File to read.

        Returns:
            FileFingerprint for the file.

        Raises:
            ParseError: If the file cannot be read, decoded, or parsed.

        """
        source = self.read_source(path)
        return self.extract_source(source, str(path))

    def read_source(self, path: str | Path) -> str:
        """Read a source file as UTF-8 text, dropping any byte order mark.

        Raises:
            ParseError: If the file is missing, too large, or not UTF-8.

        """
        file_path = Path(path)
        try:
            size = file_path.stat().st_size
            if size > MAX_FILE_SIZE:
                raise ParseError(
                    f"File too large to parse ({size} bytes, limit {MAX_FILE_SIZE})",
                    path=path,
                    family=self.family.value,
                )
            return file_path.read_text(encoding="utf-8-sig")
        except UnicodeDecodeError as e:
            raise ParseError(
                f"File is not valid UTF-8: {e.reason}",
                path=path,
                family=self.family.value,
            ) from e
        except OSError as e:
            raise ParseError(
                f"Cannot read file: {e.strerror or e}",
                path=path,
                family=self.family.value,
            ) from e

    def handles(self, path: str | Path) -> bool:
        """Return True when the path has one of this extractor's suffixes."""
        name = Path(path).name
        return any(name.endswith(ext) for ext in self.extensions)

    def is_test_file(self, path: str | Path) -> bool:
        """Return True when the file name follows a test naming convention."""
        name = Path(path).name
        if any(name.endswith(suffix) for suffix in self.test_suffixes):
            return True
        return any(name.startswith(prefix) for prefix in self.test_prefixes)

    def __repr__(self) -> str:
        """Return a string representation of the extractor."""
        return f"{type(self).__name__}(family={self.family.value!r}, parser={self.has_parser})"
