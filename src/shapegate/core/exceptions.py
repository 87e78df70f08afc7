"""Exceptions for shapegate.

Failure policy:
    - ParseError: fatal to one file. Callers log it and continue the batch.
    - ReferenceUnavailable: raised by the reference loader and absorbed by
      the match engine, which degrades that one comparison to a fixed
      fallback score.
    - ConfigValidationError: the pattern store is malformed. Surfaced before
      any matching starts.

Nothing is retried: extraction and matching are local and deterministic.
"""

from __future__ import annotations

from pathlib import Path


class ShapegateError(Exception):
    """Base exception for shapegate.

    All shapegate specific exceptions inherit from this class.
    """

    pass


class ParseError(ShapegateError):
    """A source file could not be read or parsed.

    Attributes:
        path: The file that failed.
        family: Language family the file was parsed as (if known).
        line: 1-based line of a syntax error (if known).

    """

    def __init__(
        self,
        message: str,
        path: str | Path | None = None,
        family: str | None = None,
        line: int | None = None,
    ) -> None:
        """Initialize ParseError with context.

        Args:
            message: Human-readable error message.
            path: The file that failed.
            family: Language family used for parsing.
            line: Line of the syntax error, when the parser reports one.

        """
        super().__init__(message)
        self.path = str(path) if path is not None else None
        self.family = family
        self.line = line

    def __str__(self) -> str:
        """Return message prefixed with the failing path."""
        base = super().__str__()
        if self.path is None:
            return base
        if self.line is not None:
            return f"{self.path}:{self.line}: {base}"
        return f"{self.path}: {base}"


class UnsupportedLanguageError(ParseError):
    """No extractor is registered for the file's language family."""

    pass


class ReferenceUnavailable(ShapegateError):
    """A pattern's reference file is missing or unparseable at match time.

    Attributes:
        path: The reference path.
        cause: The underlying error, if any.

    """

    def __init__(self, path: str, cause: Exception | None = None) -> None:
        """Initialize ReferenceUnavailable.

        Args:
            path: The reference path.
            cause: The underlying error (usually a ParseError or OSError).

        """
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Reference unavailable: {path}{detail}")
        self.path = path
        self.cause = cause


class ConfigValidationError(ShapegateError):
    """The persisted pattern store is missing or malformed.

    Attributes:
        path: Path of the store file.

    """

    def __init__(self, message: str, path: str | Path | None = None) -> None:
        """Initialize ConfigValidationError.

        Args:
            message: Human-readable error message.
            path: Path of the store file.

        """
        super().__init__(message)
        self.path = Path(path) if path is not None else None

    def __str__(self) -> str:
        """Return message with file context."""
        base = super().__str__()
        if self.path is not None:
            return f"{base} (in {self.path})"
        return base


class PatternNotFoundError(ShapegateError):
    """A pattern id was requested that the store does not contain."""

    def __init__(self, message: str, pattern_id: str | None = None) -> None:
        """Initialize PatternNotFoundError.

        Args:
            message: Human-readable error message.
            pattern_id: The id that was looked up.

        """
        super().__init__(message)
        self.pattern_id = pattern_id
