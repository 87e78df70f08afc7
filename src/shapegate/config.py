"""Pattern store configuration.

The pattern store is a YAML document in the project root (``.shapegate.yml``
by default) holding the learned patterns and engine settings:

    version: "1.0"
    language: go
    patterns:
      - id: service_pattern
        name: service
        category: service
        detection: {file_pattern: "*service*", path_segment: /services/}
        structure: {required: [context], optional: [fmt]}
        annotated_golden: []
        config_blessed: []
        discovered: [{path: internal/services/user.go, weight: 1.0}]
        confidence: 0.6
        seen_count: 3
    settings:
      auto_approve_threshold: 95

A store that fails to load or validate is a hard error: matching against an
invalid configuration would be meaningless.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from shapegate.core.exceptions import (
    ConfigValidationError,
    PatternNotFoundError,
    UnsupportedLanguageError,
)
from shapegate.core.types import LanguageFamily
from shapegate.extraction.registry import resolve_family
from shapegate.patterns.models import Pattern

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".shapegate.yml"
STORE_VERSION = "1.0"


class Settings(BaseModel):
    """Engine and reporting settings.

    Attributes:
        auto_approve_threshold: Raw score at or above which a file is
            auto-approved.
        review_lines_per_minute: Review speed used to estimate time saved.
        shape_fallback_similarity: Shape factor used when a histogram is
            unavailable (regex-extracted families).
        anti_pattern_threshold: Raw score at or above which resemblance to an
            anti-pattern is reported as an error.
        workers: Worker threads for batch matching (None: one per core).

    """

    model_config = ConfigDict(extra="ignore")

    auto_approve_threshold: float = Field(default=95.0, ge=0.0, le=100.0)
    review_lines_per_minute: float = Field(default=20.0, gt=0.0)
    shape_fallback_similarity: float = Field(default=0.5, ge=0.0, le=1.0)
    anti_pattern_threshold: float = Field(default=90.0, ge=0.0, le=100.0)
    workers: int | None = Field(default=None, ge=1)


class StoreConfig(BaseModel):
    """Root model of the pattern store."""

    model_config = ConfigDict(extra="ignore")

    version: str = STORE_VERSION
    language: LanguageFamily = LanguageFamily.GO
    patterns: list[Pattern] = Field(default_factory=list)
    settings: Settings = Field(default_factory=Settings)

    @field_validator("language", mode="before")
    @classmethod
    def _resolve_language(cls, v: object) -> object:
        """Accept family aliases such as "golang" or "ts"."""
        if isinstance(v, str):
            try:
                return resolve_family(v)
            except UnsupportedLanguageError:
                return v
        return v

    @field_validator("patterns", mode="after")
    @classmethod
    def _unique_ids(cls, v: list[Pattern]) -> list[Pattern]:
        """Reject duplicate pattern ids."""
        seen: set[str] = set()
        for pattern in v:
            if pattern.id in seen:
                raise ValueError(f"Duplicate pattern id: {pattern.id}")
            seen.add(pattern.id)
        return v

    def get_pattern(self, pattern_id: str) -> Pattern:
        """Return a pattern by id.

        Raises:
            PatternNotFoundError: If no pattern has that id.

        """
        for pattern in self.patterns:
            if pattern.id == pattern_id:
                return pattern
        raise PatternNotFoundError(f"Pattern not found: {pattern_id}", pattern_id=pattern_id)


def config_path_for(project: str | Path) -> Path:
    """Return the store path inside a project directory."""
    return Path(project) / CONFIG_FILENAME


def config_exists(path: str | Path) -> bool:
    """Return True when a store file exists at ``path``."""
    return Path(path).is_file()


def default_config(language: str | LanguageFamily = LanguageFamily.GO) -> StoreConfig:
    """Return an empty store for a language family."""
    return StoreConfig(language=resolve_family(language))


def load_config(path: str | Path) -> StoreConfig:
    """Load and validate a pattern store.

    Args:
        path: Store file.

    Returns:
        Validated StoreConfig.

    Raises:
        ConfigValidationError: If the file is missing, not valid YAML, not a
            mapping, or fails validation.

    """
    store_path = Path(path)
    if not store_path.is_file():
        raise ConfigValidationError("Pattern store not found; run `shapegate init`", path=path)

    try:
        content = store_path.read_text(encoding="utf-8")
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigValidationError(f"Invalid YAML: {e}", path=path) from e
    except OSError as e:
        raise ConfigValidationError(f"Cannot read pattern store: {e}", path=path) from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigValidationError(
            f"Pattern store must be a mapping, got {type(data).__name__}", path=path
        )

    try:
        config = StoreConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigValidationError(f"Invalid pattern store: {e}", path=path) from e

    if not config.patterns:
        logger.warning("No patterns configured in %s", store_path)
    logger.debug("Loaded %d pattern(s) from %s", len(config.patterns), store_path)
    return config


def save_config(config: StoreConfig, path: str | Path) -> None:
    """Write a pattern store atomically (temp file + rename).

    Raises:
        ConfigValidationError: If the file cannot be written.

    """
    store_path = Path(path)
    data = config.model_dump(mode="json", exclude_none=True)

    fd, tmp_name = tempfile.mkstemp(
        dir=store_path.parent, prefix=f".{store_path.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            yaml.safe_dump(
                data,
                f,
                default_flow_style=False,
                sort_keys=False,
                allow_unicode=True,
                width=120,
            )
        os.replace(tmp_name, store_path)
    except OSError as e:
        Path(tmp_name).unlink(missing_ok=True)
        raise ConfigValidationError(f"Failed to write pattern store: {e}", path=path) from e
    logger.debug("Saved %d pattern(s) to %s", len(config.patterns), store_path)
