"""Pytest configuration and fixtures for shapegate tests."""

from collections.abc import Callable
from pathlib import Path

import pytest

from shapegate.core.types import LanguageFamily, PatternCategory, Tier, TypeKind
from shapegate.extraction.types import FileFingerprint, FunctionSignature, TypeDeclaration
from shapegate.patterns.models import Pattern, ReferenceExample, ReferenceIndex

# =============================================================================
# Source samples
# =============================================================================

PYTHON_SERVICE = '''"""{name} service."""

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class {name}Service:
    repo: object

    def get(self, key):
        item = self.repo.find(key)
        if item is None:
            raise LookupError(key)
        return item
'''

PYTHON_HANDLER = '''import json


def {name}_handler(request):
    return json.dumps(request)
'''

PYTHON_ANTI_PATTERN_SERVICE = '''# @shapegate:anti-pattern
# @pattern: service
# @reason: Uses the legacy repository wiring
# @deprecated: 2024-11-01
# @migration-guide: docs/services.md
"""Legacy service."""

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class LegacyService:
    repo: object

    def get(self, key):
        item = self.repo.find(key)
        if item is None:
            raise LookupError(key)
        return item
'''

GO_SERVICE = """package services

import (
\t"context"
\t"fmt"
)

type UserService struct {
\trepo UserRepository
}

type UserRepository interface {
\tFind(ctx context.Context, id string) (*User, error)
}

func NewUserService(repo UserRepository) *UserService {
\treturn &UserService{repo: repo}
}

func (s *UserService) Get(ctx context.Context, id string) (*User, error) {
\tuser, err := s.repo.Find(ctx, id)
\tif err != nil {
\t\treturn nil, fmt.Errorf("get user: %w", err)
\t}
\treturn user, nil
}
"""

TYPESCRIPT_COMPONENT = """import React, { useState } from 'react';
import type { User } from "../types/user";

export interface UserCardProps {
  user: User;
}

export const UserCard = ({ user }: UserCardProps) => {
  if (user === null) {
    return null;
  }
  return <div>{user.name}</div>;
};

export function formatName(user: User): string {
  return user.name;
}

export default class Store {}
"""


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def write_files(tmp_path: Path) -> Callable[[dict[str, str]], Path]:
    """Write a {relative path: content} mapping under tmp_path."""

    def _write(files: dict[str, str]) -> Path:
        for relative, content in files.items():
            path = tmp_path / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return tmp_path

    return _write


@pytest.fixture
def python_service_source() -> str:
    """Python service module; format with name=..."""
    return PYTHON_SERVICE


@pytest.fixture
def python_handler_source() -> str:
    """Python handler module; format with name=..."""
    return PYTHON_HANDLER


@pytest.fixture
def anti_pattern_source() -> str:
    """Python service annotated as an anti-pattern."""
    return PYTHON_ANTI_PATTERN_SERVICE


@pytest.fixture
def go_source() -> str:
    """Go service with a struct, an interface, a method and a nil check."""
    return GO_SERVICE


@pytest.fixture
def typescript_source() -> str:
    """React component module."""
    return TYPESCRIPT_COMPONENT


@pytest.fixture
def python_project(write_files: Callable[[dict[str, str]], Path]) -> Path:
    """Python project with three services, one handler and one util module."""
    return write_files(
        {
            "pyproject.toml": "[project]\nname = 'shop'\n",
            "shop/services/billing_service.py": PYTHON_SERVICE.format(name="Billing"),
            "shop/services/order_service.py": PYTHON_SERVICE.format(name="Order"),
            "shop/services/user_service.py": PYTHON_SERVICE.format(name="User"),
            "shop/handlers/user_handler.py": PYTHON_HANDLER.format(name="user"),
            "shop/helpers.py": "def slugify(value):\n    return value.lower()\n",
        }
    )


@pytest.fixture
def make_fingerprint() -> Callable[..., FileFingerprint]:
    """Factory for fingerprints with sensible defaults."""

    def _make(
        path: str = "pkg/example.py",
        family: LanguageFamily = LanguageFamily.PYTHON,
        module: str | None = None,
        imports: tuple[str, ...] = (),
        functions: tuple[str, ...] = (),
        types: tuple[str, ...] = (),
        histogram: dict[str, int] | None = None,
        has_error_handling: bool = False,
    ) -> FileFingerprint:
        return FileFingerprint(
            path=path,
            family=family,
            module=module if module is not None else Path(path).stem,
            imports=imports,
            functions=tuple(FunctionSignature(name=name) for name in functions),
            types=tuple(TypeDeclaration(name=name, kind=TypeKind.STRUCT) for name in types),
            node_histogram=histogram,
            has_error_handling=has_error_handling,
        )

    return _make


@pytest.fixture
def make_pattern() -> Callable[..., Pattern]:
    """Factory for patterns from {tier: [paths]} with default tier weights."""

    def _make(
        pattern_id: str = "service_pattern",
        category: PatternCategory = PatternCategory.SERVICE,
        references: dict[Tier, list[str]] | None = None,
        **kwargs: object,
    ) -> Pattern:
        index = ReferenceIndex()
        for tier, paths in (references or {}).items():
            for path in paths:
                index.add(tier, ReferenceExample(path=path, weight=tier.default_weight))
        return Pattern(
            id=pattern_id,
            name=category.value,
            category=category,
            references=index,
            **kwargs,
        )

    return _make
