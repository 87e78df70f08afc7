"""Python extractor, backed by the standard library ``ast`` parser."""

from __future__ import annotations

import ast
from collections import Counter
from pathlib import Path

from shapegate.core.exceptions import ParseError
from shapegate.core.types import LanguageFamily, TypeKind
from shapegate.extraction.base import BaseExtractor
from shapegate.extraction.registry import register_extractor
from shapegate.extraction.types import (
    FileFingerprint,
    FunctionSignature,
    TypeDeclaration,
    dedupe_preserving_order,
)

# Base classes that make a class interface-like
_INTERFACE_BASES = frozenset({"Protocol", "ABC", "ABCMeta"})

_NULL_COMPARISON_OPS = (ast.Is, ast.IsNot, ast.Eq, ast.NotEq)


def _base_name(node: ast.expr) -> str:
    """Return the trailing identifier of a base-class expression."""
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        return node.attr
    if isinstance(node, ast.Subscript):
        # Protocol[T], Generic[T]
        return _base_name(node.value)
    return ""


def _is_none(node: ast.expr) -> bool:
    return isinstance(node, ast.Constant) and node.value is None


def _compares_against_none(test: ast.expr) -> bool:
    """Return True when a condition compares an operand against None."""
    for node in ast.walk(test):
        if not isinstance(node, ast.Compare):
            continue
        if not any(isinstance(op, _NULL_COMPARISON_OPS) for op in node.ops):
            continue
        if _is_none(node.left) or any(_is_none(c) for c in node.comparators):
            return True
    return False


def _import_names(node: ast.Import | ast.ImportFrom) -> list[str]:
    if isinstance(node, ast.Import):
        return [alias.name for alias in node.names]
    return ["." * node.level + (node.module or "")]


def _class_fields(node: ast.ClassDef) -> list[str]:
    """Collect annotated class attributes and ``self.x`` assignments in __init__."""
    fields: list[str] = []
    for stmt in node.body:
        if isinstance(stmt, ast.AnnAssign) and isinstance(stmt.target, ast.Name):
            fields.append(stmt.target.id)
        elif isinstance(stmt, ast.FunctionDef) and stmt.name == "__init__":
            for sub in ast.walk(stmt):
                targets: list[ast.expr] = []
                if isinstance(sub, ast.Assign):
                    targets = list(sub.targets)
                elif isinstance(sub, ast.AnnAssign):
                    targets = [sub.target]
                for target in targets:
                    if (
                        isinstance(target, ast.Attribute)
                        and isinstance(target.value, ast.Name)
                        and target.value.id == "self"
                    ):
                        fields.append(target.attr)
    return list(dict.fromkeys(fields))


def module_name_for(path: str) -> str:
    """Return the module name of a Python file (package name for __init__)."""
    file_path = Path(path)
    if file_path.stem == "__init__":
        return file_path.parent.name
    return file_path.stem


@register_extractor
class PythonExtractor(BaseExtractor):
    """Extractor for Python source files."""

    @property
    def family(self) -> LanguageFamily:
        """Return family identifier."""
        return LanguageFamily.PYTHON

    @property
    def extensions(self) -> tuple[str, ...]:
        """Return Python file suffixes."""
        return (".py",)

    @property
    def comment_prefix(self) -> str:
        """Return Python comment prefix."""
        return "#"

    @property
    def has_parser(self) -> bool:
        """Python files are parsed with ``ast``."""
        return True

    @property
    def test_suffixes(self) -> tuple[str, ...]:
        """Return test file endings."""
        return ("_test.py",)

    @property
    def test_prefixes(self) -> tuple[str, ...]:
        """Return test file beginnings."""
        return ("test_", "conftest")

    def extract_source(self, source: str, path: str) -> FileFingerprint:
        """Parse Python source into a fingerprint.

        Raises:
            ParseError: On a syntax error.

        """
        try:
            tree = ast.parse(source, filename=path)
        except SyntaxError as e:
            raise ParseError(
                f"Syntax error: {e.msg}",
                path=path,
                family=self.family.value,
                line=e.lineno,
            ) from e
        except ValueError as e:
            # source containing null bytes
            raise ParseError(str(e), path=path, family=self.family.value) from e

        imports: list[str] = []
        functions: list[FunctionSignature] = []
        types: list[TypeDeclaration] = []
        histogram: Counter[str] = Counter()
        has_error_handling = False

        for node in ast.walk(tree):
            histogram[type(node).__name__] += 1
            if isinstance(node, ast.Import | ast.ImportFrom):
                imports.extend(_import_names(node))
            elif isinstance(node, ast.If | ast.IfExp | ast.While) and not has_error_handling:
                has_error_handling = _compares_against_none(node.test)

        for stmt in tree.body:
            if isinstance(stmt, ast.FunctionDef | ast.AsyncFunctionDef):
                functions.append(FunctionSignature(name=stmt.name, line_number=stmt.lineno))
            elif isinstance(stmt, ast.ClassDef):
                types.append(self._type_declaration(stmt))
                for member in stmt.body:
                    if isinstance(member, ast.FunctionDef | ast.AsyncFunctionDef):
                        functions.append(
                            FunctionSignature(
                                name=member.name,
                                receiver=stmt.name,
                                line_number=member.lineno,
                            )
                        )

        return FileFingerprint(
            path=path,
            family=self.family,
            module=module_name_for(path),
            imports=dedupe_preserving_order(imports),
            functions=tuple(functions),
            types=tuple(types),
            node_histogram=dict(histogram),
            has_error_handling=has_error_handling,
        )

    def _type_declaration(self, node: ast.ClassDef) -> TypeDeclaration:
        bases = {_base_name(b) for b in node.bases}
        bases.update(_base_name(kw.value) for kw in node.keywords if kw.arg == "metaclass")
        if bases & _INTERFACE_BASES:
            return TypeDeclaration(name=node.name, kind=TypeKind.INTERFACE, line_number=node.lineno)
        return TypeDeclaration(
            name=node.name,
            kind=TypeKind.STRUCT,
            fields=tuple(_class_fields(node)),
            line_number=node.lineno,
        )
