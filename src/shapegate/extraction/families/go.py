"""Go extractor, backed by tree-sitter and the tree-sitter-go grammar.

Node kinds in the histogram are tree-sitter named node types (anonymous
punctuation tokens are not counted).
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterator
from functools import lru_cache

import tree_sitter_go
from tree_sitter import Language, Node, Parser

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

logger = logging.getLogger(__name__)

_NULL_COMPARISON_OPERATORS = frozenset({"!=", "=="})


@lru_cache(maxsize=1)
def _go_language() -> Language:
    return Language(tree_sitter_go.language())


def _text(node: Node | None) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8", errors="replace")


def _walk(root: Node) -> Iterator[Node]:
    """Yield every node of the tree in pre-order."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def _first_error_line(root: Node) -> int | None:
    for node in _walk(root):
        if node.is_error or node.is_missing:
            return node.start_point[0] + 1
    return None


def _receiver_type(receiver: Node | None) -> str | None:
    """Return the receiver's base type name with any pointer stripped."""
    if receiver is None:
        return None
    for param in receiver.named_children:
        if param.type != "parameter_declaration":
            continue
        type_node = param.child_by_field_name("type")
        while type_node is not None and type_node.type in ("pointer_type", "generic_type"):
            if type_node.type == "generic_type":
                type_node = type_node.child_by_field_name("type")
            else:
                type_node = type_node.named_children[0] if type_node.named_children else None
        name = _text(type_node)
        return name or None
    return None


def _struct_fields(struct_node: Node) -> list[str]:
    fields: list[str] = []
    # Direct fields only; nested anonymous structs keep their own fields
    declarations = [
        child
        for field_list in struct_node.named_children
        if field_list.type == "field_declaration_list"
        for child in field_list.named_children
        if child.type == "field_declaration"
    ]
    for child in declarations:
        names = child.children_by_field_name("name")
        if names:
            fields.extend(_text(n) for n in names)
        else:
            # embedded field: the type name doubles as the field name
            embedded = child.child_by_field_name("type")
            if embedded is not None:
                fields.append(_text(embedded).lstrip("*"))
    return fields


def _compares_against_nil(condition: Node | None) -> bool:
    if condition is None:
        return False
    for node in _walk(condition):
        if node.type != "binary_expression":
            continue
        operator = node.child_by_field_name("operator")
        if _text(operator) not in _NULL_COMPARISON_OPERATORS:
            continue
        left = node.child_by_field_name("left")
        right = node.child_by_field_name("right")
        if (left is not None and left.type == "nil") or (right is not None and right.type == "nil"):
            return True
    return False


@register_extractor
class GoExtractor(BaseExtractor):
    """Extractor for Go source files."""

    @property
    def family(self) -> LanguageFamily:
        """Return family identifier."""
        return LanguageFamily.GO

    @property
    def extensions(self) -> tuple[str, ...]:
        """Return Go file suffixes."""
        return (".go",)

    @property
    def comment_prefix(self) -> str:
        """Return Go comment prefix."""
        return "//"

    @property
    def has_parser(self) -> bool:
        """Go files are parsed with tree-sitter."""
        return True

    @property
    def test_suffixes(self) -> tuple[str, ...]:
        """Return test file endings."""
        return ("_test.go",)

    def extract_source(self, source: str, path: str) -> FileFingerprint:
        """Parse Go source into a fingerprint.

        Raises:
            ParseError: When the tree contains error or missing nodes.

        """
        # Parser instances are not thread-safe; one per call
        parser = Parser(_go_language())
        tree = parser.parse(source.encode("utf-8"))
        root = tree.root_node
        if root.has_error:
            raise ParseError(
                "Syntax error",
                path=path,
                family=self.family.value,
                line=_first_error_line(root),
            )

        module = ""
        imports: list[str] = []
        functions: list[FunctionSignature] = []
        types: list[TypeDeclaration] = []
        histogram: Counter[str] = Counter()
        has_error_handling = False

        for node in _walk(root):
            if node.is_named:
                histogram[node.type] += 1

            if node.type == "package_clause" and not module:
                module = _text(node.named_children[0]) if node.named_children else ""
            elif node.type == "import_spec":
                imports.append(_text(node.child_by_field_name("path")).strip('"`'))
            elif node.type == "function_declaration":
                functions.append(
                    FunctionSignature(
                        name=_text(node.child_by_field_name("name")),
                        line_number=node.start_point[0] + 1,
                    )
                )
            elif node.type == "method_declaration":
                functions.append(
                    FunctionSignature(
                        name=_text(node.child_by_field_name("name")),
                        receiver=_receiver_type(node.child_by_field_name("receiver")),
                        line_number=node.start_point[0] + 1,
                    )
                )
            elif node.type == "type_spec":
                types.append(self._type_declaration(node))
            elif node.type == "if_statement" and not has_error_handling:
                has_error_handling = _compares_against_nil(node.child_by_field_name("condition"))

        return FileFingerprint(
            path=path,
            family=self.family,
            module=module,
            imports=dedupe_preserving_order(imports),
            functions=tuple(functions),
            types=tuple(types),
            node_histogram=dict(histogram),
            has_error_handling=has_error_handling,
        )

    def _type_declaration(self, node: Node) -> TypeDeclaration:
        name = _text(node.child_by_field_name("name"))
        type_node = node.child_by_field_name("type")
        line_number = node.start_point[0] + 1
        if type_node is not None and type_node.type == "interface_type":
            return TypeDeclaration(name=name, kind=TypeKind.INTERFACE, line_number=line_number)
        fields: tuple[str, ...] = ()
        if type_node is not None and type_node.type == "struct_type":
            fields = tuple(_struct_fields(type_node))
        return TypeDeclaration(
            name=name, kind=TypeKind.STRUCT, fields=fields, line_number=line_number
        )
