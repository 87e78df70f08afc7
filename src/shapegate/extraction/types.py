"""Fingerprint types produced by the structural extractors.

Fingerprints are ephemeral: created fresh on every extraction call and
never persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from shapegate.core.types import LanguageFamily, NodeHistogram, TypeKind


@dataclass(frozen=True, slots=True)
class FunctionSignature:
    """A function or method declaration.

    Attributes:
        name: Declared name.
        receiver: Owning type for methods, None for free functions.
        line_number: 1-based declaration line (0 if unknown).

    """

    name: str
    receiver: str | None = None
    line_number: int = 0

    @property
    def is_method(self) -> bool:
        """Return True when the function is bound to a receiver type."""
        return self.receiver is not None


@dataclass(frozen=True, slots=True)
class TypeDeclaration:
    """A type declaration.

    Attributes:
        name: Declared type name.
        kind: struct-like or interface-like.
        fields: Field names, populated for struct-like types only.
        line_number: 1-based declaration line (0 if unknown).

    """

    name: str
    kind: TypeKind
    fields: tuple[str, ...] = ()
    line_number: int = 0


@dataclass(frozen=True, slots=True)
class FileFingerprint:
    """Structural summary of one source file.

    Attributes:
        path: Path the file was read from.
        family: Language family the file was parsed as.
        module: Package or module name (Go package clause, Python module,
            script file stem).
        imports: Import identifiers, declaration order, duplicates removed.
        functions: Function and method signatures in declaration order.
        types: Type declarations in declaration order.
        node_histogram: Node kind -> count over the whole parse tree. None
            when the family has no full parser.
        has_error_handling: True when a conditional compares a value against
            the family's null sentinel.

    """

    path: str
    family: LanguageFamily
    module: str = ""
    imports: tuple[str, ...] = ()
    functions: tuple[FunctionSignature, ...] = ()
    types: tuple[TypeDeclaration, ...] = ()
    node_histogram: NodeHistogram | None = field(default=None, compare=True, hash=False)
    has_error_handling: bool = False

    @property
    def function_names(self) -> list[str]:
        """Return declared function names in order."""
        return [fn.name for fn in self.functions]

    @property
    def type_names(self) -> list[str]:
        """Return declared type names in order."""
        return [t.name for t in self.types]

    @property
    def has_histogram(self) -> bool:
        """Return True when a node-kind histogram was collected."""
        return self.node_histogram is not None

    def __repr__(self) -> str:
        """Return a compact representation."""
        return (
            f"FileFingerprint(path={self.path!r}, family={self.family.value!r}, "
            f"imports={len(self.imports)}, functions={len(self.functions)}, "
            f"types={len(self.types)}, histogram={self.has_histogram})"
        )


def dedupe_preserving_order(items: list[str]) -> tuple[str, ...]:
    """Remove duplicates while keeping first-seen order."""
    return tuple(dict.fromkeys(items))
