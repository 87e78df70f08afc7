"""Tests for the regex-based TypeScript/JavaScript extractor."""

import pytest

from shapegate.core.types import LanguageFamily, TypeKind
from shapegate.extraction import get_extractor


@pytest.fixture
def extractor():
    """Shared TypeScript extractor."""
    return get_extractor(LanguageFamily.TYPESCRIPT)


class TestTypeScriptExtraction:
    """Heuristic fingerprint of a component module."""

    def test_imports(self, extractor, typescript_source: str) -> None:
        """Default, named and type-only imports are captured."""
        fp = extractor.extract_source(typescript_source, "src/components/UserCard.tsx")
        assert fp.imports == ("react", "../types/user")

    def test_functions(self, extractor, typescript_source: str) -> None:
        """Arrow functions and function declarations are captured once each."""
        fp = extractor.extract_source(typescript_source, "src/components/UserCard.tsx")
        assert fp.function_names == ["UserCard", "formatName"]
        assert all(fn.receiver is None for fn in fp.functions)

    def test_types(self, extractor, typescript_source: str) -> None:
        """Interfaces are interface-like; classes are struct-like without fields."""
        fp = extractor.extract_source(typescript_source, "src/components/UserCard.tsx")
        assert [(t.name, t.kind) for t in fp.types] == [
            ("UserCardProps", TypeKind.INTERFACE),
            ("Store", TypeKind.STRUCT),
        ]
        assert all(t.fields == () for t in fp.types)

    def test_no_histogram(self, extractor, typescript_source: str) -> None:
        """Regex extraction never produces a histogram."""
        fp = extractor.extract_source(typescript_source, "src/components/UserCard.tsx")
        assert fp.node_histogram is None
        assert not fp.has_histogram

    def test_null_check(self, extractor, typescript_source: str) -> None:
        """`=== null` inside an if condition is error handling."""
        fp = extractor.extract_source(typescript_source, "src/components/UserCard.tsx")
        assert fp.has_error_handling is True
        plain = extractor.extract_source("export const a = 1;\n", "src/a.ts")
        assert plain.has_error_handling is False

    def test_null_check_on_call_result(self, extractor) -> None:
        """Comparing a call's result against null counts as error handling."""
        source = "const load = () => {\n  if (getUser(id) === null) { return }\n};\n"
        fp = extractor.extract_source(source, "src/load.ts")
        assert fp.has_error_handling is True

    def test_module_is_name_before_first_dot(self, extractor) -> None:
        """Button.stories.tsx has module "Button"."""
        fp = extractor.extract_source("", "src/Button.stories.tsx")
        assert fp.module == "Button"

    def test_typed_arrow_function(self, extractor) -> None:
        """Arrow functions with a type annotation on the binding are captured."""
        source = "export const useCounter: Hook = () => {\n  return 1;\n};\n"
        fp = extractor.extract_source(source, "src/hooks/useCounter.ts")
        assert fp.function_names == ["useCounter"]

    def test_spec_files_are_tests(self, extractor) -> None:
        """.test.ts and .spec.tsx files are test files."""
        assert extractor.is_test_file("src/a.test.ts")
        assert extractor.is_test_file("src/b.spec.tsx")
        assert not extractor.is_test_file("src/b.tsx")
