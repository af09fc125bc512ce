"""Shared fixtures for sourcegen_inlining tests."""

from collections.abc import Callable

import pytest
from tree_sitter import Node

from sourcegen_inlining.parser import CSharpParser, SourceDocument
from sourcegen_inlining.syntax import find_nodes_by_type


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: end-to-end tests running the whole generator",
    )


@pytest.fixture(scope="session")
def csharp_parser() -> CSharpParser:
    """Parser shared by all tests (tree-sitter parsers are reusable)."""
    return CSharpParser()


@pytest.fixture
def parse(csharp_parser: CSharpParser) -> Callable[..., SourceDocument]:
    """Parse a C# snippet into a SourceDocument."""

    def _parse(source_code: str, path: str = "Sample.cs") -> SourceDocument:
        return csharp_parser.parse_document(source_code, path)

    return _parse


@pytest.fixture
def method_named() -> Callable[[SourceDocument, str], Node]:
    """Find the first method declaration with a given name in a document."""

    def _method_named(document: SourceDocument, name: str) -> Node:
        for method in find_nodes_by_type(document.root_node, "method_declaration"):
            name_node = method.child_by_field_name("name")
            if name_node is not None and document.text(name_node) == name:
                return method
        raise AssertionError(f"Method '{name}' not found in {document.path}")

    return _method_named
