"""Tests for C# source parsing."""

from pathlib import Path

import pytest

from sourcegen_inlining.errors import ParserError
from sourcegen_inlining.parser import CSharpParser
from sourcegen_inlining.syntax import find_nodes_by_type

SAMPLE_CSHARP_CODE = """
using System;

namespace Demo
{
    public class Café
    {
        public void Run() { Console.WriteLine("é"); }
    }
}
"""


class TestCSharpParser:
    """Test parsing C# source into documents."""

    def test_parse_returns_compilation_unit(self, csharp_parser: CSharpParser) -> None:
        """Test that parsing yields a compilation unit root."""
        document = csharp_parser.parse_document(SAMPLE_CSHARP_CODE)

        assert document.root_node.type == "compilation_unit"
        assert not document.root_node.has_error
        assert document.path == "<memory>"

    def test_document_text_uses_byte_offsets(self, csharp_parser: CSharpParser) -> None:
        """Test that node text is exact even after multi-byte characters."""
        document = csharp_parser.parse_document(SAMPLE_CSHARP_CODE, "Cafe.cs")

        (method,) = find_nodes_by_type(document.root_node, "method_declaration")

        assert document.path == "Cafe.cs"
        assert document.text(method) == (
            'public void Run() { Console.WriteLine("é"); }'
        )

    def test_parse_file(self, csharp_parser: CSharpParser, tmp_path: Path) -> None:
        """Test parsing a file from disk keeps its path."""
        source_file = tmp_path / "Sample.cs"
        source_file.write_text(SAMPLE_CSHARP_CODE, encoding="utf-8")

        document = csharp_parser.parse_file(source_file)

        assert document.path == str(source_file)
        assert document.source_code == SAMPLE_CSHARP_CODE

    def test_parse_missing_file_raises(
        self, csharp_parser: CSharpParser, tmp_path: Path
    ) -> None:
        """Test that an unreadable file raises ParserError."""
        with pytest.raises(ParserError, match="Cannot read source file"):
            csharp_parser.parse_file(tmp_path / "Missing.cs")

    def test_syntax_errors_are_tolerated(self, csharp_parser: CSharpParser) -> None:
        """Test that broken source still yields a document."""
        document = csharp_parser.parse_document("class A { void M( { }")

        assert document.root_node.has_error

    @pytest.mark.parametrize(
        ("file_name", "expected"),
        [("Program.cs", True), ("Program.CS", True), ("Program.java", False)],
        ids=["lowercase", "uppercase", "other_language"],
    )
    def test_is_supported_file(self, file_name: str, expected: bool) -> None:
        """Test supported file detection by extension."""
        assert CSharpParser.is_supported_file(Path(file_name)) is expected
