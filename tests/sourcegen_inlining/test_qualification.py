"""Tests for capturing and rendering declaration contexts."""

from collections.abc import Callable

import pytest
from tree_sitter import Node

from sourcegen_inlining.errors import DeclaringTypeNotFoundError
from sourcegen_inlining.parser import SourceDocument
from sourcegen_inlining.qualification import (
    AUTO_GENERATED_HEADER,
    ContainingType,
    QualifiedDeclarationInfo,
)

ParseFn = Callable[..., SourceDocument]
MethodNamed = Callable[[SourceDocument, str], Node]

NESTED_TYPES = """global using System.Linq;
using System;
using static System.Math;

namespace Demo.Numbers
{
    using System.Text;

    public partial class Outer<T>
    {
        internal partial struct Inner
        {
            public static int Sum(Span<int> values) { return 0; }
        }
    }
}
"""

FILE_SCOPED_NAMESPACE = """using System;

namespace Demo;

public partial record Point
{
    public void Move() { }
}
"""

GLOBAL_NAMESPACE = """public partial class Program
{
    static void Main() { }
}
"""


class TestQualifiedDeclarationInfo:
    """Test capturing namespace, usings and containing types."""

    def test_nested_types_in_block_namespace(
        self, parse: ParseFn, method_named: MethodNamed
    ) -> None:
        """Test the declaration context of a member of a nested type."""
        document = parse(NESTED_TYPES)

        info = QualifiedDeclarationInfo.from_member(
            method_named(document, "Sum"), document
        )

        assert info.namespace == "Demo.Numbers"
        assert info.types == (
            ContainingType("class", "Outer", "<T>"),
            ContainingType("struct", "Inner"),
        )
        assert info.usings == ("using System;", "using static System.Math;")
        assert info.namespace_usings == ("using System.Text;",)

    def test_render_wraps_members(
        self, parse: ParseFn, method_named: MethodNamed
    ) -> None:
        """Test that rendering reproduces the context around the members."""
        document = parse(NESTED_TYPES)
        info = QualifiedDeclarationInfo.from_member(
            method_named(document, "Sum"), document
        )

        text = info.render("void Generated() { }\n", preamble=["#define SOURCEGEN"])

        assert text == (
            f"{AUTO_GENERATED_HEADER}\n"
            "#define SOURCEGEN\n"
            "using System;\n"
            "using static System.Math;\n"
            "\n"
            "namespace Demo.Numbers\n"
            "{\n"
            "    using System.Text;\n"
            "    partial class Outer<T>\n"
            "    {\n"
            "        partial struct Inner\n"
            "        {\n"
            "void Generated() { }\n"
            "        }\n"
            "    }\n"
            "}\n"
        )

    def test_suggested_file_name(
        self, parse: ParseFn, method_named: MethodNamed
    ) -> None:
        """Test that file names are qualified by namespace and type chain."""
        document = parse(NESTED_TYPES)
        info = QualifiedDeclarationInfo.from_member(
            method_named(document, "Sum"), document
        )

        assert info.suggested_file_name("Sum") == "Demo.Numbers.Outer.Inner.Sum.g.cs"

    def test_member_indent_counts_wrappers(
        self, parse: ParseFn, method_named: MethodNamed
    ) -> None:
        """Test that members are indented one level per rendered wrapper."""
        nested = parse(NESTED_TYPES)
        top_level = parse(GLOBAL_NAMESPACE)

        nested_info = QualifiedDeclarationInfo.from_member(
            method_named(nested, "Sum"), nested
        )
        top_level_info = QualifiedDeclarationInfo.from_member(
            method_named(top_level, "Main"), top_level
        )

        assert nested_info.member_indent == " " * 12
        assert top_level_info.member_indent == " " * 4

    def test_file_scoped_namespace(
        self, parse: ParseFn, method_named: MethodNamed
    ) -> None:
        """Test a record declared under a file-scoped namespace."""
        document = parse(FILE_SCOPED_NAMESPACE)

        info = QualifiedDeclarationInfo.from_member(
            method_named(document, "Move"), document
        )

        assert info.namespace == "Demo"
        assert info.types == (ContainingType("record", "Point"),)
        assert info.suggested_file_name("Move") == "Demo.Point.Move.g.cs"

    def test_global_namespace(self, parse: ParseFn, method_named: MethodNamed) -> None:
        """Test a type declared outside any namespace."""
        document = parse(GLOBAL_NAMESPACE)

        info = QualifiedDeclarationInfo.from_member(
            method_named(document, "Main"), document
        )
        text = info.render("void M() { }")

        assert info.namespace is None
        assert "namespace" not in text
        assert text.endswith("partial class Program\n{\nvoid M() { }\n}\n")
        assert info.suggested_file_name("Main") == "Program.Main.g.cs"

    def test_member_outside_type_raises(self, parse: ParseFn) -> None:
        """Test that a member needs a containing type."""
        document = parse(GLOBAL_NAMESPACE)

        with pytest.raises(DeclaringTypeNotFoundError):
            QualifiedDeclarationInfo.from_member(document.root_node, document)
