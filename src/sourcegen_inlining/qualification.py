"""Qualification of generated members with their declaration context.

Generated members must land in a partial declaration of the same type, in
the same namespace, with the same using directives in scope. This module
captures that context from the syntax tree and renders a complete,
independently compilable file around a set of member declarations.
"""

from dataclasses import dataclass, field

from tree_sitter import Node

from sourcegen_inlining.errors import DeclaringTypeNotFoundError
from sourcegen_inlining.parser import SourceDocument
from sourcegen_inlining.syntax import (
    NAMESPACE_DECLARATION_TYPES,
    TYPE_DECLARATION_TYPES,
    ancestors,
    child_by_fields,
    find_child_by_type,
    find_children_by_type,
)

AUTO_GENERATED_HEADER = "// <auto-generated/>"
_INDENT = "    "
_TYPE_KEYWORDS = ("record", "class", "struct", "interface")
_FILE_NAME_SUFFIX = ".g.cs"


@dataclass(frozen=True, slots=True)
class ContainingType:
    """One type declaration in the containing chain."""

    keyword: str
    name: str
    type_parameter_list: str = ""

    def declaration(self) -> str:
        return f"partial {self.keyword} {self.name}{self.type_parameter_list}"


@dataclass(frozen=True)
class QualifiedDeclarationInfo:
    """Declaration context of a member: usings, namespace and type chain."""

    types: tuple[ContainingType, ...]
    namespace: str | None = None
    usings: tuple[str, ...] = ()
    namespace_usings: tuple[str, ...] = ()
    extern_aliases: tuple[str, ...] = field(default=())

    @classmethod
    def from_member(
        cls, member_node: Node, document: SourceDocument
    ) -> "QualifiedDeclarationInfo":
        """Capture the declaration context enclosing ``member_node``.

        Raises:
            DeclaringTypeNotFoundError: If the member is not inside a type

        """
        type_nodes = [a for a in ancestors(member_node) if a.type in TYPE_DECLARATION_TYPES]
        if not type_nodes:
            raise DeclaringTypeNotFoundError(
                "Member is not declared inside a class, struct, record or interface"
            )
        return cls.from_syntax(type_nodes[0], document)

    @classmethod
    def from_syntax(
        cls, type_node: Node, document: SourceDocument
    ) -> "QualifiedDeclarationInfo":
        """Capture the declaration context of a type declaration node."""
        type_chain = [type_node] + [
            a for a in ancestors(type_node) if a.type in TYPE_DECLARATION_TYPES
        ]
        types = tuple(_containing_type(node, document) for node in reversed(type_chain))

        namespace_nodes = [
            a for a in ancestors(type_node) if a.type in NAMESPACE_DECLARATION_TYPES
        ]
        file_scoped = _file_scoped_namespace(type_node, document)
        if file_scoped is not None and not any(
            n.start_byte == file_scoped.start_byte for n in namespace_nodes
        ):
            namespace_nodes.append(file_scoped)
        namespace_nodes.reverse()

        namespace_parts = [
            document.text(name)
            for name in (n.child_by_field_name("name") for n in namespace_nodes)
            if name is not None
        ]
        namespace_usings: list[str] = []
        for namespace_node in namespace_nodes:
            container = child_by_fields(namespace_node, "body") or namespace_node
            namespace_usings.extend(_usings(container, document))

        root = document.root_node
        return cls(
            types=types,
            namespace=".".join(namespace_parts) or None,
            usings=tuple(_usings(root, document)),
            namespace_usings=tuple(namespace_usings),
            extern_aliases=tuple(
                document.text(n)
                for n in find_children_by_type(root, "extern_alias_directive")
            ),
        )

    @property
    def member_indent(self) -> str:
        """Indentation of a member declared inside the rendered wrappers."""
        depth = len(self.types) + (1 if self.namespace else 0)
        return _INDENT * depth

    def render(self, members: str, preamble: tuple[str, ...] | list[str] = ()) -> str:
        """Render a complete C# file declaring ``members`` in this context.

        Args:
            members: Member declarations, inserted verbatim
            preamble: Lines emitted before any using directive
                (preprocessor directives such as ``#define``)

        """
        lines: list[str] = [AUTO_GENERATED_HEADER, *preamble, *self.extern_aliases]
        lines.extend(self.usings)
        lines.append("")

        depth = 0
        if self.namespace:
            lines.append(f"namespace {self.namespace}")
            lines.append("{")
            depth += 1
            lines.extend(_INDENT * depth + using for using in self.namespace_usings)

        for containing_type in self.types:
            lines.append(_INDENT * depth + containing_type.declaration())
            lines.append(_INDENT * depth + "{")
            depth += 1

        lines.append(members.rstrip("\r\n"))

        while depth > 0:
            depth -= 1
            lines.append(_INDENT * depth + "}")

        return "\n".join(lines) + "\n"

    def suggested_file_name(self, member_name: str) -> str:
        """File name for a generated member: ``Namespace.Outer.Inner.member.g.cs``."""
        parts: list[str] = []
        if self.namespace:
            parts.append(self.namespace)
        parts.extend(t.name for t in self.types)
        parts.append(member_name)
        return ".".join(parts) + _FILE_NAME_SUFFIX


def _containing_type(node: Node, document: SourceDocument) -> ContainingType:
    name_node = node.child_by_field_name("name")
    name = document.text(name_node) if name_node is not None else "Unknown"
    type_parameters = child_by_fields(node, "type_parameters") or find_child_by_type(
        node, "type_parameter_list"
    )

    keywords = [
        document.text(child)
        for child in node.children
        if not child.is_named and document.text(child) in _TYPE_KEYWORDS
    ]
    if not keywords:
        keywords = [node.type.removesuffix("_declaration").replace("_", " ")]

    return ContainingType(
        keyword=" ".join(keywords),
        name=name,
        type_parameter_list=document.text(type_parameters) if type_parameters else "",
    )


def _usings(container: Node, document: SourceDocument) -> list[str]:
    usings: list[str] = []
    for using in find_children_by_type(container, "using_directive"):
        text = document.text(using)
        # Global usings already apply to every file of the compilation
        if text.startswith("global "):
            continue
        usings.append(text)
    return usings


def _file_scoped_namespace(type_node: Node, document: SourceDocument) -> Node | None:
    namespaces = [
        n
        for n in find_children_by_type(
            document.root_node, "file_scoped_namespace_declaration"
        )
        if n.start_byte < type_node.start_byte
    ]
    return namespaces[-1] if namespaces else None
