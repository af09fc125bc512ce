"""Utility functions for C# syntax tree traversal.

These helpers wrap common tree-sitter operations used by every stage of the
inlining pipeline: locating nodes by type, walking ancestors, and turning
identifier tokens into the names the host compiler reports.
"""

from tree_sitter import Node

# C# reserved keywords; a local or parameter with one of these names must be
# written with the verbatim '@' prefix.
_RESERVED_KEYWORDS = frozenset(
    {
        "abstract", "as", "base", "bool", "break", "byte", "case", "catch",
        "char", "checked", "class", "const", "continue", "decimal", "default",
        "delegate", "do", "double", "else", "enum", "event", "explicit",
        "extern", "false", "finally", "fixed", "float", "for", "foreach",
        "goto", "if", "implicit", "in", "int", "interface", "internal", "is",
        "lock", "long", "namespace", "new", "null", "object", "operator",
        "out", "override", "params", "private", "protected", "public",
        "readonly", "ref", "return", "sbyte", "sealed", "short", "sizeof",
        "stackalloc", "static", "string", "struct", "switch", "this", "throw",
        "true", "try", "typeof", "uint", "ulong", "unchecked", "unsafe",
        "ushort", "using", "virtual", "void", "volatile", "while",
    }
)  # fmt: skip

TYPE_DECLARATION_TYPES = frozenset(
    {
        "class_declaration",
        "struct_declaration",
        "record_declaration",
        "record_struct_declaration",
        "interface_declaration",
    }
)

NAMESPACE_DECLARATION_TYPES = frozenset(
    {"namespace_declaration", "file_scoped_namespace_declaration"}
)


def find_nodes_by_type(node: Node, node_type: str) -> list[Node]:
    """Find all descendant nodes of a specific type (recursive).

    Args:
        node: Root node to search from
        node_type: Type of nodes to find

    Returns:
        List of matching nodes (depth-first, source order)

    """
    results: list[Node] = []
    _collect_nodes_by_type(node, node_type, results)
    return results


def find_child_by_type(node: Node, child_type: str) -> Node | None:
    """Find the first direct child of a specific type."""
    for child in node.children:
        if child.type == child_type:
            return child
    return None


def find_children_by_type(node: Node, child_type: str) -> list[Node]:
    """Find all direct children of a specific type."""
    return [child for child in node.children if child.type == child_type]


def child_by_fields(node: Node, *field_names: str) -> Node | None:
    """Return the child stored under the first field name that is present.

    Grammar releases have renamed some fields (``type`` became ``returns`` on
    method declarations), so callers list every spelling they accept.
    """
    for field_name in field_names:
        child = node.child_by_field_name(field_name)
        if child is not None:
            return child
    return None


def ancestors(node: Node) -> list[Node]:
    """Return all ancestors of ``node``, innermost first."""
    result: list[Node] = []
    current = node.parent
    while current is not None:
        result.append(current)
        current = current.parent
    return result


def same_node(left: Node | None, right: Node | None) -> bool:
    """Check whether two node handles refer to the same syntax node."""
    if left is None or right is None:
        return False
    return (left.type, left.start_byte, left.end_byte) == (
        right.type,
        right.start_byte,
        right.end_byte,
    )


def contains(outer: Node, inner: Node) -> bool:
    """Check whether ``inner`` lies within the byte range of ``outer``."""
    return outer.start_byte <= inner.start_byte and inner.end_byte <= outer.end_byte


def normalise_identifier(text: str) -> str:
    """Strip the verbatim '@' prefix the way symbol names are reported."""
    return text[1:] if text.startswith("@") else text


def escape_identifier(name: str) -> str:
    """Prefix reserved keywords with '@' so they are legal C# identifiers."""
    if name in _RESERVED_KEYWORDS:
        return f"@{name}"
    return name


def _collect_nodes_by_type(node: Node, node_type: str, results: list[Node]) -> None:
    if node.type == node_type:
        results.append(node)

    for child in node.children:
        _collect_nodes_by_type(child, node_type, results)
