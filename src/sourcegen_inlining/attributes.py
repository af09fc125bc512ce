"""Attribute detection and constant evaluation of attribute arguments.

Attributes are matched by name the way the C# compiler binds them: the
``Attribute`` suffix is optional, and the written name may be qualified with
a namespace, a containing type, or an extern alias (``global::``).
"""

import re
from dataclasses import dataclass

from tree_sitter import Node

from sourcegen_inlining.parser import SourceDocument
from sourcegen_inlining.syntax import find_child_by_type, find_children_by_type

_ATTRIBUTE_SUFFIX = "Attribute"

# Escape sequences of regular (non-verbatim) string literals
_ESCAPE_PATTERN = re.compile(
    r"\\(u[0-9a-fA-F]{4}|U[0-9a-fA-F]{8}|x[0-9a-fA-F]{1,4}|.)", re.DOTALL
)
_SIMPLE_ESCAPES = {
    "'": "'",
    '"': '"',
    "\\": "\\",
    "0": "\0",
    "a": "\a",
    "b": "\b",
    "e": "\x1b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
}
_GENERIC_ARGUMENTS = re.compile(r"<[^<>]*>")
_NAMEOF_IDENTIFIER = re.compile(r"@?([A-Za-z_][A-Za-z0-9_]*)\s*(?:<[^()]*>)?\s*\)\s*$")


@dataclass(frozen=True, slots=True)
class AttributeArgument:
    """One argument of an attribute usage.

    Attributes:
        name: Parameter or property name for named arguments, else None
        value: Evaluated constant value (str, None, or raw source text)
        is_property: True for ``Name = value`` property assignments

    """

    name: str | None
    value: str | None
    is_property: bool = False


@dataclass(frozen=True, slots=True)
class AttributeData:
    """A declared attribute with its evaluated arguments."""

    name: str
    arguments: tuple[AttributeArgument, ...] = ()

    @property
    def constructor_arguments(self) -> tuple[AttributeArgument, ...]:
        """Arguments bound to constructor parameters (not property setters)."""
        return tuple(arg for arg in self.arguments if not arg.is_property)

    def first_constructor_value(self) -> str | None:
        """Return the value of the first constructor argument, if any."""
        constructor_arguments = self.constructor_arguments
        if not constructor_arguments:
            return None
        return constructor_arguments[0].value

    def matches(self, name: str) -> bool:
        """Check whether this attribute binds to the attribute called ``name``."""
        return attribute_name_matches(self.name, name)


def attribute_name_matches(written_name: str, name: str) -> bool:
    """Check whether an attribute written as ``written_name`` binds to ``name``.

    ``name`` may itself be dotted (``Inline.Public``) to target a nested
    attribute class; the written name must then end with the same segments.

    Examples:
        >>> attribute_name_matches("global::Ns.GenerateInlinedAttribute", "GenerateInlined")
        True
        >>> attribute_name_matches("Inline.Public", "Inline")
        False

    """
    written_segments = _name_segments(written_name)
    wanted_segments = _name_segments(name)
    if not written_segments or len(written_segments) < len(wanted_segments):
        return False

    tail = written_segments[-len(wanted_segments) :]
    if tail[:-1] != wanted_segments[:-1]:
        return False
    return _strip_suffix(tail[-1]) == _strip_suffix(wanted_segments[-1])


def find_attributes(
    node: Node, name: str, document: SourceDocument
) -> list[AttributeData]:
    """Return the attributes named ``name`` declared directly on ``node``."""
    return [
        attribute
        for attribute in declared_attributes(node, document)
        if attribute.matches(name)
    ]


def has_attribute(node: Node, name: str, document: SourceDocument) -> bool:
    """Answer whether ``node`` carries the attribute called ``name``."""
    return bool(find_attributes(node, name, document))


def declared_attributes(node: Node, document: SourceDocument) -> list[AttributeData]:
    """Read every attribute declared directly on ``node``, in source order."""
    attributes: list[AttributeData] = []
    for attribute_list in find_children_by_type(node, "attribute_list"):
        for attribute in find_children_by_type(attribute_list, "attribute"):
            attributes.append(_read_attribute(attribute, document))
    return attributes


def evaluate_constant(node: Node, document: SourceDocument) -> str | None:
    """Evaluate a constant expression used as an attribute argument.

    Supports regular, verbatim and raw string literals, ``nameof(...)``,
    ``null``, parentheses and ``+`` concatenation of strings. Any other
    expression evaluates to its own source text.
    """
    if node.type == "parenthesized_expression":
        inner = node.named_children
        if len(inner) == 1:
            return evaluate_constant(inner[0], document)

    if node.type == "binary_expression":
        operator = node.child_by_field_name("operator")
        left = node.child_by_field_name("left")
        right = node.child_by_field_name("right")
        if (
            operator is not None
            and left is not None
            and right is not None
            and document.text(operator) == "+"
        ):
            left_value = evaluate_constant(left, document)
            right_value = evaluate_constant(right, document)
            if left_value is not None and right_value is not None:
                return left_value + right_value

    return evaluate_literal_text(document.text(node))


def evaluate_literal_text(text: str) -> str | None:
    """Evaluate the source text of a single literal or ``nameof`` expression."""
    text = text.strip()
    if text == "null":
        return None
    if text.startswith("nameof"):
        match = _NAMEOF_IDENTIFIER.search(text)
        if match:
            return match.group(1)
        return text
    if text.endswith("u8"):
        text = text[:-2]
    if text.startswith('"""'):
        return _evaluate_raw_string(text)
    if text.startswith('@"'):
        return text[2:-1].replace('""', '"')
    if text.startswith('"') and text.endswith('"') and len(text) >= 2:
        return _ESCAPE_PATTERN.sub(_unescape, text[1:-1])
    return text


def _read_attribute(attribute: Node, document: SourceDocument) -> AttributeData:
    name_node = attribute.child_by_field_name("name") or attribute.named_children[0]
    name = document.text(name_node)

    arguments: list[AttributeArgument] = []
    argument_list = find_child_by_type(attribute, "attribute_argument_list")
    if argument_list is not None:
        for argument in find_children_by_type(argument_list, "attribute_argument"):
            arguments.append(_read_argument(argument, document))

    return AttributeData(name=name, arguments=tuple(arguments))


def _read_argument(argument: Node, document: SourceDocument) -> AttributeArgument:
    named = argument.named_children
    expression = named[-1]

    argument_name: str | None = None
    is_property = False
    if len(named) > 1 and named[0].type in ("name_colon", "name_equals"):
        prefix = document.text(named[0])
        argument_name = prefix.rstrip(":= \t\r\n")
        is_property = named[0].type == "name_equals"
        return AttributeArgument(
            name=argument_name,
            value=evaluate_constant(expression, document),
            is_property=is_property,
        )

    separators = [child for child in argument.children if not child.is_named]
    if len(named) > 1 and separators:
        separator = document.text(separators[0])
        if separator in ("=", ":"):
            argument_name = document.text(named[0])
            is_property = separator == "="

    return AttributeArgument(
        name=argument_name,
        value=evaluate_constant(expression, document),
        is_property=is_property,
    )


def _evaluate_raw_string(text: str) -> str:
    quote_count = len(text) - len(text.lstrip('"'))
    inner = text[quote_count:-quote_count].replace("\r\n", "\n")
    if "\n" not in inner:
        return inner

    lines = inner.split("\n")
    # The opening line is empty and the closing line holds only the
    # indentation that is removed from every content line.
    indentation = lines[-1]
    content_lines = lines[1:-1]
    return "\n".join(
        line[len(indentation) :] if line.startswith(indentation) else line.lstrip()
        for line in content_lines
    )


def _unescape(match: re.Match[str]) -> str:
    escape = match.group(1)
    if escape[0] in "uUx" and len(escape) > 1:
        return chr(int(escape[1:], 16))
    return _SIMPLE_ESCAPES.get(escape, escape)


def _name_segments(name: str) -> list[str]:
    name = "".join(name.split())
    if "::" in name:
        name = name.rsplit("::", 1)[1]
    previous = None
    while previous != name:
        previous = name
        name = _GENERIC_ARGUMENTS.sub("", name)
    return [segment for segment in name.split(".") if segment]


def _strip_suffix(segment: str) -> str:
    segment = segment.lstrip("@")
    if segment.endswith(_ATTRIBUTE_SUFFIX) and len(segment) > len(_ATTRIBUTE_SUFFIX):
        return segment[: -len(_ATTRIBUTE_SUFFIX)]
    return segment
