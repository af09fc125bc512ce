"""Semantic resolution of method symbols.

The host compiler normally answers "which method does this identifier
invoke?". ``SemanticModel`` is that interface; ``DeclarationIndex`` is the
default implementation, which indexes the method declarations of a set of
parsed documents and resolves invocations by name, receiver and arity.

Overload resolution is explicit: a lookup returns a ``SymbolResolution``
holding either one symbol or the candidate list, and the caller chooses a
tie-break policy.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from tree_sitter import Node

from sourcegen_inlining.attributes import AttributeData, declared_attributes
from sourcegen_inlining.errors import SymbolResolutionError
from sourcegen_inlining.parser import SourceDocument
from sourcegen_inlining.syntax import (
    TYPE_DECLARATION_TYPES,
    ancestors,
    child_by_fields,
    find_child_by_type,
    find_children_by_type,
    find_nodes_by_type,
    normalise_identifier,
)

logger = logging.getLogger(__name__)

_ACCESSIBILITY_MODIFIERS = ("public", "protected", "internal", "private", "file")
_DEFAULT_ACCESSIBILITY = "private"
_PARAMETER_NODE_TYPES = ("parameter", "parameter_array")


@dataclass(frozen=True, slots=True)
class ParameterSymbol:
    """A declared formal parameter of a method."""

    name: str
    type: str | None = None
    default_value: str | None = None
    modifiers: tuple[str, ...] = ()

    @property
    def is_optional(self) -> bool:
        return self.default_value is not None

    @property
    def is_params(self) -> bool:
        return "params" in self.modifiers

    @property
    def is_this(self) -> bool:
        return "this" in self.modifiers


@dataclass(frozen=True, slots=True)
class MethodSymbol:
    """Symbol information for a declared method.

    Attributes:
        name: Method name without the verbatim '@' prefix
        containing_types: Enclosing type names, outermost first
        accessibility: Declared accessibility (e.g. "public", "protected internal")
        is_static: Whether the method is static
        return_type: Return type source text
        parameters: Declared parameters in order
        type_parameter_list: Type parameter list text including brackets, or ""
        parameter_list: Parameter list text including parentheses
        constraint_clauses: ``where`` clauses text, or ""
        attributes: Declared attributes with evaluated arguments
        path: Path of the declaring document
        start_byte: Byte offset of the declaration in that document

    """

    name: str
    containing_types: tuple[str, ...]
    accessibility: str
    is_static: bool
    return_type: str
    parameters: tuple[ParameterSymbol, ...]
    type_parameter_list: str = ""
    parameter_list: str = "()"
    constraint_clauses: str = ""
    attributes: tuple[AttributeData, ...] = ()
    path: str = "<memory>"
    start_byte: int = 0

    @property
    def is_extension_method(self) -> bool:
        return self.is_static and bool(self.parameters) and self.parameters[0].is_this

    @property
    def containing_type(self) -> str | None:
        return self.containing_types[-1] if self.containing_types else None

    @property
    def display_name(self) -> str:
        return ".".join((*self.containing_types, self.name))

    def parameter_names(self) -> list[str]:
        return [parameter.name for parameter in self.parameters]

    def find_attribute(self, name: str) -> AttributeData | None:
        """Return the first declared attribute binding to ``name``."""
        for attribute in self.attributes:
            if attribute.matches(name):
                return attribute
        return None

    def accepts_argument_count(self, count: int, receiver_position: bool) -> bool:
        """Check whether a call with ``count`` arguments can bind to this method."""
        parameters = self.parameters[1:] if receiver_position else self.parameters
        required = sum(
            1 for p in parameters if not p.is_optional and not p.is_params
        )
        if any(p.is_params for p in parameters):
            return count >= required
        return required <= count <= len(parameters)


def is_receiver_invocation(symbol: MethodSymbol, receiver_text: str | None) -> bool:
    """Check whether an invocation calls ``symbol`` in extension (receiver) position.

    ``values.ForEach(...)`` is a receiver invocation of an extension method;
    ``Methods.ForEach(values, ...)`` names the declaring type and is a plain
    static call.
    """
    if not symbol.is_extension_method or receiver_text is None:
        return False
    return not names_declaring_type(receiver_text, symbol)


def names_declaring_type(receiver_text: str, symbol: MethodSymbol) -> bool:
    """Check whether a receiver expression is the symbol's declaring type name."""
    if not symbol.containing_types:
        return False
    last_segment = receiver_text.split("::")[-1].split(".")[-1].split("<")[0].strip()
    return normalise_identifier(last_segment) == symbol.containing_types[-1]


class TieBreakPolicy(Protocol):
    """Chooses among several candidate symbols for one invocation."""

    def select(self, candidates: Sequence[MethodSymbol]) -> list[MethodSymbol]:
        """Return the candidates that survive the policy."""
        ...


@dataclass(frozen=True, slots=True)
class ArityTieBreak:
    """Keep candidates whose parameter list accepts the call's argument count."""

    argument_count: int
    receiver_text: str | None = None

    def select(self, candidates: Sequence[MethodSymbol]) -> list[MethodSymbol]:
        return [
            candidate
            for candidate in candidates
            if candidate.accepts_argument_count(
                self.argument_count,
                is_receiver_invocation(candidate, self.receiver_text),
            )
        ]


@dataclass(frozen=True, slots=True)
class SymbolResolution:
    """Result of resolving an identifier: one symbol, or candidates to choose from."""

    name: str
    symbol: MethodSymbol | None = None
    candidates: tuple[MethodSymbol, ...] = ()

    @property
    def is_resolved(self) -> bool:
        return self.symbol is not None

    def resolve(self, policy: TieBreakPolicy | None = None) -> MethodSymbol:
        """Return the single resolved symbol, applying ``policy`` to candidates.

        Raises:
            SymbolResolutionError: If zero or several candidates remain

        """
        if self.symbol is not None:
            return self.symbol

        remaining = list(self.candidates)
        if policy is not None and len(remaining) > 1:
            remaining = policy.select(remaining)

        if len(remaining) == 1:
            return remaining[0]
        if not remaining:
            raise SymbolResolutionError(f"Method '{self.name}' could not be resolved")
        names = ", ".join(
            f"{c.display_name}{c.parameter_list}" for c in remaining
        )
        raise SymbolResolutionError(
            f"Method '{self.name}' is ambiguous between: {names}"
        )


@runtime_checkable
class SemanticModel(Protocol):
    """Semantic-resolution service consumed by the inlining pipeline.

    Implementations must be safe for concurrent lookups.
    """

    def get_declared_symbol(
        self, method_node: Node, document: SourceDocument
    ) -> MethodSymbol:
        """Return the symbol declared by a method declaration node."""
        ...

    def resolve_symbol(
        self, name_node: Node, document: SourceDocument
    ) -> SymbolResolution:
        """Resolve the method invoked through identifier ``name_node``."""
        ...


class DeclarationIndex:
    """SemanticModel backed by the method declarations of parsed documents.

    The index is built once and never mutated, so lookups can run from
    several worker threads.
    """

    def __init__(self, documents: Iterable[SourceDocument]) -> None:
        self._methods: dict[str, list[MethodSymbol]] = {}
        for document in documents:
            for method_node in find_nodes_by_type(
                document.root_node, "method_declaration"
            ):
                symbol = build_method_symbol(method_node, document)
                self._methods.setdefault(symbol.name, []).append(symbol)

    def __len__(self) -> int:
        return sum(len(symbols) for symbols in self._methods.values())

    def methods_named(self, name: str) -> list[MethodSymbol]:
        return list(self._methods.get(name, []))

    def get_declared_symbol(
        self, method_node: Node, document: SourceDocument
    ) -> MethodSymbol:
        return build_method_symbol(method_node, document)

    def resolve_symbol(
        self, name_node: Node, document: SourceDocument
    ) -> SymbolResolution:
        name = normalise_identifier(document.text(name_node))
        candidates = self.methods_named(name)
        receiver_text = invocation_receiver_text(name_node, document)

        if receiver_text is not None:
            declared_in_receiver = [
                c for c in candidates if names_declaring_type(receiver_text, c)
            ]
            if declared_in_receiver:
                candidates = declared_in_receiver
            else:
                # A value receiver reaches instance or extension methods only
                candidates = [
                    c for c in candidates if not c.is_static or c.is_extension_method
                ]

        logger.debug("Resolved '%s' to %d candidate(s)", name, len(candidates))
        if len(candidates) == 1:
            return SymbolResolution(name=name, symbol=candidates[0])
        return SymbolResolution(name=name, candidates=tuple(candidates))


def invocation_receiver_text(name_node: Node, document: SourceDocument) -> str | None:
    """Return the text left of the member-access operator for ``name_node``."""
    node = name_node
    if node.parent is not None and node.parent.type == "generic_name":
        node = node.parent
    parent = node.parent
    if parent is None or parent.type not in (
        "member_access_expression",
        "conditional_access_expression",
    ):
        return None
    receiver = child_by_fields(parent, "expression")
    if receiver is None:
        receiver = parent.named_children[0]
    if receiver.start_byte == node.start_byte:
        return None
    return document.text(receiver)


def build_method_symbol(method_node: Node, document: SourceDocument) -> MethodSymbol:
    """Read symbol information from a ``method_declaration`` node."""
    name_node = method_node.child_by_field_name("name")
    if name_node is None:
        raise SymbolResolutionError("Method declaration has no name")

    modifiers = [document.text(m) for m in find_children_by_type(method_node, "modifier")]
    return_type = child_by_fields(method_node, "returns", "type")
    type_parameters = child_by_fields(
        method_node, "type_parameters"
    ) or find_child_by_type(method_node, "type_parameter_list")
    parameter_list = child_by_fields(
        method_node, "parameters"
    ) or find_child_by_type(method_node, "parameter_list")
    constraints = find_children_by_type(method_node, "type_parameter_constraints_clause")

    return MethodSymbol(
        name=normalise_identifier(document.text(name_node)),
        containing_types=containing_type_names(method_node, document),
        accessibility=_accessibility(modifiers),
        is_static="static" in modifiers,
        return_type=document.text(return_type) if return_type else "void",
        parameters=_parameters(parameter_list, document),
        type_parameter_list=document.text(type_parameters) if type_parameters else "",
        parameter_list=document.text(parameter_list) if parameter_list else "()",
        constraint_clauses=" ".join(document.text(c) for c in constraints),
        attributes=tuple(declared_attributes(method_node, document)),
        path=document.path,
        start_byte=method_node.start_byte,
    )


def containing_type_names(node: Node, document: SourceDocument) -> tuple[str, ...]:
    """Names of the type declarations enclosing ``node``, outermost first."""
    names: list[str] = []
    for ancestor in ancestors(node):
        if ancestor.type in TYPE_DECLARATION_TYPES:
            name_node = ancestor.child_by_field_name("name")
            if name_node is not None:
                names.append(normalise_identifier(document.text(name_node)))
    return tuple(reversed(names))


def _accessibility(modifiers: list[str]) -> str:
    declared = [m for m in modifiers if m in _ACCESSIBILITY_MODIFIERS]
    if not declared:
        return _DEFAULT_ACCESSIBILITY
    return " ".join(declared)


def _parameters(
    parameter_list: Node | None, document: SourceDocument
) -> tuple[ParameterSymbol, ...]:
    if parameter_list is None:
        return ()
    parameters: list[ParameterSymbol] = []
    children = parameter_list.children
    for index, child in enumerate(children):
        if child.type in _PARAMETER_NODE_TYPES:
            parameters.append(_parameter(child, document))
        elif child.type == "params":
            # Newer grammars flatten a params array into bare list children
            flattened = _flattened_params_parameter(children[index + 1 :], document)
            if flattened is not None:
                parameters.append(flattened)
    return tuple(parameters)


def _flattened_params_parameter(
    following: list[Node], document: SourceDocument
) -> ParameterSymbol | None:
    named: list[Node] = []
    for node in following:
        if node.type in (",", ")"):
            break
        if node.is_named:
            named.append(node)
    if len(named) < 2:
        return None
    type_node, name_node = named[0], named[-1]
    return ParameterSymbol(
        name=normalise_identifier(document.text(name_node)),
        type=document.text(type_node),
        modifiers=("params",),
    )


def _parameter(node: Node, document: SourceDocument) -> ParameterSymbol:
    name_node = node.child_by_field_name("name")
    if name_node is None:
        identifiers = find_children_by_type(node, "identifier")
        name_node = identifiers[-1] if identifiers else node
    type_node = node.child_by_field_name("type")

    modifiers: list[str] = []
    default_value: str | None = None
    seen_name = False
    for child in node.children:
        if child.start_byte == name_node.start_byte:
            seen_name = True
            continue
        if not seen_name:
            if child.type == "attribute_list" or (
                type_node is not None and child.start_byte == type_node.start_byte
            ):
                continue
            modifiers.append(document.text(child))
        elif child.type == "equals_value_clause":
            default_value = document.text(child).lstrip("=").strip()
        elif child.is_named and default_value is None:
            default_value = document.text(child)

    if node.type == "parameter_array" and "params" not in modifiers:
        modifiers.append("params")

    return ParameterSymbol(
        name=normalise_identifier(document.text(name_node)),
        type=document.text(type_node) if type_node else None,
        default_value=default_value,
        modifiers=tuple(modifiers),
    )
