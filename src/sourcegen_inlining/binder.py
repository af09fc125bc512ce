"""Binding of call-site arguments to fresh local names.

Every non-lambda argument of an inlined call becomes a local variable named
after the callee's formal parameter, so the template can refer to it by that
name. The lambda argument is the *slot*: it is not bound, its parameters and
body are substituted into the template instead.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from tree_sitter import Node

from sourcegen_inlining.errors import (
    AmbiguousLambdaSlotError,
    LambdaSlotNotFoundError,
    SymbolResolutionError,
)
from sourcegen_inlining.models import ArgumentBinding
from sourcegen_inlining.parser import SourceDocument
from sourcegen_inlining.semantic import (
    MethodSymbol,
    ParameterSymbol,
    invocation_receiver_text,
    is_receiver_invocation,
)
from sourcegen_inlining.syntax import (
    child_by_fields,
    escape_identifier,
    find_child_by_type,
    normalise_identifier,
)

logger = logging.getLogger(__name__)

DEFAULT_RECEIVER_PLACEHOLDER = "@this"

_ARGUMENT_NAME_TYPES = ("name_colon",)


@dataclass(frozen=True, slots=True)
class CallArgument:
    """One argument as written at the call site.

    Attributes:
        text: Source text of the argument expression
        name: Parameter name for named arguments (``name: value``)
        is_lambda: Whether this argument is the inlined lambda

    """

    text: str
    name: str | None = None
    is_lambda: bool = False


@dataclass(frozen=True, slots=True)
class InvocationInfo:
    """Syntactic facts about an invocation needed for binding.

    Attributes:
        arguments: Arguments in call order
        receiver_text: Text left of the member-access operator, if any

    """

    arguments: tuple[CallArgument, ...]
    receiver_text: str | None = None


def bind_arguments(
    invocation: InvocationInfo,
    callee: MethodSymbol,
    receiver_placeholder: str = DEFAULT_RECEIVER_PLACEHOLDER,
) -> list[ArgumentBinding]:
    """Bind call arguments to the callee's formal parameter names.

    Bindings are returned in declared-parameter order. When the callee is
    an extension method invoked on a receiver, one more binding named
    ``receiver_placeholder`` holding the receiver text is appended last.

    Args:
        invocation: Arguments and receiver of the call
        callee: The resolved callable
        receiver_placeholder: Local name used for the extension receiver and
            for a formal parameter literally named ``this``

    Returns:
        Ordered bindings; empty when the call has no arguments

    Raises:
        LambdaSlotNotFoundError: If no argument is the inlined lambda
        AmbiguousLambdaSlotError: If more than one argument is
        SymbolResolutionError: If a named argument matches no parameter

    """
    if not invocation.arguments:
        return []

    lambda_count = sum(1 for argument in invocation.arguments if argument.is_lambda)
    if lambda_count == 0:
        raise LambdaSlotNotFoundError(
            f"Call to '{callee.display_name}' has no inlinable lambda argument"
        )
    if lambda_count > 1:
        raise AmbiguousLambdaSlotError(
            f"Call to '{callee.display_name}' has {lambda_count} lambda arguments; "
            "exactly one can be inlined"
        )

    receiver_position = is_receiver_invocation(callee, invocation.receiver_text)
    formals = callee.parameters[1:] if receiver_position else callee.parameters
    supplied = _match_arguments(invocation.arguments, formals, callee)

    bindings: list[ArgumentBinding] = []
    for index, formal in enumerate(formals):
        name = _binding_name(formal.name, receiver_placeholder)
        arguments = supplied.get(index)
        if arguments is None:
            if formal.default_value is not None:
                bindings.append(ArgumentBinding(name, formal.default_value))
            continue
        if len(arguments) == 1:
            argument = arguments[0]
            bindings.append(
                ArgumentBinding(name, None if argument.is_lambda else argument.text)
            )
        else:
            elements = ", ".join(argument.text for argument in arguments)
            bindings.append(ArgumentBinding(name, f"new[] {{ {elements} }}"))

    if receiver_position:
        bindings.append(ArgumentBinding(receiver_placeholder, invocation.receiver_text))

    if not any(binding.is_lambda_slot for binding in bindings):
        raise LambdaSlotNotFoundError(
            f"Lambda argument of the call to '{callee.display_name}' does not "
            "match any parameter"
        )

    logger.debug(
        "Bound %d argument(s) for call to '%s'", len(bindings), callee.display_name
    )
    return bindings


def lambda_slot_name(bindings: list[ArgumentBinding]) -> str | None:
    """Return the binding name of the lambda slot, or None if there is none."""
    for binding in bindings:
        if binding.is_lambda_slot:
            return binding.binding_name
    return None


def describe_invocation(
    invocation_node: Node,
    document: SourceDocument,
    is_slot_lambda: Callable[[Node], bool],
) -> InvocationInfo:
    """Collect the arguments and receiver of an ``invocation_expression``.

    Args:
        invocation_node: The invocation
        document: Document the node belongs to
        is_slot_lambda: Predicate selecting argument expressions that are
            the inlined lambda

    """
    arguments: list[CallArgument] = []
    argument_list = child_by_fields(
        invocation_node, "arguments"
    ) or find_child_by_type(invocation_node, "argument_list")
    if argument_list is not None:
        for argument in argument_list.named_children:
            if argument.type == "argument":
                arguments.append(_call_argument(argument, document, is_slot_lambda))

    name_node = invoked_name_node(invocation_node)
    receiver_text = (
        invocation_receiver_text(name_node, document) if name_node is not None else None
    )
    return InvocationInfo(arguments=tuple(arguments), receiver_text=receiver_text)


def invoked_name_node(invocation_node: Node) -> Node | None:
    """Return the identifier naming the invoked method, if it has one."""
    function = child_by_fields(invocation_node, "function")
    if function is None and invocation_node.named_children:
        function = invocation_node.named_children[0]
    return _name_of(function)


def argument_expression(argument: Node) -> Node | None:
    """Return the expression node of an ``argument``."""
    named = [
        child
        for child in argument.named_children
        if child.type not in _ARGUMENT_NAME_TYPES
    ]
    name_node = argument.child_by_field_name("name")
    if name_node is not None:
        named = [child for child in named if child.start_byte != name_node.start_byte]
    return named[-1] if named else None


def _name_of(node: Node | None) -> Node | None:
    if node is None:
        return None
    if node.type == "identifier":
        return node
    if node.type == "generic_name":
        return find_child_by_type(node, "identifier")
    if node.type in ("member_access_expression", "member_binding_expression"):
        return _name_of(node.child_by_field_name("name"))
    return None


def _call_argument(
    argument: Node, document: SourceDocument, is_slot_lambda: Callable[[Node], bool]
) -> CallArgument:
    expression = argument_expression(argument)
    name: str | None = None
    name_node = argument.child_by_field_name("name")
    if name_node is not None:
        name = normalise_identifier(document.text(name_node))
    else:
        name_colon = find_child_by_type(argument, "name_colon")
        if name_colon is not None:
            name = normalise_identifier(document.text(name_colon).rstrip(": \t\r\n"))

    if expression is None:
        return CallArgument(text=document.text(argument), name=name)
    return CallArgument(
        text=document.text(expression),
        name=name,
        is_lambda=is_slot_lambda(expression),
    )


def _match_arguments(
    arguments: tuple[CallArgument, ...],
    formals: tuple[ParameterSymbol, ...],
    callee: MethodSymbol,
) -> dict[int, list[CallArgument]]:
    supplied: dict[int, list[CallArgument]] = {}
    formal_index = {formal.name: index for index, formal in enumerate(formals)}
    position = 0
    for argument in arguments:
        if argument.name is not None:
            if argument.name not in formal_index:
                raise SymbolResolutionError(
                    f"'{callee.display_name}' has no parameter named '{argument.name}'"
                )
            index = formal_index[argument.name]
        elif position < len(formals):
            index = position
            position += 1
        elif formals and formals[-1].is_params:
            index = len(formals) - 1
        else:
            logger.debug(
                "Ignoring surplus argument '%s' in call to '%s'",
                argument.text,
                callee.display_name,
            )
            continue
        supplied.setdefault(index, []).append(argument)
    return supplied


def _binding_name(formal_name: str, receiver_placeholder: str) -> str:
    if formal_name == "this":
        return receiver_placeholder
    return escape_identifier(formal_name)
