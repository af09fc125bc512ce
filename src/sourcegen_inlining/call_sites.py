"""Location of inlinable call sites inside a method body."""

import logging
from dataclasses import dataclass

from tree_sitter import Node

from sourcegen_inlining.attributes import has_attribute
from sourcegen_inlining.binder import argument_expression, invoked_name_node
from sourcegen_inlining.config import InliningConfig
from sourcegen_inlining.errors import SymbolResolutionError, UnsupportedCallSiteError
from sourcegen_inlining.lambdas import LAMBDA_EXPRESSION_TYPES
from sourcegen_inlining.parser import SourceDocument
from sourcegen_inlining.semantic import (
    ArityTieBreak,
    MethodSymbol,
    SemanticModel,
    invocation_receiver_text,
)
from sourcegen_inlining.syntax import (
    child_by_fields,
    contains,
    find_child_by_type,
    find_nodes_by_type,
    same_node,
)
from sourcegen_inlining.template_registry import has_template

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CallSite:
    """An inlinable invocation and the statement it replaces.

    Attributes:
        invocation: The ``invocation_expression`` node
        statement: The enclosing expression statement (the replaced span)
        callee: The resolved templated callable
        slot_lambdas: Lambda arguments eligible as the lambda slot

    """

    invocation: Node
    statement: Node
    callee: MethodSymbol
    slot_lambdas: tuple[Node, ...]

    def is_slot_lambda(self, node: Node) -> bool:
        return any(same_node(node, candidate) for candidate in self.slot_lambdas)


def find_call_sites(
    body: Node,
    document: SourceDocument,
    semantic_model: SemanticModel,
    config: InliningConfig,
) -> list[CallSite]:
    """Find the inlinable call sites of a method body in source order.

    A call is inlinable when one of its arguments is a lambda carrying the
    marker attribute, or, unless ``config.require_lambda_marker`` is set,
    when it passes a lambda to a callee that declares an inlining template.
    Calls nested inside an already selected call site are left alone: they
    are part of the copied lambda body.

    Raises:
        SymbolResolutionError: If a marked or templated call cannot be resolved
        UnsupportedCallSiteError: If an inlinable call is not a whole
            expression statement

    """
    call_sites: list[CallSite] = []
    for invocation in find_nodes_by_type(body, "invocation_expression"):
        if any(contains(site.statement, invocation) for site in call_sites):
            continue
        call_site = _inspect_invocation(invocation, body, document, semantic_model, config)
        if call_site is not None:
            call_sites.append(call_site)

    logger.debug("Found %d inlinable call site(s)", len(call_sites))
    return call_sites


def _inspect_invocation(
    invocation: Node,
    body: Node,
    document: SourceDocument,
    semantic_model: SemanticModel,
    config: InliningConfig,
) -> CallSite | None:
    name_node = invoked_name_node(invocation)
    if name_node is None:
        return None

    lambdas = _lambda_arguments(invocation)
    marked = [
        node for node in lambdas if has_attribute(node, config.lambda_marker, document)
    ]
    if config.require_lambda_marker and not marked:
        return None
    if not lambdas:
        return None

    resolution = semantic_model.resolve_symbol(name_node, document)
    argument_count = len(_argument_nodes(invocation))
    try:
        callee = resolution.resolve(
            ArityTieBreak(argument_count, invocation_receiver_text(name_node, document))
        )
    except SymbolResolutionError:
        templated = [
            c for c in resolution.candidates if has_template(c, config.template_attribute)
        ]
        if marked or templated:
            raise
        logger.debug("Skipping unresolved call to '%s'", resolution.name)
        return None

    # An unmarked lambda passed to an ordinary method is not a call site;
    # a marked one must reach a templated callee (checked by the inliner).
    if not marked and not has_template(callee, config.template_attribute):
        return None

    statement = _enclosing_statement(invocation, body)
    if statement is None:
        raise UnsupportedCallSiteError(
            f"Call to '{callee.display_name}' must be a standalone expression "
            "statement to be inlined"
        )

    return CallSite(
        invocation=invocation,
        statement=statement,
        callee=callee,
        slot_lambdas=tuple(marked or lambdas),
    )


def _argument_nodes(invocation: Node) -> list[Node]:
    argument_list = child_by_fields(invocation, "arguments") or find_child_by_type(
        invocation, "argument_list"
    )
    if argument_list is None:
        return []
    return [child for child in argument_list.named_children if child.type == "argument"]


def _lambda_arguments(invocation: Node) -> list[Node]:
    lambdas: list[Node] = []
    for argument in _argument_nodes(invocation):
        expression = argument_expression(argument)
        if expression is not None and expression.type in LAMBDA_EXPRESSION_TYPES:
            lambdas.append(expression)
    return lambdas


def _enclosing_statement(invocation: Node, body: Node) -> Node | None:
    statement = invocation.parent
    if statement is None or statement.type != "expression_statement":
        return None
    if not contains(body, statement):
        return None
    expression = statement.named_children[0] if statement.named_children else None
    if not same_node(expression, invocation):
        return None
    return statement
