"""Emission of the inlined sibling method as a compilation unit."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from tree_sitter import Node

from sourcegen_inlining.models import InlinedMethod
from sourcegen_inlining.parser import SourceDocument
from sourcegen_inlining.qualification import QualifiedDeclarationInfo
from sourcegen_inlining.semantic import MethodSymbol

logger = logging.getLogger(__name__)

DEFAULT_INLINED_SUFFIX = "_Inlined"


@dataclass(frozen=True, slots=True)
class EmittedUnit:
    """A generated file: its suggested name, full text and the emitted method."""

    file_name: str
    text: str
    method: InlinedMethod


def derive_inlined_name(method_name: str, suffix: str = DEFAULT_INLINED_SUFFIX) -> str:
    """Derive the generated method's name from the original name."""
    return f"{method_name}{suffix}"


def build_inlined_method(
    symbol: MethodSymbol,
    name: str,
    body: str,
    accessibility: str | None = None,
) -> InlinedMethod:
    """Copy the original signature onto a new name and body.

    Args:
        symbol: Symbol of the original (trigger) method
        name: Identifier of the generated method
        body: Spliced body text including its braces
        accessibility: Accessibility override; the original's when None

    """
    return InlinedMethod(
        accessibility=accessibility or symbol.accessibility,
        is_static=symbol.is_static,
        return_type=symbol.return_type,
        name=name,
        type_parameter_list=symbol.type_parameter_list,
        parameter_list=symbol.parameter_list,
        body=body,
        constraint_clauses=symbol.constraint_clauses,
    )


def emit(
    method_node: Node,
    document: SourceDocument,
    method: InlinedMethod,
    original_name: str,
    preamble: Sequence[str] = (),
) -> EmittedUnit:
    """Wrap an inlined method into a self-contained compilation unit.

    Args:
        method_node: Declaration of the original method
        document: Document declaring it
        method: The synthesized method
        original_name: Name of the original method, used for the file name
        preamble: Preprocessor lines placed before the using directives

    Raises:
        DeclaringTypeNotFoundError: If the original method is not inside a type

    """
    declaration_info = QualifiedDeclarationInfo.from_member(method_node, document)
    members = method.to_source(indent=declaration_info.member_indent)
    text = declaration_info.render(members=members, preamble=list(preamble))
    file_name = declaration_info.suggested_file_name(original_name)
    logger.debug("Emitted %s into %s", method.name, file_name)
    return EmittedUnit(file_name=file_name, text=text, method=method)
