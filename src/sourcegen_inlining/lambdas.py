"""Extraction of lambda parameters and body text."""

from tree_sitter import Node

from sourcegen_inlining.errors import UnsupportedLambdaFormError
from sourcegen_inlining.models import ParameterDescriptor
from sourcegen_inlining.parser import SourceDocument
from sourcegen_inlining.syntax import child_by_fields, find_child_by_type

LAMBDA_EXPRESSION_TYPES = frozenset(
    {"lambda_expression", "parenthesized_lambda_expression"}
)


def extract_lambda(
    lambda_node: Node, document: SourceDocument
) -> tuple[list[ParameterDescriptor], str]:
    """Extract a lambda's parameters and body text.

    The body text is the content between the block's braces with the
    surrounding whitespace removed; it is otherwise copied verbatim.

    Args:
        lambda_node: A lambda expression node
        document: Document the node belongs to

    Returns:
        Tuple of (parameters in declaration order, body text)

    Raises:
        UnsupportedLambdaFormError: If the lambda has no parenthesized
            parameter list or no block body

    """
    if lambda_node.type not in LAMBDA_EXPRESSION_TYPES:
        raise UnsupportedLambdaFormError(
            f"Expected a lambda expression, got '{lambda_node.type}'"
        )

    parameter_list = child_by_fields(lambda_node, "parameters")
    if parameter_list is None or parameter_list.type != "parameter_list":
        parameter_list = find_child_by_type(lambda_node, "parameter_list")
    if parameter_list is None:
        raise UnsupportedLambdaFormError(
            f"Lambda '{_preview(document.text(lambda_node))}' must declare a "
            "parenthesized parameter list"
        )

    body = child_by_fields(lambda_node, "body")
    if body is None or body.type != "block":
        raise UnsupportedLambdaFormError(
            f"Lambda '{_preview(document.text(lambda_node))}' must have a block body"
        )

    return lambda_parameters(parameter_list, document), block_content(body, document)


def lambda_parameters(
    parameter_list: Node, document: SourceDocument
) -> list[ParameterDescriptor]:
    """Read ``(Type name, ...)`` parameter descriptors from a parameter list."""
    parameters: list[ParameterDescriptor] = []
    for parameter in parameter_list.named_children:
        if parameter.type != "parameter":
            continue
        name_node = parameter.child_by_field_name("name")
        type_node = parameter.child_by_field_name("type")
        if name_node is None:
            continue
        parameters.append(
            ParameterDescriptor(
                name=document.text(name_node),
                declared_type=document.text(type_node) if type_node else None,
            )
        )
    return parameters


def block_content(block: Node, document: SourceDocument) -> str:
    """Return the statements inside a block's braces, trimmed."""
    text = document.text(block)
    if text.startswith("{") and text.endswith("}"):
        text = text[1:-1]
    return text.strip()


def _preview(text: str, limit: int = 40) -> str:
    text = " ".join(text.split())
    return text if len(text) <= limit else text[: limit - 3] + "..."
