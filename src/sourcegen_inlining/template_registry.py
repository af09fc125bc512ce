"""Lookup of the inlining template declared on a callable."""

from dataclasses import dataclass

from sourcegen_inlining.errors import MissingTemplateError
from sourcegen_inlining.semantic import MethodSymbol
from sourcegen_inlining.template import PlaceholderStyle, Template

DEFAULT_TEMPLATE_ATTRIBUTE = "SupportsInlining"


@dataclass(frozen=True, slots=True)
class CallableTemplate:
    """A templated callable: its symbol and its declared template text."""

    symbol: MethodSymbol
    template: str

    def parse(self, style: PlaceholderStyle = PlaceholderStyle.SLOT) -> Template:
        return Template.parse(self.template, style)


def has_template(
    symbol: MethodSymbol, attribute_name: str = DEFAULT_TEMPLATE_ATTRIBUTE
) -> bool:
    """Check whether ``symbol`` declares an inlining template attribute."""
    return symbol.find_attribute(attribute_name) is not None


def resolve_template(
    symbol: MethodSymbol, attribute_name: str = DEFAULT_TEMPLATE_ATTRIBUTE
) -> CallableTemplate:
    """Return the inlining template declared on ``symbol``.

    Args:
        symbol: The invoked callable
        attribute_name: Name of the template-declaring attribute

    Returns:
        The callable paired with its template text

    Raises:
        MissingTemplateError: If no template attribute is declared or its
            template argument is missing or null

    """
    attribute = symbol.find_attribute(attribute_name)
    if attribute is None:
        raise MissingTemplateError(
            f"Method '{symbol.display_name}' does not support inlining "
            f"(no [{attribute_name}] attribute)"
        )

    template = attribute.first_constructor_value()
    if template is None:
        raise MissingTemplateError(
            f"Inlining template of '{symbol.display_name}' is null"
        )
    return CallableTemplate(symbol=symbol, template=template)
