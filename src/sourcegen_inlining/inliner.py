"""The per-method inlining pass.

One pass transforms one trigger method: locate its call sites, render each
one from its callee's template, splice the renderings into the body, and
emit the inlined sibling method. A pass reads only immutable inputs and
returns fresh values, so passes for different methods can run concurrently.
"""

import logging
from dataclasses import dataclass

from tree_sitter import Node

from sourcegen_inlining.binder import (
    bind_arguments,
    describe_invocation,
    lambda_slot_name,
)
from sourcegen_inlining.call_sites import CallSite, find_call_sites
from sourcegen_inlining.config import InliningConfig
from sourcegen_inlining.emitter import (
    EmittedUnit,
    build_inlined_method,
    derive_inlined_name,
    emit,
)
from sourcegen_inlining.errors import UnsupportedMethodBodyError
from sourcegen_inlining.lambdas import extract_lambda
from sourcegen_inlining.models import CallSiteSpan, RenderedBlock, TriggerDescriptor
from sourcegen_inlining.parser import SourceDocument
from sourcegen_inlining.semantic import SemanticModel
from sourcegen_inlining.splicer import splice_body
from sourcegen_inlining.syntax import child_by_fields
from sourcegen_inlining.template_registry import resolve_template

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class UnresolvedPlaceholder:
    """A template placeholder passed through verbatim at one call site."""

    placeholder: str
    callee: str
    line: int
    column: int


@dataclass(frozen=True, slots=True)
class InliningOutcome:
    """Result of one successful pass."""

    unit: EmittedUnit
    call_site_count: int
    unresolved: tuple[UnresolvedPlaceholder, ...] = ()


class MethodInliner:
    """Runs inlining passes against one semantic model and configuration."""

    def __init__(self, semantic_model: SemanticModel, config: InliningConfig) -> None:
        self._semantic_model = semantic_model
        self._config = config

    def inline_method(
        self,
        method_node: Node,
        document: SourceDocument,
        descriptor: TriggerDescriptor,
    ) -> InliningOutcome:
        """Generate the inlined sibling of a trigger method.

        Args:
            method_node: Declaration of the trigger method
            document: Document declaring it
            descriptor: Trigger settings (target name, accessibility)

        Returns:
            The emitted compilation unit and pass statistics

        Raises:
            InliningError: Any subclass; the pass produces no output then

        """
        body = child_by_fields(method_node, "body")
        if body is None or body.type != "block":
            raise UnsupportedMethodBodyError(
                f"Method '{descriptor.display_name}' needs a block body to be inlined"
            )

        symbol = self._semantic_model.get_declared_symbol(method_node, document)
        call_sites = find_call_sites(body, document, self._semantic_model, self._config)

        blocks: list[RenderedBlock] = []
        unresolved: list[UnresolvedPlaceholder] = []
        for call_site in call_sites:
            block, missing = self.render_call_site(call_site, body, document)
            blocks.append(block)
            unresolved.extend(missing)

        spliced = splice_body(document.text(body), blocks)
        name = descriptor.target_name or derive_inlined_name(
            symbol.name, self._config.inlined_name_suffix
        )
        method = build_inlined_method(symbol, name, spliced, descriptor.accessibility)
        unit = emit(method_node, document, method, symbol.name, self._config.preamble)

        logger.info(
            "Inlined %d call site(s) of '%s' into '%s'",
            len(blocks),
            symbol.display_name,
            name,
        )
        return InliningOutcome(
            unit=unit, call_site_count=len(blocks), unresolved=tuple(unresolved)
        )

    def render_call_site(
        self, call_site: CallSite, body: Node, document: SourceDocument
    ) -> tuple[RenderedBlock, list[UnresolvedPlaceholder]]:
        """Render one call site into the block that replaces its statement."""
        callee = call_site.callee
        template = resolve_template(callee, self._config.template_attribute).parse(
            self._config.placeholder_style
        )

        invocation = describe_invocation(
            call_site.invocation, document, call_site.is_slot_lambda
        )
        bindings = bind_arguments(
            invocation, callee, self._config.receiver_placeholder
        )
        slot_name = lambda_slot_name(bindings)
        if slot_name is None:
            # Only a template without lambda placeholders can render here
            rendered = template.render(None, [], "")
        else:
            # Binding succeeded, so exactly one slot lambda exists
            parameters, lambda_body = extract_lambda(call_site.slot_lambdas[0], document)
            rendered = template.render(slot_name, parameters, lambda_body)

        statement = call_site.statement
        start = len(document.slice(body.start_byte, statement.start_byte))
        span = CallSiteSpan(start=start, end=start + len(document.text(statement)))

        line, column = statement.start_point
        missing = [
            UnresolvedPlaceholder(
                placeholder=placeholder,
                callee=callee.display_name,
                line=line + 1,
                column=column + 1,
            )
            for placeholder in rendered.unresolved
        ]
        for item in missing:
            logger.warning(
                "Unresolved placeholder %s in template of '%s' left verbatim",
                item.placeholder,
                item.callee,
            )

        return RenderedBlock(span=span, text=rendered.text, bindings=tuple(bindings)), missing
