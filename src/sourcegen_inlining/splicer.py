"""Splicing rendered call sites back into a method body."""

from collections.abc import Sequence

from sourcegen_inlining.errors import OverlappingCallSitesError
from sourcegen_inlining.models import RenderedBlock


def splice_body(original_body_text: str, replacements: Sequence[RenderedBlock]) -> str:
    """Rebuild a method body with each call-site span replaced by its rendering.

    Text outside the replaced spans is copied through unchanged, including
    comments and whitespace. Replacements are applied in source order
    whatever order they are given in.

    Args:
        original_body_text: The method body exactly as written
        replacements: Rendered blocks whose spans index into the body text

    Returns:
        The new body text

    Raises:
        OverlappingCallSitesError: If spans overlap or exceed the body bounds

    """
    ordered = sorted(replacements, key=lambda block: block.span.start)
    _validate_spans(original_body_text, ordered)

    newline = "\r\n" if "\r\n" in original_body_text else "\n"
    parts: list[str] = []
    cursor = 0
    for block in ordered:
        parts.append(original_body_text[cursor : block.span.start])
        parts.append(scoped_block(block, newline))
        cursor = block.span.end
    parts.append(original_body_text[cursor:])
    return "".join(parts)


def scoped_block(block: RenderedBlock, newline: str = "\n") -> str:
    """Wrap a rendered template and its argument locals in a nested scope."""
    lines = ["{"]
    for binding in block.bindings:
        if binding.is_lambda_slot:
            continue
        lines.append(f"var {binding.binding_name} = {binding.source_expression};")
    lines.append(block.text)
    lines.append("}")
    return newline.join(lines)


def _validate_spans(body_text: str, ordered: Sequence[RenderedBlock]) -> None:
    previous_end = 0
    for block in ordered:
        span = block.span
        if span.end > len(body_text):
            raise OverlappingCallSitesError(
                f"Call-site span [{span.start}, {span.end}) exceeds the method body "
                f"of length {len(body_text)}"
            )
        if span.start < previous_end:
            raise OverlappingCallSitesError(
                f"Call-site span [{span.start}, {span.end}) overlaps a previous "
                "call site"
            )
        previous_end = span.end
