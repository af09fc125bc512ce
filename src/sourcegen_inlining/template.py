"""Inlining templates: tokenizing and rendering.

A template is tokenized once into literal text and placeholder segments and
rendered by walking that sequence, so a substituted value can never be
re-scanned as a placeholder.

Two placeholder dialects are supported:

``slot`` (default)
    ``{<slot>.arg<N>}``, ``{<slot>.arg<N>.type}`` and ``{<slot>.body}``,
    where ``<slot>`` is the name of the callee parameter receiving the lambda.

``positional``
    ``{name<N>}``, ``{type<N>}`` and ``{body}``, with no slot prefix.

Placeholders that cannot be resolved (unknown slot, parameter index out of
range) are copied through verbatim and reported on the render result.
"""

import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum

from sourcegen_inlining.errors import NoLambdaSlotError
from sourcegen_inlining.models import ParameterDescriptor
from sourcegen_inlining.syntax import normalise_identifier


class PlaceholderStyle(str, Enum):
    """Placeholder dialect of a template."""

    SLOT = "slot"
    POSITIONAL = "positional"


class PlaceholderKind(Enum):
    """What a placeholder is substituted with."""

    NAME = "name"
    TYPE = "type"
    BODY = "body"


_PATTERNS = {
    PlaceholderStyle.SLOT: re.compile(
        r"\{(?P<slot>@?[A-Za-z_][A-Za-z0-9_]*)\."
        r"(?:arg(?P<index>0|[1-9]\d*)(?P<type>\.type)?|(?P<body>body))\}"
    ),
    PlaceholderStyle.POSITIONAL: re.compile(
        r"\{(?:(?P<kind>name|type)(?P<index>0|[1-9]\d*)|(?P<body>body))\}"
    ),
}


@dataclass(frozen=True, slots=True)
class TextSegment:
    """Literal template text."""

    text: str


@dataclass(frozen=True, slots=True)
class PlaceholderSegment:
    """A placeholder reference; ``text`` is its verbatim spelling."""

    text: str
    kind: PlaceholderKind
    index: int | None = None
    slot: str | None = None


Segment = TextSegment | PlaceholderSegment


@dataclass(frozen=True, slots=True)
class RenderedTemplate:
    """Rendered text plus the placeholders that were passed through unresolved."""

    text: str
    unresolved: tuple[str, ...] = ()


@dataclass(frozen=True)
class Template:
    """A tokenized inlining template."""

    source: str
    style: PlaceholderStyle = PlaceholderStyle.SLOT
    segments: tuple[Segment, ...] = field(default=(), repr=False)

    @classmethod
    def parse(
        cls, source: str, style: PlaceholderStyle = PlaceholderStyle.SLOT
    ) -> "Template":
        """Tokenize ``source`` into literal and placeholder segments."""
        segments: list[Segment] = []
        cursor = 0
        for match in _PATTERNS[style].finditer(source):
            if match.start() > cursor:
                segments.append(TextSegment(source[cursor : match.start()]))
            segments.append(_placeholder(match, style))
            cursor = match.end()
        if cursor < len(source):
            segments.append(TextSegment(source[cursor:]))
        return cls(source=source, style=style, segments=tuple(segments))

    @property
    def placeholders(self) -> list[PlaceholderSegment]:
        return [s for s in self.segments if isinstance(s, PlaceholderSegment)]

    def render(
        self,
        slot_name: str | None,
        parameters: Sequence[ParameterDescriptor],
        body: str,
    ) -> RenderedTemplate:
        """Substitute lambda parameters and body into the template.

        Args:
            slot_name: Callee parameter name receiving the lambda, or None
                when the call has no lambda slot
            parameters: Lambda parameters in declaration order
            body: Lambda body text, inserted verbatim

        Returns:
            Rendered text and the unresolved placeholder spellings

        Raises:
            NoLambdaSlotError: If the template has placeholders but there is
                no lambda slot to fill them from

        """
        if slot_name is None:
            if self.placeholders:
                raise NoLambdaSlotError(
                    "Template expects a lambda but the call has no lambda argument"
                )
            return RenderedTemplate(text=self.source)

        slot = normalise_identifier(slot_name)
        parts: list[str] = []
        unresolved: list[str] = []
        for segment in self.segments:
            if isinstance(segment, TextSegment):
                parts.append(segment.text)
                continue
            value = _resolve(segment, slot, parameters, body)
            if value is None:
                unresolved.append(segment.text)
                parts.append(segment.text)
            else:
                parts.append(value)

        return RenderedTemplate(text="".join(parts), unresolved=tuple(unresolved))


def render(
    lambda_slot_name: str | None,
    template: str,
    parameters: Sequence[ParameterDescriptor],
    body: str,
    style: PlaceholderStyle = PlaceholderStyle.SLOT,
) -> str:
    """Render ``template`` for one lambda and return the substituted text."""
    return Template.parse(template, style).render(lambda_slot_name, parameters, body).text


def _placeholder(match: re.Match[str], style: PlaceholderStyle) -> PlaceholderSegment:
    text = match.group(0)
    if match.group("body"):
        kind = PlaceholderKind.BODY
        index = None
    elif style is PlaceholderStyle.SLOT:
        kind = PlaceholderKind.TYPE if match.group("type") else PlaceholderKind.NAME
        index = int(match.group("index"))
    else:
        kind = PlaceholderKind(match.group("kind"))
        index = int(match.group("index"))

    slot = match.group("slot") if style is PlaceholderStyle.SLOT else None
    return PlaceholderSegment(text=text, kind=kind, index=index, slot=slot)


def _resolve(
    segment: PlaceholderSegment,
    slot: str,
    parameters: Sequence[ParameterDescriptor],
    body: str,
) -> str | None:
    if segment.slot is not None and normalise_identifier(segment.slot) != slot:
        return None
    if segment.kind is PlaceholderKind.BODY:
        return body
    if segment.index is None or segment.index >= len(parameters):
        return None
    parameter = parameters[segment.index]
    if segment.kind is PlaceholderKind.NAME:
        return parameter.name
    return parameter.declared_type or ""
