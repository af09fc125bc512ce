"""Discovery of trigger methods.

The discovery pass turns trigger attributes found in source, and triggers
listed in configuration, into ``TriggerDescriptor`` records. The
transformation engine only ever sees descriptors, never the attributes.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from tree_sitter import Node

from sourcegen_inlining.attributes import AttributeData, find_attributes
from sourcegen_inlining.config import InliningConfig
from sourcegen_inlining.errors import DeclarationNotFoundError
from sourcegen_inlining.models import TriggerDescriptor, TriggerSource
from sourcegen_inlining.parser import SourceDocument
from sourcegen_inlining.semantic import containing_type_names
from sourcegen_inlining.syntax import find_nodes_by_type, normalise_identifier

logger = logging.getLogger(__name__)

# Nested trigger attributes selecting the generated method's accessibility
_ACCESSIBILITY_TRIGGERS = {
    "Public": "public",
    "Private": "private",
    "Protected": "protected",
    "Internal": "internal",
}


@dataclass(frozen=True, slots=True)
class LocatedTrigger:
    """A trigger descriptor resolved to its method declaration."""

    descriptor: TriggerDescriptor
    method_node: Node
    document: SourceDocument

    @property
    def key(self) -> tuple[str, int]:
        return (self.document.path, self.method_node.start_byte)


def discover_triggers(
    documents: Iterable[SourceDocument], config: InliningConfig
) -> list[TriggerDescriptor]:
    """Build trigger descriptors from attributes and from configuration.

    Attribute-discovered triggers come first in document order, followed by
    the configured ones.
    """
    descriptors: list[TriggerDescriptor] = []
    for document in documents:
        for method_node in find_nodes_by_type(document.root_node, "method_declaration"):
            descriptor = _descriptor_from_attributes(method_node, document, config)
            if descriptor is not None:
                descriptors.append(descriptor)

    logger.debug(
        "Discovered %d attribute trigger(s) and %d configured trigger(s)",
        len(descriptors),
        len(config.triggers),
    )
    descriptors.extend(config.triggers)
    return descriptors


def locate_trigger(
    descriptor: TriggerDescriptor, documents: Sequence[SourceDocument]
) -> list[LocatedTrigger]:
    """Find the method declaration(s) a descriptor refers to.

    Without a location every overload with a matching name and containing
    type is returned.

    Raises:
        DeclarationNotFoundError: If no declaration matches

    """
    wanted_types = descriptor.type_name.split(".") if descriptor.type_name else []
    located: list[LocatedTrigger] = []
    for document in documents:
        if descriptor.path is not None and document.path != descriptor.path:
            continue
        for method_node in find_nodes_by_type(document.root_node, "method_declaration"):
            if descriptor.location is not None and (
                method_node.start_byte != descriptor.location
            ):
                continue
            name_node = method_node.child_by_field_name("name")
            if name_node is None or (
                normalise_identifier(document.text(name_node)) != descriptor.method_name
            ):
                continue
            types = containing_type_names(method_node, document)
            if wanted_types and list(types[-len(wanted_types) :]) != wanted_types:
                continue
            located.append(LocatedTrigger(descriptor, method_node, document))

    if not located:
        raise DeclarationNotFoundError(
            f"No method declaration found for trigger '{descriptor.display_name}'"
        )
    return located


def deduplicate(located: Iterable[LocatedTrigger]) -> list[LocatedTrigger]:
    """Collapse triggers naming the same declaration; configuration wins."""
    by_key: dict[tuple[str, int], LocatedTrigger] = {}
    for trigger in located:
        existing = by_key.get(trigger.key)
        if existing is None or (
            trigger.descriptor.source is TriggerSource.CONFIG
            and existing.descriptor.source is not TriggerSource.CONFIG
        ):
            by_key[trigger.key] = trigger
    return list(by_key.values())


def _descriptor_from_attributes(
    method_node: Node, document: SourceDocument, config: InliningConfig
) -> TriggerDescriptor | None:
    accessibility: str | None = None
    attributes: list[AttributeData] = find_attributes(
        method_node, config.trigger_attribute, document
    )
    if not attributes:
        for suffix, value in _ACCESSIBILITY_TRIGGERS.items():
            attributes = find_attributes(
                method_node, f"{config.accessibility_trigger}.{suffix}", document
            )
            if attributes:
                accessibility = value
                break
    if not attributes:
        return None

    name_node = method_node.child_by_field_name("name")
    if name_node is None:
        return None
    types = containing_type_names(method_node, document)
    return TriggerDescriptor(
        method_name=normalise_identifier(document.text(name_node)),
        type_name=".".join(types) or None,
        path=document.path,
        target_name=attributes[0].first_constructor_value(),
        accessibility=accessibility,
        location=method_node.start_byte,
        source=TriggerSource.ATTRIBUTE,
    )
