"""Tests for trigger discovery and location."""

from collections.abc import Callable

import pytest

from sourcegen_inlining.config import InliningConfig
from sourcegen_inlining.discovery import deduplicate, discover_triggers, locate_trigger
from sourcegen_inlining.errors import DeclarationNotFoundError
from sourcegen_inlining.models import TriggerDescriptor, TriggerSource
from sourcegen_inlining.parser import SourceDocument

ParseFn = Callable[..., SourceDocument]

TRIGGERS = """namespace Demo
{
    public partial class Calculator
    {
        [GenerateInlined]
        public int Sum(Span<int> values) { return 0; }

        [GenerateInlined("FastTotal")]
        public int Total(Span<int> values) { return 0; }

        [Inline.Private]
        public int Hidden(Span<int> values) { return 0; }

        public int Plain(int a) { return a; }

        public int Plain(int a, int b) { return a + b; }

        public partial class Nested
        {
            public void Plain() { }
        }
    }
}
"""


@pytest.fixture
def document(parse: ParseFn) -> SourceDocument:
    return parse(TRIGGERS, "Calculator.cs")


class TestDiscoverTriggers:
    """Test building descriptors from trigger attributes and configuration."""

    def test_attribute_triggers(self, document: SourceDocument) -> None:
        """Test descriptors built from trigger attributes in source order."""
        descriptors = discover_triggers([document], InliningConfig())

        assert [d.method_name for d in descriptors] == ["Sum", "Total", "Hidden"]
        assert all(d.source is TriggerSource.ATTRIBUTE for d in descriptors)
        assert all(d.type_name == "Calculator" for d in descriptors)
        assert all(d.path == "Calculator.cs" for d in descriptors)

    def test_target_name_from_attribute_argument(
        self, document: SourceDocument
    ) -> None:
        """Test that the trigger argument names the generated method."""
        descriptors = discover_triggers([document], InliningConfig())

        assert [d.target_name for d in descriptors] == [None, "FastTotal", None]

    def test_accessibility_trigger(self, document: SourceDocument) -> None:
        """Test that nested accessibility triggers set an override."""
        descriptors = discover_triggers([document], InliningConfig())

        assert [d.accessibility for d in descriptors] == [None, None, "private"]

    def test_configured_triggers_follow_attribute_triggers(
        self, document: SourceDocument
    ) -> None:
        """Test that configured descriptors are appended after discovered ones."""
        config = InliningConfig(triggers=[TriggerDescriptor(method_name="Plain")])

        descriptors = discover_triggers([document], config)

        assert descriptors[-1].method_name == "Plain"
        assert descriptors[-1].source is TriggerSource.CONFIG

    def test_custom_trigger_attribute(self, document: SourceDocument) -> None:
        """Test discovery through a configured attribute name."""
        config = InliningConfig(trigger_attribute="Unused")

        descriptors = discover_triggers([document], config)

        assert [d.method_name for d in descriptors] == ["Hidden"]


class TestLocateTrigger:
    """Test resolving descriptors to method declarations."""

    def test_locates_attribute_trigger_by_location(
        self, document: SourceDocument
    ) -> None:
        """Test that a discovered descriptor locates exactly its declaration."""
        descriptor = discover_triggers([document], InliningConfig())[0]

        (located,) = locate_trigger(descriptor, [document])

        assert located.method_node.start_byte == descriptor.location
        assert located.document is document

    def test_locates_every_overload(self, document: SourceDocument) -> None:
        """Test that a configured name matches all overloads in the type."""
        descriptor = TriggerDescriptor(method_name="Plain", type_name="Calculator")

        located = locate_trigger(descriptor, [document])

        assert len(located) == 2

    def test_nested_type_name(self, document: SourceDocument) -> None:
        """Test that dotted type names select nested types."""
        descriptor = TriggerDescriptor(
            method_name="Plain", type_name="Calculator.Nested"
        )

        (located,) = locate_trigger(descriptor, [document])

        assert document.text(located.method_node) == "public void Plain() { }"

    def test_without_type_name_matches_all_types(
        self, document: SourceDocument
    ) -> None:
        """Test that a bare method name matches declarations in any type."""
        located = locate_trigger(TriggerDescriptor(method_name="Plain"), [document])

        assert len(located) == 3

    @pytest.mark.parametrize(
        "descriptor",
        [
            TriggerDescriptor(method_name="Missing"),
            TriggerDescriptor(method_name="Sum", type_name="Other"),
            TriggerDescriptor(method_name="Sum", path="Other.cs"),
        ],
        ids=["unknown_method", "wrong_type", "wrong_path"],
    )
    def test_unknown_declaration_raises(
        self, document: SourceDocument, descriptor: TriggerDescriptor
    ) -> None:
        """Test that a descriptor matching nothing raises."""
        with pytest.raises(DeclarationNotFoundError):
            locate_trigger(descriptor, [document])


class TestDeduplicate:
    """Test collapsing triggers for the same declaration."""

    def test_configuration_wins(self, document: SourceDocument) -> None:
        """Test that a configured trigger replaces an attribute trigger."""
        config = InliningConfig(
            triggers=[
                TriggerDescriptor(
                    method_name="Sum", type_name="Calculator", target_name="Custom"
                )
            ]
        )
        located = [
            trigger
            for descriptor in discover_triggers([document], config)
            for trigger in locate_trigger(descriptor, [document])
        ]

        triggers = deduplicate(located)

        assert len(triggers) == 3
        (sum_trigger,) = [t for t in triggers if t.descriptor.method_name == "Sum"]
        assert sum_trigger.descriptor.target_name == "Custom"
        assert sum_trigger.descriptor.source is TriggerSource.CONFIG
