"""End-to-end tests for the inlining generator."""

import logging
from pathlib import Path

import pytest

from sourcegen_inlining import (
    DiagnosticSeverity,
    GenerationResult,
    InliningConfig,
    InliningGenerator,
    PlaceholderStyle,
    TriggerDescriptor,
)

pytestmark = pytest.mark.integration

TEMPLATES = """using System;

namespace Demo
{
    public static class Methods
    {
        [SupportsInlining("foreach (var {action.arg0} in @this) { {action.body} }")]
        public static void ForEach<T>(this Span<T> @this, Action<T> action)
        {
            foreach (var item in @this) action(item);
        }

        [SupportsInlining("{first.body} {second.body}")]
        public static void Both(Action first, Action second) { }

        [SupportsInlining(null)]
        public static void Nope(Action action) { }

        [SupportsInlining("{action.body} /* {action.arg2} */")]
        public static void Sloppy(Action<int> action) { }

        [SupportsInlining("return {action.body}")]
        public static int Count(Span<int> items, Func<int, bool> predicate) { return 0; }

        [SupportsInlining("foreach (var v in xs) { {action.body} }")]
        public static void Repeat(Action action, params int[] xs) { }

        public static void Plain(Action action) { action(); }
    }
}
"""

CALCULATOR = """using System;

namespace Demo
{
    public partial class Calculator
    {
        [GenerateInlined]
        public static int CalculateSum(Span<int> values)
        {
            var count = 0;
            Methods.ForEach(values, (x) => { count += x; });
            return count;
        }
    }
}
"""

EXPECTED_CALCULATOR = """// <auto-generated/>
#define SOURCEGEN
using System;

namespace Demo
{
    partial class Calculator
    {
        public static int CalculateSum_Inlined(Span<int> values)
        {
            var count = 0;
            {
var @this = values;
foreach (var x in @this) { count += x; }
}
            return count;
        }
    }
}
"""


def _trigger(name: str, body: str, attribute: str = "[GenerateInlined]") -> str:
    return f"""using System;

namespace Demo
{{
    public partial class Worker
    {{
        {attribute}
        public void {name}(Span<int> values)
        {{
            var count = 0;
            {body}
        }}
    }}
}}
"""


def _generate(
    *sources: str, config: InliningConfig | None = None
) -> GenerationResult:
    files = {"Methods.cs": TEMPLATES}
    files.update({f"Source{i}.cs": source for i, source in enumerate(sources)})
    return InliningGenerator(config).generate_from_sources(files)


class TestInliningGenerator:
    """Test generating inlined sibling methods."""

    def test_static_call_is_inlined(self) -> None:
        """Test the complete generated file for a static templated call."""
        result = _generate(CALCULATOR)

        assert result.diagnostics == []
        (source,) = result.sources
        assert source.file_name == "Demo.Calculator.CalculateSum.g.cs"
        assert source.text == EXPECTED_CALCULATOR
        assert source.trigger.method_name == "CalculateSum"

    def test_extension_receiver_call_is_inlined(self) -> None:
        """Test that the extension receiver is bound to the receiver placeholder."""
        source = _trigger("Run", "values.ForEach((x) => { count += x; });")

        (generated,) = _generate(source).sources

        assert (
            "{\nvar @this = values;\nforeach (var x in @this) { count += x; }\n}"
            in generated.text
        )
        assert "values.ForEach" not in generated.text

    def test_call_sites_are_replaced_in_source_order(self) -> None:
        """Test that several call sites are all replaced, in order."""
        source = _trigger(
            "Run",
            "values.ForEach((a) => { First(a); });\n"
            "            // between\n"
            "            values.ForEach((b) => { Second(b); });",
        )

        (generated,) = _generate(source).sources

        first = generated.text.index("foreach (var a in @this) { First(a); }")
        between = generated.text.index("// between")
        second = generated.text.index("foreach (var b in @this) { Second(b); }")
        assert first < between < second

    def test_params_arguments_are_collected_into_an_array(self) -> None:
        """Test that surplus arguments bind to the params formal as an array."""
        source = _trigger("Run", "Methods.Repeat(() => { count += v; }, 1, 2);")

        result = _generate(source)

        assert result.diagnostics == []
        (generated,) = result.sources
        assert (
            "{\nvar xs = new[] { 1, 2 };\nforeach (var v in xs) { count += v; }\n}"
            in generated.text
        )

    def test_method_without_call_sites_is_copied(self) -> None:
        """Test that a trigger without inlinable calls keeps its body."""
        source = _trigger("Run", "Methods.Plain(() => { count++; });")

        (generated,) = _generate(source).sources

        assert "public void Run_Inlined(Span<int> values)" in generated.text
        assert "Methods.Plain(() => { count++; });" in generated.text

    def test_nested_call_site_is_copied_verbatim(self) -> None:
        """Test that a templated call inside an inlined lambda is left alone."""
        source = _trigger(
            "Run",
            "values.ForEach((x) => { values.ForEach((y) => { count += y; }); });",
        )

        (generated,) = _generate(source).sources

        assert (
            "foreach (var x in @this) { values.ForEach((y) => { count += y; }); }"
            in generated.text
        )

    def test_target_name_and_accessibility(self) -> None:
        """Test trigger-selected method name and accessibility."""
        private_run = _trigger(
            "Run", "values.ForEach((x) => { });", attribute="[Inline.Private]"
        )
        renamed_other = _trigger(
            "Other", "", attribute='[GenerateInlined("Faster")]'
        ).replace("Worker", "Helper")

        generated = _generate(private_run, renamed_other).sources

        assert [s.file_name for s in generated] == [
            "Demo.Worker.Run.g.cs",
            "Demo.Helper.Other.g.cs",
        ]
        assert "private void Run_Inlined(Span<int> values)" in generated[0].text
        assert "public void Faster(Span<int> values)" in generated[1].text

    def test_positional_placeholder_style(self) -> None:
        """Test the positional template dialect end to end."""
        templates = TEMPLATES.replace(
            "foreach (var {action.arg0} in @this) { {action.body} }",
            "foreach (var {name0} in @this) { {body} }",
        )
        config = InliningConfig(placeholder_style=PlaceholderStyle.POSITIONAL)

        result = InliningGenerator(config).generate_from_sources(
            {"Methods.cs": templates, "Calculator.cs": CALCULATOR}
        )

        (source,) = result.sources
        assert source.text == EXPECTED_CALCULATOR

    def test_configured_trigger(self) -> None:
        """Test a trigger registered by configuration instead of attribute."""
        source = _trigger("Run", "values.ForEach((x) => { });", attribute="")
        config = InliningConfig(
            triggers=[TriggerDescriptor(method_name="Run", target_name="RunFast")],
            preamble=[],
        )

        (generated,) = _generate(source, config=config).sources

        assert generated.text.startswith("// <auto-generated/>\nusing System;\n")
        assert "public void RunFast(Span<int> values)" in generated.text

    def test_overloads_get_unique_file_names(self) -> None:
        """Test that generated files of overloads do not collide."""
        source = _trigger("Run", "", attribute="").replace(
            "        }\n    }\n}",
            "        }\n\n        public void Run(int value) { }\n    }\n}",
        )
        config = InliningConfig(triggers=[TriggerDescriptor(method_name="Run")])

        generated = _generate(source, config=config).sources

        assert [s.file_name for s in generated] == [
            "Demo.Worker.Run.g.cs",
            "Demo.Worker.Run.2.g.cs",
        ]

    def test_unresolved_placeholder_warns(self) -> None:
        """Test that an unresolved placeholder is kept and reported as a warning."""
        source = _trigger("Run", "Methods.Sloppy((i) => { count += i; });")

        result = _generate(source)

        (generated,) = result.sources
        (warning,) = result.warnings
        assert result.diagnostics == [warning]
        assert "count += i; /* {action.arg2} */" in generated.text
        assert warning.severity is DiagnosticSeverity.WARNING
        assert warning.code == "SGI100"
        assert warning.path == "Source0.cs"
        assert warning.line == 11
        assert not result.has_errors

    def test_unresolved_placeholder_warning_can_be_disabled(self) -> None:
        """Test that unresolved placeholder reporting is configurable."""
        source = _trigger("Run", "Methods.Sloppy((i) => { count += i; });")
        config = InliningConfig(report_unresolved_placeholders=False)

        result = _generate(source, config=config)

        assert len(result.sources) == 1
        assert result.diagnostics == []

    @pytest.mark.parametrize(
        ("body", "code"),
        [
            ("Methods.Both(() => { A(); }, () => { B(); });", "SGI008"),
            ("Methods.Nope(() => { A(); });", "SGI005"),
            ("values.ForEach((x) => count += x);", "SGI006"),
            ("var n = Methods.Count(values, (x) => { return x > 0; });", "SGI011"),
        ],
        ids=[
            "ambiguous_lambda_slot",
            "null_template",
            "expression_lambda",
            "call_inside_declaration",
        ],
    )
    def test_failing_pass_reports_error(self, body: str, code: str) -> None:
        """Test that a failing pass emits an error diagnostic and no source."""
        result = _generate(_trigger("Broken", body))

        (error,) = result.errors
        assert result.sources == []
        assert error.code == code
        assert error.path == "Source0.cs"
        assert error.line == 7
        assert "Worker.Broken" in error.message

    def test_failure_does_not_affect_other_triggers(self) -> None:
        """Test that one failing trigger leaves other triggers' output intact."""
        broken = _trigger("Broken", "Methods.Both(() => { A(); }, () => { B(); });")

        result = _generate(broken, CALCULATOR)

        assert [e.code for e in result.errors] == ["SGI008"]
        (source,) = result.sources
        assert source.text == EXPECTED_CALCULATOR

    def test_unknown_configured_trigger_reports_error(self) -> None:
        """Test that a configured trigger without a declaration is reported."""
        config = InliningConfig(triggers=[TriggerDescriptor(method_name="Missing")])

        result = _generate(CALCULATOR, config=config)

        (error,) = result.errors
        assert error.code == "SGI004"
        assert len(result.sources) == 1

    def test_generation_is_deterministic(self) -> None:
        """Test that identical input yields identical output."""
        sources = (
            CALCULATOR,
            _trigger("Run", "values.ForEach((x) => { count += x; });"),
        )

        assert _generate(*sources) == _generate(*sources)

    def test_parallel_passes_match_sequential(self) -> None:
        """Test that concurrent passes produce the same result in the same order."""
        sources = (
            CALCULATOR,
            _trigger("Run", "values.ForEach((x) => { count += x; });"),
            _trigger("Broken", "Methods.Nope(() => { A(); });"),
        )

        sequential = _generate(*sources)
        parallel = _generate(*sources, config=InliningConfig(max_workers=4))

        assert parallel == sequential

    def test_logs_each_inlined_method(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test that every successful pass is logged."""
        with caplog.at_level(logging.INFO, logger="sourcegen_inlining"):
            _generate(CALCULATOR)

        assert "Inlined 1 call site(s) of 'Calculator.CalculateSum'" in caplog.text

    def test_generate_from_paths(self, tmp_path: Path) -> None:
        """Test generating from C# files found by walking a directory."""
        (tmp_path / "src").mkdir()
        (tmp_path / "src" / "Methods.cs").write_text(TEMPLATES, encoding="utf-8")
        (tmp_path / "src" / "Calculator.cs").write_text(CALCULATOR, encoding="utf-8")
        (tmp_path / "src" / "notes.txt").write_text("ignored", encoding="utf-8")

        result = InliningGenerator().generate_from_paths([tmp_path])

        (source,) = result.sources
        assert source.text == EXPECTED_CALCULATOR
        assert source.trigger.path == str(tmp_path / "src" / "Calculator.cs")
