"""Inlining source generator.

Drives the whole pipeline over a set of C# documents: discovery of trigger
methods, one independent inlining pass per trigger, and collection of the
generated sources and build diagnostics.

Use: parse documents → InliningGenerator.generate() → feed sources to the build
"""

import logging
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from tree_sitter import Node

from sourcegen_inlining.config import InliningConfig
from sourcegen_inlining.discovery import (
    LocatedTrigger,
    deduplicate,
    discover_triggers,
    locate_trigger,
)
from sourcegen_inlining.errors import InliningError
from sourcegen_inlining.inliner import InliningOutcome, MethodInliner
from sourcegen_inlining.models import (
    Diagnostic,
    DiagnosticSeverity,
    GeneratedSource,
    GenerationResult,
    TriggerDescriptor,
)
from sourcegen_inlining.parser import CSharpParser, SourceDocument
from sourcegen_inlining.semantic import DeclarationIndex, SemanticModel

logger = logging.getLogger(__name__)

UNRESOLVED_PLACEHOLDER_CODE = "SGI100"

_PassResult = tuple[LocatedTrigger, InliningOutcome | None, Diagnostic | None]


class InliningGenerator:
    """Generates inlined sibling methods for every trigger in a compilation."""

    def __init__(
        self,
        config: InliningConfig | None = None,
        semantic_model: SemanticModel | None = None,
    ) -> None:
        """Initialise the generator.

        Args:
            config: Generator configuration (defaults when None)
            semantic_model: Symbol resolution service; a DeclarationIndex over
                the generated documents is built when None

        """
        self._config = config or InliningConfig()
        self._semantic_model = semantic_model

    @property
    def config(self) -> InliningConfig:
        return self._config

    def generate(self, documents: Sequence[SourceDocument]) -> GenerationResult:
        """Run discovery and one inlining pass per trigger.

        A failing pass turns into an error diagnostic and never affects the
        output of other triggers. Sources are returned in trigger order.
        """
        semantic_model = self._semantic_model or DeclarationIndex(documents)
        inliner = MethodInliner(semantic_model, self._config)
        result = GenerationResult()

        located: list[LocatedTrigger] = []
        for descriptor in discover_triggers(documents, self._config):
            try:
                located.extend(locate_trigger(descriptor, documents))
            except InliningError as e:
                logger.error("Trigger '%s' skipped: %s", descriptor.display_name, e)
                result.diagnostics.append(_error_diagnostic(e, descriptor))
        triggers = deduplicate(located)

        for trigger, outcome, diagnostic in self._run_passes(inliner, triggers):
            if diagnostic is not None:
                result.diagnostics.append(diagnostic)
                continue
            if outcome is None:
                continue
            result.sources.append(
                GeneratedSource(
                    file_name=_unique_file_name(outcome.unit.file_name, result),
                    text=outcome.unit.text,
                    trigger=trigger.descriptor,
                )
            )
            if self._config.report_unresolved_placeholders:
                result.diagnostics.extend(
                    Diagnostic(
                        severity=DiagnosticSeverity.WARNING,
                        code=UNRESOLVED_PLACEHOLDER_CODE,
                        message=(
                            f"Placeholder {item.placeholder} in the template of "
                            f"'{item.callee}' was not resolved and is left verbatim"
                        ),
                        path=trigger.document.path,
                        line=item.line,
                        column=item.column,
                    )
                    for item in outcome.unresolved
                )

        logger.info(
            "Generated %d source(s) from %d trigger(s) with %d error(s)",
            len(result.sources),
            len(triggers),
            len(result.errors),
        )
        return result

    def generate_from_sources(self, sources: dict[str, str]) -> GenerationResult:
        """Parse in-memory sources keyed by path and run ``generate``."""
        parser = CSharpParser()
        documents = [
            parser.parse_document(source_code, path)
            for path, source_code in sources.items()
        ]
        return self.generate(documents)

    def generate_from_paths(self, paths: Iterable[Path]) -> GenerationResult:
        """Parse ``.cs`` files (directories are walked recursively) and generate.

        Raises:
            ParserError: If a file cannot be read

        """
        parser = CSharpParser()
        documents = [parser.parse_file(path) for path in _collect_source_files(paths)]
        return self.generate(documents)

    def _run_passes(
        self, inliner: MethodInliner, triggers: list[LocatedTrigger]
    ) -> list[_PassResult]:
        if self._config.max_workers > 1 and len(triggers) > 1:
            with ThreadPoolExecutor(max_workers=self._config.max_workers) as pool:
                return list(pool.map(lambda t: _run_pass(inliner, t), triggers))
        return [_run_pass(inliner, trigger) for trigger in triggers]


def _run_pass(inliner: MethodInliner, trigger: LocatedTrigger) -> _PassResult:
    try:
        outcome = inliner.inline_method(
            trigger.method_node, trigger.document, trigger.descriptor
        )
    except InliningError as e:
        logger.error(
            "Inlining of '%s' failed: %s", trigger.descriptor.display_name, e
        )
        return trigger, None, _error_diagnostic(
            e, trigger.descriptor, trigger.document, trigger.method_node
        )
    return trigger, outcome, None


def _error_diagnostic(
    error: InliningError,
    descriptor: TriggerDescriptor,
    document: SourceDocument | None = None,
    node: Node | None = None,
) -> Diagnostic:
    line: int | None = None
    column: int | None = None
    if node is not None:
        line, column = node.start_point[0] + 1, node.start_point[1] + 1
    return Diagnostic(
        severity=DiagnosticSeverity.ERROR,
        code=error.code,
        message=f"Cannot generate inlined method for '{descriptor.display_name}': {error}",
        path=document.path if document is not None else descriptor.path,
        line=line,
        column=column,
    )


def _unique_file_name(file_name: str, result: GenerationResult) -> str:
    taken = {source.file_name for source in result.sources}
    if file_name not in taken:
        return file_name
    stem = file_name.removesuffix(".g.cs")
    counter = 2
    while f"{stem}.{counter}.g.cs" in taken:
        counter += 1
    return f"{stem}.{counter}.g.cs"


def _collect_source_files(paths: Iterable[Path]) -> list[Path]:
    files: list[Path] = []
    for path in paths:
        if path.is_dir():
            files.extend(
                sorted(p for p in path.rglob("*") if CSharpParser.is_supported_file(p))
            )
        else:
            files.append(path)
    return files
