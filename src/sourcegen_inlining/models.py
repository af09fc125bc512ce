"""Data models for the inlining pipeline.

Per-pass value objects are frozen dataclasses: they are built and consumed
within the transformation of a single trigger method. Records that cross the
library boundary (trigger descriptors, generated sources, diagnostics) are
Pydantic models.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Accessibility = Literal[
    "public",
    "private",
    "protected",
    "internal",
    "protected internal",
    "private protected",
]


@dataclass(frozen=True, slots=True)
class ParameterDescriptor:
    """A lambda formal parameter: its name and optional declared type text."""

    name: str
    declared_type: str | None = None


@dataclass(frozen=True, slots=True)
class ArgumentBinding:
    """A call argument bound to a fresh local name.

    ``source_expression`` is None for the lambda slot, which is substituted
    into the template instead of being bound to a value.
    """

    binding_name: str
    source_expression: str | None

    @property
    def is_lambda_slot(self) -> bool:
        return self.source_expression is None


@dataclass(frozen=True, slots=True)
class CallSiteSpan:
    """Character offsets into a method body text, end exclusive."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"Invalid call-site span [{self.start}, {self.end})")

    def overlaps(self, other: "CallSiteSpan") -> bool:
        return self.start < other.end and other.start < self.end


@dataclass(frozen=True, slots=True)
class RenderedBlock:
    """The rendered template of one call site and the bindings it relies on."""

    span: CallSiteSpan
    text: str
    bindings: tuple[ArgumentBinding, ...] = ()


@dataclass(frozen=True, slots=True)
class InlinedMethod:
    """A complete synthesized method declaration."""

    accessibility: str
    is_static: bool
    return_type: str
    name: str
    type_parameter_list: str
    parameter_list: str
    body: str
    constraint_clauses: str = ""

    def to_source(self, indent: str = "") -> str:
        """Render the method declaration as C# source text.

        ``indent`` prefixes the signature and the opening line of the body;
        the remaining body lines keep the indentation they were copied with.
        """
        modifiers = self.accessibility + (" static" if self.is_static else "")
        signature = (
            f"{modifiers} {self.return_type} {self.name}"
            f"{self.type_parameter_list}{self.parameter_list}"
        )
        if self.constraint_clauses:
            signature = f"{signature} {self.constraint_clauses}"
        return f"{indent}{signature}\n{indent}{self.body}\n"


class TriggerSource(str, Enum):
    """Where a trigger descriptor was discovered."""

    ATTRIBUTE = "attribute"
    CONFIG = "config"


class TriggerDescriptor(BaseModel):
    """A method for which an inlined sibling must be generated.

    Descriptors are produced by the discovery pass, either from trigger
    attributes in source or from explicit configuration entries.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    method_name: str
    type_name: str | None = Field(
        default=None,
        description="Containing type, optionally dotted for nested types",
    )
    path: str | None = Field(
        default=None, description="Restrict lookup to this document path"
    )
    target_name: str | None = Field(
        default=None, description="Name of the generated method (derived if None)"
    )
    accessibility: Accessibility | None = Field(
        default=None, description="Override for the generated method's accessibility"
    )
    location: int | None = Field(
        default=None, description="Byte offset of the method declaration"
    )
    source: TriggerSource = TriggerSource.CONFIG

    @property
    def display_name(self) -> str:
        if self.type_name:
            return f"{self.type_name}.{self.method_name}"
        return self.method_name


class DiagnosticSeverity(str, Enum):
    """Severity of a build diagnostic."""

    WARNING = "warning"
    ERROR = "error"


class Diagnostic(BaseModel):
    """A build diagnostic attached to a source location."""

    model_config = ConfigDict(frozen=True)

    severity: DiagnosticSeverity
    code: str
    message: str
    path: str | None = None
    line: int | None = None
    column: int | None = None

    def __str__(self) -> str:
        location = self.path or "<unknown>"
        if self.line is not None:
            location = f"{location}({self.line},{self.column or 1})"
        return f"{location}: {self.severity.value} {self.code}: {self.message}"


class GeneratedSource(BaseModel):
    """One synthesized compilation unit produced for a trigger."""

    model_config = ConfigDict(frozen=True)

    file_name: str
    text: str
    trigger: TriggerDescriptor


class GenerationResult(BaseModel):
    """Outcome of a generator run over a set of documents."""

    sources: list[GeneratedSource] = Field(default_factory=list)
    diagnostics: list[Diagnostic] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return any(d.severity is DiagnosticSeverity.ERROR for d in self.diagnostics)

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity is DiagnosticSeverity.ERROR]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [
            d for d in self.diagnostics if d.severity is DiagnosticSeverity.WARNING
        ]
