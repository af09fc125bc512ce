"""Build-time inlining of lambda arguments for C# template methods.

This package provides InliningGenerator, which finds methods marked for
inlining, replaces each call to a templated method that receives a lambda
with the callee's declared code template (lambda parameters and body
substituted in), and emits the result as a new sibling method in a
generated partial declaration.

Use: C# sources → InliningGenerator.generate() → generated .g.cs sources
"""

from .binder import CallArgument, InvocationInfo, bind_arguments
from .config import InliningConfig, load_config
from .errors import (
    AmbiguousLambdaSlotError,
    ConfigError,
    DeclarationNotFoundError,
    DeclaringTypeNotFoundError,
    InliningError,
    LambdaSlotNotFoundError,
    MissingTemplateError,
    NoLambdaSlotError,
    OverlappingCallSitesError,
    ParserError,
    SymbolResolutionError,
    UnsupportedCallSiteError,
    UnsupportedLambdaFormError,
    UnsupportedMethodBodyError,
)
from .generator import InliningGenerator
from .lambdas import extract_lambda
from .models import (
    ArgumentBinding,
    CallSiteSpan,
    Diagnostic,
    DiagnosticSeverity,
    GeneratedSource,
    GenerationResult,
    InlinedMethod,
    ParameterDescriptor,
    RenderedBlock,
    TriggerDescriptor,
)
from .parser import CSharpParser, SourceDocument
from .semantic import DeclarationIndex, MethodSymbol, SemanticModel, SymbolResolution
from .splicer import splice_body
from .template import PlaceholderStyle, Template, render
from .template_registry import CallableTemplate, resolve_template

__all__ = [
    # Generator
    "InliningGenerator",
    "InliningConfig",
    "load_config",
    # Parsing and symbols
    "CSharpParser",
    "SourceDocument",
    "DeclarationIndex",
    "MethodSymbol",
    "SemanticModel",
    "SymbolResolution",
    # Pipeline stages
    "resolve_template",
    "CallableTemplate",
    "extract_lambda",
    "bind_arguments",
    "CallArgument",
    "InvocationInfo",
    "Template",
    "PlaceholderStyle",
    "render",
    "splice_body",
    # Models
    "ArgumentBinding",
    "CallSiteSpan",
    "Diagnostic",
    "DiagnosticSeverity",
    "GeneratedSource",
    "GenerationResult",
    "InlinedMethod",
    "ParameterDescriptor",
    "RenderedBlock",
    "TriggerDescriptor",
    # Errors
    "InliningError",
    "ParserError",
    "ConfigError",
    "SymbolResolutionError",
    "DeclarationNotFoundError",
    "MissingTemplateError",
    "UnsupportedLambdaFormError",
    "LambdaSlotNotFoundError",
    "AmbiguousLambdaSlotError",
    "NoLambdaSlotError",
    "DeclaringTypeNotFoundError",
    "UnsupportedCallSiteError",
    "UnsupportedMethodBodyError",
    "OverlappingCallSitesError",
]
