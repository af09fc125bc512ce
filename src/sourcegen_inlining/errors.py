"""Error classes for the inlining source generator.

This module provides:
- InliningError: Base exception class for all generator errors
- ParserError, ConfigError: Infrastructure exceptions
- SymbolResolutionError, DeclarationNotFoundError: Semantic lookup exceptions
- MissingTemplateError, UnsupportedLambdaFormError, LambdaSlotNotFoundError,
  AmbiguousLambdaSlotError, NoLambdaSlotError: Call-site transformation exceptions
- UnsupportedCallSiteError, UnsupportedMethodBodyError, OverlappingCallSitesError,
  DeclaringTypeNotFoundError: Splicing and emission exceptions

Every error carries a stable diagnostic ``code`` so hosts can report it as a
build diagnostic attached to the triggering source location.
"""


class InliningError(Exception):
    """Base exception for all inlining generator errors."""

    code = "SGI000"


class ParserError(InliningError):
    """Raised when C# source cannot be parsed or the grammar is unavailable."""

    code = "SGI001"


class ConfigError(InliningError):
    """Raised when generator configuration is invalid."""

    code = "SGI002"


class SymbolResolutionError(InliningError):
    """Raised when an identifier does not resolve to exactly one symbol."""

    code = "SGI003"


class DeclarationNotFoundError(InliningError):
    """Raised when a configured trigger matches no method declaration."""

    code = "SGI004"


class MissingTemplateError(InliningError):
    """Raised when an invoked callable has no declared inlining template."""

    code = "SGI005"


class UnsupportedLambdaFormError(InliningError):
    """Raised when a lambda lacks a parenthesized parameter list or a block body."""

    code = "SGI006"


class LambdaSlotNotFoundError(InliningError):
    """Raised when no call argument is the inlined lambda."""

    code = "SGI007"


class AmbiguousLambdaSlotError(InliningError):
    """Raised when more than one call argument is an inlinable lambda."""

    code = "SGI008"


class NoLambdaSlotError(InliningError):
    """Raised when a template needs a lambda but the call has no lambda slot."""

    code = "SGI009"


class DeclaringTypeNotFoundError(InliningError):
    """Raised when a trigger method is not nested inside a type declaration."""

    code = "SGI010"


class UnsupportedCallSiteError(InliningError):
    """Raised when an inlinable call is not a whole expression statement."""

    code = "SGI011"


class UnsupportedMethodBodyError(InliningError):
    """Raised when a trigger method has no block body to splice into."""

    code = "SGI012"


class OverlappingCallSitesError(InliningError):
    """Raised when call-site spans overlap or fall outside the method body."""

    code = "SGI013"
