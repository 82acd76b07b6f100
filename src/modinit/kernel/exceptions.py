"""Unified exception hierarchy for modinit.

All generator exceptions inherit from ModInitException, so a build driver can
catch one type and report any failure of the pass.

Categories:
- ConfigurationException: the program's use of the marker is invalid
- StructuralException: the pass cannot proceed safely and must abort
- SourceUnitError: a source file cannot be read or parsed
"""

from __future__ import annotations


# =============================================================================
# Base Exception
# =============================================================================


class ModInitException(Exception):
    """Base exception for all modinit errors.

    Carries an optional error code and context dict for structured error data.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "MARKER_CORRUPT").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigurationException(ModInitException):
    """The program applies the startup marker in a way that cannot be honoured."""


class DuplicateMarkerError(ConfigurationException):
    """The startup marker is applied more than once to the same declaration."""

    def __init__(self, declaration: str, count: int = 2) -> None:
        self.declaration = declaration
        self.count = count
        super().__init__(
            message=f"'{declaration}' is marked with initialize_at_startup {count} times; apply it once",
            code="MARKER_DUPLICATE",
            context={"declaration": declaration, "count": count},
        )


# =============================================================================
# Structural Exceptions
# =============================================================================


class StructuralException(ModInitException):
    """Unrecoverable failure: the generator aborts and emits nothing."""


class MarkerDefinitionError(StructuralException):
    """The marker resolves, but its declared shape cannot be read."""

    def __init__(self, marker: str, reason: str) -> None:
        self.marker = marker
        self.reason = reason
        super().__init__(
            message=f"Marker '{marker}' is malformed: {reason}",
            code="MARKER_CORRUPT",
            context={"marker": marker},
        )


class MalformedPriorityError(StructuralException):
    """A marker application carries a priority that is not a compile-time int."""

    def __init__(self, declaration: str, reason: str, location: str | None = None) -> None:
        self.declaration = declaration
        self.reason = reason
        self.location = location
        where = f" ({location})" if location else ""
        super().__init__(
            message=f"Invalid startup priority on '{declaration}'{where}: {reason}",
            code="PRIORITY_MALFORMED",
            context={"declaration": declaration, "location": location},
        )


# =============================================================================
# Source Exceptions
# =============================================================================


class SourceUnitError(ModInitException):
    """A source unit could not be loaded into the compilation."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(
            message=f"Cannot load source unit '{path}': {reason}",
            code="SOURCE_SYNTAX",
            context={"path": path},
        )
