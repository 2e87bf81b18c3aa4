"""Error types for nit.

Every error raised by the engine derives from ``NitError`` so that the
CLI and embedding applications can catch the whole family at once.
Each concrete error also subclasses the closest built-in exception so
that callers who only know about ``ValueError`` or ``LookupError`` still
handle it correctly.

Reconciliation never raises: anchors reporting "gone" are ordinary
removals, not failures.
"""
from __future__ import annotations

from collections.abc import Iterable, Sequence


class NitError(Exception):
    """Base class for all nit errors."""


class InvalidKindError(NitError, ValueError):
    """Raised when an annotation kind is outside the enumerated set."""

    def __init__(self, kind: object, allowed: Iterable[str]) -> None:
        self.kind = kind
        self.allowed = tuple(allowed)
        super().__init__(
            f"Invalid annotation kind: {kind} (must be one of: {', '.join(self.allowed)})"
        )


class EmptyDocumentKeyError(NitError, ValueError):
    """Raised when an operation targets an unnamed document."""

    def __init__(self) -> None:
        super().__init__("Cannot annotate an unnamed document")


class NoAnnotationError(NitError, LookupError):
    """Raised by strict lookups when no annotation sits on the target line."""

    def __init__(self, key: str, line: int | None = None) -> None:
        self.key = key
        self.line = line
        where = f"{key}:{line}" if line is not None else key
        super().__init__(f"No annotation at {where}")


class LineOutOfRangeError(NitError, ValueError):
    """Raised when an add targets a line outside an open document."""

    def __init__(self, key: str, line: int, line_count: int) -> None:
        self.key = key
        self.line = line
        self.line_count = line_count
        super().__init__(
            f"Line {line} is outside {key} (document has {line_count} line(s))"
        )


class DocumentNotOpenError(NitError, LookupError):
    """Raised when the workspace does not hold the requested document."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Document is not open: {key}")


class DeliveryError(NitError):
    """Raised by a single delivery sink that could not accept the report."""


class DeliveryUnavailableError(NitError, RuntimeError):
    """Raised when every configured delivery sink failed.

    Parameters
    ----------
    failures:
        ``(sink_name, reason)`` pairs in the order the sinks were tried.
    """

    def __init__(self, failures: Sequence[tuple[str, str]]) -> None:
        self.failures = list(failures)
        if self.failures:
            detail = "; ".join(f"{name}: {reason}" for name, reason in self.failures)
        else:
            detail = "no sinks configured"
        super().__init__(f"Failed to export: no delivery sink available ({detail})")


class ConfigError(NitError, ValueError):
    """Raised when configuration values have the wrong type or an unknown name."""


class ScriptError(NitError, ValueError):
    """Raised when a scripted-session step is malformed.

    Parameters
    ----------
    index:
        0-based position of the offending step, or ``None`` for
        script-level problems.
    message:
        Human-readable description of the problem.
    """

    def __init__(self, message: str, index: int | None = None) -> None:
        self.index = index
        prefix = f"step {index + 1}: " if index is not None else ""
        super().__init__(f"{prefix}{message}")


__all__ = [
    "ConfigError",
    "DeliveryError",
    "DeliveryUnavailableError",
    "DocumentNotOpenError",
    "EmptyDocumentKeyError",
    "InvalidKindError",
    "LineOutOfRangeError",
    "NitError",
    "NoAnnotationError",
    "ScriptError",
]
