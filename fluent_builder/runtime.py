"""Support code imported by generated builder modules.

Kept free of the generator's own imports so that generated code only
depends on this module.
"""

from __future__ import annotations

import linecache
from typing import Any, NamedTuple, Sequence


class _Unset:
    """Marker for a field whose setter has not been called."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self):
        return (_Unset, ())


UNSET: Any = _Unset()


class BuildValidationError(ValueError):
    """Raised by a generated ``build()`` when the builder state is incomplete."""


class UninitializedFieldError(BuildValidationError):
    """A required field was never set before ``build()``."""

    def __init__(self, field_name: str, record_name: str | None = None) -> None:
        self.field_name = field_name
        self.record_name = record_name
        target = f"{record_name}.{field_name}" if record_name else field_name
        super().__init__(f"`{target}` must be initialized")


class BuildOutcome(NamedTuple):
    """Result of ``try_build()``: exactly one of ``value`` and ``error`` is set."""

    value: Any
    error: BuildValidationError | None

    @property
    def ok(self) -> bool:
        return self.error is None


class Diagnostic(NamedTuple):
    """A generation-time problem pinned to a source position."""

    severity: str
    message: str
    file: str
    line: int
    column: int
    field_name: str | None = None

    def format(self) -> str:
        return f"{self.file}:{self.line}:{self.column}: {self.severity}: {self.message}"


class BuilderDiagnosticError(SyntaxError):
    """Raised when a module holding builder diagnostics is executed.

    Subclasses SyntaxError so tracebacks point at the offending definition
    rather than at the generated code.
    """

    def __init__(self, diagnostics: Sequence[Diagnostic]) -> None:
        self.diagnostics = list(diagnostics)
        first = self.diagnostics[0]
        message = first.message
        if len(self.diagnostics) > 1:
            message += f" (and {len(self.diagnostics) - 1} more)"
        text = linecache.getline(first.file, first.line) or None
        super().__init__(message, (first.file, first.line, first.column + 1, text))


def emit_diagnostics(diagnostics: Sequence[Diagnostic]) -> None:
    """Surface generation-time diagnostics; called by generated code."""
    if diagnostics:
        raise BuilderDiagnosticError(diagnostics)


__all__ = [
    "UNSET",
    "BuildOutcome",
    "BuildValidationError",
    "BuilderDiagnosticError",
    "Diagnostic",
    "UninitializedFieldError",
    "emit_diagnostics",
]
