"""Diagnostic types and codes reported by the Oyster validator."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Final, Literal

Severity = Literal["error", "warning"]


@dataclass(frozen=True, slots=True)
class TextRange:
    """Zero-based line with a half-open column span."""

    line: int
    start: int
    end: int


@dataclass(frozen=True, slots=True)
class DiagnosticSpec:
    code: str
    message: str
    severity: Severity = "error"
    category: str | None = None


@dataclass(frozen=True, slots=True)
class Diagnostic:
    code: str
    message: str
    range: TextRange
    severity: Severity = "error"
    hint: str | None = None
    category: str | None = None

    @classmethod
    def from_spec(
        cls,
        spec: DiagnosticSpec,
        text_range: TextRange,
        message: str | None = None,
        *,
        hint: str | None = None,
    ) -> Diagnostic:
        return cls(
            code=spec.code,
            message=message or spec.message,
            range=text_range,
            severity=spec.severity,
            hint=hint,
            category=spec.category,
        )


SYNTAX_INVALID_COMMAND: Final[DiagnosticSpec] = DiagnosticSpec(
    code="SYNTAX_INVALID_COMMAND",
    message="Invalid Oyster command syntax. Expected: COMMAND [params]",
    category="syntax",
)

COMMAND_UNKNOWN: Final[DiagnosticSpec] = DiagnosticSpec(
    code="COMMAND_UNKNOWN",
    message="Unknown Oyster command.",
    category="command",
)

PARAM_MISSING_REQUIRED: Final[DiagnosticSpec] = DiagnosticSpec(
    code="PARAM_MISSING_REQUIRED",
    message="Missing required parameter.",
    category="parameter",
)

PARAM_INVALID_TYPE: Final[DiagnosticSpec] = DiagnosticSpec(
    code="PARAM_INVALID_TYPE",
    message="Parameter has the wrong type.",
    category="parameter",
)

PARAM_EXPECTED_NAMED: Final[DiagnosticSpec] = DiagnosticSpec(
    code="PARAM_EXPECTED_NAMED",
    message="Optional parameters must be in the form name=value",
    category="parameter",
)

PARAM_UNKNOWN_OPTIONAL: Final[DiagnosticSpec] = DiagnosticSpec(
    code="PARAM_UNKNOWN_OPTIONAL",
    message="Unknown optional parameter.",
    category="parameter",
)

VARIABLE_UNKNOWN: Final[DiagnosticSpec] = DiagnosticSpec(
    code="VARIABLE_UNKNOWN",
    message="Unknown variable.",
    category="variable",
)

VARIABLE_TYPE_MISMATCH: Final[DiagnosticSpec] = DiagnosticSpec(
    code="VARIABLE_TYPE_MISMATCH",
    message="Variable has the wrong type for this parameter.",
    category="variable",
)

VARIABLE_REDECLARED: Final[DiagnosticSpec] = DiagnosticSpec(
    code="VARIABLE_REDECLARED",
    message="Variable redeclared with a different type.",
    category="variable",
)

VARIABLE_UNKNOWN_PLACEHOLDER: Final[DiagnosticSpec] = DiagnosticSpec(
    code="VARIABLE_UNKNOWN_PLACEHOLDER",
    message="Interpolated string references an unknown variable.",
    severity="warning",
    category="variable",
)

COMPAT_VERSION: Final[DiagnosticSpec] = DiagnosticSpec(
    code="COMPAT_VERSION",
    message="Command is newer than the script's Oyster version.",
    severity="warning",
    category="compatibility",
)

COMPAT_GAME: Final[DiagnosticSpec] = DiagnosticSpec(
    code="COMPAT_GAME",
    message="Command is not supported by the script's game.",
    severity="warning",
    category="compatibility",
)


def has_errors(diagnostics: Iterable[Diagnostic]) -> bool:
    return any(diagnostic.severity == "error" for diagnostic in diagnostics)


def sort_diagnostics(diagnostics: Iterable[Diagnostic]) -> list[Diagnostic]:
    return sorted(diagnostics, key=lambda item: (item.range.line, item.range.start, item.code))
