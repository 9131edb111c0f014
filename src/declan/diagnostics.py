"""Diagnostic types produced by the analysis pipeline.

A ``Diagnostic`` is a structured report attached to a declaration or one
of its members.  The pipeline emits them for matcher conflicts and for
isolated handler failures; handlers emit their own soft diagnostics
(e.g. an annotation argument that could not be statically resolved).
Rendering them is left to the caller.
"""
from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import Enum

from declan.ast.nodes import Declaration, Member, Span


class DiagnosticSeverity(Enum):
    """Severity levels for diagnostics."""

    ERROR = "error"
    WARNING = "warning"


class DiagnosticKind(Enum):
    """What a diagnostic reports, with its stable machine-readable code."""

    MULTIPLE_EXCLUSIVE_ANNOTATIONS = "DCL001"
    HANDLER_ANALYSIS_FAILURE = "DCL002"
    HANDLER_COMPILE_FAILURE = "DCL003"
    HANDLER_DETECTION_FAILURE = "DCL004"
    STATIC_EVALUATION_UNRESOLVED = "DCL101"
    INVALID_ANNOTATION_ARGUMENT = "DCL102"

    @property
    def code(self) -> str:
        return self.value

    @property
    def title(self) -> str:
        """CamelCase name, e.g. ``MultipleExclusiveAnnotations``."""
        return "".join(part.capitalize() for part in self.name.split("_"))


@dataclass(frozen=True)
class Location:
    """Where a diagnostic points: a declaration, optionally one of its members.

    Parameters
    ----------
    source_path:
        The file the declaration was parsed from.
    declaration:
        Name of the declaration.
    member:
        Name of the member, when the finding is member-scoped.
    span:
        Source location of the declaration or member.
    """

    source_path: str
    declaration: str
    member: str | None = None
    span: Span = field(default_factory=Span.unknown)

    @classmethod
    def of(cls, declaration: Declaration, member: Member | None = None) -> "Location":
        """Build a location for ``declaration`` (and ``member``, if given)."""
        return cls(
            source_path=declaration.source_path,
            declaration=declaration.name,
            member=member.name if member is not None else None,
            span=member.span if member is not None else declaration.span,
        )

    def __str__(self) -> str:
        target = self.declaration if self.member is None else f"{self.declaration}.{self.member}"
        if self.span.line:
            return f"{self.source_path}:{self.span.line}:{self.span.col} {target}"
        return f"{self.source_path} {target}" if self.source_path else target


@dataclass(frozen=True)
class Diagnostic:
    """A single pipeline finding.

    Parameters
    ----------
    severity:
        How serious this finding is.
    kind:
        What is being reported.
    message:
        Human-readable description of the problem.
    location:
        The declaration or member the finding is scoped to.
    handler:
        Name of the handler the finding is scoped to, if any.
    suggestion:
        Optional human-readable fix suggestion.
    """

    severity: DiagnosticSeverity
    kind: DiagnosticKind
    message: str
    location: Location
    handler: str | None = None
    suggestion: str | None = None

    def __str__(self) -> str:
        prefix = f"[{self.code}] {self.severity.name}"
        scope = f" ({self.handler})" if self.handler else ""
        suggestion_part = f" (hint: {self.suggestion})" if self.suggestion else ""
        return f"{prefix} at {self.location}{scope}: {self.message}{suggestion_part}"

    @property
    def code(self) -> str:
        return self.kind.code

    @property
    def is_error(self) -> bool:
        """Return True if this diagnostic should fail the analysis."""
        return self.severity == DiagnosticSeverity.ERROR

    def promote(self) -> "Diagnostic":
        """Return this diagnostic with WARNING promoted to ERROR."""
        if self.severity != DiagnosticSeverity.WARNING:
            return self
        return dataclasses.replace(self, severity=DiagnosticSeverity.ERROR)


def error(
    kind: DiagnosticKind,
    message: str,
    location: Location,
    handler: str | None = None,
    suggestion: str | None = None,
) -> Diagnostic:
    return Diagnostic(DiagnosticSeverity.ERROR, kind, message, location, handler, suggestion)


def warning(
    kind: DiagnosticKind,
    message: str,
    location: Location,
    handler: str | None = None,
    suggestion: str | None = None,
) -> Diagnostic:
    return Diagnostic(DiagnosticSeverity.WARNING, kind, message, location, handler, suggestion)
