"""Result types produced by one pipeline run.

Everything here is created fresh per run and never mutated afterwards;
analysing the same input again yields new, structurally equal objects.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from declan.ast.nodes import Declaration, SourceFile
from declan.diagnostics import Diagnostic
from declan.handlers.base import CompiledArtifact, Handler


@dataclass(frozen=True)
class Match:
    """A handler paired with the non-empty detection payload it produced."""

    handler: Handler[Any, Any]
    detection: Any


@dataclass(frozen=True)
class AnalysisResult:
    """The contribution of one successful match.

    Parameters
    ----------
    handler:
        The handler that produced this result.
    analysis:
        The handler's analysis payload.
    diagnostics:
        Soft diagnostics emitted by the handler's ``analyze`` step.
    artifacts:
        Compiled artifacts; never empty.
    """

    handler: Handler[Any, Any]
    analysis: Any
    diagnostics: tuple[Diagnostic, ...] = ()
    artifacts: tuple[CompiledArtifact, ...] = ()

    @property
    def handler_name(self) -> str:
        return self.handler.name


@dataclass(frozen=True)
class AnalyzedDeclaration:
    """A declaration together with its analysis results, in handler order."""

    declaration: Declaration
    results: tuple[AnalysisResult, ...]

    @property
    def name(self) -> str:
        return self.declaration.name

    @property
    def handler_names(self) -> list[str]:
        return [r.handler_name for r in self.results]

    @property
    def artifacts(self) -> list[CompiledArtifact]:
        """All artifacts of all results, in order."""
        return [a for r in self.results for a in r.artifacts]

    @property
    def diagnostics(self) -> list[Diagnostic]:
        return [d for r in self.results for d in r.diagnostics]


@dataclass(frozen=True)
class AnalyzedFile:
    """Terminal output of the pipeline for one parsed file.

    Parameters
    ----------
    source_file:
        The file that was analysed.
    declarations:
        Declarations with at least one result, in source order.
    diagnostics:
        Findings for the whole file: conflicts and isolated handler
        failures, including those of declarations that were dropped.
    """

    source_file: SourceFile
    declarations: tuple[AnalyzedDeclaration, ...] = ()
    diagnostics: tuple[Diagnostic, ...] = field(default=())

    def get(self, name: str) -> AnalyzedDeclaration | None:
        for analyzed in self.declarations:
            if analyzed.name == name:
                return analyzed
        return None

    @property
    def all_diagnostics(self) -> list[Diagnostic]:
        """File-level diagnostics followed by every result's diagnostics."""
        return [*self.diagnostics, *(d for a in self.declarations for d in a.diagnostics)]

    @property
    def has_errors(self) -> bool:
        return any(d.is_error for d in self.all_diagnostics)
