"""Driving a match through ``analyze`` and ``compile``.

A failure in either step, whether a ``HandlerError``, a failed resource
load or a bug in the handler, is turned into a diagnostic scoped to the
declaration and the handler.  The match then contributes nothing;
sibling matches and other declarations are unaffected.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from declan.ast.nodes import Declaration
from declan.diagnostics import Diagnostic, DiagnosticKind, Location, error
from declan.handlers.base import AnalysisOutput, CompiledArtifact, HandlerError
from declan.pipeline.results import AnalysisResult, Match
from declan.resources import ResourceLoadError

logger = logging.getLogger(__name__)


class EmptyCompilationError(ValueError):
    """Raised when ``compile`` returns no artifacts."""


@dataclass(frozen=True)
class DriverOutcome:
    """The result of one match, or ``None`` if the match failed."""

    result: AnalysisResult | None
    diagnostics: tuple[Diagnostic, ...] = ()


def normalize_artifacts(output: object) -> tuple[CompiledArtifact, ...]:
    """Accept one artifact or a sequence of them; return a non-empty tuple.

    Raises
    ------
    EmptyCompilationError
        If there are no artifacts.
    TypeError
        If anything other than ``CompiledArtifact`` instances is returned.
    """
    if isinstance(output, CompiledArtifact):
        artifacts: tuple[object, ...] = (output,)
    elif isinstance(output, Sequence) and not isinstance(output, (str, bytes)):
        artifacts = tuple(output)
    else:
        raise TypeError(f"compile returned {type(output).__name__}, expected CompiledArtifact")
    if not artifacts:
        raise EmptyCompilationError("compile returned no artifacts")
    for artifact in artifacts:
        if not isinstance(artifact, CompiledArtifact):
            raise TypeError(f"compile returned a {type(artifact).__name__} among its artifacts")
    return artifacts  # type: ignore[return-value]


def _failure(
    kind: DiagnosticKind,
    step: str,
    declaration: Declaration,
    match: Match,
    exc: Exception,
) -> Diagnostic:
    member = exc.member if isinstance(exc, HandlerError) else None
    if isinstance(exc, HandlerError):
        message = exc.message
        suggestion = None
    elif isinstance(exc, ResourceLoadError):
        message = str(exc)
        suggestion = "Check that the referenced resource exists and is readable"
    else:
        message = f"Internal error in handler {match.handler.name!r} during {step}: {exc}"
        suggestion = "Please report this as a bug in the handler"
    return error(
        kind,
        message,
        Location.of(declaration, member),
        handler=match.handler.name,
        suggestion=suggestion,
    )


def run_match(declaration: Declaration, match: Match) -> DriverOutcome:
    """Analyze and compile one match, isolating any failure.

    Parameters
    ----------
    declaration:
        The declaration being processed.
    match:
        A surviving match for ``declaration``.

    Returns
    -------
    DriverOutcome
        ``result`` is ``None`` when analysis or compilation failed; the
        failure is in ``diagnostics``.
    """
    handler = match.handler
    try:
        output = handler.analyze(declaration, match.detection)
        if not isinstance(output, AnalysisOutput):
            raise TypeError(f"analyze returned {type(output).__name__}, expected AnalysisOutput")
    except Exception as exc:  # noqa: BLE001
        logger.warning("Handler %r failed to analyze %s: %s", handler.name, declaration.name, exc)
        return DriverOutcome(
            result=None,
            diagnostics=(
                _failure(DiagnosticKind.HANDLER_ANALYSIS_FAILURE, "analysis", declaration, match, exc),
            ),
        )

    try:
        artifacts = normalize_artifacts(handler.compile(declaration, output.analysis))
    except Exception as exc:  # noqa: BLE001
        logger.warning("Handler %r failed to compile %s: %s", handler.name, declaration.name, exc)
        return DriverOutcome(
            result=None,
            diagnostics=(
                _failure(DiagnosticKind.HANDLER_COMPILE_FAILURE, "compilation", declaration, match, exc),
            ),
        )

    logger.debug(
        "Handler %r compiled %s into %d artifact(s)",
        handler.name,
        declaration.name,
        len(artifacts),
    )
    return DriverOutcome(
        result=AnalysisResult(
            handler=handler,
            analysis=output.analysis,
            diagnostics=tuple(output.diagnostics),
            artifacts=artifacts,
        )
    )
