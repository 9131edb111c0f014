"""Matching handlers against a declaration and resolving conflicts.

Every handler's ``detect`` runs independently, in registry order.  At
most one ``EXCLUSIVE`` match may survive; when two or more exclusive
handlers claim the same declaration the declaration is reported and all
of its candidates are discarded, while combinable handlers coexist
freely with a single exclusive match.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence, Sized
from dataclasses import dataclass
from typing import Any

from declan.ast.nodes import Declaration
from declan.diagnostics import Diagnostic, DiagnosticKind, Location, error
from declan.handlers.base import Handler
from declan.pipeline.results import Match

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchOutcome:
    """Surviving matches (registry order) and any matcher diagnostics."""

    matches: tuple[Match, ...] = ()
    diagnostics: tuple[Diagnostic, ...] = ()


def has_payload(detection: object) -> bool:
    """Return whether a detection result counts as a match.

    ``None`` and empty containers mean the handler found nothing.
    """
    if detection is None:
        return False
    return not (isinstance(detection, Sized) and len(detection) == 0)


def detect_candidates(
    declaration: Declaration,
    handlers: Sequence[Handler[Any, Any]],
) -> tuple[list[Match], list[Diagnostic]]:
    """Run every handler's ``detect``; a raising ``detect`` is isolated."""
    candidates: list[Match] = []
    diagnostics: list[Diagnostic] = []
    for handler in handlers:
        try:
            detection = handler.detect(declaration)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Handler %r failed to detect %s: %s", handler.name, declaration.name, exc)
            diagnostics.append(error(
                DiagnosticKind.HANDLER_DETECTION_FAILURE,
                f"Handler {handler.name!r} failed during detection: {exc}",
                Location.of(declaration),
                handler=handler.name,
                suggestion="Please report this as a bug in the handler",
            ))
            continue
        if has_payload(detection):
            candidates.append(Match(handler=handler, detection=detection))
    return candidates, diagnostics


def match_declaration(
    declaration: Declaration,
    handlers: Sequence[Handler[Any, Any]],
) -> MatchOutcome:
    """Return the matches that proceed to analysis for ``declaration``.

    Parameters
    ----------
    declaration:
        The declaration to match.
    handlers:
        The handler registry, in order.

    Returns
    -------
    MatchOutcome
        No matches when nothing applies (not an error) or when exclusive
        handlers conflict (reported as ``MULTIPLE_EXCLUSIVE_ANNOTATIONS``).
    """
    candidates, diagnostics = detect_candidates(declaration, handlers)
    if not candidates:
        return MatchOutcome(diagnostics=tuple(diagnostics))

    exclusive = [m for m in candidates if m.handler.is_exclusive]
    if len(exclusive) > 1:
        names = ", ".join(repr(m.handler.name) for m in exclusive)
        logger.debug("Dropping %s: conflicting exclusive handlers %s", declaration.name, names)
        diagnostics.append(error(
            DiagnosticKind.MULTIPLE_EXCLUSIVE_ANNOTATIONS,
            f"{declaration.name} is claimed by multiple exclusive handlers: {names}",
            Location.of(declaration),
            suggestion="Keep only one of the conflicting annotations",
        ))
        return MatchOutcome(diagnostics=tuple(diagnostics))

    logger.debug(
        "Matched %s with %s",
        declaration.name,
        [m.handler.name for m in candidates],
    )
    return MatchOutcome(matches=tuple(candidates), diagnostics=tuple(diagnostics))
