"""Plain-data rendering of analysis results.

``analyzed_file_to_dict`` turns an ``AnalyzedFile`` into dicts, lists
and scalars, ready for ``json.dumps`` or ``yaml.dump``.  Artifact
expressions are rendered with the same ``"kind"``-tagged shape the
declaration documents use.
"""
from __future__ import annotations

from declan.ast.serializer import ParsedFileSerializer
from declan.diagnostics import Diagnostic
from declan.handlers.base import CompiledArtifact
from declan.pipeline.results import AnalyzedFile

_EXPRESSIONS = ParsedFileSerializer()


def diagnostic_to_dict(diagnostic: Diagnostic) -> dict[str, object]:
    location = diagnostic.location
    return {
        "code": diagnostic.code,
        "kind": diagnostic.kind.title,
        "severity": diagnostic.severity.value,
        "message": diagnostic.message,
        "handler": diagnostic.handler,
        "suggestion": diagnostic.suggestion,
        "location": {
            "path": location.source_path,
            "declaration": location.declaration,
            "member": location.member,
            "line": location.span.line,
            "col": location.span.col,
        },
    }


def artifact_to_dict(artifact: CompiledArtifact) -> dict[str, object]:
    return {
        "name": artifact.name,
        "type": artifact.type,
        "initializer": _EXPRESSIONS.expr_to_dict(artifact.initializer),
        "statements": [
            {"target": s.target, "value": _EXPRESSIONS.expr_to_dict(s.value)}
            for s in artifact.statements
        ],
    }


def analyzed_file_to_dict(analyzed: AnalyzedFile) -> dict[str, object]:
    """Render ``analyzed`` as plain data."""
    return {
        "path": analyzed.source_file.path,
        "declarations": [
            {
                "name": item.name,
                "results": [
                    {
                        "handler": result.handler_name,
                        "artifacts": [artifact_to_dict(a) for a in result.artifacts],
                        "diagnostics": [diagnostic_to_dict(d) for d in result.diagnostics],
                    }
                    for result in item.results
                ],
            }
            for item in analyzed.declarations
        ],
        "diagnostics": [diagnostic_to_dict(d) for d in analyzed.diagnostics],
    }
