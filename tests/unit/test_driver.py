"""Unit tests for declan.pipeline.driver — artifact normalization and
failure isolation in analyze and compile.
"""
from __future__ import annotations

import logging
from collections.abc import Callable

import pytest

from declan.ast.nodes import Declaration, Member, NullLit, StringLit
from declan.diagnostics import DiagnosticKind, Location, warning
from declan.handlers import AnalysisOutput, CompiledArtifact, Handler, HandlerError
from declan.pipeline.driver import EmptyCompilationError, normalize_artifacts, run_match
from declan.pipeline.results import Match
from declan.resources import ResourceNotFound

_DECL = Declaration(name="Target", members=(Member("value"),), source_path="target.ts")
_ARTIFACT = CompiledArtifact(name="targetDef", initializer=NullLit())


class _ScriptedHandler(Handler[str, str]):
    """Handler whose analyze and compile steps are supplied by the test."""

    name = "scripted"

    def __init__(
        self,
        analyze: Callable[[Declaration, str], object] | None = None,
        compile: Callable[[Declaration, str], object] | None = None,  # noqa: A002
    ) -> None:
        super().__init__()
        self._analyze = analyze or (lambda d, det: AnalysisOutput(analysis=det))
        self._compile = compile or (lambda d, a: _ARTIFACT)

    def detect(self, declaration: Declaration) -> str | None:
        return "detected"

    def analyze(self, declaration: Declaration, detection: str) -> AnalysisOutput[str]:
        return self._analyze(declaration, detection)  # type: ignore[return-value]

    def compile(self, declaration: Declaration, analysis: str) -> CompiledArtifact:
        return self._compile(declaration, analysis)  # type: ignore[return-value]


def _raise(exc: Exception) -> Callable[..., object]:
    def step(*args: object) -> object:
        raise exc

    return step


def _run(handler: _ScriptedHandler):  # noqa: ANN202
    return run_match(_DECL, Match(handler=handler, detection="detected"))


class TestNormalizeArtifacts:
    def test_single(self) -> None:
        assert normalize_artifacts(_ARTIFACT) == (_ARTIFACT,)

    def test_list(self) -> None:
        other = CompiledArtifact(name="other", initializer=StringLit("x"))
        assert normalize_artifacts([_ARTIFACT, other]) == (_ARTIFACT, other)

    def test_empty(self) -> None:
        with pytest.raises(EmptyCompilationError):
            normalize_artifacts([])

    @pytest.mark.parametrize("output", [None, "targetDef", [_ARTIFACT, "extra"]])
    def test_wrong_type(self, output: object) -> None:
        with pytest.raises(TypeError):
            normalize_artifacts(output)


class TestRunMatch:
    def test_success(self) -> None:
        outcome = _run(_ScriptedHandler())
        assert outcome.diagnostics == ()
        assert outcome.result is not None
        assert outcome.result.handler_name == "scripted"
        assert outcome.result.analysis == "detected"
        assert outcome.result.artifacts == (_ARTIFACT,)

    def test_soft_diagnostics_kept_on_result(self) -> None:
        soft = warning(DiagnosticKind.STATIC_EVALUATION_UNRESOLVED, "meh", Location.of(_DECL))
        handler = _ScriptedHandler(analyze=lambda d, det: AnalysisOutput(analysis=det, diagnostics=(soft,)))
        outcome = _run(handler)
        assert outcome.result is not None
        assert outcome.result.diagnostics == (soft,)
        assert outcome.diagnostics == ()

    def test_handler_error_in_analysis(self) -> None:
        member = _DECL.members[0]
        outcome = _run(_ScriptedHandler(analyze=_raise(HandlerError("bad shape", member=member))))
        assert outcome.result is None
        [diagnostic] = outcome.diagnostics
        assert diagnostic.kind is DiagnosticKind.HANDLER_ANALYSIS_FAILURE
        assert diagnostic.is_error
        assert diagnostic.message == "bad shape"
        assert diagnostic.handler == "scripted"
        assert diagnostic.location.member == "value"

    def test_resource_failure_in_analysis(self) -> None:
        outcome = _run(_ScriptedHandler(analyze=_raise(ResourceNotFound("app.html"))))
        [diagnostic] = outcome.diagnostics
        assert diagnostic.kind is DiagnosticKind.HANDLER_ANALYSIS_FAILURE
        assert "app.html" in diagnostic.message
        assert diagnostic.suggestion is not None

    def test_unexpected_exception_in_analysis(self) -> None:
        outcome = _run(_ScriptedHandler(analyze=_raise(ZeroDivisionError("division by zero"))))
        [diagnostic] = outcome.diagnostics
        assert diagnostic.message.startswith("Internal error in handler 'scripted' during analysis")

    def test_analyze_returning_wrong_type(self) -> None:
        outcome = _run(_ScriptedHandler(analyze=lambda d, det: det))
        assert outcome.result is None
        assert outcome.diagnostics[0].kind is DiagnosticKind.HANDLER_ANALYSIS_FAILURE

    def test_compile_failure(self) -> None:
        outcome = _run(_ScriptedHandler(compile=_raise(HandlerError("cannot emit"))))
        assert outcome.result is None
        [diagnostic] = outcome.diagnostics
        assert diagnostic.kind is DiagnosticKind.HANDLER_COMPILE_FAILURE
        assert diagnostic.message == "cannot emit"

    def test_empty_compile_output_is_a_failure(self) -> None:
        outcome = _run(_ScriptedHandler(compile=lambda d, a: []))
        assert outcome.result is None
        assert outcome.diagnostics[0].kind is DiagnosticKind.HANDLER_COMPILE_FAILURE

    def test_failure_is_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="declan.pipeline.driver"):
            _run(_ScriptedHandler(analyze=_raise(HandlerError("bad shape"))))
        assert "scripted" in caplog.text
        assert "bad shape" in caplog.text
