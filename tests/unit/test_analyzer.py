"""Unit tests for declan.pipeline.analyzer — file aggregation, conflict
isolation, strict mode, the scope pre-pass, and idempotence.
"""
from __future__ import annotations

import pytest

from declan.ast.nodes import (
    Annotation,
    ArrayLit,
    ConstantBinding,
    Declaration,
    Expression,
    Identifier,
    Member,
    ObjectLit,
    ParsedFile,
    SourceFile,
    StringLit,
)
from declan.diagnostics import DiagnosticKind, DiagnosticSeverity
from declan.handlers import Collaborators, ComponentHandler, Handler, ModuleHandler, ServiceHandler
from declan.pipeline import Analyzer, analyze, analyzed_file_to_dict
from declan.plugins.registry import PluginRegistry
from declan.resources import InMemoryResourceLoader
from declan.scopes import AnalysisContext, ScopeEntry


def _options(**entries: Expression) -> ObjectLit:
    return ObjectLit(entries=tuple(entries.items()))


def _decl(name: str, *annotations: Annotation, members: tuple[Member, ...] = (), path: str = "app.ts") -> Declaration:
    return Declaration(name=name, annotations=annotations, members=members, source_path=path)


def _component(selector: str = "app-root", **extra: Expression) -> Annotation:
    return Annotation("Component", (_options(selector=StringLit(selector), **extra),))


def _file(*declarations: Declaration, path: str = "app.ts", constants: tuple[ConstantBinding, ...] = ()) -> ParsedFile:
    return ParsedFile(source_file=SourceFile(path), declarations=declarations, constants=constants)


def _analyze_one(parsed: ParsedFile, **kwargs: object):  # noqa: ANN202
    [analyzed] = analyze([parsed], resource_loader=InMemoryResourceLoader({"app.html": "<app></app>"}), **kwargs)
    return analyzed


# ===========================================================================
# Aggregation
# ===========================================================================


class TestAggregation:
    def test_unmatched_declarations_are_dropped_silently(self) -> None:
        analyzed = _analyze_one(_file(_decl("Plain"), _decl("Odd", Annotation("Deprecated"))))
        assert analyzed.declarations == ()
        assert analyzed.diagnostics == ()
        assert not analyzed.has_errors

    def test_single_exclusive_gives_one_result(self) -> None:
        analyzed = _analyze_one(_file(_decl("Svc", Annotation("Service"))))
        item = analyzed.get("Svc")
        assert item is not None
        assert item.handler_names == ["service"]
        assert [a.name for a in item.artifacts] == ["serviceDef"]

    def test_exclusive_and_combinable_give_two_results(self) -> None:
        decl = _decl(
            "AppComponent",
            _component(template=StringLit("<p></p>")),
            members=(Member("title", (Annotation("Input"),)),),
        )
        item = _analyze_one(_file(decl)).get("AppComponent")
        assert item is not None
        assert item.handler_names == ["host-metadata", "component"]
        assert all(r.artifacts for r in item.results)
        assert item.declaration is decl
        assert [a.name for a in item.artifacts] == ["baseDef", "componentDef", "componentFactory"]

    def test_source_order_preserved(self) -> None:
        analyzed = _analyze_one(_file(
            _decl("B", Annotation("Service")),
            _decl("A", Annotation("Injectable")),
        ))
        assert [d.name for d in analyzed.declarations] == ["B", "A"]

    def test_every_result_has_artifacts(self) -> None:
        analyzed = _analyze_one(_file(
            _decl("P", Annotation("Pipe", (_options(name=StringLit("upper")),))),
            _decl("M", Annotation("Module")),
            _decl("D", Annotation("Directive")),
        ))
        assert len(analyzed.declarations) == 3
        for item in analyzed.declarations:
            for result in item.results:
                assert len(result.artifacts) >= 1


# ===========================================================================
# Conflicts and failures
# ===========================================================================


class TestConflicts:
    def test_conflict_is_isolated_to_its_declaration(self) -> None:
        analyzed = _analyze_one(_file(
            _decl("Confused", Annotation("Service"), _component()),
            _decl("AppComponent", _component(templateUrl=StringLit("app.html"))),
        ))
        conflicts = [
            d for d in analyzed.diagnostics if d.kind is DiagnosticKind.MULTIPLE_EXCLUSIVE_ANNOTATIONS
        ]
        assert len(conflicts) == 1
        assert conflicts[0].location.declaration == "Confused"
        assert analyzed.get("Confused") is None

        sibling = analyzed.get("AppComponent")
        assert sibling is not None
        assert len(sibling.results) == 1
        assert len(sibling.artifacts) >= 1

    def test_conflict_drops_combinable_results_too(self) -> None:
        decl = _decl(
            "Confused",
            Annotation("Service"),
            Annotation("Injectable"),
            members=(Member("value", (Annotation("Input"),)),),
        )
        analyzed = _analyze_one(_file(decl))
        assert analyzed.declarations == ()
        assert len(analyzed.diagnostics) == 1

    def test_failed_exclusive_keeps_combinable_result(self) -> None:
        decl = _decl(
            "Broken",
            _component(),  # no template
            members=(Member("value", (Annotation("Output"),)),),
        )
        analyzed = _analyze_one(_file(decl))
        item = analyzed.get("Broken")
        assert item is not None
        assert item.handler_names == ["host-metadata"]
        [failure] = analyzed.diagnostics
        assert failure.kind is DiagnosticKind.HANDLER_ANALYSIS_FAILURE
        assert failure.handler == "component"
        assert analyzed.has_errors

    def test_missing_template_is_a_handler_failure(self) -> None:
        analyzed = _analyze_one(_file(_decl("C", _component(templateUrl=StringLit("missing.html")))))
        assert analyzed.declarations == ()
        [failure] = analyzed.diagnostics
        assert "missing.html" in failure.message

    def test_one_file_failing_does_not_stop_the_batch(self) -> None:
        bad = _file(_decl("X", Annotation("Service"), Annotation("Pipe")), path="bad.ts")
        good = _file(_decl("Y", Annotation("Service"), path="good.ts"), path="good.ts")
        first, second = analyze([bad, good])
        assert first.has_errors
        assert [d.name for d in second.declarations] == ["Y"]


# ===========================================================================
# Strict mode
# ===========================================================================


class TestStrict:
    def _file(self) -> ParsedFile:
        return _file(_decl("Svc", Annotation("Service", (_options(factory=Identifier("MISSING")),))))

    def test_warning_by_default(self) -> None:
        analyzed = _analyze_one(self._file())
        [diagnostic] = analyzed.all_diagnostics
        assert diagnostic.severity is DiagnosticSeverity.WARNING
        assert not analyzed.has_errors

    def test_promoted_when_strict(self) -> None:
        analyzed = _analyze_one(self._file(), strict=True)
        [diagnostic] = analyzed.all_diagnostics
        assert diagnostic.severity is DiagnosticSeverity.ERROR
        assert analyzed.has_errors
        # the declaration still gets its result
        assert analyzed.get("Svc") is not None


# ===========================================================================
# Constants and scopes
# ===========================================================================


class TestConstantsAndScopes:
    def test_constants_of_the_file_are_visible(self) -> None:
        parsed = _file(
            _decl("AppComponent", Annotation(
                "Component", (_options(selector=Identifier("SELECTOR"), template=StringLit("t")),)
            )),
            constants=(ConstantBinding("SELECTOR", StringLit("app-root")),),
        )
        item = _analyze_one(parsed).get("AppComponent")
        assert item is not None
        definition = item.artifacts[0].initializer
        assert isinstance(definition, ObjectLit)
        assert definition.get("selector") == StringLit("app-root")

    def test_module_scope_reaches_component_in_other_file(self) -> None:
        module_file = _file(
            _decl(
                "AppModule",
                Annotation("Module", (_options(declarations=ArrayLit(elements=(Identifier("AppComponent"),))),)),
                path="app.module.ts",
            ),
            path="app.module.ts",
        )
        component_file = _file(
            _decl("AppComponent", _component(template=StringLit("t")), path="app.component.ts"),
            path="app.component.ts",
        )
        _, analyzed = analyze([module_file, component_file])
        item = analyzed.get("AppComponent")
        assert item is not None
        factory = item.artifacts[-1]
        assert factory.statements[0].target == "AppComponent.moduleScope"
        assert factory.statements[0].value == Identifier("AppModule")

    def test_prepare_counts_new_entries_and_is_insert_if_absent(self) -> None:
        files = [
            _file(
                _decl("ModA", Annotation("Module", (_options(declarations=ArrayLit(elements=(Identifier("C"),))),))),
                _decl("ModB", Annotation("Module", (_options(declarations=ArrayLit(elements=(Identifier("C"),))),))),
                _decl("C", _component(template=StringLit("t"))),
            )
        ]
        analyzer = Analyzer.for_files(files, resource_loader=InMemoryResourceLoader())
        assert analyzer.context.scopes.lookup(("app.ts", "C")) == ScopeEntry(module="ModA", module_path="app.ts")
        assert analyzer.context.version == 1
        assert analyzer.prepare(files) == 0

    def test_ambiguous_reference_stays_local(self) -> None:
        files = [
            _file(
                _decl(
                    "Mod",
                    Annotation("Module", (_options(declarations=ArrayLit(elements=(Identifier("C"),))),)),
                    path="m.ts",
                ),
                path="m.ts",
            ),
            _file(_decl("C", Annotation("Directive"), path="a.ts"), path="a.ts"),
            _file(_decl("C", Annotation("Directive"), path="b.ts"), path="b.ts"),
        ]
        analyzer = Analyzer.for_files(files)
        assert ("m.ts", "C") in analyzer.context.scopes
        assert ("a.ts", "C") not in analyzer.context.scopes


# ===========================================================================
# Construction and idempotence
# ===========================================================================


class TestAnalyzer:
    def test_default_handlers_follow_registry(self) -> None:
        names = [h.name for h in Analyzer().handlers]
        assert names[:2] == ["host-metadata", "component"]

    def test_explicit_handlers(self) -> None:
        analyzer = Analyzer(handlers=[ServiceHandler()])
        analyzed = analyzer.analyze_file(_file(_decl("S", Annotation("Service")), _decl("P", Annotation("Pipe"))))
        assert [d.name for d in analyzed.declarations] == ["S"]
        assert analyzed.diagnostics == ()

    def test_handler_selection_by_name(self) -> None:
        parsed = _file(_decl("S", Annotation("Service")))
        analyzer = Analyzer.for_files([parsed], handler_names=["pipe"])
        assert [h.name for h in analyzer.handlers] == ["pipe"]
        assert analyzer.analyze_file(parsed).declarations == ()

    def test_collaborators_share_context_scopes(self) -> None:
        context = AnalysisContext()
        collaborators = Collaborators(scopes=context.scopes)
        analyzer = Analyzer(collaborators=collaborators, context=context)
        assert all(h.collaborators.scopes is context.scopes for h in analyzer.handlers)

    def test_mismatched_scope_registries_are_rejected(self) -> None:
        collaborators = Collaborators()
        with pytest.raises(ValueError, match="same ScopeRegistry"):
            Analyzer(collaborators=collaborators, context=AnalysisContext(strict=True))

    def test_context_defaults_to_collaborator_scopes(self) -> None:
        collaborators = Collaborators()
        handlers = [ModuleHandler(collaborators), ComponentHandler(collaborators)]
        analyzer = Analyzer(handlers=handlers, collaborators=collaborators)
        assert analyzer.context.scopes is collaborators.scopes
        module = _decl(
            "AppModule",
            Annotation("Module", (_options(declarations=ArrayLit(elements=(Identifier("C"),))),)),
        )
        assert analyzer.prepare([_file(module, _decl("C", _component(template=StringLit("t"))))]) == 1
        assert collaborators.scopes.lookup(("app.ts", "C")) == ScopeEntry(module="AppModule", module_path="app.ts")

    def test_empty_custom_registry_gives_no_handlers(self) -> None:
        registry: PluginRegistry[Handler] = PluginRegistry(Handler, "empty")
        parsed = _file(_decl("S", Annotation("Service")))
        analyzer = Analyzer.for_files([parsed], registry=registry)
        assert analyzer.handlers == ()
        assert analyzer.analyze_file(parsed).declarations == ()

    def test_idempotent(self) -> None:
        parsed = _file(
            _decl("Confused", Annotation("Service"), Annotation("Module")),
            _decl(
                "AppComponent",
                _component(template=StringLit("t"), providers=Identifier("UNRESOLVED")),
                members=(Member("value", (Annotation("Input", (StringLit("foo"),)),)),),
            ),
        )
        analyzer = Analyzer.for_files([parsed])
        first = analyzer.analyze_file(parsed)
        second = analyzer.analyze_file(parsed)
        assert first == second
        assert first is not second

    def test_idempotent_across_runs(self) -> None:
        parsed = _file(_decl("Svc", Annotation("Service", (_options(id=StringLit("svc")),))))
        first = analyzed_file_to_dict(analyze([parsed])[0])
        second = analyzed_file_to_dict(analyze([parsed])[0])
        assert first == second

    @pytest.mark.parametrize("count", [0, 1, 5])
    def test_analyze_files_returns_one_result_per_file(self, count: int) -> None:
        files = [_file(path=f"f{i}.ts") for i in range(count)]
        assert len(Analyzer.for_files(files).analyze_files(files)) == count
