"""Exclusive declaration-marker handlers.

A marker annotation says what a declaration *is*: a service, a
component, a module and so on.  A declaration can only be one of these,
so every marker handler is ``EXCLUSIVE``.

All markers share one shape::

    @Component({selector: "app-root", templateUrl: "app.html"})
    class AppComponent: ...

The optional single argument is an object literal of options.  Option
values are resolved with partial static evaluation: an option that
cannot be resolved produces a warning and is carried into the compiled
artifact as its original expression.  Options listed in
``reference_options`` hold references to other declarations rather than
constants; they are never evaluated and are recorded by name.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import ClassVar

from declan.ast.nodes import (
    Annotation,
    AnnotationKind,
    ArrayLit,
    AssignStatement,
    BoolLit,
    CallExpr,
    Declaration,
    Expression,
    Identifier,
    NullLit,
    NumberLit,
    ObjectLit,
    StringLit,
)
from declan.diagnostics import Diagnostic, DiagnosticKind, Location, warning
from declan.evaluator import UNKNOWN, is_unknown
from declan.handlers.base import (
    AnalysisOutput,
    CompiledArtifact,
    Exclusivity,
    Handler,
    HandlerError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MarkerDetection:
    """The marker annotation found on a declaration."""

    annotation: Annotation


@dataclass(frozen=True)
class MarkerMetadata:
    """Analysis payload shared by all marker handlers.

    Parameters
    ----------
    kind:
        The marker's annotation kind.
    argument:
        The options object literal as written, if any.
    options:
        Resolved option values; unresolved ones are ``UNKNOWN``.
    references:
        Names referenced by each reference option, e.g.
        ``{"declarations": ("AppComponent",)}``.
    extras:
        Handler-specific results, e.g. a loaded template.
    """

    kind: AnnotationKind
    argument: ObjectLit | None = None
    options: dict[str, object] = field(default_factory=dict)
    references: dict[str, tuple[str, ...]] = field(default_factory=dict)
    extras: dict[str, object] = field(default_factory=dict)


class MarkerHandler(Handler[MarkerDetection, MarkerMetadata]):
    """Base class for exclusive marker handlers.

    Subclasses set ``kind``, ``def_name`` and ``def_type``, and may
    list ``required_options`` and ``reference_options``.
    """

    exclusivity = Exclusivity.EXCLUSIVE
    kind: ClassVar[AnnotationKind] = AnnotationKind.UNKNOWN
    def_name: ClassVar[str] = ""
    def_type: ClassVar[str | None] = None
    required_options: ClassVar[tuple[str, ...]] = ()
    reference_options: ClassVar[tuple[str, ...]] = ()

    # ------------------------------------------------------------------
    # detect
    # ------------------------------------------------------------------

    def detect(self, declaration: Declaration) -> MarkerDetection | None:
        found = declaration.annotations_of(self.kind)
        if not found:
            return None
        return MarkerDetection(annotation=found[0])

    # ------------------------------------------------------------------
    # analyze
    # ------------------------------------------------------------------

    def analyze(
        self, declaration: Declaration, detection: MarkerDetection
    ) -> AnalysisOutput[MarkerMetadata]:
        annotation = detection.annotation
        duplicates = len(declaration.annotations_of(self.kind))
        if duplicates > 1:
            raise HandlerError(f"{declaration.name} is annotated @{annotation.name} {duplicates} times")

        argument = self._options_argument(declaration, annotation)
        diagnostics: list[Diagnostic] = []
        options: dict[str, object] = {}
        references: dict[str, tuple[str, ...]] = {}
        if argument is not None:
            for key, expression in argument.entries:
                if key in self.reference_options:
                    references[key] = self._reference_names(declaration, expression)
                    continue
                value = self.evaluator.evaluate(expression, origin=declaration, partial=True)
                if _contains_unknown(value):
                    diagnostics.append(warning(
                        DiagnosticKind.STATIC_EVALUATION_UNRESOLVED,
                        f"@{annotation.name} option {key!r} could not be statically resolved",
                        Location.of(declaration),
                        handler=self.name,
                    ))
                options[key] = value

        for key in self.required_options:
            if key not in options or is_unknown(options[key]):
                raise HandlerError(
                    f"@{annotation.name} on {declaration.name} requires a statically "
                    f"known {key!r} option"
                )

        extras = self.analyze_extras(declaration, options, diagnostics)
        return AnalysisOutput(
            analysis=MarkerMetadata(
                kind=self.kind,
                argument=argument,
                options=options,
                references=references,
                extras=extras,
            ),
            diagnostics=tuple(diagnostics),
        )

    def _options_argument(self, declaration: Declaration, annotation: Annotation) -> ObjectLit | None:
        if len(annotation.arguments) > 1:
            raise HandlerError(
                f"@{annotation.name} on {declaration.name} takes at most one argument, "
                f"got {len(annotation.arguments)}"
            )
        argument = annotation.first_argument
        if argument is None:
            return None
        if isinstance(argument, Identifier):
            bound = self.collaborators.checker.lookup_constant(declaration, argument.name)
            if bound is not None:
                argument = bound
        if not isinstance(argument, ObjectLit):
            raise HandlerError(
                f"@{annotation.name} on {declaration.name} expects an object literal argument"
            )
        return argument

    def _reference_names(self, declaration: Declaration, expression: Expression) -> tuple[str, ...]:
        if isinstance(expression, Identifier):
            bound = self.collaborators.checker.lookup_constant(declaration, expression.name)
            if bound is None:
                return (expression.name,)
            expression = bound
        if isinstance(expression, ArrayLit):
            return tuple(e.name for e in expression.elements if isinstance(e, Identifier))
        return ()

    def analyze_extras(
        self,
        declaration: Declaration,
        options: dict[str, object],
        diagnostics: list[Diagnostic],
    ) -> dict[str, object]:
        """Hook for handler-specific analysis.  Returns ``MarkerMetadata.extras``."""
        return {}

    # ------------------------------------------------------------------
    # compile
    # ------------------------------------------------------------------

    def compile(
        self, declaration: Declaration, analysis: MarkerMetadata
    ) -> CompiledArtifact | Sequence[CompiledArtifact]:
        return CompiledArtifact(
            name=self.def_name,
            initializer=self.definition(declaration, analysis),
            type=self.def_type,
        )

    def definition(self, declaration: Declaration, analysis: MarkerMetadata) -> ObjectLit:
        """Build the definition object literal for ``declaration``."""
        entries: list[tuple[str, Expression]] = [("type", Identifier(declaration.name))]
        for key, value in analysis.options.items():
            if _contains_unknown(value) and analysis.argument is not None:
                original = analysis.argument.get(key)
                entries.append((key, original if original is not None else NullLit()))
            else:
                entries.append((key, literal_expression(value)))
        for key, names in analysis.references.items():
            entries.append((key, ArrayLit(elements=tuple(Identifier(n) for n in names))))
        return ObjectLit(entries=tuple(entries))


def _contains_unknown(value: object) -> bool:
    if is_unknown(value):
        return True
    if isinstance(value, list):
        return any(_contains_unknown(v) for v in value)
    if isinstance(value, dict):
        return any(_contains_unknown(v) for v in value.values())
    return False


def literal_expression(value: object) -> Expression:
    """Turn a statically known value back into a literal expression."""
    if value is UNKNOWN or value is None:
        return NullLit()
    if isinstance(value, bool):
        return BoolLit(value)
    if isinstance(value, (int, float)):
        return NumberLit(value)
    if isinstance(value, str):
        return StringLit(value)
    if isinstance(value, list):
        return ArrayLit(elements=tuple(literal_expression(v) for v in value))
    if isinstance(value, dict):
        return ObjectLit(entries=tuple((str(k), literal_expression(v)) for k, v in value.items()))
    raise TypeError(f"Cannot express {type(value).__name__} as a literal")


# ---------------------------------------------------------------------------
# Concrete markers
# ---------------------------------------------------------------------------


class ServiceHandler(MarkerHandler):
    """``@Service``: a plain service class."""

    name = "service"
    kind = AnnotationKind.SERVICE
    def_name = "serviceDef"
    def_type = "ServiceDef"


class InjectableHandler(MarkerHandler):
    """``@Injectable``: a class the injector can construct."""

    name = "injectable"
    kind = AnnotationKind.INJECTABLE
    def_name = "injectableDef"
    def_type = "InjectableDef"


class PipeHandler(MarkerHandler):
    """``@Pipe({name: ...})``: a named value transform."""

    name = "pipe"
    kind = AnnotationKind.PIPE
    def_name = "pipeDef"
    def_type = "PipeDef"
    required_options = ("name",)


class ModuleHandler(MarkerHandler):
    """``@Module``: groups declarations into a compilation scope."""

    name = "module"
    kind = AnnotationKind.MODULE
    def_name = "moduleDef"
    def_type = "ModuleDef"
    reference_options = ("declarations", "imports", "exports", "providers", "bootstrap")

    def scope_members(self, declaration: Declaration) -> tuple[str, ...]:
        detection = self.detect(declaration)
        if detection is None:
            return ()
        argument = detection.annotation.first_argument
        if isinstance(argument, Identifier):
            argument = self.collaborators.checker.lookup_constant(declaration, argument.name)
        if not isinstance(argument, ObjectLit):
            return ()
        declared = argument.get("declarations")
        if declared is None:
            return ()
        return self._reference_names(declaration, declared)


class _ScopedMarkerHandler(MarkerHandler):
    """Marker whose analysis records the module it is declared in."""

    reference_options = ("providers",)

    def analyze_extras(
        self,
        declaration: Declaration,
        options: dict[str, object],
        diagnostics: list[Diagnostic],
    ) -> dict[str, object]:
        entry = self.collaborators.scopes.lookup(declaration.identity)
        return {"module": entry.module if entry is not None else None}


class DirectiveHandler(_ScopedMarkerHandler):
    """``@Directive``: attaches behaviour to host elements."""

    name = "directive"
    kind = AnnotationKind.DIRECTIVE
    def_name = "directiveDef"
    def_type = "DirectiveDef"


class ComponentHandler(_ScopedMarkerHandler):
    """``@Component``: a directive with a template.

    The template comes from the ``template`` option or is loaded through
    the resource loader from ``templateUrl``.  A failed load is fatal
    for this handler.  Compiles to a definition and a factory.
    """

    name = "component"
    kind = AnnotationKind.COMPONENT
    def_name = "componentDef"
    def_type = "ComponentDef"
    required_options = ("selector",)

    def analyze_extras(
        self,
        declaration: Declaration,
        options: dict[str, object],
        diagnostics: list[Diagnostic],
    ) -> dict[str, object]:
        extras = super().analyze_extras(declaration, options, diagnostics)
        template_url = options.get("templateUrl")
        if isinstance(template_url, str):
            logger.debug("Loading template %r for %s", template_url, declaration.name)
            extras["template"] = self.collaborators.resource_loader.load(template_url)
        elif isinstance(options.get("template"), str):
            extras["template"] = options["template"]
        else:
            raise HandlerError(
                f"@Component on {declaration.name} needs a statically known "
                "'template' or 'templateUrl'"
            )
        return extras

    def compile(
        self, declaration: Declaration, analysis: MarkerMetadata
    ) -> Sequence[CompiledArtifact]:
        definition = self.definition(declaration, analysis)
        definition = ObjectLit(entries=(
            *((k, v) for k, v in definition.entries if k not in ("template", "templateUrl")),
            ("template", StringLit(str(analysis.extras["template"]))),
        ))
        statements: tuple[AssignStatement, ...] = ()
        module = analysis.extras.get("module")
        if module is not None:
            statements = (AssignStatement(f"{declaration.name}.moduleScope", Identifier(str(module))),)
        return [
            CompiledArtifact(name=self.def_name, initializer=definition, type=self.def_type),
            CompiledArtifact(
                name="componentFactory",
                initializer=CallExpr(
                    callee=Identifier("createFactory"),
                    arguments=(Identifier(declaration.name),),
                ),
                type="Factory",
                statements=statements,
            ),
        ]
