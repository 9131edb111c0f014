"""Input/output host metadata handler.

Collects members annotated ``Input`` or ``Output`` into a binding map
from public name to member name.  The public name is the statically
resolved first annotation argument, or the member's own name when the
annotation has no argument::

    class Base:
        @Input("foo") value       ->  inputs  = {"foo": "value"}
        @Output() changed         ->  outputs = {"changed": "changed"}

The handler is combinable: any declaration with such members gets a
``baseDef`` artifact, whether or not another handler also claims it.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from declan.ast.nodes import (
    Annotation,
    AnnotationKind,
    Declaration,
    Member,
    ObjectLit,
    StringLit,
)
from declan.diagnostics import Diagnostic, DiagnosticKind, Location, warning
from declan.evaluator import is_unknown
from declan.handlers.base import (
    AnalysisOutput,
    CompiledArtifact,
    Exclusivity,
    Handler,
    HandlerError,
)


@dataclass(frozen=True)
class HostMetadataDetection:
    """Annotated members found by ``detect``, in member order."""

    inputs: tuple[tuple[Member, Annotation], ...] = ()
    outputs: tuple[tuple[Member, Annotation], ...] = ()


@dataclass(frozen=True)
class HostMetadata:
    """Analysis payload: ``{public_name: member_name}`` for inputs and outputs."""

    inputs: dict[str, str] = field(default_factory=dict)
    outputs: dict[str, str] = field(default_factory=dict)


class HostMetadataHandler(Handler[HostMetadataDetection, HostMetadata]):
    """Combinable handler for ``Input``/``Output`` member annotations."""

    name = "host-metadata"
    exclusivity = Exclusivity.COMBINABLE

    def detect(self, declaration: Declaration) -> HostMetadataDetection | None:
        inputs: list[tuple[Member, Annotation]] = []
        outputs: list[tuple[Member, Annotation]] = []
        for member in declaration.members:
            for annotation in member.annotations:
                if annotation.kind is AnnotationKind.INPUT:
                    inputs.append((member, annotation))
                elif annotation.kind is AnnotationKind.OUTPUT:
                    outputs.append((member, annotation))
        if not inputs and not outputs:
            return None
        return HostMetadataDetection(inputs=tuple(inputs), outputs=tuple(outputs))

    def analyze(
        self, declaration: Declaration, detection: HostMetadataDetection
    ) -> AnalysisOutput[HostMetadata]:
        diagnostics: list[Diagnostic] = []
        inputs = self._bind(declaration, detection.inputs, diagnostics)
        outputs = self._bind(declaration, detection.outputs, diagnostics)
        return AnalysisOutput(
            analysis=HostMetadata(inputs=inputs, outputs=outputs),
            diagnostics=tuple(diagnostics),
        )

    def _bind(
        self,
        declaration: Declaration,
        bindings: tuple[tuple[Member, Annotation], ...],
        diagnostics: list[Diagnostic],
    ) -> dict[str, str]:
        result: dict[str, str] = {}
        for member, annotation in bindings:
            public_name = self._public_name(declaration, member, annotation, diagnostics)
            if public_name in result and result[public_name] != member.name:
                diagnostics.append(warning(
                    DiagnosticKind.INVALID_ANNOTATION_ARGUMENT,
                    f"{annotation.name} name {public_name!r} is already bound to "
                    f"member {result[public_name]!r}",
                    Location.of(declaration, member),
                    handler=self.name,
                ))
            result[public_name] = member.name
        return result

    def _public_name(
        self,
        declaration: Declaration,
        member: Member,
        annotation: Annotation,
        diagnostics: list[Diagnostic],
    ) -> str:
        if len(annotation.arguments) > 1:
            raise HandlerError(
                f"@{annotation.name} on {declaration.name}.{member.name} takes at most "
                f"one argument, got {len(annotation.arguments)}",
                member=member,
            )
        if not annotation.arguments:
            return member.name

        value = self.evaluator.evaluate(annotation.arguments[0], origin=declaration)
        if isinstance(value, str) and value:
            return value
        if is_unknown(value):
            diagnostics.append(warning(
                DiagnosticKind.STATIC_EVALUATION_UNRESOLVED,
                f"@{annotation.name} argument could not be statically resolved; "
                f"using member name {member.name!r}",
                Location.of(declaration, member),
                handler=self.name,
                suggestion="Use a string literal or a constant bound to one",
            ))
        else:
            diagnostics.append(warning(
                DiagnosticKind.INVALID_ANNOTATION_ARGUMENT,
                f"@{annotation.name} argument resolved to {value!r}, expected a "
                f"non-empty string; using member name {member.name!r}",
                Location.of(declaration, member),
                handler=self.name,
            ))
        return member.name

    def compile(self, declaration: Declaration, analysis: HostMetadata) -> CompiledArtifact:
        return CompiledArtifact(
            name="baseDef",
            initializer=ObjectLit(entries=(
                ("inputs", _string_map(analysis.inputs)),
                ("outputs", _string_map(analysis.outputs)),
            )),
            type="BaseDef",
        )


def _string_map(mapping: dict[str, str]) -> ObjectLit:
    return ObjectLit(entries=tuple((key, StringLit(value)) for key, value in mapping.items()))
