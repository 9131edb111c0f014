#!/usr/bin/env python3
"""Example: Writing a custom handler

Registers a combinable handler that records members annotated
``@HostListener("event")`` and runs it alongside the built-ins.

Usage:
    python examples/02_custom_handler.py

Requirements:
    pip install declan
"""
from __future__ import annotations

from declan.ast.nodes import (
    Annotation,
    Declaration,
    Member,
    ObjectLit,
    ParsedFile,
    SourceFile,
    StringLit,
)
from declan.handlers import (
    AnalysisOutput,
    CompiledArtifact,
    Exclusivity,
    Handler,
    HandlerError,
    default_registry,
)
from declan.pipeline import Analyzer


@default_registry.register("host-listener")
class HostListenerHandler(Handler[tuple[Member, ...], dict[str, str]]):
    name = "host-listener"
    exclusivity = Exclusivity.COMBINABLE

    def detect(self, declaration: Declaration) -> tuple[Member, ...] | None:
        found = tuple(
            m for m in declaration.members
            if any(a.name == "HostListener" for a in m.annotations)
        )
        return found or None

    def analyze(
        self, declaration: Declaration, detection: tuple[Member, ...]
    ) -> AnalysisOutput[dict[str, str]]:
        listeners: dict[str, str] = {}
        for member in detection:
            [annotation] = [a for a in member.annotations if a.name == "HostListener"]
            event = self.evaluator.evaluate(annotation.first_argument, origin=declaration)
            if not isinstance(event, str):
                raise HandlerError("@HostListener needs a string event name", member=member)
            listeners[event] = member.name
        return AnalysisOutput(analysis=listeners)

    def compile(self, declaration: Declaration, analysis: dict[str, str]) -> CompiledArtifact:
        return CompiledArtifact(
            name="hostListeners",
            initializer=ObjectLit(entries=tuple((k, StringLit(v)) for k, v in analysis.items())),
        )


def main() -> None:
    declaration = Declaration(
        name="Clickable",
        members=(
            Member("onClick", (Annotation("HostListener", (StringLit("click"),)),)),
            Member("onKey", (Annotation("HostListener", (StringLit("keydown"),)),)),
        ),
        annotations=(Annotation("Directive"),),
        source_path="clickable.ts",
    )
    parsed = ParsedFile(source_file=SourceFile("clickable.ts"), declarations=(declaration,))

    analyzer = Analyzer.for_files([parsed])
    analyzed = analyzer.analyze_file(parsed)
    for item in analyzed.declarations:
        print(f"{item.name}: {item.handler_names}")
        for artifact in item.artifacts:
            print(f"  {artifact.name}")


if __name__ == "__main__":
    main()
