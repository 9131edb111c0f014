#!/usr/bin/env python3
"""Example: Quickstart — declan

Minimal working example: load a parsed-declaration document, run every
built-in handler over it, and print the artifacts and diagnostics.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install declan
"""
from __future__ import annotations

import declan
from declan.ast.serializer import ParsedFileSerializer
from declan.resources import InMemoryResourceLoader

DOCUMENT = '''
path: src/app.component.ts
constants:
  - name: SELECTOR
    value: {kind: string, value: app-root}
declarations:
  - name: AppComponent
    annotations:
      - name: Component
        arguments:
          - kind: object
            entries:
              - [selector, {kind: identifier, name: SELECTOR}]
              - [templateUrl, {kind: string, value: app.component.html}]
    members:
      - name: value
        annotations:
          - name: Input
            arguments: [{kind: string, value: foo}]
      - name: changed
        annotations: [{name: Output}]
  - name: Confused
    annotations: [{name: Service}, {name: Pipe}]
'''


def main() -> None:
    print(f"declan version: {declan.__version__}")

    # Step 1: Turn the front-end's document into declarations
    parsed = ParsedFileSerializer().from_yaml(DOCUMENT)
    print(f"Loaded {len(parsed.declarations)} declarations from {parsed.path}")

    # Step 2: Analyze with an in-memory template store
    templates = InMemoryResourceLoader({"app.component.html": "<h1>{{ value }}</h1>"})
    [analyzed] = declan.analyze([parsed], resource_loader=templates)

    # Step 3: Inspect what each declaration compiled to
    for item in analyzed.declarations:
        print(f"\n{item.name}: handlers={item.handler_names}")
        for artifact in item.artifacts:
            print(f"  {artifact.name}: {artifact.type}")

    # Step 4: Conflicts are reported, not raised
    print(f"\nDiagnostics: {len(analyzed.all_diagnostics)}")
    for diagnostic in analyzed.all_diagnostics:
        print(f"  {diagnostic}")


if __name__ == "__main__":
    main()
