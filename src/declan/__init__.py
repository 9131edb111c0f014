"""declan — pluggable analysis and code generation for annotated declarations.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
::

    import declan

    # Load parse results handed over by a front-end
    parsed = declan.load("app.decl.yaml")

    # Run every registered handler over the file
    [analyzed] = declan.analyze([parsed])
    for item in analyzed.declarations:
        print(item.name, [a.name for a in item.artifacts])

    # Conflicts and handler failures are diagnostics, never exceptions
    for diagnostic in analyzed.diagnostics:
        print(diagnostic)

    # Resolve a single annotation argument
    declan.evaluate(expression, bindings={"SELECTOR": selector_expr})

    declan.__version__
    '0.1.0'
"""
from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

__version__: str = "0.1.0"

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from declan.ast.nodes import Expression, ParsedFile
    from declan.pipeline.results import AnalyzedFile
    from declan.resources import ResourceLoader


def load(path: str | Path) -> "ParsedFile":
    """Load a parsed-declaration document (JSON or YAML).

    Parameters
    ----------
    path:
        Path of the document.  ``.json`` files are read as JSON, anything
        else as YAML.

    Returns
    -------
    ParsedFile
        The declarations and constants of one source file.

    Raises
    ------
    declan.ast.DeclarationSourceError
        If the document is malformed.
    """
    from declan.ast.serializer import load_parsed_file

    return load_parsed_file(path)


def analyze(
    files: "Sequence[ParsedFile]",
    resource_loader: "ResourceLoader | None" = None,
    strict: bool = False,
) -> list["AnalyzedFile"]:
    """Analyze parsed files with every registered handler.

    Parameters
    ----------
    files:
        The files to analyze, in order.
    resource_loader:
        Loader for referenced content such as templates.
    strict:
        When ``True``, warnings are promoted to errors.

    Returns
    -------
    list[AnalyzedFile]
        One result per input file.
    """
    from declan.pipeline.analyzer import analyze as _analyze

    return _analyze(files, resource_loader=resource_loader, strict=strict)


def evaluate(
    expression: "Expression",
    bindings: "Mapping[str, Expression] | None" = None,
    partial: bool = False,
) -> object:
    """Statically evaluate an annotation-argument expression.

    Parameters
    ----------
    expression:
        The expression to evaluate.
    bindings:
        Constants identifiers may refer to.
    partial:
        Keep composites whose elements are only partly resolvable.

    Returns
    -------
    object
        The concrete value, or ``declan.evaluator.UNKNOWN``.
    """
    from declan.evaluator import evaluate as _evaluate

    return _evaluate(expression, bindings=bindings, partial=partial)


__all__ = [
    "__version__",
    "load",
    "analyze",
    "evaluate",
]
