"""Read-only constant lookup shared by handlers.

Handlers never reach a global type checker.  They receive a
``ConstantChecker`` at construction and ask it which expression a bare
identifier is bound to, as seen from a given declaration.
``StaticChecker`` answers from the file-level constants of the parsed
files it was built over; tests can pass any object with a matching
``lookup_constant`` method.
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Protocol

from declan.ast.nodes import Declaration, Expression, ParsedFile


class ConstantChecker(Protocol):
    """Capability for resolving identifiers to their bound expressions."""

    def lookup_constant(self, origin: Declaration | None, name: str) -> Expression | None:
        """Return the expression ``name`` is bound to when seen from ``origin``."""
        ...


class StaticChecker:
    """``ConstantChecker`` over the constant bindings of parsed files.

    Bindings are scoped per source path: a declaration only sees the
    constants of its own file.  Lookups without an origin see
    ``globals`` only.

    Parameters
    ----------
    bindings_by_path:
        ``{source_path: {name: expression}}``.
    globals:
        Bindings visible from every file; file-level bindings shadow them.
    """

    def __init__(
        self,
        bindings_by_path: Mapping[str, Mapping[str, Expression]] | None = None,
        globals: Mapping[str, Expression] | None = None,  # noqa: A002
    ) -> None:
        self._by_path = MappingProxyType(
            {path: dict(bindings) for path, bindings in (bindings_by_path or {}).items()}
        )
        self._globals = MappingProxyType(dict(globals or {}))

    @classmethod
    def from_files(cls, files: Iterable[ParsedFile]) -> "StaticChecker":
        """Build a checker from the constants declared in ``files``."""
        bindings: dict[str, dict[str, Expression]] = {}
        for parsed in files:
            scope = bindings.setdefault(parsed.path, {})
            for constant in parsed.constants:
                scope[constant.name] = constant.value
        return cls(bindings)

    def lookup_constant(self, origin: Declaration | None, name: str) -> Expression | None:
        if origin is not None:
            scope = self._by_path.get(origin.source_path)
            if scope is not None and name in scope:
                return scope[name]
        return self._globals.get(name)

    def __repr__(self) -> str:
        return f"StaticChecker(files={sorted(self._by_path)}, globals={sorted(self._globals)})"
