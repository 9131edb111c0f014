"""Static evaluation of annotation-argument expressions.

``StaticEvaluator`` turns an ``Expression`` into a plain Python value
when it can be known without running any code:

===============================  =======================================
Expression                       Result
===============================  =======================================
``StringLit`` / ``NumberLit``    the literal value
``BoolLit`` / ``NullLit``        ``True`` / ``False`` / ``None``
``Identifier``                   the value of the bound constant
``ArrayLit``                     ``list`` of element values
``ObjectLit``                    ``dict`` of entry values, source order
anything else                    ``UNKNOWN``
===============================  =======================================

A composite with an unresolvable element is ``UNKNOWN`` as a whole
unless the caller asks for partial resolution, in which case the
composite is returned with ``UNKNOWN`` in the unresolved positions.

The evaluator is total: unresolvable input is data, not a fault, and
no input makes it raise.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping

from declan.ast.nodes import (
    ArrayLit,
    BoolLit,
    Declaration,
    Expression,
    Identifier,
    NullLit,
    NumberLit,
    ObjectLit,
    StringLit,
)
from declan.checker import ConstantChecker, StaticChecker

logger = logging.getLogger(__name__)


class _Unknown:
    """Type of the ``UNKNOWN`` sentinel.  There is exactly one instance."""

    _instance: "_Unknown | None" = None

    def __new__(cls) -> "_Unknown":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNKNOWN"

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> "_Unknown":
        return self

    def __deepcopy__(self, memo: dict[int, object]) -> "_Unknown":
        return self

    def __reduce__(self) -> str:
        return "UNKNOWN"


UNKNOWN = _Unknown()


def is_unknown(value: object) -> bool:
    """Return ``True`` if ``value`` is the ``UNKNOWN`` sentinel."""
    return value is UNKNOWN


class StaticEvaluator:
    """Resolve expressions to concrete values or ``UNKNOWN``.

    Parameters
    ----------
    checker:
        Resolves identifiers to their bound expressions.  Without one,
        every identifier is ``UNKNOWN``.
    """

    def __init__(self, checker: ConstantChecker | None = None) -> None:
        self._checker = checker

    def evaluate(
        self,
        expression: object,
        origin: Declaration | None = None,
        partial: bool = False,
    ) -> object:
        """Evaluate ``expression`` as seen from ``origin``.

        Parameters
        ----------
        expression:
            Any ``Expression`` node.  Non-expression input yields ``UNKNOWN``.
        origin:
            The declaration whose scope identifiers are looked up in.
        partial:
            Keep composites whose elements are only partly resolvable.

        Returns
        -------
        object
            A ``str``, ``int``, ``float``, ``bool``, ``None``, ``list``,
            ``dict`` or ``UNKNOWN``.
        """
        try:
            return self._eval(expression, origin, partial, frozenset())
        except RecursionError:
            logger.debug("Expression nesting too deep to evaluate; treating as UNKNOWN")
            return UNKNOWN
        except Exception:  # noqa: BLE001
            logger.debug("Malformed expression %r; treating as UNKNOWN", expression, exc_info=True)
            return UNKNOWN

    def _eval(
        self,
        node: object,
        origin: Declaration | None,
        partial: bool,
        resolving: frozenset[str],
    ) -> object:
        if isinstance(node, (StringLit, NumberLit, BoolLit)):
            return node.value
        if isinstance(node, NullLit):
            return None
        if isinstance(node, Identifier):
            return self._resolve_identifier(node, origin, partial, resolving)
        if isinstance(node, ArrayLit):
            elements = [self._eval(e, origin, partial, resolving) for e in node.elements]
            if not partial and any(e is UNKNOWN for e in elements):
                return UNKNOWN
            return elements
        if isinstance(node, ObjectLit):
            entries: dict[str, object] = {}
            for key, value in node.entries:
                entries[key] = self._eval(value, origin, partial, resolving)
            if not partial and any(v is UNKNOWN for v in entries.values()):
                return UNKNOWN
            return entries
        return UNKNOWN

    def _resolve_identifier(
        self,
        node: Identifier,
        origin: Declaration | None,
        partial: bool,
        resolving: frozenset[str],
    ) -> object:
        if self._checker is None or node.name in resolving:
            return UNKNOWN
        try:
            bound = self._checker.lookup_constant(origin, node.name)
        except Exception:  # noqa: BLE001
            logger.debug("Constant lookup for %r failed; treating as UNKNOWN", node.name, exc_info=True)
            return UNKNOWN
        if bound is None:
            return UNKNOWN
        return self._eval(bound, origin, partial, resolving | {node.name})


def evaluate(
    expression: object,
    bindings: Mapping[str, Expression] | None = None,
    partial: bool = False,
) -> object:
    """Convenience function: evaluate against a plain ``{name: expression}`` scope.

    Parameters
    ----------
    expression:
        The expression to evaluate.
    bindings:
        Constants visible to identifiers in ``expression``.
    partial:
        Keep partly resolvable composites.

    Returns
    -------
    object
        The resolved value or ``UNKNOWN``.
    """
    return StaticEvaluator(StaticChecker(globals=bindings)).evaluate(expression, partial=partial)
