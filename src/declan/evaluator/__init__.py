"""Static expression evaluator.

Exports the ``StaticEvaluator`` class, the ``evaluate`` convenience
function and the ``UNKNOWN`` sentinel.
"""
from __future__ import annotations

from declan.evaluator.evaluator import UNKNOWN, StaticEvaluator, evaluate, is_unknown

__all__ = [
    "StaticEvaluator",
    "evaluate",
    "UNKNOWN",
    "is_unknown",
]
