"""The analysis pipeline: matcher, driver and file aggregator.

Public API
----------
The stable surface is ``Analyzer``, the ``analyze`` function and the
result dataclasses.  ``match_declaration`` and ``run_match`` are
exported for callers that drive single declarations themselves.
"""
from __future__ import annotations

from declan.pipeline.analyzer import Analyzer, analyze
from declan.pipeline.driver import DriverOutcome, normalize_artifacts, run_match
from declan.pipeline.matcher import MatchOutcome, match_declaration
from declan.pipeline.report import analyzed_file_to_dict
from declan.pipeline.results import (
    AnalysisResult,
    AnalyzedDeclaration,
    AnalyzedFile,
    Match,
)

__all__ = [
    "Analyzer",
    "analyze",
    "match_declaration",
    "MatchOutcome",
    "run_match",
    "DriverOutcome",
    "normalize_artifacts",
    "Match",
    "AnalysisResult",
    "AnalyzedDeclaration",
    "AnalyzedFile",
    "analyzed_file_to_dict",
]
