"""The file-level analysis pipeline.

``Analyzer`` walks the declarations of a parsed file in source order,
matches each one against the handler registry, drives every surviving
match through analyze and compile, and assembles the ``AnalyzedFile``.
Declarations without surviving matches are dropped; their diagnostics
are kept on the file.

Usage
-----
::

    from declan.pipeline import Analyzer

    analyzer = Analyzer.for_files(files)
    for parsed in files:
        analyzed = analyzer.analyze_file(parsed)
        for item in analyzed.declarations:
            print(item.name, item.handler_names)
"""
from __future__ import annotations

import dataclasses
import logging
from collections import defaultdict
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Any

from declan.ast.nodes import Declaration, ParsedFile
from declan.checker import StaticChecker
from declan.diagnostics import Diagnostic
from declan.handlers import Collaborators, Handler, default_registry
from declan.pipeline.driver import run_match
from declan.pipeline.matcher import match_declaration
from declan.pipeline.results import AnalysisResult, AnalyzedDeclaration, AnalyzedFile
from declan.resources import CachingResourceLoader, FileResourceLoader, ResourceLoader
from declan.scopes import AnalysisContext, DeclarationKey, ScopeEntry

if TYPE_CHECKING:
    from declan.config import DeclanConfig
    from declan.plugins.registry import PluginRegistry

logger = logging.getLogger(__name__)


class Analyzer:
    """Runs the detect, analyze and compile pipeline over parsed files.

    Parameters
    ----------
    handlers:
        The handler registry, in the order results should appear.
        Defaults to every handler in ``default_registry``, built with
        ``collaborators``.
    collaborators:
        Read-only capabilities for the default handlers.
    context:
        Per-run state: the scope registry and the strict flag.

    Raises
    ------
    ValueError
        If ``collaborators`` and ``context`` carry different scope
        registries.
    """

    def __init__(
        self,
        handlers: Sequence[Handler[Any, Any]] | None = None,
        collaborators: Collaborators | None = None,
        context: AnalysisContext | None = None,
    ) -> None:
        if context is None:
            context = (
                AnalysisContext(scopes=collaborators.scopes)
                if collaborators is not None
                else AnalysisContext()
            )
        if collaborators is None:
            collaborators = Collaborators(scopes=context.scopes)
        elif collaborators.scopes is not context.scopes:
            raise ValueError(
                "collaborators.scopes and context.scopes must be the same ScopeRegistry; "
                "handlers read the registry that prepare() fills"
            )
        self._context = context
        self._collaborators = collaborators
        if handlers is None:
            handlers = default_registry.create(None, collaborators)
        self._handlers: tuple[Handler[Any, Any], ...] = tuple(handlers)

    @classmethod
    def for_files(
        cls,
        files: Sequence[ParsedFile],
        resource_loader: ResourceLoader | None = None,
        handler_names: Iterable[str] | None = None,
        strict: bool = False,
        registry: "PluginRegistry[Handler[Any, Any]] | None" = None,
    ) -> "Analyzer":
        """Build an analyzer whose checker sees the constants of ``files``.

        The scope pre-pass over ``files`` has already run when this returns.
        """
        context = AnalysisContext(strict=strict)
        collaborators = Collaborators(
            checker=StaticChecker.from_files(files),
            scopes=context.scopes,
            resource_loader=resource_loader if resource_loader is not None else FileResourceLoader(),
        )
        source = registry if registry is not None else default_registry
        handlers = source.create(handler_names, collaborators)
        analyzer = cls(handlers=handlers, collaborators=collaborators, context=context)
        analyzer.prepare(files)
        return analyzer

    @classmethod
    def from_config(cls, config: "DeclanConfig", files: Sequence[ParsedFile]) -> "Analyzer":
        """Build an analyzer for ``files`` as configured by ``config``."""
        if config.entrypoints:
            default_registry.load_entrypoints()
        return cls.for_files(
            files,
            resource_loader=CachingResourceLoader(FileResourceLoader(config.resource_root)),
            handler_names=config.handlers,
            strict=config.strict,
        )

    @property
    def handlers(self) -> tuple[Handler[Any, Any], ...]:
        return self._handlers

    @property
    def context(self) -> AnalysisContext:
        return self._context

    # ------------------------------------------------------------------
    # Scope pre-pass
    # ------------------------------------------------------------------

    def prepare(self, files: Iterable[ParsedFile]) -> int:
        """Fill the scope registry from ``files``, sequentially.

        Must run before ``analyze_file`` for handlers that read scopes to
        see every entry.  A handler whose ``scope_members`` raises is
        skipped for that declaration.

        Returns
        -------
        int
            The number of new scope entries.
        """
        files = list(files)
        known: set[DeclarationKey] = set()
        by_name: dict[str, list[DeclarationKey]] = defaultdict(list)
        for parsed in files:
            for declaration in parsed.declarations:
                known.add(declaration.identity)
                by_name[declaration.name].append(declaration.identity)

        scopes = self._context.scopes
        before = scopes.version
        for parsed in files:
            for declaration in parsed.declarations:
                for handler in self._handlers:
                    try:
                        names = handler.scope_members(declaration)
                    except Exception as exc:  # noqa: BLE001
                        logger.warning(
                            "Handler %r failed to list scope members of %s: %s",
                            handler.name,
                            declaration.name,
                            exc,
                        )
                        continue
                    for name in names:
                        key = _resolve_key(declaration, name, known, by_name)
                        scopes.insert(
                            key,
                            ScopeEntry(module=declaration.name, module_path=declaration.source_path),
                        )
        added = scopes.version - before
        logger.debug("Scope pre-pass recorded %d new scope entries", added)
        return added

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    def analyze_declaration(
        self, declaration: Declaration
    ) -> tuple[AnalyzedDeclaration | None, list[Diagnostic]]:
        """Run the per-declaration pipeline.

        Returns
        -------
        tuple[AnalyzedDeclaration | None, list[Diagnostic]]
            ``None`` when no match survived; the diagnostics are the
            declaration- and handler-scoped failures.
        """
        outcome = match_declaration(declaration, self._handlers)
        diagnostics = list(outcome.diagnostics)
        results: list[AnalysisResult] = []
        for match in outcome.matches:
            driven = run_match(declaration, match)
            diagnostics.extend(driven.diagnostics)
            if driven.result is not None:
                results.append(driven.result)

        if self._context.strict:
            diagnostics = [d.promote() for d in diagnostics]
            results = [
                dataclasses.replace(r, diagnostics=tuple(d.promote() for d in r.diagnostics))
                for r in results
            ]

        if not results:
            return None, diagnostics
        return AnalyzedDeclaration(declaration=declaration, results=tuple(results)), diagnostics

    def analyze_file(self, parsed: ParsedFile) -> AnalyzedFile:
        """Analyze every declaration of ``parsed`` in source order.

        Parameters
        ----------
        parsed:
            The file to analyze.

        Returns
        -------
        AnalyzedFile
            Declarations with at least one result, plus the file's
            conflict and failure diagnostics.
        """
        analyzed: list[AnalyzedDeclaration] = []
        diagnostics: list[Diagnostic] = []
        for declaration in parsed.declarations:
            item, item_diagnostics = self.analyze_declaration(declaration)
            diagnostics.extend(item_diagnostics)
            if item is not None:
                analyzed.append(item)
            else:
                logger.debug("Dropped %s: no surviving matches", declaration.name)

        logger.debug(
            "Analyzed %s: %d of %d declaration(s) kept, %d diagnostic(s)",
            parsed.path,
            len(analyzed),
            len(parsed.declarations),
            len(diagnostics),
        )
        return AnalyzedFile(
            source_file=parsed.source_file,
            declarations=tuple(analyzed),
            diagnostics=tuple(diagnostics),
        )

    def analyze_files(self, files: Iterable[ParsedFile]) -> list[AnalyzedFile]:
        """Analyze a batch of files.  One file's problems never stop the batch."""
        return [self.analyze_file(parsed) for parsed in files]


def _resolve_key(
    declaration: Declaration,
    name: str,
    known: set[DeclarationKey],
    by_name: dict[str, list[DeclarationKey]],
) -> DeclarationKey:
    # Same file first, then a unique match anywhere in the batch.
    local = (declaration.source_path, name)
    if local in known:
        return local
    candidates = by_name.get(name, [])
    if len(candidates) == 1:
        return candidates[0]
    return local


def analyze(
    files: Sequence[ParsedFile],
    resource_loader: ResourceLoader | None = None,
    strict: bool = False,
) -> list[AnalyzedFile]:
    """Convenience function: analyze ``files`` with the default handlers.

    Parameters
    ----------
    files:
        Parsed files, analysed in order.
    resource_loader:
        Loader for templates and other referenced content.  Defaults to
        reading files relative to the working directory.
    strict:
        If ``True``, warnings become errors.

    Returns
    -------
    list[AnalyzedFile]
        One entry per input file.
    """
    analyzer = Analyzer.for_files(files, resource_loader=resource_loader, strict=strict)
    return analyzer.analyze_files(files)
