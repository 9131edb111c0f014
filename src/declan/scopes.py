"""Scope registry and the per-run analysis context.

Some handlers need program-wide knowledge that no single declaration
carries, e.g. which module declares a component.  That knowledge lives
in a ``ScopeRegistry``, filled by a sequential pre-pass over all files
before analysis starts and then only read.

Insertion is insert-if-absent, keyed by declaration identity, and
guarded by a lock so that concurrent producers cannot interleave.  The
registry's ``version`` increases with every new entry, which lets a
caller tell whether two runs saw the same registry state.
"""
from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

logger = logging.getLogger(__name__)

DeclarationKey = tuple[str, str]


@dataclass(frozen=True)
class ScopeEntry:
    """Membership of one declaration in a module scope.

    Parameters
    ----------
    module:
        Name of the declaring module.
    module_path:
        Source path of the declaring module.
    """

    module: str
    module_path: str = ""


class ScopeRegistry:
    """Thread-safe, insert-if-absent registry of declaration scopes."""

    def __init__(self) -> None:
        self._entries: dict[DeclarationKey, ScopeEntry] = {}
        self._lock = threading.Lock()
        self._version = 0

    def insert(self, key: DeclarationKey, entry: ScopeEntry) -> ScopeEntry:
        """Record ``entry`` for ``key`` unless one is already present.

        Returns
        -------
        ScopeEntry
            The entry stored for ``key`` after the call, which is the
            existing one if ``key`` was already registered.
        """
        with self._lock:
            existing = self._entries.get(key)
            if existing is not None:
                if existing != entry:
                    logger.debug(
                        "Scope for %s already recorded as %r; ignoring %r", key, existing, entry
                    )
                return existing
            self._entries[key] = entry
            self._version += 1
            return entry

    def lookup(self, key: DeclarationKey) -> ScopeEntry | None:
        """Return the scope recorded for ``key``, or ``None``."""
        with self._lock:
            return self._entries.get(key)

    def snapshot(self) -> Mapping[DeclarationKey, ScopeEntry]:
        """Return a read-only copy of all entries."""
        with self._lock:
            return MappingProxyType(dict(self._entries))

    @property
    def version(self) -> int:
        with self._lock:
            return self._version

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __repr__(self) -> str:
        return f"ScopeRegistry(entries={len(self)}, version={self.version})"


@dataclass
class AnalysisContext:
    """State passed explicitly into every pipeline invocation.

    Parameters
    ----------
    scopes:
        The program-wide scope registry.
    strict:
        When ``True``, WARNING diagnostics are promoted to ERROR.
    """

    scopes: ScopeRegistry = field(default_factory=ScopeRegistry)
    strict: bool = False

    @property
    def version(self) -> int:
        """Version of the scope registry this context currently exposes."""
        return self.scopes.version
