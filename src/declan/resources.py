"""Resource loading for handlers that pull in out-of-declaration content.

A ``ResourceLoader`` maps an identifier (typically a path taken from an
annotation argument, such as a component's ``templateUrl``) to text.
Failures raise a ``ResourceLoadError`` subclass; handlers let it
propagate so the pipeline records a handler-scoped failure.
"""
from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Mapping
from pathlib import Path

logger = logging.getLogger(__name__)


class ResourceLoadError(RuntimeError):
    """Base class for resource loading failures."""

    def __init__(self, identifier: str, reason: str) -> None:
        self.identifier = identifier
        self.reason = reason
        super().__init__(f"Cannot load resource {identifier!r}: {reason}")


class ResourceNotFound(ResourceLoadError):
    """Raised when the requested resource does not exist."""

    def __init__(self, identifier: str) -> None:
        super().__init__(identifier, "not found")


class ResourceReadError(ResourceLoadError):
    """Raised when the resource exists but cannot be read."""


class ResourceLoader(ABC):
    """Loads text resources by identifier."""

    @abstractmethod
    def load(self, identifier: str) -> str:
        """Return the content of ``identifier``.

        Raises
        ------
        ResourceNotFound
            If there is no such resource.
        ResourceReadError
            If the resource exists but cannot be read.
        """


class FileResourceLoader(ResourceLoader):
    """``ResourceLoader`` that reads UTF-8 files synchronously from disk.

    Parameters
    ----------
    root:
        Relative identifiers are resolved against this directory.
        Defaults to the current working directory.
    """

    def __init__(self, root: str | Path | None = None) -> None:
        self._root = Path(root) if root is not None else None

    def _resolve(self, identifier: str) -> Path:
        path = Path(identifier)
        if self._root is not None and not path.is_absolute():
            path = self._root / path
        return path

    def load(self, identifier: str) -> str:
        path = self._resolve(identifier)
        try:
            with path.open(encoding="utf-8") as handle:
                content = handle.read()
        except FileNotFoundError:
            raise ResourceNotFound(identifier) from None
        except (OSError, UnicodeDecodeError) as exc:
            raise ResourceReadError(identifier, str(exc)) from exc
        logger.debug("Loaded resource %r (%d chars)", identifier, len(content))
        return content

    def __repr__(self) -> str:
        return f"FileResourceLoader(root={str(self._root) if self._root else None!r})"


class InMemoryResourceLoader(ResourceLoader):
    """``ResourceLoader`` serving content from a mapping."""

    def __init__(self, resources: Mapping[str, str] | None = None) -> None:
        self._resources = dict(resources or {})

    def load(self, identifier: str) -> str:
        try:
            return self._resources[identifier]
        except KeyError:
            raise ResourceNotFound(identifier) from None


class CachingResourceLoader(ResourceLoader):
    """Memoizes successful loads of another loader.

    Failures are not cached, so a resource that appears later is picked
    up on the next request.  Safe to share between threads.
    """

    def __init__(self, inner: ResourceLoader) -> None:
        self._inner = inner
        self._cache: dict[str, str] = {}
        self._lock = threading.Lock()

    def load(self, identifier: str) -> str:
        with self._lock:
            if identifier in self._cache:
                return self._cache[identifier]
        content = self._inner.load(identifier)
        with self._lock:
            return self._cache.setdefault(identifier, content)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()
