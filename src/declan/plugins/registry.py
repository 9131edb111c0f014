"""Ordered plugin registry for declan.

Handlers are plugged into the pipeline by name.  A registry maps names
to handler classes; the order in which names are registered is the
default order handlers run in, and therefore the order their results
appear in the output.  Third-party handlers register by declaring
entry-points in their own ``pyproject.toml`` under the
``"declan.handlers"`` group.

Example
-------
Register a handler with the decorator::

    from declan.handlers import Handler, default_registry

    @default_registry.register("my-marker")
    class MyMarkerHandler(Handler):
        ...

Load all installed handlers via entry-points::

    default_registry.load_entrypoints("declan.handlers")

Instantiate handlers in a chosen order::

    handlers = default_registry.create(["component", "my-marker"], collaborators)
"""
from __future__ import annotations

import importlib.metadata
import logging
from collections.abc import Callable, Iterable
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

ENTRYPOINT_GROUP = "declan.handlers"


class PluginNotFoundError(KeyError):
    """Raised when a requested plugin name is not in the registry."""

    def __init__(self, name: str, registry_name: str, available: Iterable[str] = ()) -> None:
        self.plugin_name = name
        self.registry_name = registry_name
        available_part = ", ".join(available) or "none"
        super().__init__(
            f"Plugin {name!r} is not registered in the {registry_name!r} registry. "
            f"Available plugins: {available_part}. "
            "Check that the package is installed and its entry-points are declared."
        )


class PluginAlreadyRegisteredError(ValueError):
    """Raised when attempting to register a name that already exists."""

    def __init__(self, name: str, registry_name: str) -> None:
        self.plugin_name = name
        self.registry_name = registry_name
        super().__init__(
            f"Plugin {name!r} is already registered in the {registry_name!r} registry. "
            "Use a unique name or explicitly deregister the existing entry first."
        )


class PluginRegistry(Generic[T]):
    """Type-checked, insertion-ordered registry of plugin classes.

    Parameters
    ----------
    base_class:
        The class all plugins must subclass.
    name:
        A human-readable name for this registry (used in error messages).
    """

    def __init__(self, base_class: type[T], name: str) -> None:
        self._base_class = base_class
        self._name = name
        self._plugins: dict[str, type[T]] = {}

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, name: str) -> Callable[[type[T]], type[T]]:
        """Return a class decorator that registers the decorated class.

        Raises
        ------
        PluginAlreadyRegisteredError
            If ``name`` is already in use in this registry.
        TypeError
            If the decorated class does not subclass ``base_class``.
        """

        def decorator(cls: type[T]) -> type[T]:
            self.register_class(name, cls)
            return cls

        return decorator

    def register_class(self, name: str, cls: type[T]) -> None:
        """Register a class directly without using the decorator syntax.

        Raises
        ------
        PluginAlreadyRegisteredError
            If ``name`` is already registered.
        TypeError
            If ``cls`` is not a subclass of ``base_class``.
        """
        if name in self._plugins:
            raise PluginAlreadyRegisteredError(name, self._name)
        if not (isinstance(cls, type) and issubclass(cls, self._base_class)):
            raise TypeError(
                f"Cannot register {cls!r} under {name!r}: "
                f"it must be a subclass of {self._base_class.__name__}."
            )
        self._plugins[name] = cls
        logger.debug(
            "Registered plugin %r -> %s in registry %r",
            name,
            cls.__qualname__,
            self._name,
        )

    def deregister(self, name: str) -> None:
        """Remove a plugin from the registry.

        Raises
        ------
        PluginNotFoundError
            If ``name`` is not currently registered.
        """
        if name not in self._plugins:
            raise PluginNotFoundError(name, self._name, self._plugins)
        del self._plugins[name]
        logger.debug("Deregistered plugin %r from registry %r", name, self._name)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, name: str) -> type[T]:
        """Return the class registered under ``name``.

        Raises
        ------
        PluginNotFoundError
            If no plugin is registered under ``name``.
        """
        try:
            return self._plugins[name]
        except KeyError:
            raise PluginNotFoundError(name, self._name, self._plugins) from None

    def names(self) -> list[str]:
        """Return registered names in registration order."""
        return list(self._plugins)

    def create(self, names: Iterable[str] | None = None, *args: Any, **kwargs: Any) -> list[T]:
        """Instantiate plugins in the order given.

        Parameters
        ----------
        names:
            Which plugins to build, in order.  ``None`` means every
            registered plugin, in registration order.
        *args, **kwargs:
            Passed to every plugin constructor.

        Raises
        ------
        PluginNotFoundError
            If any name is not registered.
        """
        selected = self.names() if names is None else list(names)
        return [self.get(name)(*args, **kwargs) for name in selected]

    def __contains__(self, name: object) -> bool:
        """Support ``"my-plugin" in registry`` membership test."""
        return name in self._plugins

    def __len__(self) -> int:
        """Return the number of registered plugins."""
        return len(self._plugins)

    def __repr__(self) -> str:
        return (
            f"PluginRegistry(name={self._name!r}, "
            f"base_class={self._base_class.__name__}, "
            f"plugins={self.names()})"
        )

    # ------------------------------------------------------------------
    # Entry-point loading
    # ------------------------------------------------------------------

    def load_entrypoints(self, group: str = ENTRYPOINT_GROUP) -> list[str]:
        """Discover and register plugins declared as package entry-points.

        Names already registered are skipped, which makes repeated calls
        idempotent.  An entry-point that fails to import or is not a
        ``base_class`` subclass is logged and skipped.

        Returns
        -------
        list[str]
            Names newly registered by this call.
        """
        loaded: list[str] = []
        for ep in importlib.metadata.entry_points(group=group):
            if ep.name in self._plugins:
                logger.debug(
                    "Entry-point %r already registered in %r; skipping.",
                    ep.name,
                    self._name,
                )
                continue
            try:
                cls = ep.load()
            except Exception:
                logger.exception(
                    "Failed to load entry-point %r from group %r; skipping.",
                    ep.name,
                    group,
                )
                continue
            try:
                self.register_class(ep.name, cls)
            except (PluginAlreadyRegisteredError, TypeError):
                logger.warning(
                    "Entry-point %r loaded but could not be registered "
                    "in registry %r; skipping.",
                    ep.name,
                    self._name,
                )
                continue
            loaded.append(ep.name)
        return loaded
