"""Declaration handlers.

Exports the ``Handler`` contract, the built-in handlers, and
``default_registry``, which lists the built-ins in the order the
pipeline runs them by default.
"""
from __future__ import annotations

from declan.handlers.base import (
    AnalysisOutput,
    Collaborators,
    CompiledArtifact,
    Exclusivity,
    Handler,
    HandlerError,
)
from declan.handlers.host_metadata import HostMetadata, HostMetadataDetection, HostMetadataHandler
from declan.handlers.markers import (
    ComponentHandler,
    DirectiveHandler,
    InjectableHandler,
    MarkerDetection,
    MarkerHandler,
    MarkerMetadata,
    ModuleHandler,
    PipeHandler,
    ServiceHandler,
)
from declan.plugins.registry import PluginRegistry

BUILTIN_HANDLERS: tuple[type[Handler], ...] = (
    HostMetadataHandler,
    ComponentHandler,
    DirectiveHandler,
    InjectableHandler,
    ModuleHandler,
    PipeHandler,
    ServiceHandler,
)

default_registry: PluginRegistry[Handler] = PluginRegistry(Handler, "handlers")
for _handler_cls in BUILTIN_HANDLERS:
    default_registry.register_class(_handler_cls.name, _handler_cls)
del _handler_cls

__all__ = [
    "Handler",
    "HandlerError",
    "Exclusivity",
    "AnalysisOutput",
    "CompiledArtifact",
    "Collaborators",
    "HostMetadataHandler",
    "HostMetadataDetection",
    "HostMetadata",
    "MarkerHandler",
    "MarkerDetection",
    "MarkerMetadata",
    "ComponentHandler",
    "DirectiveHandler",
    "InjectableHandler",
    "ModuleHandler",
    "PipeHandler",
    "ServiceHandler",
    "BUILTIN_HANDLERS",
    "default_registry",
]
