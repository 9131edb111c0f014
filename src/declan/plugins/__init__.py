"""Plugin subsystem for declan.

The registry module provides the ordered, decorator-based registration
surface used for handlers.  Third-party handlers register via
``importlib.metadata`` entry-points under the "declan.handlers" group.

Example
-------
Declare a handler in pyproject.toml:

.. code-block:: toml

    [project.entry-points."declan.handlers"]
    my-marker = "my_package.handlers:MyMarkerHandler"
"""
from __future__ import annotations

from declan.plugins.registry import (
    ENTRYPOINT_GROUP,
    PluginAlreadyRegisteredError,
    PluginNotFoundError,
    PluginRegistry,
)

__all__ = [
    "ENTRYPOINT_GROUP",
    "PluginRegistry",
    "PluginNotFoundError",
    "PluginAlreadyRegisteredError",
]
