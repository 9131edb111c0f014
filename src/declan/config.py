"""Configuration loading for declan (``declan.yml``).

Example file::

    handlers:          # run order; omit to run every registered handler
      - host-metadata
      - component
      - module
    strict: false      # promote warnings to errors
    resource_root: src # where templateUrl and friends are resolved
    entrypoints: true  # also load third-party handlers
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

DEFAULT_CONFIG_NAME = "declan.yml"

_KNOWN_KEYS = frozenset({"handlers", "strict", "resource_root", "entrypoints"})


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed or is invalid."""


@dataclass(frozen=True)
class DeclanConfig:
    """Settings read from ``declan.yml``.

    Parameters
    ----------
    handlers:
        Handler names in run order, or ``None`` for every registered
        handler in registration order.
    strict:
        Promote WARNING diagnostics to ERROR.
    resource_root:
        Directory relative resource identifiers are resolved against.
    entrypoints:
        Load third-party handlers from package entry-points.
    """

    handlers: tuple[str, ...] | None = None
    strict: bool = False
    resource_root: Path | None = None
    entrypoints: bool = True


def load_config(config_path: str | Path | None = None) -> DeclanConfig:
    """Load configuration from disk.

    Parameters
    ----------
    config_path:
        A file, or a directory containing ``declan.yml``.  ``None`` means
        the current directory.  A missing file yields the defaults.

    Raises
    ------
    ConfigError
        If the file is not valid YAML or has unknown keys or wrong types.
    """
    path = Path(config_path) if config_path is not None else Path.cwd()
    if path.is_dir():
        path = path / DEFAULT_CONFIG_NAME
    if not path.exists():
        return DeclanConfig()

    try:
        with path.open(encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Failed to read {path}: {exc}") from exc

    return parse_config(data, base_dir=path.parent)


def parse_config(data: Any, base_dir: Path | None = None) -> DeclanConfig:
    """Build a ``DeclanConfig`` from an already-loaded mapping."""
    if data is None:
        return DeclanConfig()
    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a mapping")

    unknown = sorted(set(data) - _KNOWN_KEYS)
    if unknown:
        raise ConfigError(f"Unknown configuration key(s): {', '.join(unknown)}")

    handlers = data.get("handlers")
    if handlers is not None:
        if not isinstance(handlers, list) or not all(isinstance(h, str) for h in handlers):
            raise ConfigError("'handlers' must be a list of handler names")
        if len(set(handlers)) != len(handlers):
            raise ConfigError("'handlers' lists a handler more than once")
        handlers = tuple(handlers)

    strict = data.get("strict", False)
    if not isinstance(strict, bool):
        raise ConfigError("'strict' must be true or false")

    entrypoints = data.get("entrypoints", True)
    if not isinstance(entrypoints, bool):
        raise ConfigError("'entrypoints' must be true or false")

    resource_root = data.get("resource_root")
    if resource_root is not None:
        if not isinstance(resource_root, str):
            raise ConfigError("'resource_root' must be a path string")
        resource_root = Path(resource_root)
        if base_dir is not None and not resource_root.is_absolute():
            resource_root = base_dir / resource_root

    return DeclanConfig(
        handlers=handlers,
        strict=strict,
        resource_root=resource_root,
        entrypoints=entrypoints,
    )
