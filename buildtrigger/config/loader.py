"""Helpers for loading workspace configuration from TOML/JSON sources.

This module provides a single entry point `load_workspace_config`
that accepts various configuration sources:

* None -> default WorkspaceConfig (no projects)
* dict -> WorkspaceConfig.from_dict
* Path / path-like string -> load .toml/.json from filesystem
* Inline JSON/TOML strings
"""

from __future__ import annotations

import json
import logging
import tomllib
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError

from buildtrigger.config.schema import WorkspaceConfig
from buildtrigger.errors import ConfigurationError

logger = logging.getLogger("buildtrigger.config.loader")

ConfigSource = Union[str, Path, Dict[str, Any], None]


def _detect_format(text: str) -> str:
    stripped = text.lstrip()
    return "json" if stripped.startswith(("{", "[")) else "toml"


def _looks_like_path(source: str) -> bool:
    return "\n" not in source and "=" not in source and not source.lstrip().startswith("{")


def load_workspace_config(source: ConfigSource) -> WorkspaceConfig:
    """Load WorkspaceConfig from various configuration sources.

    Args:
        source: One of:
            * None: returns an empty WorkspaceConfig with default settings
            * dict: treated as already-parsed configuration mapping
            * str/Path: either a filesystem path to a .toml/.json file,
              or an inline TOML/JSON string (auto-detected)

    Returns:
        WorkspaceConfig instance.

    Raises:
        ConfigurationError: If the source cannot be read, parsed or validated.
    """
    if source is None:
        logger.debug("No config source provided; using default WorkspaceConfig")
        return WorkspaceConfig()

    if isinstance(source, dict):
        logger.debug("Loading WorkspaceConfig from provided dict")
        return _validate(source)

    if isinstance(source, (str, Path)):
        text: Optional[str] = None
        fmt: Optional[str] = None

        path = Path(source)
        if isinstance(source, Path) or _looks_like_path(source):
            if not path.exists():
                raise ConfigurationError(f"Configuration file not found: {path}")
            try:
                text = path.read_text(encoding="utf-8")
            except OSError as exc:
                raise ConfigurationError(f"Cannot read configuration file {path}: {exc}") from exc
            suffix = path.suffix.lower()
            if suffix in {".toml", ".tml"}:
                fmt = "toml"
            elif suffix == ".json":
                fmt = "json"
            else:
                fmt = _detect_format(text)
            logger.info("Loading configuration from file: %s (fmt=%s)", path, fmt)
        else:
            text = str(source)
            fmt = _detect_format(text)
            logger.info("Loading configuration from inline %s string", fmt)

        try:
            data = json.loads(text) if fmt == "json" else tomllib.loads(text)
        except (json.JSONDecodeError, tomllib.TOMLDecodeError) as exc:
            raise ConfigurationError(f"Malformed {fmt} configuration: {exc}") from exc

        if not isinstance(data, dict):
            raise ConfigurationError("Top-level configuration must be a mapping/dict")

        return _validate(data)

    raise TypeError(f"Unsupported config source type: {type(source)!r}")


def _validate(data: Dict[str, Any]) -> WorkspaceConfig:
    try:
        return WorkspaceConfig.from_dict(data)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid workspace configuration: {exc}") from exc


__all__ = ["load_workspace_config", "ConfigSource"]
