"""Configuration file loading and caching.

Handles:
- YAML file parsing
- Environment variable overrides
- Config caching with reset support
- Conversion from dict to typed Config dataclass
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from agentchat.config.merge import merge_configs
from agentchat.config.paths import get_config_paths
from agentchat.config.schema import (
    DEFAULT_NESTED_AGENT_TOOLS,
    Config,
    EngineConfig,
    LoggingConfig,
)

# Module logger (may not be configured yet at import time)
_log = logging.getLogger("agentchat.config")

_cached_config: Config | None = None

_KNOWN_SECTIONS = {"logging", "engine"}


class ConfigError(Exception):
    """Raised when an explicitly requested config file cannot be used."""


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file, returning empty dict if not found or invalid.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed YAML as dict, or empty dict on error.
    """
    if not path.exists():
        return {}

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
            return data if isinstance(data, dict) else {}
    except yaml.YAMLError as e:
        _log.warning("Invalid YAML in %s: %s", path, e)
        return {}
    except PermissionError:
        _log.debug("Permission denied reading %s", path)
        return {}
    except OSError as e:
        _log.warning("Error reading %s: %s", path, e)
        return {}


def env_overrides() -> dict[str, Any]:
    """Build config dict from environment variables (highest priority)."""
    overrides: dict[str, Any] = {}

    log_path = os.environ.get("AGENTCHAT_LOG")
    if log_path:
        overrides.setdefault("logging", {})["file"] = log_path

    log_level = os.environ.get("AGENTCHAT_LOG_LEVEL")
    if log_level:
        overrides.setdefault("logging", {})["level"] = log_level

    return overrides


def dict_to_config(data: dict[str, Any]) -> Config:
    """Convert merged dict to typed Config dataclass."""
    log_data = data.get("logging") or {}
    verbose = log_data.get("verbose")
    logging_config = LoggingConfig(
        level=log_data.get("level"),
        verbose=verbose if isinstance(verbose, int) else None,
        file=log_data.get("file"),
    )

    engine_data = data.get("engine") or {}
    tools = engine_data.get("nested_agent_tools")
    if isinstance(tools, str):
        tools = [tools]
    if not isinstance(tools, list):
        tools = list(DEFAULT_NESTED_AGENT_TOOLS)
    engine = EngineConfig(
        nested_agent_tools=[t for t in tools if isinstance(t, str) and t],
        close_pending_acp_tools=bool(engine_data.get("close_pending_acp_tools", True)),
        prune_empty_messages=bool(engine_data.get("prune_empty_messages", True)),
    )

    extra = {k: v for k, v in data.items() if k not in _KNOWN_SECTIONS}

    return Config(logging=logging_config, engine=engine, extra=extra)


def load_config(
    project_root: str | None = None,
    config_path: Path | None = None,
    reload: bool = False,
) -> Config:
    """Load and merge config from all sources.

    Priority order (highest to lowest):
    1. Environment variables
    2. Explicit config file (``config_path``)
    3. Project config ($project_root/.agentchat/config.yaml)
    4. User config (~/.config/agentchat/ or %APPDATA%)
    5. System config (/etc/agentchat/ or %PROGRAMDATA%)

    Args:
        project_root: Project directory for project-level config.
        config_path: Explicit config file; must exist.
        reload: Force reload even if cached.

    Raises:
        ConfigError: If ``config_path`` does not exist.
    """
    global _cached_config

    use_cache = project_root is None and config_path is None
    if _cached_config is not None and not reload and use_cache:
        return _cached_config

    layers: list[dict[str, Any]] = []

    for path in get_config_paths(project_root):
        data = load_yaml_file(path)
        if data:
            _log.debug("Loaded config from %s", path)
            layers.append(data)

    if config_path is not None:
        if not config_path.exists():
            raise ConfigError(f"Config file not found: {config_path}")
        layers.append(load_yaml_file(config_path))

    env_config = env_overrides()
    if env_config:
        layers.append(env_config)

    config = dict_to_config(merge_configs(*layers))

    if use_cache:
        _cached_config = config

    return config


def get_config() -> Config:
    """Get the cached global config, loading it on first use."""
    if _cached_config is None:
        return load_config()
    return _cached_config


def reset_config() -> None:
    """Reset cached config. Useful for testing or forcing a reload."""
    global _cached_config
    _cached_config = None
