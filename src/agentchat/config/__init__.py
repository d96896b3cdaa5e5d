"""Configuration management for agentchat.

Provides hierarchical YAML-based configuration with:
- System-level config (/etc/agentchat/ or %PROGRAMDATA%)
- User-level config (~/.config/agentchat/ or %APPDATA%)
- Project-level config ($project_root/.agentchat/)
- Environment variable overrides (highest priority)

Example usage:
    from agentchat.config import load_config

    config = load_config(project_root="/path/to/project")
    print(config.engine.nested_agent_tools)
"""

from agentchat.config.loader import (
    ConfigError,
    get_config,
    load_config,
    reset_config,
)
from agentchat.config.paths import get_config_paths
from agentchat.config.schema import Config, EngineConfig, LoggingConfig

__all__ = [
    "Config",
    "ConfigError",
    "EngineConfig",
    "LoggingConfig",
    "get_config",
    "load_config",
    "reset_config",
    "get_config_paths",
]
