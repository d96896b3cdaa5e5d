"""Configuration schema dataclasses for agentchat.

Defines the structure of configuration at all levels (system, user, project).
All fields have defaults so partial configs merge together.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

DEFAULT_NESTED_AGENT_TOOLS = ("Task", "Agent")


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str | None = None  # TRACE, DEBUG, VERBOSE, INFO, WARNING, ERROR
    verbose: int | None = None  # 0-4, overrides level
    file: str | None = None  # Log file path


@dataclass
class EngineConfig:
    """Event normalization engine configuration.

    Example config.yaml:
        engine:
          nested_agent_tools: [Task, Agent]
          close_pending_acp_tools: true
          prune_empty_messages: true
    """

    # Tool names whose execution runs a nested agent loop
    nested_agent_tools: list[str] = field(
        default_factory=lambda: list(DEFAULT_NESTED_AGENT_TOOLS)
    )
    # Mark unresolved ACP tool calls completed when the conversation moves on
    close_pending_acp_tools: bool = True
    # Drop assistant messages that end with no text and no reasoning
    prune_empty_messages: bool = True

    def is_nested_agent(self, tool_name: str | None) -> bool:
        return bool(tool_name) and tool_name in self.nested_agent_tools


@dataclass
class Config:
    """Root configuration object."""

    logging: LoggingConfig = field(default_factory=LoggingConfig)
    engine: EngineConfig = field(default_factory=EngineConfig)

    # Extension point for future config sections
    extra: dict[str, Any] = field(default_factory=dict)
