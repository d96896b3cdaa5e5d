"""agentchat: multi-session agent event normalization and accumulation engine."""

__version__ = "0.1.0"

# Public API
from agentchat.config import Config, EngineConfig, load_config
from agentchat.engine import SessionStore
from agentchat.transcript import (
    AssistantMessage,
    Message,
    PermissionRequest,
    SessionInfo,
    SessionState,
    SubagentStep,
    SystemMessage,
    ToolCallMessage,
    ToolResult,
    UserMessage,
)

__all__ = [
    # Engine
    "SessionStore",
    # Transcript
    "AssistantMessage",
    "Message",
    "PermissionRequest",
    "SessionInfo",
    "SessionState",
    "SubagentStep",
    "SystemMessage",
    "ToolCallMessage",
    "ToolResult",
    "UserMessage",
    # Config
    "Config",
    "EngineConfig",
    "load_config",
]
