"""Wire event types for the supported agent protocols."""

from agentchat.protocols.acp import (
    SessionUpdate,
    SessionUpdateKind,
    ToolCallStatus,
    parse_update,
)
from agentchat.protocols.stream_json import (
    AssistantEvent,
    ResultEvent,
    StreamEvent,
    StreamJsonEvent,
    SystemEvent,
    UserEvent,
    parse_event,
)
from agentchat.protocols.tools import (
    derive_tool_name,
    permission_from_acp,
    permission_from_stream_json,
)

__all__ = [
    "AssistantEvent",
    "ResultEvent",
    "SessionUpdate",
    "SessionUpdateKind",
    "StreamEvent",
    "StreamJsonEvent",
    "SystemEvent",
    "ToolCallStatus",
    "UserEvent",
    "derive_tool_name",
    "parse_event",
    "parse_update",
    "permission_from_acp",
    "permission_from_stream_json",
]
