"""Protocol-agnostic conversation transcript."""

from agentchat.transcript.models import (
    AssistantMessage,
    ImageAttachment,
    Message,
    PermissionOption,
    PermissionRequest,
    Role,
    SessionInfo,
    SessionState,
    SubagentStatus,
    SubagentStep,
    SystemMessage,
    ToolCallMessage,
    ToolResult,
    UserMessage,
    tool_message_id,
)

__all__ = [
    "AssistantMessage",
    "ImageAttachment",
    "Message",
    "PermissionOption",
    "PermissionRequest",
    "Role",
    "SessionInfo",
    "SessionState",
    "SubagentStatus",
    "SubagentStep",
    "SystemMessage",
    "ToolCallMessage",
    "ToolResult",
    "UserMessage",
    "tool_message_id",
]
