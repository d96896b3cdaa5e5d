"""Internal per-session record owned by the SessionStore."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any

from agentchat.transcript.models import (
    AssistantMessage,
    SessionState,
    SubagentStatus,
    ToolCallMessage,
    ToolResult,
    tool_message_id,
)

PUBLIC_FIELDS = tuple(f.name for f in fields(SessionState))


@dataclass
class TrackedSession(SessionState):
    """SessionState plus the bookkeeping normalizers need.

    Attributes:
        parent_tool_map: Correlation id of a nested-agent tool call -> id of
            its host ``ToolCallMessage``.
        current_streaming_id: Message currently receiving deltas, if any.
    """

    parent_tool_map: dict[str, str] = field(default_factory=dict)
    current_streaming_id: str | None = None

    def public_fields(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in PUBLIC_FIELDS}

    def current_streaming(self) -> AssistantMessage | None:
        if self.current_streaming_id is None:
            return None
        message = self.find_message(self.current_streaming_id)
        return message if isinstance(message, AssistantMessage) else None

    def start_streaming(self, message_id: str, prune: bool = True) -> AssistantMessage:
        """Open a new streaming assistant message, closing any open one first."""
        self.end_streaming(prune=prune)
        message = AssistantMessage(id=message_id, is_streaming=True)
        self.messages.append(message)
        self.current_streaming_id = message_id
        return message

    def end_streaming(self, prune: bool = True) -> None:
        """Finish the current streaming message.

        An empty message (no text, no reasoning) is removed when ``prune`` is
        set; otherwise it is frozen as-is.
        """
        message = self.current_streaming()
        self.current_streaming_id = None
        if message is None:
            return
        if prune and message.is_empty():
            self.remove_message(message.id)
        else:
            message.finalize()

    def drop_message(self, message_id: str) -> None:
        self.remove_message(message_id)
        if self.current_streaming_id == message_id:
            self.current_streaming_id = None

    def add_tool_call(
        self,
        tool_use_id: str,
        tool_name: str,
        tool_input: dict[str, Any],
        nested_agent: bool = False,
    ) -> ToolCallMessage | None:
        """Append a running tool call; None if one with this id already exists."""
        message_id = tool_message_id(tool_use_id)
        if self.find_message(message_id) is not None:
            return None
        message = ToolCallMessage(
            id=message_id,
            tool_name=tool_name,
            tool_input=tool_input,
            subagent_steps=[] if nested_agent else None,
            subagent_status=SubagentStatus.RUNNING if nested_agent else None,
        )
        self.messages.append(message)
        return message

    def close_pending_tools(self) -> int:
        """Mark every unresolved tool call completed with a neutral result."""
        closed = 0
        for message in self.messages:
            if isinstance(message, ToolCallMessage) and message.is_pending:
                message.tool_result = ToolResult(status="completed")
                message.complete_subagent()
                closed += 1
        return closed
