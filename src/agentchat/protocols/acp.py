"""ACP session update types.

Agent Client Protocol agents stream ``session/update`` notifications; each
carries one update tagged by ``sessionUpdate``. Turn completion is not an
update: it arrives as the ``session/prompt`` response and is delivered to the
engine separately.

The ``sessionUpdate`` tag is strict. Other fields are optional and read
leniently, so an unknown tool call status reads as no status at all.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any

from pydantic import BeforeValidator, Field

from agentchat.protocols.common import (
    LenientMapping,
    LenientNumber,
    LenientStr,
    WireModel,
)


class SessionUpdateKind(str, Enum):
    """Session update kinds."""

    USER_MESSAGE_CHUNK = "user_message_chunk"
    AGENT_MESSAGE_CHUNK = "agent_message_chunk"
    AGENT_THOUGHT_CHUNK = "agent_thought_chunk"
    TOOL_CALL = "tool_call"
    TOOL_CALL_UPDATE = "tool_call_update"
    PLAN = "plan"
    AVAILABLE_COMMANDS = "available_commands_update"
    CURRENT_MODE = "current_mode_update"
    USAGE = "usage_update"


class ToolCallStatus(str, Enum):
    """Status of a tool call."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ToolCallStatus.COMPLETED, ToolCallStatus.FAILED)

    @classmethod
    def read(cls, value: Any) -> ToolCallStatus | None:
        """Status for a wire value, None when unknown."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except (ValueError, TypeError):
            return None


class Cost(WireModel):
    amount: LenientNumber = None
    currency: LenientStr = None


def _cost_object(value: Any) -> Any:
    return value if isinstance(value, (dict, Cost)) else None


class SessionUpdate(WireModel):
    """Session update (polymorphic based on session_update field)."""

    session_update: SessionUpdateKind = Field(alias="sessionUpdate")

    # *_chunk: a single content block; tool_call*: a list of tool call content
    content: Any = None

    # tool_call / tool_call_update
    tool_call_id: LenientStr = Field(default=None, alias="toolCallId")
    title: LenientStr = None
    kind: LenientStr = None
    status: Annotated[ToolCallStatus | None, BeforeValidator(ToolCallStatus.read)] = None
    raw_input: Any = Field(default=None, alias="rawInput")
    raw_output: Any = Field(default=None, alias="rawOutput")

    # usage_update
    cost: Annotated[Cost | None, BeforeValidator(_cost_object)] = None

    meta: LenientMapping = Field(default=None, alias="_meta")

    def chunk_text(self) -> str:
        """Text of a message/thought chunk, empty for non-text content."""
        block = self.content
        if isinstance(block, dict) and block.get("type") == "text":
            return str(block.get("text") or "")
        return ""

    def parent_tool_call_id(self) -> str | None:
        """Id of the tool call whose nested agent produced this update."""
        meta = self.meta or {}
        parent = meta.get("parentToolCallId")
        if parent is None:
            agent_meta = meta.get("claudeCode")
            if isinstance(agent_meta, dict):
                parent = agent_meta.get("parentToolUseId")
        return parent if isinstance(parent, str) and parent else None


def parse_update(data: dict[str, Any]) -> SessionUpdate:
    """Validate an update, accepting either the bare update or the notification.

    Raises:
        pydantic.ValidationError: For unknown kinds or a missing tag.
    """
    if isinstance(data.get("update"), dict):
        data = data["update"]
    return SessionUpdate.model_validate(data)
