"""Protocol-agnostic transcript model.

A transcript is an ordered list of messages. Each message is one of four
dataclasses, tagged by ``role``. Tool-call messages are keyed by the
correlation id of the invocation (``tool-<id>``), so the id alone is enough
to find the message again after a state handoff.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal

TOOL_ID_PREFIX = "tool-"


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def tool_message_id(tool_use_id: str) -> str:
    return f"{TOOL_ID_PREFIX}{tool_use_id}"


class Role(str, Enum):
    """Message role tags."""

    USER = "user"
    ASSISTANT = "assistant"
    TOOL_CALL = "tool_call"
    SYSTEM = "system"


class SubagentStatus(str, Enum):
    RUNNING = "running"
    COMPLETED = "completed"


@dataclass(slots=True)
class ToolResult:
    """Normalized tool result, same shape for both protocols.

    Only the fields a given tool reports are set; anything unrecognized is
    kept in ``extra``.
    """

    content: str | list[dict[str, Any]] | None = None
    stdout: str | None = None
    stderr: str | None = None
    file: dict[str, Any] | None = None
    file_path: str | None = None
    old_string: str | None = None
    new_string: str | None = None
    status: str | None = None
    is_async: bool = False
    agent_id: str | None = None
    total_duration_ms: int | None = None
    total_tokens: int | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def text(self) -> str:
        """Best-effort plain text: stdout, then string content, then text blocks."""
        if self.stdout:
            return self.stdout
        if isinstance(self.content, str):
            return self.content
        if isinstance(self.content, list):
            return "\n".join(
                str(block.get("text", ""))
                for block in self.content
                if isinstance(block, dict) and block.get("type") == "text"
            )
        return ""


@dataclass(slots=True)
class SubagentStep:
    """A tool call made inside a nested agent loop."""

    tool_name: str
    tool_input: dict[str, Any]
    tool_use_id: str
    tool_result: ToolResult | None = None


@dataclass(slots=True)
class ImageAttachment:
    media_type: str
    data: str  # base64


@dataclass(slots=True)
class UserMessage:
    id: str
    content: str
    images: list[ImageAttachment] = field(default_factory=list)
    timestamp: int = field(default_factory=now_ms)
    role: Literal[Role.USER] = Role.USER


@dataclass(slots=True)
class AssistantMessage:
    """Assistant text plus optional reasoning.

    ``thinking_complete`` flips once visible text follows the reasoning or the
    message is finalized.
    """

    id: str
    content: str = ""
    thinking: str | None = None
    is_streaming: bool = False
    thinking_complete: bool = False
    timestamp: int = field(default_factory=now_ms)
    role: Literal[Role.ASSISTANT] = Role.ASSISTANT

    def is_empty(self) -> bool:
        return not self.content.strip() and not self.thinking

    def append_text(self, text: str) -> None:
        # Text following reasoning ends the reasoning phase
        if self.thinking and not self.thinking_complete:
            self.thinking_complete = True
        self.content += text

    def append_thinking(self, text: str) -> None:
        self.thinking = (self.thinking or "") + text

    def finalize(self) -> None:
        if self.thinking and not self.thinking_complete:
            self.thinking_complete = True
        self.is_streaming = False


@dataclass(slots=True)
class ToolCallMessage:
    """A tool invocation and, once finished, its result.

    ``subagent_steps`` is None for ordinary tools and a list for nested-agent
    tools, which is how a nested-agent host is recognized after a handoff.
    """

    id: str
    tool_name: str
    tool_input: dict[str, Any] = field(default_factory=dict)
    tool_result: ToolResult | None = None
    tool_error: bool = False
    subagent_steps: list[SubagentStep] | None = None
    subagent_status: SubagentStatus | None = None
    subagent_id: str | None = None
    subagent_duration_ms: int | None = None
    subagent_tokens: int | None = None
    timestamp: int = field(default_factory=now_ms)
    role: Literal[Role.TOOL_CALL] = Role.TOOL_CALL

    @property
    def tool_use_id(self) -> str:
        return self.id.removeprefix(TOOL_ID_PREFIX)

    @property
    def is_subagent_host(self) -> bool:
        return self.subagent_steps is not None

    @property
    def is_pending(self) -> bool:
        return self.tool_result is None and not self.tool_error

    def find_step(self, tool_use_id: str) -> SubagentStep | None:
        for step in self.subagent_steps or ():
            if step.tool_use_id == tool_use_id:
                return step
        return None

    def complete_subagent(self, result: ToolResult | None = None) -> None:
        if not self.is_subagent_host:
            return
        self.subagent_status = SubagentStatus.COMPLETED
        if result is not None:
            self.subagent_id = result.agent_id
            self.subagent_duration_ms = result.total_duration_ms
            self.subagent_tokens = result.total_tokens


@dataclass(slots=True)
class SystemMessage:
    """Synthesized status or error line, not present on either wire."""

    id: str
    content: str
    is_error: bool = False
    timestamp: int = field(default_factory=now_ms)
    role: Literal[Role.SYSTEM] = Role.SYSTEM


Message = UserMessage | AssistantMessage | ToolCallMessage | SystemMessage


@dataclass(slots=True)
class SessionInfo:
    """Agent-reported session metadata, replaced wholesale on restart."""

    session_id: str | None = None
    model: str | None = None
    cwd: str | None = None
    tools: list[str] = field(default_factory=list)
    version: str | None = None
    permission_mode: str | None = None


@dataclass(slots=True)
class PermissionOption:
    option_id: str
    name: str
    kind: str | None = None


@dataclass(slots=True)
class PermissionRequest:
    """Normalized tool permission request."""

    request_id: str | None
    tool_name: str
    tool_input: dict[str, Any] = field(default_factory=dict)
    tool_use_id: str | None = None
    title: str | None = None
    options: list[PermissionOption] = field(default_factory=list)


@dataclass
class SessionState:
    """Accumulated state of one agent session.

    ``raw_permission`` keeps the protocol-specific request alongside the
    normalized one, since answering it needs fields the normalized shape drops.
    """

    messages: list[Message] = field(default_factory=list)
    is_processing: bool = False
    is_connected: bool = False
    session_info: SessionInfo | None = None
    total_cost: float = 0.0
    pending_permission: PermissionRequest | None = None
    raw_permission: dict[str, Any] | None = None

    def find_message(self, message_id: str) -> Message | None:
        for message in self.messages:
            if message.id == message_id:
                return message
        return None

    def find_tool_call(self, tool_use_id: str) -> ToolCallMessage | None:
        message = self.find_message(tool_message_id(tool_use_id))
        return message if isinstance(message, ToolCallMessage) else None

    def last_streaming_assistant(self) -> AssistantMessage | None:
        for message in reversed(self.messages):
            if isinstance(message, AssistantMessage) and message.is_streaming:
                return message
        return None

    def remove_message(self, message_id: str) -> None:
        self.messages[:] = [m for m in self.messages if m.id != message_id]

    def streaming_count(self) -> int:
        return sum(
            1 for m in self.messages if isinstance(m, AssistantMessage) and m.is_streaming
        )
