"""Stream-json event types.

The turn-based agent CLI protocol: one JSON object per line, tagged by
``type``. A turn looks like::

    system(init) -> stream_event* -> assistant -> user(tool_result)* -> ... -> result

Events emitted by a nested agent loop carry ``parent_tool_use_id``.

Only the ``type`` tags and the payload objects are strict. Optional scalars
that arrive with the wrong type read as their default, so a terminal event
is never lost over one bad field.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BeforeValidator, Field, TypeAdapter

from agentchat.protocols.common import (
    LenientFlag,
    LenientMapping,
    LenientNumber,
    LenientStr,
    LenientStrList,
    WireModel,
)

# System subtypes that carry no transcript data
IGNORED_SYSTEM_SUBTYPES = frozenset({"status", "compact_boundary"})


def _result_content(value: Any) -> Any:
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        return [item for item in value if isinstance(item, dict)]
    return None


class ContentBlock(WireModel):
    """Message content block (polymorphic based on type field)."""

    type: str

    # text
    text: LenientStr = None

    # thinking
    thinking: LenientStr = None

    # tool_use
    id: LenientStr = None
    name: LenientStr = None
    input: LenientMapping = None

    # tool_result
    tool_use_id: LenientStr = None
    content: Annotated[
        str | list[dict[str, Any]] | None, BeforeValidator(_result_content)
    ] = None
    is_error: LenientFlag = False


class AssistantPayload(WireModel):
    id: LenientStr = None
    model: LenientStr = None
    content: list[ContentBlock] = Field(default_factory=list)


class UserPayload(WireModel):
    content: str | list[ContentBlock] = Field(default_factory=list)


class StreamDelta(WireModel):
    """Delta of a stream payload.

    ``content_block_delta`` carries ``text_delta`` or ``thinking_delta``;
    ``message_delta`` carries ``stop_reason`` and no type.
    """

    type: LenientStr = None
    text: LenientStr = None
    thinking: LenientStr = None
    stop_reason: LenientStr = None


def _delta_object(value: Any) -> Any:
    return value if isinstance(value, (dict, StreamDelta)) else None


class StreamPayload(WireModel):
    """Raw model streaming event wrapped by ``stream_event``."""

    type: str
    delta: Annotated[StreamDelta | None, BeforeValidator(_delta_object)] = None


class _EventBase(WireModel):
    session_id: LenientStr = None
    uuid: LenientStr = None
    parent_tool_use_id: LenientStr = None


class SystemEvent(_EventBase):
    type: Literal["system"]
    subtype: LenientStr = None
    model: LenientStr = None
    cwd: LenientStr = None
    tools: LenientStrList = Field(default_factory=list)
    claude_code_version: LenientStr = None
    permission_mode: LenientStr = Field(default=None, alias="permissionMode")

    @property
    def is_ignored(self) -> bool:
        return self.subtype in IGNORED_SYSTEM_SUBTYPES


class StreamEvent(_EventBase):
    type: Literal["stream_event"]
    event: StreamPayload


class AssistantEvent(_EventBase):
    type: Literal["assistant"]
    message: AssistantPayload

    def text(self) -> str:
        return "".join(b.text or "" for b in self.message.content if b.type == "text")

    def thinking(self) -> str:
        return "".join(
            b.thinking or "" for b in self.message.content if b.type == "thinking"
        )

    def tool_uses(self) -> list[ContentBlock]:
        return [b for b in self.message.content if b.type == "tool_use" and b.id]


class UserEvent(_EventBase):
    """User-role event; from the agent this carries tool results."""

    type: Literal["user"]
    message: UserPayload
    tool_use_result: Any = None

    def tool_results(self) -> list[ContentBlock]:
        if isinstance(self.message.content, str):
            return []
        return [
            b for b in self.message.content if b.type == "tool_result" and b.tool_use_id
        ]


class ResultEvent(_EventBase):
    type: Literal["result"]
    subtype: LenientStr = None
    is_error: LenientFlag = False
    total_cost_usd: LenientNumber = None
    result: LenientStr = None
    errors: LenientStrList = Field(default_factory=list)

    @property
    def failed(self) -> bool:
        return self.is_error or (self.subtype or "").startswith("error")

    def error_detail(self) -> str:
        if self.errors:
            return "; ".join(self.errors)
        return self.result or ""


StreamJsonEvent = Annotated[
    Union[SystemEvent, StreamEvent, AssistantEvent, UserEvent, ResultEvent],
    Field(discriminator="type"),
]

_event_adapter: TypeAdapter[StreamJsonEvent] = TypeAdapter(StreamJsonEvent)


def parse_event(data: dict[str, Any]) -> StreamJsonEvent:
    """Validate a decoded stream-json line.

    Raises:
        pydantic.ValidationError: For unknown ``type`` tags or a missing or
            malformed payload object.
    """
    return _event_adapter.validate_python(data)
