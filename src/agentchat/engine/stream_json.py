"""Stream-json event normalization.

Folds the turn-based protocol into the transcript. Deltas accumulate into a
streaming assistant message; the ``assistant`` event that follows carries the
authoritative text and overwrites whatever the deltas produced.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from agentchat.engine.permissions import accumulate_cost
from agentchat.engine.subagents import SubagentResolver
from agentchat.logging import TRACE, get_logger
from agentchat.protocols.stream_json import (
    AssistantEvent,
    ResultEvent,
    StreamEvent,
    StreamJsonEvent,
    StreamPayload,
    SystemEvent,
    UserEvent,
)
from agentchat.protocols.tools import normalize_tool_result
from agentchat.transcript.models import (
    AssistantMessage,
    SessionInfo,
    SubagentStep,
    SystemMessage,
)

if TYPE_CHECKING:
    from agentchat.engine.state import TrackedSession
    from agentchat.engine.store import SessionStore

log = get_logger("engine.stream_json")

_RESULT_ERRORS = {
    "error_max_turns": "Session reached the maximum number of turns. Start a new session to continue.",
    "error_max_budget_usd": "Session exceeded the cost budget limit.",
    "error_max_structured_output_retries": "Structured output failed after maximum retries.",
}


def format_result_error(subtype: str | None, detail: str) -> str:
    """Text for the system message shown when a turn ends in error."""
    if subtype in _RESULT_ERRORS:
        return _RESULT_ERRORS[subtype]
    if subtype == "error_during_execution":
        return detail or "An error occurred during execution."
    return detail or "An unexpected error occurred."


class StreamJsonNormalizer:
    """Applies stream-json events to session records."""

    def __init__(self, store: SessionStore, resolver: SubagentResolver) -> None:
        self._store = store
        self._resolver = resolver

    @property
    def _prune(self) -> bool:
        return self._store.config.prune_empty_messages

    def handle(self, session_id: str, event: StreamJsonEvent) -> None:
        record = self._store._get_or_create(session_id)
        record.is_connected = True
        log.log(TRACE, "stream-json %s for %s", event.type, session_id)

        if event.parent_tool_use_id:
            self._handle_nested(record, event, event.parent_tool_use_id)
            return

        match event:
            case SystemEvent():
                self._on_system(session_id, record, event)
            case StreamEvent():
                self._on_stream(record, event.event)
            case AssistantEvent():
                self._on_assistant(record, event)
            case UserEvent():
                self._on_tool_results(record, event)
            case ResultEvent():
                self._on_result(session_id, record, event)

    def _on_system(self, session_id: str, record: TrackedSession, event: SystemEvent) -> None:
        if event.is_ignored:
            return
        record.session_info = SessionInfo(
            session_id=event.session_id,
            model=event.model,
            cwd=event.cwd,
            tools=list(event.tools),
            version=event.claude_code_version,
            permission_mode=event.permission_mode,
        )
        record.is_processing = True
        self._store._notify_processing(session_id, True)

    def _on_stream(self, record: TrackedSession, payload: StreamPayload) -> None:
        match payload.type:
            case "message_start":
                record.start_streaming(self._store._next_id(record, "stream-bg"), prune=self._prune)
            case "content_block_delta":
                target = record.current_streaming()
                if target is None or payload.delta is None:
                    return
                if payload.delta.type == "text_delta":
                    target.append_text(payload.delta.text or "")
                elif payload.delta.type == "thinking_delta":
                    target.append_thinking(payload.delta.thinking or "")
            case "message_delta" | "message_stop":
                record.end_streaming(prune=self._prune)

    def _on_assistant(self, record: TrackedSession, event: AssistantEvent) -> None:
        text = event.text()
        thinking = event.thinking()

        target = record.current_streaming() or record.last_streaming_assistant()
        if target is None and event.uuid:
            existing = record.find_message(f"assistant-{event.uuid}")
            if isinstance(existing, AssistantMessage):
                target = existing

        if target is not None:
            if text:
                target.content = text
            if thinking:
                target.thinking = thinking
                target.thinking_complete = True
            if self._prune and target.is_empty():
                record.drop_message(target.id)
        elif text or thinking:
            message_id = (
                f"assistant-{event.uuid}" if event.uuid else self._store._next_id(record, "assistant")
            )
            record.messages.append(
                AssistantMessage(
                    id=message_id,
                    content=text,
                    thinking=thinking or None,
                    thinking_complete=bool(thinking),
                )
            )

        config = self._store.config
        for block in event.tool_uses():
            tool_name = block.name or "Tool"
            nested = config.is_nested_agent(tool_name)
            message = record.add_tool_call(block.id, tool_name, dict(block.input or {}), nested)
            if message is not None and nested:
                self._resolver.register_host(record, message)

    def _on_tool_results(self, record: TrackedSession, event: UserEvent) -> None:
        blocks = event.tool_results()
        # The structured result describes the event's only tool result
        structured = event.tool_use_result if len(blocks) == 1 else None
        for block in blocks:
            message = record.find_tool_call(block.tool_use_id)
            if message is None:
                log.debug("Tool result for unknown call %s", block.tool_use_id)
                continue
            result = normalize_tool_result(structured, block.content)
            message.tool_result = result
            if block.is_error:
                message.tool_error = True
            message.complete_subagent(result)

    def _on_result(self, session_id: str, record: TrackedSession, event: ResultEvent) -> None:
        record.is_processing = False
        self._store._notify_processing(session_id, False)
        accumulate_cost(record, event.total_cost_usd)

        if event.failed:
            record.messages.append(
                SystemMessage(
                    id=self._store._next_id(record, "sys-err"),
                    content=format_result_error(event.subtype, event.error_detail()),
                    is_error=True,
                )
            )

    def _handle_nested(
        self, record: TrackedSession, event: StreamJsonEvent, parent_id: str
    ) -> None:
        host = self._resolver.resolve_host(record, parent_id)
        if host is None:
            return

        match event:
            case AssistantEvent():
                for block in event.tool_uses():
                    self._resolver.add_step(
                        host,
                        SubagentStep(
                            tool_name=block.name or "Tool",
                            tool_input=dict(block.input or {}),
                            tool_use_id=block.id,
                        ),
                    )
            case UserEvent():
                blocks = event.tool_results()
                structured = event.tool_use_result if len(blocks) == 1 else None
                for block in blocks:
                    self._resolver.attach_step_result(
                        host, block.tool_use_id, normalize_tool_result(structured, block.content)
                    )
            case _:
                log.log(TRACE, "Ignoring nested %s event under %s", event.type, host.id)
