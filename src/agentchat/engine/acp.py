"""ACP session update normalization.

ACP streams text and reasoning as chunks with no explicit message boundaries,
so a streaming assistant message is opened on the first chunk and closed by
the next tool call or by turn completion. Agents do not always send a final
``tool_call_update`` for fast tools; unresolved tool calls are closed as soon
as the conversation moves on.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from agentchat.engine.permissions import accumulate_cost
from agentchat.engine.subagents import SubagentResolver
from agentchat.logging import TRACE, VERBOSE, get_logger
from agentchat.protocols.acp import SessionUpdate, SessionUpdateKind, ToolCallStatus
from agentchat.protocols.tools import (
    derive_tool_name,
    normalize_acp_tool_input,
    normalize_acp_tool_result,
)
from agentchat.transcript.models import AssistantMessage, SubagentStep, ToolResult

if TYPE_CHECKING:
    from agentchat.engine.state import TrackedSession
    from agentchat.engine.store import SessionStore

log = get_logger("engine.acp")


class AcpNormalizer:
    """Applies ACP session updates to session records."""

    def __init__(self, store: SessionStore, resolver: SubagentResolver) -> None:
        self._store = store
        self._resolver = resolver

    @property
    def _prune(self) -> bool:
        return self._store.config.prune_empty_messages

    def handle(self, session_id: str, update: SessionUpdate) -> None:
        record = self._store._get_or_create(session_id)
        record.is_connected = True
        log.log(TRACE, "acp %s for %s", update.session_update.value, session_id)

        parent_id = update.parent_tool_call_id()
        if parent_id:
            self._handle_nested(record, update, parent_id)
            return

        match update.session_update:
            case SessionUpdateKind.AGENT_MESSAGE_CHUNK:
                self._close_pending_tools(record)
                text = update.chunk_text()
                if text:
                    self._ensure_streaming(record).append_text(text)
            case SessionUpdateKind.AGENT_THOUGHT_CHUNK:
                self._close_pending_tools(record)
                text = update.chunk_text()
                if text:
                    self._ensure_streaming(record).append_thinking(text)
            case SessionUpdateKind.TOOL_CALL:
                self._close_pending_tools(record)
                # A tool call always ends the current text/reasoning burst
                record.end_streaming(prune=self._prune)
                self._open_tool_call(record, update)
            case SessionUpdateKind.TOOL_CALL_UPDATE:
                self._update_tool_call(record, update)
            case SessionUpdateKind.USAGE:
                # Cost may arrive mid tool call; pending tools stay open
                accumulate_cost(record, update.cost.amount if update.cost else None)
            case _:
                log.log(TRACE, "Ignoring %s update", update.session_update.value)

    def turn_complete(self, session_id: str, stop_reason: str | None = None) -> None:
        """Finish the turn: close streaming and tools, clear processing."""
        record = self._store._sessions.get(session_id)
        if record is None:
            log.debug("Turn complete for unknown session %s", session_id)
            return
        log.log(VERBOSE, "Turn complete for %s (%s)", session_id, stop_reason or "end_turn")
        record.end_streaming(prune=self._prune)
        record.close_pending_tools()
        record.is_processing = False
        self._store._notify_processing(session_id, False)

    def _close_pending_tools(self, record: TrackedSession) -> None:
        if self._store.config.close_pending_acp_tools:
            record.close_pending_tools()

    def _ensure_streaming(self, record: TrackedSession) -> AssistantMessage:
        message = record.current_streaming()
        if message is None:
            message = record.start_streaming(
                self._store._next_id(record, "stream-bg"), prune=self._prune
            )
        return message

    def _open_tool_call(self, record: TrackedSession, update: SessionUpdate) -> None:
        if not update.tool_call_id:
            log.debug("tool_call update without toolCallId")
            return
        tool_name = derive_tool_name(update.title, update.kind)
        nested = self._store.config.is_nested_agent(tool_name)
        message = record.add_tool_call(
            update.tool_call_id,
            tool_name,
            normalize_acp_tool_input(update.raw_input),
            nested,
        )
        if message is None:
            return
        if nested:
            self._resolver.register_host(record, message)

        # Fast tools can arrive already finished
        if update.status is not None and update.status.is_terminal:
            result = normalize_acp_tool_result(update.raw_output, update.content)
            message.tool_result = result or ToolResult(status=update.status.value)
            if update.status is ToolCallStatus.FAILED:
                message.tool_error = True
            message.complete_subagent(message.tool_result)

    def _update_tool_call(self, record: TrackedSession, update: SessionUpdate) -> None:
        if not update.tool_call_id:
            return
        message = record.find_tool_call(update.tool_call_id)
        if message is None:
            log.debug("Update for unknown tool call %s", update.tool_call_id)
            return
        result = normalize_acp_tool_result(update.raw_output, update.content)
        if result is not None:
            message.tool_result = result
        if update.status is ToolCallStatus.FAILED:
            message.tool_error = True
        if update.status is not None and update.status.is_terminal:
            message.complete_subagent(message.tool_result)

    def _handle_nested(
        self, record: TrackedSession, update: SessionUpdate, parent_id: str
    ) -> None:
        host = self._resolver.resolve_host(record, parent_id)
        if host is None or not update.tool_call_id:
            return

        match update.session_update:
            case SessionUpdateKind.TOOL_CALL:
                result = None
                if update.status is not None and update.status.is_terminal:
                    result = normalize_acp_tool_result(update.raw_output, update.content)
                self._resolver.add_step(
                    host,
                    SubagentStep(
                        tool_name=derive_tool_name(update.title, update.kind),
                        tool_input=normalize_acp_tool_input(update.raw_input),
                        tool_use_id=update.tool_call_id,
                        tool_result=result,
                    ),
                )
            case SessionUpdateKind.TOOL_CALL_UPDATE:
                result = normalize_acp_tool_result(update.raw_output, update.content)
                if result is not None:
                    self._resolver.attach_step_result(host, update.tool_call_id, result)
            case _:
                log.log(TRACE, "Ignoring nested %s under %s", update.session_update.value, host.id)
