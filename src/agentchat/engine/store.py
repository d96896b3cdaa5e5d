"""Session state store.

``SessionStore`` owns one record per agent session and is the single entry
point for events from either protocol. It accumulates transcripts for
sessions that are not in the foreground. Ownership moves in and out
explicitly: ``consume`` hands a record to the foreground owner, ``seed``
takes one back, and ``snapshot`` gives a read-only copy.

Dispatch is synchronous and single-threaded: each event is applied to
completion before the next, so per-session order is exactly delivery order.

Usage:
    store = SessionStore(on_processing_change=lambda sid, busy: ...)
    store.handle_stream_json_event("s1", {"type": "system", "subtype": "init", ...})
    state = store.snapshot("s1")
"""

from __future__ import annotations

import copy
import itertools
from collections.abc import Callable
from typing import Any

from pydantic import ValidationError

from agentchat.config.schema import EngineConfig
from agentchat.engine.acp import AcpNormalizer
from agentchat.engine.permissions import PermissionRequestCallback, PermissionTracker
from agentchat.engine.state import PUBLIC_FIELDS, TrackedSession
from agentchat.engine.stream_json import StreamJsonNormalizer
from agentchat.engine.subagents import SubagentResolver
from agentchat.logging import VERBOSE, get_logger
from agentchat.protocols.acp import SessionUpdate, parse_update
from agentchat.protocols.stream_json import StreamJsonEvent, parse_event
from agentchat.transcript.models import (
    AssistantMessage,
    ImageAttachment,
    PermissionRequest,
    SessionState,
    UserMessage,
    now_ms,
)

log = get_logger("engine")

ProcessingChangeCallback = Callable[[str, bool], None]


class SessionStore:
    """Accumulates per-session transcripts from agent protocol events.

    Attributes:
        config: Engine behaviour switches.
        on_processing_change: Called with ``(session_id, is_processing)``.
        on_permission_request: Called with ``(session_id, request)``.
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        on_processing_change: ProcessingChangeCallback | None = None,
        on_permission_request: PermissionRequestCallback | None = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.on_processing_change = on_processing_change
        self.on_permission_request = on_permission_request
        self._sessions: dict[str, TrackedSession] = {}
        self._counter = itertools.count()
        self._resolver = SubagentResolver()
        self._stream_json = StreamJsonNormalizer(self, self._resolver)
        self._acp = AcpNormalizer(self, self._resolver)
        self._permissions = PermissionTracker(self)

    # -------------------------------------------------------------------------
    # Ingestion
    # -------------------------------------------------------------------------

    def handle_stream_json_event(
        self, session_id: str, event: StreamJsonEvent | dict[str, Any]
    ) -> None:
        """Apply one stream-json event. Malformed events are ignored."""
        if not session_id:
            return
        if isinstance(event, dict):
            try:
                event = parse_event(event)
            except ValidationError as e:
                log.debug("Ignoring malformed stream-json event for %s: %s", session_id, e)
                return
        self._stream_json.handle(session_id, event)

    def handle_acp_event(self, session_id: str, update: SessionUpdate | dict[str, Any]) -> None:
        """Apply one ACP session update. Malformed or unknown updates are ignored."""
        if not session_id:
            return
        if isinstance(update, dict):
            try:
                update = parse_update(update)
            except ValidationError as e:
                log.debug("Ignoring malformed ACP update for %s: %s", session_id, e)
                return
        self._acp.handle(session_id, update)

    def handle_acp_turn_complete(self, session_id: str, stop_reason: str | None = None) -> None:
        """Apply the end of an ACP prompt turn. Unknown sessions are ignored."""
        self._acp.turn_complete(session_id, stop_reason)

    def begin_turn(
        self,
        session_id: str,
        text: str,
        images: list[ImageAttachment] | None = None,
    ) -> UserMessage:
        """Record a user prompt sent to a background session and mark it busy."""
        record = self._get_or_create(session_id)
        message = UserMessage(
            id=self._next_id(record, "user"),
            content=text,
            images=list(images or []),
        )
        record.messages.append(message)
        record.is_processing = True
        self._notify_processing(session_id, True)
        return message

    # -------------------------------------------------------------------------
    # Permissions
    # -------------------------------------------------------------------------

    def set_permission(
        self,
        session_id: str,
        request: PermissionRequest,
        raw: dict[str, Any] | None = None,
    ) -> None:
        self._permissions.set_permission(session_id, request, raw)

    def resolve_permission(
        self, session_id: str
    ) -> tuple[PermissionRequest, dict[str, Any] | None] | None:
        return self._permissions.resolve_permission(session_id)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def has(self, session_id: str) -> bool:
        return session_id in self._sessions

    def session_ids(self) -> list[str]:
        return list(self._sessions)

    def snapshot(self, session_id: str) -> SessionState | None:
        """Deep copy of a session's state; mutating it never touches the store."""
        record = self._sessions.get(session_id)
        if record is None:
            return None
        return copy.deepcopy(SessionState(**record.public_fields()))

    def consume(self, session_id: str) -> SessionState | None:
        """Move a session's state out of the store (no copy)."""
        record = self._sessions.pop(session_id, None)
        if record is None:
            return None
        log.log(VERBOSE, "Consumed session %s (%d messages)", session_id, len(record.messages))
        return SessionState(**record.public_fields())

    def seed(self, session_id: str, state: SessionState) -> None:
        """Install state handed back by the foreground owner.

        Rebuilds the nested-agent parent map from the transcript and re-detects
        the mid-stream message so deltas keep accumulating into it.
        """
        state = copy.deepcopy(state)
        record = TrackedSession(**{
            name: getattr(state, name) for name in PUBLIC_FIELDS
        })
        self._resolver.rebuild(record)

        streaming = record.last_streaming_assistant()
        record.current_streaming_id = streaming.id if streaming else None
        # Only the newest streaming message may stay open
        for message in record.messages:
            if isinstance(message, AssistantMessage) and message is not streaming:
                message.is_streaming = False

        if not record.is_connected and record.pending_permission is not None:
            record.pending_permission = None
            record.raw_permission = None

        self._sessions[session_id] = record
        log.log(
            VERBOSE,
            "Seeded session %s (%d messages, streaming=%s)",
            session_id,
            len(record.messages),
            record.current_streaming_id,
        )

    def delete(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    def mark_disconnected(self, session_id: str) -> None:
        """Resolve everything in flight after the agent process exits.

        The pending permission can no longer be answered, processing stops, and
        streaming messages are frozen as they are. Idempotent.
        """
        record = self._sessions.get(session_id)
        if record is None:
            return
        record.is_connected = False
        record.pending_permission = None
        record.raw_permission = None
        if record.is_processing:
            record.is_processing = False
            self._notify_processing(session_id, False)
        for message in record.messages:
            if isinstance(message, AssistantMessage) and message.is_streaming:
                message.is_streaming = False
        record.current_streaming_id = None
        log.log(VERBOSE, "Session %s disconnected", session_id)

    # -------------------------------------------------------------------------
    # Internals shared with the normalizers
    # -------------------------------------------------------------------------

    def _get_or_create(self, session_id: str) -> TrackedSession:
        record = self._sessions.get(session_id)
        if record is None:
            record = TrackedSession()
            self._sessions[session_id] = record
        return record

    def _next_id(self, record: TrackedSession, prefix: str) -> str:
        while True:
            message_id = f"{prefix}-{now_ms()}-{next(self._counter)}"
            if record.find_message(message_id) is None:
                return message_id

    def _notify_processing(self, session_id: str, is_processing: bool) -> None:
        if self.on_processing_change is None:
            return
        try:
            self.on_processing_change(session_id, is_processing)
        except Exception as e:
            log.warning("Processing-change callback error for %s: %s", session_id, e)

    def _notify_permission(self, session_id: str, request: PermissionRequest) -> None:
        if self.on_permission_request is None:
            return
        try:
            self.on_permission_request(session_id, request)
        except Exception as e:
            log.warning("Permission callback error for %s: %s", session_id, e)
