"""Replay of recorded agent events from JSONL."""

from __future__ import annotations

import json
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, TYPE_CHECKING, Any

from agentchat.logging import get_logger
from agentchat.protocols.tools import permission_from_acp, permission_from_stream_json

if TYPE_CHECKING:
    from agentchat.engine.store import SessionStore
    from agentchat.recording.recorder import EventRecorder

log = get_logger("recording")

STREAM_JSON = "stream-json"
ACP = "acp"
ACP_TURN_COMPLETE = "acp-turn-complete"
ACP_PERMISSION = "acp-permission"
STREAM_JSON_PERMISSION = "stream-json-permission"
DISCONNECT = "disconnect"

CHANNELS = frozenset({
    STREAM_JSON,
    ACP,
    ACP_TURN_COMPLETE,
    ACP_PERMISSION,
    STREAM_JSON_PERMISSION,
    DISCONNECT,
})


class RecordingError(Exception):
    """Raised when a recording cannot be opened."""


@dataclass
class RecordedEvent:
    """One recorded event for one session."""

    timestamp: float
    session_id: str
    protocol: str
    event: dict[str, Any] = field(default_factory=dict)


class EventPlayer:
    """Replays recorded agent events from JSONL.

    Usage:
        with EventPlayer(Path("events.jsonl")) as player:
            player.replay_into(store)
    """

    def __init__(self, source: Path | IO[str]) -> None:
        self._source: IO[str]
        self._owns_file = False

        if isinstance(source, Path):
            try:
                self._source = open(source, encoding="utf-8")
            except OSError as e:
                raise RecordingError(f"Cannot open recording {source}: {e}") from e
            self._owns_file = True
        else:
            self._source = source

    def __iter__(self) -> Iterator[RecordedEvent]:
        for lineno, line in enumerate(self._source, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                data = json.loads(line)
            except json.JSONDecodeError:
                log.debug("Skipping undecodable line %d", lineno)
                continue
            if not isinstance(data, dict):
                continue
            protocol = data.get("protocol")
            session_id = data.get("session")
            if protocol not in CHANNELS or not isinstance(session_id, str):
                log.debug("Skipping line %d with channel %r", lineno, protocol)
                continue
            event = data.get("event")
            ts = data.get("ts")
            yield RecordedEvent(
                timestamp=float(ts) if isinstance(ts, (int, float)) else 0.0,
                session_id=session_id,
                protocol=protocol,
                event=event if isinstance(event, dict) else {},
            )

    def filter_session(self, session_id: str) -> Iterator[RecordedEvent]:
        for record in self:
            if record.session_id == session_id:
                yield record

    def replay_into(
        self,
        store: SessionStore,
        session_id: str | None = None,
        recorder: EventRecorder | None = None,
    ) -> int:
        """Feed recorded events into a store in file order.

        Args:
            store: Target store.
            session_id: Only replay this session when given.
            recorder: Re-records each applied event, keeping its timestamp.

        Returns:
            Number of events applied.
        """
        records = self if session_id is None else self.filter_session(session_id)
        count = 0
        for record in records:
            dispatch(store, record)
            if recorder is not None:
                recorder.record(
                    record.session_id, record.protocol, record.event, ts=record.timestamp
                )
            count += 1
        return count

    def close(self) -> None:
        if self._owns_file:
            self._source.close()

    def __enter__(self) -> EventPlayer:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


def dispatch(store: SessionStore, record: RecordedEvent) -> None:
    """Route one recorded event to the matching store entry point."""
    sid = record.session_id
    match record.protocol:
        case "stream-json":
            store.handle_stream_json_event(sid, record.event)
        case "acp":
            store.handle_acp_event(sid, record.event)
        case "acp-turn-complete":
            store.handle_acp_turn_complete(sid, record.event.get("stopReason"))
        case "acp-permission":
            store.set_permission(sid, permission_from_acp(record.event), record.event)
        case "stream-json-permission":
            store.set_permission(sid, permission_from_stream_json(record.event), record.event)
        case "disconnect":
            store.mark_disconnected(sid)
