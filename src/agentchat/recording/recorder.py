"""Event recording to JSONL."""

from __future__ import annotations

import json
import time
from pathlib import Path
from typing import IO, Any

from agentchat.recording.player import RecordingError


class EventRecorder:
    """Records agent events to JSONL as the transport delivers them.

    The transport layer owns a recorder and calls :meth:`record` next to each
    store entry point; :class:`~agentchat.recording.EventPlayer` reads the
    file back. ``agentchat replay --output`` also re-records a replay, which
    extracts one session from a larger log.

    Format:
        {"ts": 1706000000.123, "session": "s1", "protocol": "acp", "event": {...}}

    Where ``protocol`` is one of the channels in ``agentchat.recording.CHANNELS``.
    """

    def __init__(self, output: Path | IO[str]) -> None:
        self._output: IO[str]
        self._owns_file = False

        if isinstance(output, Path):
            try:
                self._output = open(output, "w", encoding="utf-8")
            except OSError as e:
                raise RecordingError(f"Cannot write recording {output}: {e}") from e
            self._owns_file = True
        else:
            self._output = output

    def record(
        self,
        session_id: str,
        protocol: str,
        event: dict[str, Any] | None = None,
        ts: float | None = None,
    ) -> None:
        """Append one event; ``ts`` defaults to now."""
        line = {
            "ts": time.time() if ts is None else ts,
            "session": session_id,
            "protocol": protocol,
            "event": event or {},
        }
        self._output.write(json.dumps(line, separators=(",", ":")) + "\n")
        self._output.flush()

    def close(self) -> None:
        if self._owns_file:
            self._output.close()

    def __enter__(self) -> EventRecorder:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
