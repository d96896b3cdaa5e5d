"""Recording and replay of agent event streams.

A transport records each event it hands to the store with
:class:`EventRecorder`; :class:`EventPlayer` feeds such a log back into a
:class:`~agentchat.engine.SessionStore` in the same order.
"""

from agentchat.recording.player import (
    CHANNELS,
    EventPlayer,
    RecordedEvent,
    RecordingError,
    dispatch,
)
from agentchat.recording.recorder import EventRecorder

__all__ = [
    "CHANNELS",
    "EventPlayer",
    "EventRecorder",
    "RecordedEvent",
    "RecordingError",
    "dispatch",
]
