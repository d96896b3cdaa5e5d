"""Multi-session agent event normalization engine."""

from agentchat.engine.acp import AcpNormalizer
from agentchat.engine.permissions import PermissionTracker
from agentchat.engine.store import SessionStore
from agentchat.engine.stream_json import StreamJsonNormalizer, format_result_error
from agentchat.engine.subagents import SubagentResolver

__all__ = [
    "AcpNormalizer",
    "PermissionTracker",
    "SessionStore",
    "StreamJsonNormalizer",
    "SubagentResolver",
    "format_result_error",
]
