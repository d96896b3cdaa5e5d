"""Pending permission requests and cost accumulation."""

from __future__ import annotations

import math
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from agentchat.logging import get_logger
from agentchat.transcript.models import PermissionRequest

if TYPE_CHECKING:
    from agentchat.engine.state import TrackedSession
    from agentchat.engine.store import SessionStore

log = get_logger("engine.permissions")

PermissionRequestCallback = Callable[[str, PermissionRequest], None]


def accumulate_cost(record: TrackedSession, amount: float | None) -> None:
    """Add a turn or usage cost; missing, negative, and non-finite amounts are ignored."""
    if amount is None or not math.isfinite(amount) or amount <= 0:
        return
    record.total_cost += amount


class PermissionTracker:
    """Keeps at most one outstanding permission request per session."""

    def __init__(self, store: SessionStore) -> None:
        self._store = store

    def set_permission(
        self,
        session_id: str,
        request: PermissionRequest,
        raw: dict[str, Any] | None = None,
    ) -> None:
        """Store the request, replacing any earlier one, and notify.

        A permission request proves the agent is alive, so the session is
        marked connected.
        """
        record = self._store._get_or_create(session_id)
        if record.pending_permission is not None:
            log.debug("Replacing pending permission for %s", session_id)
        record.is_connected = True
        record.pending_permission = request
        record.raw_permission = raw
        self._store._notify_permission(session_id, request)

    def resolve_permission(
        self, session_id: str
    ) -> tuple[PermissionRequest, dict[str, Any] | None] | None:
        """Take the pending request out of the session once it is answered."""
        record = self._store._sessions.get(session_id)
        if record is None or record.pending_permission is None:
            return None
        pending = (record.pending_permission, record.raw_permission)
        record.pending_permission = None
        record.raw_permission = None
        return pending
