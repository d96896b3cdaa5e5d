"""Nesting of subagent activity under its host tool call.

A nested-agent tool (``Task``) runs its own agent loop. Events from that loop
carry the correlation id of the spawning tool call; they are folded into the
host message as ``SubagentStep`` entries instead of top-level messages.
"""

from __future__ import annotations

from agentchat.engine.state import TrackedSession
from agentchat.logging import get_logger
from agentchat.transcript.models import SubagentStep, ToolCallMessage, ToolResult

log = get_logger("engine.subagents")


class SubagentResolver:
    """Maps parent correlation ids to host tool-call messages."""

    def register_host(self, record: TrackedSession, host: ToolCallMessage) -> None:
        record.parent_tool_map[host.tool_use_id] = host.id

    def rebuild(self, record: TrackedSession) -> None:
        """Re-derive the parent map from the transcript after a handoff."""
        record.parent_tool_map.clear()
        for message in record.messages:
            if isinstance(message, ToolCallMessage) and message.is_subagent_host:
                self.register_host(record, message)

    def resolve_host(self, record: TrackedSession, parent_id: str) -> ToolCallMessage | None:
        """Find the host message for a nested event, or None if untracked."""
        host_id = record.parent_tool_map.get(parent_id)
        if host_id is None:
            log.debug("Dropping nested event for untracked parent %s", parent_id)
            return None
        host = record.find_message(host_id)
        if not isinstance(host, ToolCallMessage) or not host.is_subagent_host:
            log.debug("Parent %s no longer maps to a nested-agent tool call", parent_id)
            return None
        return host

    def add_step(self, host: ToolCallMessage, step: SubagentStep) -> bool:
        if host.subagent_steps is None:
            return False
        if host.find_step(step.tool_use_id) is not None:
            return False
        host.subagent_steps.append(step)
        return True

    def attach_step_result(
        self, host: ToolCallMessage, tool_use_id: str, result: ToolResult
    ) -> bool:
        """Attach a result to one step, leaving its siblings untouched."""
        step = host.find_step(tool_use_id)
        if step is None:
            log.debug("No subagent step %s under %s", tool_use_id, host.id)
            return False
        step.tool_result = result
        return True
