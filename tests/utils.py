"""Event factories for agentchat tests.

Each helper returns the decoded JSON an agent would emit, so tests exercise
the same validation path as live traffic.
"""

from __future__ import annotations

from typing import Any

from agentchat.transcript import PermissionRequest


class CallbackRecorder:
    """Collects store callback invocations in order."""

    def __init__(self) -> None:
        self.processing: list[tuple[str, bool]] = []
        self.permissions: list[tuple[str, PermissionRequest]] = []

    def on_processing(self, session_id: str, is_processing: bool) -> None:
        self.processing.append((session_id, is_processing))

    def on_permission(self, session_id: str, request: PermissionRequest) -> None:
        self.permissions.append((session_id, request))


# -----------------------------------------------------------------------------
# Stream-json
# -----------------------------------------------------------------------------


def init_event(
    session_id: str = "agent-session-1",
    model: str = "claude-sonnet-4-5",
    subtype: str = "init",
    **extra: Any,
) -> dict[str, Any]:
    return {
        "type": "system",
        "subtype": subtype,
        "session_id": session_id,
        "model": model,
        "cwd": "/work/project",
        "tools": ["Bash", "Read", "Task"],
        "claude_code_version": "2.0.14",
        "permissionMode": "default",
        **extra,
    }


def stream(inner: dict[str, Any], parent: str | None = None) -> dict[str, Any]:
    return {"type": "stream_event", "event": inner, "parent_tool_use_id": parent}


def message_start() -> dict[str, Any]:
    return stream({"type": "message_start", "message": {"id": "msg_1"}})


def text_delta(text: str) -> dict[str, Any]:
    return stream(
        {"type": "content_block_delta", "index": 0, "delta": {"type": "text_delta", "text": text}}
    )


def thinking_delta(text: str) -> dict[str, Any]:
    return stream(
        {
            "type": "content_block_delta",
            "index": 0,
            "delta": {"type": "thinking_delta", "thinking": text},
        }
    )


def message_delta() -> dict[str, Any]:
    return stream({"type": "message_delta", "delta": {"stop_reason": "end_turn"}})


def message_stop() -> dict[str, Any]:
    return stream({"type": "message_stop"})


def tool_use(tool_use_id: str, name: str = "Bash", **tool_input: Any) -> dict[str, Any]:
    return {"type": "tool_use", "id": tool_use_id, "name": name, "input": tool_input}


def assistant(
    text: str | None = None,
    thinking: str | None = None,
    tools: list[dict[str, Any]] | None = None,
    uuid: str = "uuid-1",
    parent: str | None = None,
) -> dict[str, Any]:
    content: list[dict[str, Any]] = []
    if thinking is not None:
        content.append({"type": "thinking", "thinking": thinking})
    if text is not None:
        content.append({"type": "text", "text": text})
    content.extend(tools or [])
    return {
        "type": "assistant",
        "uuid": uuid,
        "message": {"id": "msg_1", "content": content},
        "parent_tool_use_id": parent,
    }


def tool_result(
    tool_use_id: str,
    content: Any = "ok",
    structured: Any = None,
    is_error: bool = False,
    parent: str | None = None,
) -> dict[str, Any]:
    return {
        "type": "user",
        "message": {
            "role": "user",
            "content": [
                {
                    "type": "tool_result",
                    "tool_use_id": tool_use_id,
                    "content": content,
                    "is_error": is_error,
                }
            ],
        },
        "tool_use_result": structured,
        "parent_tool_use_id": parent,
    }


def result(
    subtype: str = "success",
    cost: float | None = 0.01,
    is_error: bool = False,
    errors: list[str] | None = None,
    text: str | None = None,
) -> dict[str, Any]:
    event: dict[str, Any] = {"type": "result", "subtype": subtype, "is_error": is_error}
    if cost is not None:
        event["total_cost_usd"] = cost
    if errors is not None:
        event["errors"] = errors
    if text is not None:
        event["result"] = text
    return event


# -----------------------------------------------------------------------------
# ACP
# -----------------------------------------------------------------------------


def acp_chunk(text: str) -> dict[str, Any]:
    return {"sessionUpdate": "agent_message_chunk", "content": {"type": "text", "text": text}}


def acp_thought(text: str) -> dict[str, Any]:
    return {"sessionUpdate": "agent_thought_chunk", "content": {"type": "text", "text": text}}


def acp_tool_call(
    tool_call_id: str,
    title: str = "Read /work/project/app.py",
    kind: str = "read",
    status: str = "pending",
    raw_input: Any = None,
    raw_output: Any = None,
    content: list[dict[str, Any]] | None = None,
    parent: str | None = None,
) -> dict[str, Any]:
    update: dict[str, Any] = {
        "sessionUpdate": "tool_call",
        "toolCallId": tool_call_id,
        "title": title,
        "kind": kind,
        "status": status,
    }
    if raw_input is not None:
        update["rawInput"] = raw_input
    if raw_output is not None:
        update["rawOutput"] = raw_output
    if content is not None:
        update["content"] = content
    if parent is not None:
        update["_meta"] = {"claudeCode": {"parentToolUseId": parent}}
    return update


def acp_tool_update(
    tool_call_id: str,
    status: str = "completed",
    raw_output: Any = None,
    content: list[dict[str, Any]] | None = None,
    parent: str | None = None,
) -> dict[str, Any]:
    update: dict[str, Any] = {
        "sessionUpdate": "tool_call_update",
        "toolCallId": tool_call_id,
        "status": status,
    }
    if raw_output is not None:
        update["rawOutput"] = raw_output
    if content is not None:
        update["content"] = content
    if parent is not None:
        update["_meta"] = {"parentToolCallId": parent}
    return update


def acp_text_content(text: str) -> list[dict[str, Any]]:
    return [{"type": "content", "content": {"type": "text", "text": text}}]


def acp_usage(amount: float) -> dict[str, Any]:
    return {
        "sessionUpdate": "usage_update",
        "used": 1200,
        "size": 200000,
        "cost": {"amount": amount, "currency": "USD"},
    }


def acp_permission(tool_call_id: str = "call-1") -> dict[str, Any]:
    return {
        "id": 7,
        "method": "session/request_permission",
        "params": {
            "sessionId": "acp-session",
            "toolCall": {
                "toolCallId": tool_call_id,
                "title": "`rm -rf build`",
                "kind": "execute",
                "rawInput": {"command": ["rm", "-rf", "build"]},
            },
            "options": [
                {"optionId": "allow", "name": "Allow", "kind": "allow_once"},
                {"optionId": "reject", "name": "Reject", "kind": "reject_once"},
            ],
        },
    }
