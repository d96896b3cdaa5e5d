"""Tool call normalization.

Both protocols describe tool calls differently. Stream-json names tools
directly and reports structured results in ``tool_use_result``. ACP gives a
human title plus a coarse ``kind``, free-form ``rawInput``/``rawOutput`` and a
list of display content. Everything here maps onto the transcript's fixed
``tool_input`` dict and ``ToolResult`` shape.
"""

from __future__ import annotations

import shlex
from typing import Any

from agentchat.protocols.common import optional_str
from agentchat.transcript.models import PermissionOption, PermissionRequest, ToolResult

KNOWN_TOOLS = frozenset({
    "Agent",
    "Bash",
    "Edit",
    "Glob",
    "Grep",
    "MultiEdit",
    "NotebookEdit",
    "Read",
    "Task",
    "TodoWrite",
    "WebFetch",
    "WebSearch",
    "Write",
})

# ACP tool kinds -> tool names
_KIND_TO_TOOL = {
    "read": "Read",
    "edit": "Edit",
    "delete": "Delete",
    "move": "Move",
    "search": "Grep",
    "execute": "Bash",
    "think": "Task",
    "fetch": "WebFetch",
    "switch_mode": "SwitchMode",
}

# Wire key -> ToolResult attribute
_RESULT_KEYS = {
    "content": "content",
    "stdout": "stdout",
    "stderr": "stderr",
    "file": "file",
    "filePath": "file_path",
    "oldString": "old_string",
    "newString": "new_string",
    "status": "status",
    "isAsync": "is_async",
    "agentId": "agent_id",
    "totalDurationMs": "total_duration_ms",
    "totalTokens": "total_tokens",
}

# Input key aliases used by ACP agents -> stream-json input keys
_INPUT_ALIASES = {
    "path": "file_path",
    "abs_path": "file_path",
    "absolute_path": "file_path",
    "filePath": "file_path",
    "oldString": "old_string",
    "old_text": "old_string",
    "newString": "new_string",
    "new_text": "new_string",
    "subagentType": "subagent_type",
}


def _apply_result_fields(result: ToolResult, data: dict[str, Any]) -> None:
    for key, value in data.items():
        attr = _RESULT_KEYS.get(key)
        if attr is None:
            result.extra[key] = value
        elif attr == "is_async":
            result.is_async = bool(value)
        else:
            setattr(result, attr, value)


def normalize_tool_result(tool_use_result: Any, block_content: Any = None) -> ToolResult:
    """Normalize a stream-json tool result.

    Args:
        tool_use_result: Structured result from the ``user`` event, a dict for
            most tools or an error string.
        block_content: ``content`` of the ``tool_result`` block, used when
            the structured result has none.
    """
    result = ToolResult()
    if isinstance(tool_use_result, dict):
        _apply_result_fields(result, tool_use_result)
    elif isinstance(tool_use_result, str):
        result.content = tool_use_result
    if result.content is None and isinstance(block_content, (str, list)):
        result.content = block_content
    return result


def normalize_acp_tool_result(raw_output: Any, content: Any = None) -> ToolResult | None:
    """Normalize ACP tool output; None when the update carries no output."""
    has_content = isinstance(content, list) and bool(content)
    if raw_output is None and not has_content:
        return None

    result = ToolResult()
    if isinstance(raw_output, dict):
        _apply_result_fields(result, raw_output)
    elif isinstance(raw_output, str):
        result.content = raw_output
    elif raw_output is not None:
        result.extra["output"] = raw_output

    text_blocks: list[dict[str, Any]] = []
    for item in content if has_content else ():
        if not isinstance(item, dict):
            continue
        kind = item.get("type")
        if kind == "content":
            block = item.get("content")
            if isinstance(block, dict) and block.get("type") == "text":
                text_blocks.append({"type": "text", "text": block.get("text", "")})
        elif kind == "diff":
            result.file_path = result.file_path or item.get("path")
            if result.old_string is None:
                result.old_string = item.get("oldText") or ""
            if result.new_string is None:
                result.new_string = item.get("newText") or ""
        elif kind == "terminal":
            result.extra["terminal_id"] = item.get("terminalId")

    if result.content is None and text_blocks:
        result.content = text_blocks
    return result


def normalize_acp_tool_input(raw_input: Any) -> dict[str, Any]:
    """Translate ACP ``rawInput`` into the stream-json input shape."""
    if raw_input is None:
        return {}
    if not isinstance(raw_input, dict):
        return {"value": raw_input}

    normalized: dict[str, Any] = {}
    for key, value in raw_input.items():
        target = _INPUT_ALIASES.get(key, key)
        # Explicit stream-json keys win over aliases
        if target != key and target in raw_input:
            continue
        normalized[target] = value

    command = normalized.get("command")
    if isinstance(command, list) and all(isinstance(part, str) for part in command):
        normalized["command"] = shlex.join(command)
    return normalized


def derive_tool_name(title: str | None, kind: str | None) -> str:
    """Derive a tool name from ACP title/kind metadata.

    MCP tools keep their ``Tool: server/name`` title; titles led by a known
    tool name (``Read /src/app.py``) use it; otherwise the kind decides.
    """
    title = title.strip() if isinstance(title, str) else ""
    if title.startswith("Tool: "):
        return title
    first_word = title.split(" ", 1)[0].strip("`") if title else ""
    if first_word in KNOWN_TOOLS:
        return first_word
    if isinstance(kind, str) and kind in _KIND_TO_TOOL:
        return _KIND_TO_TOOL[kind]
    return title or "Tool"


def permission_from_acp(raw: dict[str, Any]) -> PermissionRequest:
    """Normalize an ACP ``session/request_permission`` payload.

    Missing or malformed parts read as absent, so the request is always
    recorded even when only its id survives.
    """
    params = raw.get("params") if isinstance(raw.get("params"), dict) else raw
    tool_call = params.get("toolCall")
    if not isinstance(tool_call, dict):
        tool_call = {}
    request_id = raw.get("requestId", raw.get("id"))
    raw_options = params.get("options")
    options = [
        PermissionOption(
            option_id=str(opt.get("optionId", "")),
            name=str(opt.get("name", "")),
            kind=optional_str(opt.get("kind")),
        )
        for opt in (raw_options if isinstance(raw_options, list) else [])
        if isinstance(opt, dict) and opt.get("optionId")
    ]
    title = optional_str(tool_call.get("title"))
    return PermissionRequest(
        request_id=str(request_id) if request_id is not None else None,
        tool_name=derive_tool_name(title, optional_str(tool_call.get("kind"))),
        tool_input=normalize_acp_tool_input(tool_call.get("rawInput")),
        tool_use_id=optional_str(tool_call.get("toolCallId")),
        title=title,
        options=options,
    )


def permission_from_stream_json(raw: dict[str, Any]) -> PermissionRequest:
    """Normalize a stream-json ``can_use_tool`` control request."""
    request = raw.get("request")
    if not isinstance(request, dict):
        request = {}
    tool_input = request.get("input")
    request_id = raw.get("request_id")
    return PermissionRequest(
        request_id=str(request_id) if request_id is not None else None,
        tool_name=optional_str(request.get("tool_name")) or "Tool",
        tool_input=tool_input if isinstance(tool_input, dict) else {},
        tool_use_id=optional_str(request.get("tool_use_id")),
        title=optional_str(request.get("title")),
    )
