"""Tests for ACP session update normalization."""

from __future__ import annotations

import pytest

from agentchat.config import EngineConfig
from agentchat.engine import SessionStore
from agentchat.transcript import AssistantMessage, ToolCallMessage

from tests.utils import (
    CallbackRecorder,
    acp_chunk,
    acp_text_content,
    acp_thought,
    acp_tool_call,
    acp_tool_update,
    acp_usage,
)

SID = "acp-1"


def feed(store: SessionStore, *updates: dict) -> None:
    for update in updates:
        store.handle_acp_event(SID, update)


def messages(store: SessionStore) -> list:
    state = store.snapshot(SID)
    assert state is not None
    return state.messages


class TestChunks:
    """Tests for message and thought chunks."""

    def test_chunks_accumulate_into_one_message(self, store: SessionStore) -> None:
        """Consecutive message chunks grow one streaming assistant message."""
        feed(store, acp_chunk("Hello"), acp_chunk(" there"))
        [message] = messages(store)
        assert isinstance(message, AssistantMessage)
        assert message.content == "Hello there"
        assert message.is_streaming is True
        assert message.id.startswith("stream-bg-")

    def test_notification_wrapper_accepted(self, store: SessionStore) -> None:
        """The full session/update params shape is unwrapped."""
        store.handle_acp_event(SID, {"sessionId": "x", "update": acp_chunk("wrapped")})
        [message] = messages(store)
        assert message.content == "wrapped"

    def test_thought_then_text_finalizes_reasoning(self, store: SessionStore) -> None:
        """Thought chunks go to reasoning; text that follows shares the message."""
        feed(store, acp_thought("Considering"), acp_thought(" options"))
        [message] = messages(store)
        assert message.thinking == "Considering options"
        assert message.thinking_complete is False

        feed(store, acp_chunk("Answer"))
        [message] = messages(store)
        assert message.thinking_complete is True
        assert message.content == "Answer"

    def test_non_text_chunk_ignored(self, store: SessionStore) -> None:
        """Chunks with non-text content add nothing."""
        store.handle_acp_event(
            SID,
            {
                "sessionUpdate": "agent_message_chunk",
                "content": {"type": "image", "data": "AAAA", "mimeType": "image/png"},
            },
        )
        assert messages(store) == []

    def test_event_marks_connected(self, store: SessionStore) -> None:
        """Any update marks the session connected."""
        feed(store, acp_chunk("hi"))
        state = store.snapshot(SID)
        assert state is not None
        assert state.is_connected is True


class TestToolCalls:
    """Tests for tool_call and tool_call_update."""

    def test_tool_call_ends_text_burst(self, store: SessionStore) -> None:
        """A tool call freezes the streaming text before it."""
        feed(store, acp_chunk("Reading the file."), acp_tool_call("call-1"))
        text, tool = messages(store)
        assert isinstance(text, AssistantMessage)
        assert text.is_streaming is False
        assert isinstance(tool, ToolCallMessage)
        assert tool.id == "tool-call-1"
        assert tool.tool_name == "Read"
        assert tool.tool_result is None

    def test_text_after_tool_call_starts_new_message(self, store: SessionStore) -> None:
        """Text after a tool call opens a fresh assistant message."""
        feed(store, acp_chunk("Before"), acp_tool_call("call-1"), acp_chunk("After"))
        msgs = messages(store)
        assert [type(m).__name__ for m in msgs] == [
            "AssistantMessage",
            "ToolCallMessage",
            "AssistantMessage",
        ]
        assert msgs[2].content == "After"
        assert msgs[2].is_streaming is True

    def test_raw_input_normalized(self, store: SessionStore) -> None:
        """ACP input keys are mapped to their stream-json names."""
        feed(
            store,
            acp_tool_call(
                "call-1",
                title="`ls -la`",
                kind="execute",
                raw_input={"command": ["ls", "-la"]},
            ),
        )
        [tool] = messages(store)
        assert tool.tool_name == "Bash"
        assert tool.tool_input == {"command": "ls -la"}

    def test_duplicate_tool_call_is_noop(self, store: SessionStore) -> None:
        """A repeated tool call id adds nothing."""
        feed(
            store,
            acp_tool_call("call-1", title="Read a.py"),
            acp_tool_call("call-1", title="Read b.py", kind="edit"),
        )
        [tool] = messages(store)
        assert tool.tool_name == "Read"

    def test_update_attaches_result(self, store: SessionStore) -> None:
        """A completed update attaches its output as the result."""
        feed(
            store,
            acp_tool_call("call-1"),
            acp_tool_update("call-1", content=acp_text_content("print('hi')")),
        )
        [tool] = messages(store)
        assert tool.tool_result is not None
        assert tool.tool_result.text() == "print('hi')"
        assert tool.tool_error is False

    def test_failed_update_sets_error(self, store: SessionStore) -> None:
        """A failed update marks the call as errored."""
        feed(
            store,
            acp_tool_call("call-1"),
            acp_tool_update("call-1", status="failed", raw_output="No such file"),
        )
        [tool] = messages(store)
        assert tool.tool_error is True
        assert tool.tool_result is not None
        assert tool.tool_result.content == "No such file"

    def test_in_progress_update_without_output_keeps_pending(self, store: SessionStore) -> None:
        """In-progress updates without output leave the call running."""
        feed(store, acp_tool_call("call-1"), acp_tool_update("call-1", status="in_progress"))
        [tool] = messages(store)
        assert tool.tool_result is None

    def test_update_for_unknown_call_dropped(self, store: SessionStore) -> None:
        """Updates for ids never opened are dropped."""
        feed(store, acp_tool_update("ghost", raw_output="x"))
        assert messages(store) == []

    def test_tool_call_completed_on_arrival(self, store: SessionStore) -> None:
        """A tool call that arrives completed carries its result at once."""
        feed(store, acp_tool_call("call-1", status="completed", raw_output={"stdout": "done"}))
        [tool] = messages(store)
        assert tool.tool_result is not None
        assert tool.tool_result.stdout == "done"

    def test_tool_call_failed_on_arrival_without_output(self, store: SessionStore) -> None:
        """A tool call that arrives failed is an error even without output."""
        feed(store, acp_tool_call("call-1", status="failed"))
        [tool] = messages(store)
        assert tool.tool_error is True
        assert tool.tool_result is not None
        assert tool.tool_result.status == "failed"

    def test_diff_content_mapped(self, store: SessionStore) -> None:
        """Diff content maps onto the file edit result fields."""
        feed(
            store,
            acp_tool_call("call-1", title="Edit app.py", kind="edit"),
            acp_tool_update(
                "call-1",
                content=[
                    {
                        "type": "diff",
                        "path": "/work/project/app.py",
                        "oldText": "a = 1",
                        "newText": "a = 2",
                    }
                ],
            ),
        )
        [tool] = messages(store)
        assert tool.tool_result is not None
        assert tool.tool_result.file_path == "/work/project/app.py"
        assert tool.tool_result.old_string == "a = 1"
        assert tool.tool_result.new_string == "a = 2"


class TestClosingPendingTools:
    """Tests for closing tool calls the agent never resolved."""

    def test_text_closes_pending_tools(self, store: SessionStore) -> None:
        """Message text closes tool calls still pending."""
        feed(store, acp_tool_call("call-1"), acp_chunk("Done reading."))
        tool = messages(store)[0]
        assert tool.tool_result is not None
        assert tool.tool_result.status == "completed"
        assert tool.tool_error is False

    def test_thought_closes_pending_tools(self, store: SessionStore) -> None:
        """Thought text closes tool calls still pending."""
        feed(store, acp_tool_call("call-1"), acp_thought("hmm"))
        assert messages(store)[0].tool_result is not None

    def test_next_tool_call_closes_previous(self, store: SessionStore) -> None:
        """A new top-level tool call closes the previous one."""
        feed(store, acp_tool_call("call-1"), acp_tool_call("call-2"))
        first, second = messages(store)
        assert first.tool_result is not None
        assert second.tool_result is None

    def test_update_and_usage_do_not_close(self, store: SessionStore) -> None:
        """Tool call and usage updates leave pending calls open."""
        feed(
            store,
            acp_tool_call("call-1"),
            acp_tool_call("call-2"),
            acp_tool_update("call-2", status="in_progress"),
            acp_usage(0.01),
        )
        assert messages(store)[1].tool_result is None

    def test_existing_result_not_replaced(self, store: SessionStore) -> None:
        """Closing keeps a result that already arrived."""
        feed(
            store,
            acp_tool_call("call-1"),
            acp_tool_update("call-1", raw_output="real output"),
            acp_chunk("next"),
        )
        assert messages(store)[0].tool_result.content == "real output"

    def test_closing_can_be_disabled(self) -> None:
        """Pending calls stay open when closing is turned off."""
        store = SessionStore(config=EngineConfig(close_pending_acp_tools=False))
        store.handle_acp_event(SID, acp_tool_call("call-1"))
        store.handle_acp_event(SID, acp_chunk("text"))
        state = store.snapshot(SID)
        assert state is not None
        assert state.messages[0].tool_result is None


class TestUsage:
    """Tests for usage updates."""

    def test_costs_accumulate(self, store: SessionStore) -> None:
        """Usage costs add up across updates."""
        feed(store, acp_usage(0.02), acp_usage(0.03))
        state = store.snapshot(SID)
        assert state is not None
        assert state.total_cost == pytest.approx(0.05)

    def test_negative_cost_ignored(self, store: SessionStore) -> None:
        """A negative cost adds nothing."""
        feed(store, acp_usage(0.02), acp_usage(-1.0))
        state = store.snapshot(SID)
        assert state is not None
        assert state.total_cost == pytest.approx(0.02)

    def test_usage_without_cost(self, store: SessionStore) -> None:
        """Usage without a cost leaves the total at zero."""
        feed(store, {"sessionUpdate": "usage_update", "used": 10, "size": 100})
        state = store.snapshot(SID)
        assert state is not None
        assert state.total_cost == 0.0


class TestTurnComplete:
    """Tests for out-of-band turn completion."""

    def test_turn_complete_finishes_everything(
        self, store: SessionStore, callbacks: CallbackRecorder
    ) -> None:
        """Turn completion settles every message and clears processing."""
        store.begin_turn(SID, "read app.py")
        feed(store, acp_tool_call("call-1"), acp_chunk("Here it is"))
        feed(store, acp_tool_call("call-2"))
        feed(store, acp_chunk("Summary"))
        store.handle_acp_turn_complete(SID, "end_turn")

        state = store.snapshot(SID)
        assert state is not None
        assert state.is_processing is False
        assert state.streaming_count() == 0
        assert all(
            m.tool_result is not None for m in state.messages if isinstance(m, ToolCallMessage)
        )
        assert callbacks.processing == [(SID, True), (SID, False)]

    def test_turn_complete_closes_tools_with_closing_disabled(self) -> None:
        """Turn completion closes tools even with closing turned off."""
        store = SessionStore(config=EngineConfig(close_pending_acp_tools=False))
        store.handle_acp_event(SID, acp_tool_call("call-1"))
        store.handle_acp_turn_complete(SID)
        state = store.snapshot(SID)
        assert state is not None
        assert state.messages[0].tool_result is not None

    def test_turn_complete_prunes_empty_stream(self, store: SessionStore) -> None:
        """An empty streaming message is pruned at turn completion."""
        feed(store, acp_chunk(""))
        store.handle_acp_event(
            SID, {"sessionUpdate": "agent_message_chunk", "content": {"type": "text", "text": " "}}
        )
        store.handle_acp_turn_complete(SID)
        assert messages(store) == []

    def test_turn_complete_unknown_session_ignored(self, store: SessionStore) -> None:
        """Turn completion for an unknown session creates nothing."""
        store.handle_acp_turn_complete("never-seen")
        assert not store.has("never-seen")


class TestIgnoredUpdates:
    """Tests for no-op and malformed updates."""

    @pytest.mark.parametrize(
        "update",
        [
            {"sessionUpdate": "user_message_chunk", "content": {"type": "text", "text": "hi"}},
            {"sessionUpdate": "plan", "entries": []},
            {"sessionUpdate": "available_commands_update", "availableCommands": []},
            {"sessionUpdate": "current_mode_update", "currentModeId": "plan"},
        ],
    )
    def test_informational_updates_add_nothing(self, store: SessionStore, update: dict) -> None:
        """Informational updates leave the transcript empty."""
        feed(store, update)
        assert messages(store) == []

    @pytest.mark.parametrize(
        "update",
        [
            {},
            {"sessionUpdate": "brand_new_kind"},
        ],
    )
    def test_malformed_update_is_noop(self, store: SessionStore, update: dict) -> None:
        """Unknown or untagged updates never create a session."""
        feed(store, update)
        assert not store.has(SID)

    def test_tool_call_without_id_ignored(self, store: SessionStore) -> None:
        """A tool call without an id is dropped."""
        feed(store, {"sessionUpdate": "tool_call", "title": "Read x"})
        assert messages(store) == []


class TestLenientFields:
    """Tests that a bad optional field never costs the whole update."""

    def test_unknown_status_opens_pending_tool_call(self, store: SessionStore) -> None:
        """A tool call with an unknown status opens as pending."""
        feed(store, acp_tool_call("call-1", status="exploded"))

        [message] = messages(store)
        assert isinstance(message, ToolCallMessage)
        assert message.tool_name == "Read"
        assert message.is_pending
        assert message.tool_result is None

    def test_unknown_status_update_keeps_call_pending(self, store: SessionStore) -> None:
        """An update with an unknown status neither completes nor fails the call."""
        feed(store, acp_tool_call("call-1"), acp_tool_update("call-1", status="exploded"))

        [message] = messages(store)
        assert isinstance(message, ToolCallMessage)
        assert message.is_pending
        assert message.tool_error is False

    def test_non_string_title_falls_back_to_kind(self, store: SessionStore) -> None:
        """A non-string title is dropped and the name comes from the kind."""
        update = acp_tool_call("call-1", kind="execute")
        update["title"] = {"text": "ls"}
        feed(store, update)

        [message] = messages(store)
        assert isinstance(message, ToolCallMessage)
        assert message.tool_name == "Bash"

    def test_malformed_cost_ignored(self, store: SessionStore) -> None:
        """A usage update with a non-object cost adds nothing."""
        feed(store, acp_usage(0.02), {"sessionUpdate": "usage_update", "cost": "free"})
        state = store.snapshot(SID)
        assert state is not None
        assert state.total_cost == pytest.approx(0.02)
