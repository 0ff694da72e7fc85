"""Tests for the EventDispatcher state machine."""

import json

import pytest

from tests.utils.streams import EXAMPLE_EVENTS
from turnstream._types import (
    CompletionSummary,
    RunStatus,
    RunStatusType,
    StepProgress,
    TextPart,
    ThinkingDetails,
    ToolCallPart,
    ToolCallStatus,
    ToolCompleted,
    ToolStatus,
)
from turnstream.dispatcher import EventDispatcher
from turnstream.message import MessageAccumulator
from turnstream.signals import BrowserSessionOpened, FileCreated


def _frame(event: dict) -> str:
    return f"data: {json.dumps(event)}"


@pytest.fixture
def dispatcher(sink):
    return EventDispatcher(MessageAccumulator(), signals=sink)


def _feed(dispatcher: EventDispatcher, *events: dict) -> list:
    return [dispatcher.dispatch_frame(_frame(event)) for event in events]


class TestPersistentEvents:
    def test_example_scenario(self, dispatcher):
        snapshots = _feed(dispatcher, *EXAMPLE_EVENTS)
        assert all(s is not None for s in snapshots)
        final = snapshots[-1]
        assert final.parts == (
            ToolCallPart(
                tool_call_id="1",
                tool_name="search",
                status=ToolCallStatus.COMPLETED,
                result="42",
            ),
            TextPart(text="Hi"),
        )
        assert final.status.type == RunStatusType.COMPLETE
        assert dispatcher.done

    def test_text_deltas_concatenate(self, dispatcher):
        _feed(
            dispatcher,
            {"type": "text-delta", "text": "Hel"},
            {"type": "text-delta", "text": "lo "},
            {"type": "text-delta", "text": "world"},
        )
        assert dispatcher.message.parts == [TextPart(text="Hello world")]

    def test_empty_text_delta_is_not_emitted(self, dispatcher):
        assert _feed(dispatcher, {"type": "text-delta", "text": ""}) == [None]
        assert dispatcher.message.parts == []

    def test_tool_call_start_without_part_is_ignored(self, dispatcher):
        snapshots = _feed(
            dispatcher,
            {"type": "tool-call-start"},
            {"type": "tool-call-start", "part": {"toolName": "search"}},
        )
        assert snapshots == [None, None]
        assert dispatcher.message.parts == []

    def test_duplicate_tool_call_start_is_ignored(self, dispatcher):
        start = {"type": "tool-call-start", "part": {"toolCallId": "a", "toolName": "x"}}
        first, second = _feed(dispatcher, start, start)
        assert first is not None
        assert second is None
        assert len(dispatcher.message.parts) == 1

    def test_orphan_tool_result_changes_nothing(self, dispatcher):
        _feed(dispatcher, {"type": "tool-call-start", "part": {"toolCallId": "abc"}})
        (snapshot,) = _feed(
            dispatcher, {"type": "tool-result", "part": {"toolCallId": "zzz", "result": "r"}}
        )
        assert snapshot is not None
        assert len(snapshot.parts) == 1
        assert snapshot.parts[0].status == ToolCallStatus.PENDING

    def test_repeated_tool_result_overwrites(self, dispatcher):
        _feed(
            dispatcher,
            {"type": "tool-call-start", "part": {"toolCallId": "abc"}},
            {"type": "tool-result", "part": {"toolCallId": "abc", "result": "one"}},
            {"type": "tool-result", "part": {"toolCallId": "abc", "result": "two"}},
        )
        (part,) = dispatcher.message.parts
        assert part.result == "two"
        assert part.status == ToolCallStatus.COMPLETED

    def test_tool_result_without_part_is_ignored(self, dispatcher):
        assert _feed(dispatcher, {"type": "tool-result"}) == [None]


class TestEphemeralEvents:
    @pytest.mark.parametrize(
        "event, details",
        [
            ({"type": "thinking", "message": "Hmm"}, ThinkingDetails(message="Hmm")),
            (
                {"type": "step-progression", "step": 1, "totalSteps": 2},
                StepProgress(step=1, total_steps=2),
            ),
            (
                {"type": "tool-status", "tool": "gmail", "message": "Searching"},
                ToolStatus(tool="gmail", message="Searching"),
            ),
            (
                {"type": "tool-completion", "tool": "gmail", "message": "Done"},
                ToolCompleted(tool="gmail", message="Done"),
            ),
            (
                {
                    "type": "completion-summary",
                    "totalSteps": 3,
                    "toolExecutions": 1,
                    "toolsUsed": ["gmail"],
                },
                CompletionSummary(total_steps=3, tool_executions=1, tools_used=["gmail"]),
            ),
        ],
    )
    def test_status_event_annotates_snapshot_only(self, dispatcher, event, details):
        (snapshot,) = _feed(dispatcher, event)
        assert snapshot.status == RunStatus.running(details)
        assert snapshot.parts == ()
        assert dispatcher.message.parts == []
        assert dispatcher.message.status.details is None

    def test_thinking_between_deltas_never_reaches_parts(self, dispatcher):
        snapshots = _feed(
            dispatcher,
            {"type": "text-delta", "text": "A"},
            {"type": "thinking", "message": "pondering"},
            {"type": "text-delta", "text": "B"},
        )
        assert snapshots[1].status.details == ThinkingDetails(message="pondering")
        assert snapshots[2].status.details is None
        assert snapshots[2].parts == (TextPart(text="AB"),)


class TestTerminalEvents:
    def test_error_event(self, dispatcher):
        _feed(dispatcher, {"type": "text-delta", "text": "Working"})
        (snapshot,) = _feed(dispatcher, {"type": "error", "error": "quota exceeded"})
        assert snapshot.parts[-1] == TextPart(text="❌ Error: quota exceeded")
        assert snapshot.status == RunStatus.incomplete("error")
        assert dispatcher.done

    def test_message_end_adopts_status(self, dispatcher):
        (snapshot,) = _feed(
            dispatcher,
            {"type": "message-end", "status": {"type": "incomplete", "reason": "cancelled"}},
        )
        assert snapshot.status.type == RunStatusType.INCOMPLETE
        assert snapshot.status.reason == "cancelled"

    @pytest.mark.parametrize(
        "terminal",
        [
            {"type": "message-end", "status": {"type": "complete"}},
            {"type": "error", "error": "x"},
        ],
    )
    def test_nothing_changes_after_terminal(self, dispatcher, terminal):
        _feed(dispatcher, {"type": "text-delta", "text": "Hi"}, terminal)
        parts_before = list(dispatcher.message.parts)
        status_before = dispatcher.message.status
        later = _feed(
            dispatcher,
            {"type": "text-delta", "text": "late"},
            {"type": "tool-call-start", "part": {"toolCallId": "z"}},
            {"type": "message-end", "status": {"type": "incomplete", "reason": "x"}},
        )
        assert later == [None, None, None]
        assert dispatcher.dispatch_frame("data: {broken") is None
        assert dispatcher.message.parts == parts_before
        assert dispatcher.message.status == status_before

    def test_malformed_frame_is_fatal(self, dispatcher):
        _feed(dispatcher, {"type": "text-delta", "text": "a"}, {"type": "text-delta", "text": "b"})
        snapshot = dispatcher.dispatch_frame("data: {not json")
        assert snapshot.status == RunStatus.incomplete("error")
        assert snapshot.parts == (
            TextPart(text="ab"),
            TextPart(text="❌ Error: Invalid response format received"),
        )
        assert dispatcher.done

    def test_end_of_stream_synthesises_incomplete(self, dispatcher):
        _feed(dispatcher, {"type": "text-delta", "text": "cut"})
        snapshot = dispatcher.end_of_stream()
        assert snapshot.status == RunStatus.incomplete("stream_ended")
        assert dispatcher.end_of_stream() is None

    def test_fault_becomes_error_snapshot(self, dispatcher):
        snapshot = dispatcher.fault(RuntimeError("socket closed"))
        assert snapshot.parts == (TextPart(text="❌ Error: socket closed"),)
        assert dispatcher.fault(RuntimeError("again")) is None


class TestIgnoredFrames:
    def test_unknown_event_type(self, dispatcher):
        assert _feed(dispatcher, {"type": "brand-new-event", "payload": 1}) == [None]
        assert not dispatcher.done

    def test_comment_frame(self, dispatcher):
        assert dispatcher.dispatch_frame(": ping") is None


class TestSignals:
    def test_create_file_result(self, dispatcher, sink):
        _feed(
            dispatcher,
            {"type": "tool-call-start", "part": {"toolCallId": "f", "toolName": "create_file"}},
            {
                "type": "tool-result",
                "part": {
                    "toolCallId": "f",
                    "toolName": "create_file",
                    "result": json.dumps({"fileId": 7}),
                },
            },
        )
        assert sink.signals == [FileCreated(result={"fileId": 7})]

    def test_tool_name_falls_back_to_call_record(self, dispatcher, sink):
        _feed(
            dispatcher,
            {
                "type": "tool-call-start",
                "part": {"toolCallId": "b", "toolName": "browser_create_session"},
            },
            {
                "type": "tool-result",
                "part": {"toolCallId": "b", "result": {"viewerUrl": "https://v", "sessionId": "s"}},
            },
        )
        assert sink.signals == [BrowserSessionOpened(viewer_url="https://v", session_id="s")]

    def test_tool_completion_with_viewer_url(self, dispatcher, sink):
        message = json.dumps({"viewerUrl": "https://view", "title": "Docs"})
        _feed(dispatcher, {"type": "tool-completion", "tool": "browser", "message": message})
        assert sink.signals == [BrowserSessionOpened(viewer_url="https://view", title="Docs")]

    def test_plain_tool_completion_sends_nothing(self, dispatcher, sink):
        _feed(dispatcher, {"type": "tool-completion", "tool": "gmail", "message": "sent"})
        assert sink.signals == []

    def test_failing_sink_does_not_break_dispatch(self):
        def broken(_signal):
            raise RuntimeError("ui gone")

        dispatcher = EventDispatcher(MessageAccumulator(), signals=broken)
        message = json.dumps({"viewerUrl": "https://view"})
        (snapshot,) = _feed(dispatcher, {"type": "tool-completion", "message": message})
        assert snapshot is not None
        assert not dispatcher.done
