"""
Event dispatcher.

Applies one decoded stream event to a MessageAccumulator and decides whether
the caller should see a new snapshot. Only tool-call-start, text-delta and
tool-result change the content parts; status events only annotate the
snapshot they produce.
"""

import logging

from ._exceptions import StreamDecodeError
from ._types import (
    CompletionSummary,
    RunStatus,
    Snapshot,
    StepProgress,
    ThinkingDetails,
    ToolCallPart,
    ToolCompleted,
    ToolStatus,
)
from .message import MessageAccumulator
from .signals import SignalSink, notify, signal_for_tool_completion, signal_for_tool_result
from .streaming import (
    CompletionSummaryEvent,
    ErrorEvent,
    MessageEndEvent,
    StepProgressionEvent,
    StreamEvent,
    TextDeltaEvent,
    ThinkingEvent,
    ToolCallStartEvent,
    ToolCompletionEvent,
    ToolResultEvent,
    ToolStatusEvent,
    parse_frame,
)

logger = logging.getLogger(__name__)

INVALID_FORMAT_MESSAGE = "Invalid response format received"


class EventDispatcher:
    """State machine driving one MessageAccumulator.

    Usage:
        dispatcher = EventDispatcher(MessageAccumulator(), signals=print)
        for frame in frames:
            snapshot = dispatcher.dispatch_frame(frame)
            if snapshot is not None:
                render(snapshot)
            if dispatcher.done:
                break
    """

    def __init__(self, message: MessageAccumulator, signals: SignalSink | None = None) -> None:
        self.message = message
        self._signals = signals

    @property
    def done(self) -> bool:
        return self.message.is_terminal

    def dispatch_frame(self, frame: str) -> Snapshot | None:
        """Decode one frame and dispatch it. A malformed payload ends the message."""
        if self.done:
            return None
        try:
            event = parse_frame(frame)
        except StreamDecodeError:
            self.message.fail(INVALID_FORMAT_MESSAGE)
            return self.message.snapshot()
        if event is None:
            return None
        return self.dispatch(event)

    def dispatch(self, event: StreamEvent) -> Snapshot | None:
        """Apply one event. Returns the snapshot to emit, or None."""
        if self.done:
            logger.debug("Ignoring %s after terminal status", event.type.value)
            return None

        message = self.message

        if isinstance(event, ToolCallStartEvent):
            if not event.part or not isinstance(event.part.get("toolCallId"), str):
                logger.debug("tool-call-start without a toolCallId ignored")
                return None
            if not message.start_tool_call(ToolCallPart.from_dict(event.part)):
                return None
            return message.snapshot()

        if isinstance(event, TextDeltaEvent):
            if not event.text:
                return None
            message.append_text(event.text)
            return message.snapshot()

        if isinstance(event, ToolResultEvent):
            return self._on_tool_result(event)

        if isinstance(event, ThinkingEvent):
            return message.snapshot(ThinkingDetails(message=event.message))

        if isinstance(event, StepProgressionEvent):
            return message.snapshot(StepProgress(step=event.step, total_steps=event.total_steps))

        if isinstance(event, ToolStatusEvent):
            return message.snapshot(ToolStatus(tool=event.tool, message=event.message))

        if isinstance(event, ToolCompletionEvent):
            snapshot = message.snapshot(ToolCompleted(tool=event.tool, message=event.message))
            notify(self._signals, signal_for_tool_completion(event.message))
            return snapshot

        if isinstance(event, CompletionSummaryEvent):
            return message.snapshot(
                CompletionSummary(
                    total_steps=event.total_steps,
                    tool_executions=event.tool_executions,
                    tools_used=event.tools_used,
                )
            )

        if isinstance(event, ErrorEvent):
            message.fail(event.error)
            return message.snapshot()

        if isinstance(event, MessageEndEvent):
            message.finish(event.status)
            return message.snapshot()

        logger.debug("Ignoring unknown event type: %s", event.raw.get("type"))
        return None

    def _on_tool_result(self, event: ToolResultEvent) -> Snapshot | None:
        if event.part is None:
            return None

        tool_call_id = event.tool_call_id
        result = event.part.get("result")
        part = None
        if isinstance(tool_call_id, str):
            part = self.message.complete_tool_call(tool_call_id, result)
        if part is None:
            logger.warning("tool-result for unknown tool call %r", tool_call_id)

        tool_name = event.part.get("toolName") or (part.tool_name if part else None)
        notify(self._signals, signal_for_tool_result(tool_name, result, event.raw))
        return self.message.snapshot()

    def end_of_stream(self) -> Snapshot | None:
        """Close a message whose stream ended without a terminal event."""
        if self.done:
            return None
        logger.warning("Stream ended without message-end")
        self.message.finish(RunStatus.incomplete("stream_ended"))
        return self.message.snapshot()

    def fault(self, exc: BaseException) -> Snapshot | None:
        """Turn an unexpected failure into a terminal error snapshot."""
        if self.done:
            return None
        self.message.fail(str(exc) or "An unexpected error occurred")
        return self.message.snapshot()
