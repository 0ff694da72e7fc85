"""
Assistant stream protocol parser.

Decodes the server-sent event stream produced by the assistant endpoint into
typed events. Frames are separated by a blank line and carry one JSON object
after a literal ``data: `` prefix:

    data: {"type":"text-delta","text":"Hel"}

    data: {"type":"message-end","status":{"type":"complete"}}
"""

import codecs
from dataclasses import dataclass
from enum import Enum
import json
import logging
from typing import Any

from ._exceptions import StreamDecodeError
from ._types import RunStatus

logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "
FRAME_DELIMITER = "\n\n"


class StreamEventType(str, Enum):
    """Assistant stream event types."""

    # Persistent content events
    TOOL_CALL_START = "tool-call-start"
    TEXT_DELTA = "text-delta"
    TOOL_RESULT = "tool-result"

    # Ephemeral status events
    THINKING = "thinking"
    STEP_PROGRESSION = "step-progression"
    TOOL_STATUS = "tool-status"
    TOOL_COMPLETION = "tool-completion"
    COMPLETION_SUMMARY = "completion-summary"

    # Terminal events
    ERROR = "error"
    MESSAGE_END = "message-end"

    # Unknown/custom events
    UNKNOWN = "unknown"


@dataclass
class StreamEvent:
    """Base class for all stream events."""

    type: StreamEventType
    raw: dict[str, Any]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StreamEvent":
        """Build the typed event for a decoded JSON payload.

        Unrecognised ``type`` values produce a plain ``StreamEvent`` with
        ``StreamEventType.UNKNOWN`` so newer servers never break older clients.
        """
        try:
            event_type = StreamEventType(data.get("type"))
        except ValueError:
            return cls(type=StreamEventType.UNKNOWN, raw=data)

        if event_type == StreamEventType.TOOL_CALL_START:
            return ToolCallStartEvent(type=event_type, raw=data, part=_as_dict(data.get("part")))
        if event_type == StreamEventType.TEXT_DELTA:
            text = data.get("text")
            return TextDeltaEvent(
                type=event_type, raw=data, text=text if isinstance(text, str) else ""
            )
        if event_type == StreamEventType.TOOL_RESULT:
            return ToolResultEvent(type=event_type, raw=data, part=_as_dict(data.get("part")))
        if event_type == StreamEventType.THINKING:
            return ThinkingEvent(type=event_type, raw=data, message=data.get("message"))
        if event_type == StreamEventType.STEP_PROGRESSION:
            return StepProgressionEvent(
                type=event_type,
                raw=data,
                step=data.get("step"),
                total_steps=data.get("totalSteps"),
            )
        if event_type == StreamEventType.TOOL_STATUS:
            return ToolStatusEvent(
                type=event_type, raw=data, tool=data.get("tool"), message=data.get("message")
            )
        if event_type == StreamEventType.TOOL_COMPLETION:
            return ToolCompletionEvent(
                type=event_type, raw=data, tool=data.get("tool"), message=data.get("message")
            )
        if event_type == StreamEventType.COMPLETION_SUMMARY:
            tools_used = data.get("toolsUsed")
            return CompletionSummaryEvent(
                type=event_type,
                raw=data,
                total_steps=data.get("totalSteps"),
                tool_executions=data.get("toolExecutions"),
                tools_used=tools_used if isinstance(tools_used, list) else None,
            )
        if event_type == StreamEventType.ERROR:
            return ErrorEvent(
                type=event_type, raw=data, error=str(data.get("error") or "An error occurred")
            )
        if event_type == StreamEventType.MESSAGE_END:
            return MessageEndEvent(
                type=event_type, raw=data, status=RunStatus.from_dict(data.get("status"))
            )
        return cls(type=event_type, raw=data)


def _as_dict(value: Any) -> dict[str, Any] | None:
    return value if isinstance(value, dict) else None


@dataclass
class ToolCallStartEvent(StreamEvent):
    """A tool call begins; ``part`` holds toolCallId, toolName and args."""

    part: dict[str, Any] | None


@dataclass
class TextDeltaEvent(StreamEvent):
    """Incremental text chunk."""

    text: str


@dataclass
class ToolResultEvent(StreamEvent):
    """Result for an earlier tool call; ``part`` holds toolCallId and result."""

    part: dict[str, Any] | None

    @property
    def tool_call_id(self) -> str | None:
        return self.part.get("toolCallId") if self.part else None


@dataclass
class ThinkingEvent(StreamEvent):
    """Transient "thinking" notice."""

    message: str | None


@dataclass
class StepProgressionEvent(StreamEvent):
    """Agent moved to another step."""

    step: int | None
    total_steps: int | None


@dataclass
class ToolStatusEvent(StreamEvent):
    """Progress message from a running tool."""

    tool: str | None
    message: Any


@dataclass
class ToolCompletionEvent(StreamEvent):
    """A tool finished; ``message`` may be a JSON string carrying a payload."""

    tool: str | None
    message: Any


@dataclass
class CompletionSummaryEvent(StreamEvent):
    """Aggregate counters for the finished run."""

    total_steps: int | None
    tool_executions: int | None
    tools_used: list[str] | None


@dataclass
class ErrorEvent(StreamEvent):
    """Server-declared failure; ends the stream."""

    error: str


@dataclass
class MessageEndEvent(StreamEvent):
    """Message is complete; ``status`` is the terminal run status."""

    status: RunStatus


def parse_frame(frame: str) -> StreamEvent | None:
    """
    Parse one frame into a StreamEvent.

    Args:
        frame: Frame text without the trailing blank line

    Returns:
        The decoded event, or None for frames without a ``data: `` payload
        (comments, keepalives, empty data)

    Raises:
        StreamDecodeError: If the payload is not a JSON object
    """
    if not frame.startswith(DATA_PREFIX):
        return None

    payload = frame[len(DATA_PREFIX) :].strip()
    if not payload:
        return None

    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        logger.warning("Failed to parse SSE JSON: %s", payload[:200])
        raise StreamDecodeError(f"Invalid JSON payload: {e.msg}", payload=payload) from e

    if not isinstance(data, dict):
        logger.warning("SSE payload is not a JSON object: %s", payload[:200])
        raise StreamDecodeError("Event payload is not a JSON object", payload=payload)

    return StreamEvent.from_dict(data)


class ByteDecoder:
    """Incremental UTF-8 decoder for raw body chunks.

    A multi-byte character split across two chunks is held back until the
    rest of it arrives. Invalid bytes decode to U+FFFD instead of raising.
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")

    def decode(self, chunk: bytes) -> str:
        return self._decoder.decode(chunk, final=False)

    def flush(self) -> str:
        """Release any bytes still held at end of stream."""
        return self._decoder.decode(b"", final=True)


class FrameSplitter:
    """Cuts decoded text into blank-line delimited frames.

    The unterminated tail is kept and prefixed to the next piece of text.
    """

    def __init__(self) -> None:
        self._buffer = ""

    @property
    def pending(self) -> str:
        return self._buffer

    def feed(self, text: str) -> list[str]:
        """Add text and return every frame it completes, in order."""
        if not text:
            return []
        # A "\r" left at the end of the previous tail pairs up with a leading "\n" here.
        self._buffer = (self._buffer + text).replace("\r\n", "\n")
        *frames, self._buffer = self._buffer.split(FRAME_DELIMITER)
        return frames

    def flush(self) -> list[str]:
        """Return the unterminated tail as a last frame, if it holds anything."""
        tail, self._buffer = self._buffer, ""
        return [tail] if tail.strip() else []

