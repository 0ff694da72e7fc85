"""
Message accumulator.

Owns the ordered content parts of one assistant turn and its run status.
All mutation goes through the methods below so the ordering and
single-record-per-tool-call rules hold for every caller.
"""

import logging
from typing import Any

from ._types import (
    ContentPart,
    RunStatus,
    Snapshot,
    StatusDetails,
    TextPart,
    ToolCallPart,
    ToolCallStatus,
)

logger = logging.getLogger(__name__)

ERROR_PREFIX = "❌ Error: "


class MessageClosedError(RuntimeError):
    """Raised when a terminal message is mutated."""


class MessageAccumulator:
    """
    Accumulates stream events into one growing message.

    Parts keep insertion order and never shrink. Once the status leaves
    ``running`` the message is frozen.
    """

    def __init__(self, parts: list[ContentPart] | None = None) -> None:
        if parts:
            raise ValueError("MessageAccumulator must start with an empty parts list")
        self.parts: list[ContentPart] = parts if parts is not None else []
        self.status: RunStatus = RunStatus.running()
        self._tool_calls: dict[str, ToolCallPart] = {}

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def _check_open(self) -> None:
        if self.is_terminal:
            raise MessageClosedError(f"Message is already {self.status.type.value}")

    def append_text(self, text: str) -> None:
        """Extend the trailing text part, or start a new one after a tool call."""
        self._check_open()
        last = self.parts[-1] if self.parts else None
        if isinstance(last, TextPart):
            last.text += text
        else:
            self.parts.append(TextPart(text=text))

    def start_tool_call(self, part: ToolCallPart) -> bool:
        """Append a pending tool call. Returns False if the id is already known."""
        self._check_open()
        if part.tool_call_id in self._tool_calls:
            logger.warning("Duplicate tool-call-start for %s ignored", part.tool_call_id)
            return False
        self._tool_calls[part.tool_call_id] = part
        self.parts.append(part)
        return True

    def complete_tool_call(self, tool_call_id: str, result: Any) -> ToolCallPart | None:
        """Attach a result to a known tool call. Unknown ids change nothing."""
        self._check_open()
        part = self._tool_calls.get(tool_call_id)
        if part is None:
            return None
        part.result = result
        part.status = ToolCallStatus.COMPLETED
        return part

    def get_tool_call(self, tool_call_id: str) -> ToolCallPart | None:
        return self._tool_calls.get(tool_call_id)

    def fail(self, message: str, reason: str = "error") -> None:
        """Append a user-visible error line and end the message as incomplete."""
        self._check_open()
        self.parts.append(TextPart(text=f"{ERROR_PREFIX}{message}"))
        self.status = RunStatus.incomplete(reason)

    def finish(self, status: RunStatus) -> None:
        """Adopt a terminal status."""
        self._check_open()
        if not status.is_terminal:
            raise ValueError("finish() requires a terminal status")
        self.status = status

    def snapshot(self, details: StatusDetails | None = None) -> Snapshot:
        """Freeze the current state; ``details`` annotates this snapshot only."""
        status = self.status
        if details is not None and not status.is_terminal:
            status = RunStatus.running(details)
        return Snapshot.capture(self.parts, status)

    def get_text(self) -> str:
        """Get accumulated text."""
        return "".join(p.text for p in self.parts if isinstance(p, TextPart))
