"""Dataclass models for the reconstructed assistant message."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any


class ToolCallStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"


@dataclass
class TextPart:
    """A run of assistant text, extended in place by text deltas."""

    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": "text", "text": self.text}


@dataclass
class ToolCallPart:
    """One tool invocation and, once it arrives, its result.

    ``arguments`` and ``result`` are opaque JSON values taken from the stream.
    """

    tool_call_id: str
    tool_name: str | None = None
    arguments: Any = None
    status: ToolCallStatus = ToolCallStatus.PENDING
    result: Any = None

    @classmethod
    def from_dict(cls, data: dict) -> ToolCallPart:
        return cls(
            tool_call_id=data["toolCallId"],
            tool_name=data.get("toolName"),
            arguments=data.get("args", data.get("arguments")),
        )

    @property
    def completed(self) -> bool:
        return self.status == ToolCallStatus.COMPLETED

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "type": "tool-call",
            "toolCallId": self.tool_call_id,
            "toolName": self.tool_name,
            "args": self.arguments,
            "status": self.status.value,
        }
        if self.completed:
            data["result"] = self.result
        return data


ContentPart = TextPart | ToolCallPart


# Ephemeral status details. Each one annotates a single snapshot only.


@dataclass(frozen=True)
class ThinkingDetails:
    message: str | None


@dataclass(frozen=True)
class StepProgress:
    step: int | None
    total_steps: int | None

    @property
    def progress(self) -> float | None:
        """Fraction of steps done, when both counters are known."""
        step, total = self.step, self.total_steps
        if not isinstance(step, (int, float)) or not isinstance(total, (int, float)):
            return None
        if total == 0:
            return None
        return step / total


@dataclass(frozen=True)
class ToolStatus:
    tool: str | None
    message: Any


@dataclass(frozen=True)
class ToolCompleted:
    tool: str | None
    message: Any


@dataclass(frozen=True)
class CompletionSummary:
    total_steps: int | None
    tool_executions: int | None
    tools_used: list[str] | None


StatusDetails = ThinkingDetails | StepProgress | ToolStatus | ToolCompleted | CompletionSummary

_DETAIL_KEYS: dict[type, str] = {
    ThinkingDetails: "thinking",
    ToolStatus: "toolStatus",
    ToolCompleted: "toolCompleted",
    CompletionSummary: "summary",
}


def _details_to_dict(details: StatusDetails) -> dict[str, Any]:
    if isinstance(details, StepProgress):
        return {
            "step": details.step,
            "totalSteps": details.total_steps,
            "progress": details.progress,
        }
    if isinstance(details, ThinkingDetails):
        return {"thinking": details.message}
    if isinstance(details, CompletionSummary):
        return {
            "summary": {
                "totalSteps": details.total_steps,
                "toolExecutions": details.tool_executions,
                "toolsUsed": details.tools_used,
            }
        }
    return {_DETAIL_KEYS[type(details)]: {"tool": details.tool, "message": details.message}}


class RunStatusType(str, Enum):
    RUNNING = "running"
    INCOMPLETE = "incomplete"
    COMPLETE = "complete"


@dataclass(frozen=True)
class RunStatus:
    """Run state of a message. Only ``running`` accepts further mutation."""

    type: RunStatusType
    reason: str | None = None
    payload: dict[str, Any] | None = None
    details: StatusDetails | None = None

    @classmethod
    def running(cls, details: StatusDetails | None = None) -> RunStatus:
        return cls(RunStatusType.RUNNING, details=details)

    @classmethod
    def incomplete(cls, reason: str, payload: dict[str, Any] | None = None) -> RunStatus:
        return cls(RunStatusType.INCOMPLETE, reason=reason, payload=payload)

    @classmethod
    def complete(cls, payload: dict[str, Any] | None = None) -> RunStatus:
        return cls(RunStatusType.COMPLETE, payload=payload)

    @classmethod
    def from_dict(cls, data: Any) -> RunStatus:
        """Build the terminal status carried by a ``message-end`` event."""
        if not isinstance(data, dict):
            return cls.complete()
        if data.get("type") == RunStatusType.INCOMPLETE.value:
            return cls.incomplete(str(data.get("reason") or "unknown"), payload=data)
        return cls.complete(payload=data)

    @property
    def is_terminal(self) -> bool:
        return self.type != RunStatusType.RUNNING

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = dict(self.payload or {})
        data["type"] = self.type.value
        if self.reason is not None:
            data["reason"] = self.reason
        if self.details is not None:
            data["details"] = _details_to_dict(self.details)
        return data


@dataclass(frozen=True)
class Snapshot:
    """Read-only view of the message at one point of the stream."""

    parts: tuple[ContentPart, ...]
    status: RunStatus

    @classmethod
    def capture(cls, parts: list[ContentPart], status: RunStatus) -> Snapshot:
        # Parts are copied so later deltas never leak into an emitted snapshot.
        return cls(parts=tuple(replace(part) for part in parts), status=status)

    @property
    def text(self) -> str:
        """All text parts joined in order."""
        return "".join(p.text for p in self.parts if isinstance(p, TextPart))

    @property
    def tool_calls(self) -> list[ToolCallPart]:
        return [p for p in self.parts if isinstance(p, ToolCallPart)]

    def to_dict(self) -> dict[str, Any]:
        return {
            "content": [part.to_dict() for part in self.parts],
            "status": self.status.to_dict(),
        }
