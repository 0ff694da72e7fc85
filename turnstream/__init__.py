"""
turnstream - streaming client for assistant turns

Rebuilds an agent's streamed reply (text, tool calls, progress notices) into
one continuously updated message.
"""

__version__ = "0.1.0"

from ._client import Turnstream
from ._exceptions import (
    APIError,
    AuthenticationError,
    NotFoundError,
    PermissionDeniedError,
    RateLimitError,
    StreamDecodeError,
    TurnstreamError,
    ValidationError,
)
from ._streaming import CancelToken, RunStream
from ._types import (
    CompletionSummary,
    ContentPart,
    RunStatus,
    RunStatusType,
    Snapshot,
    StepProgress,
    TextPart,
    ThinkingDetails,
    ToolCallPart,
    ToolCallStatus,
    ToolCompleted,
    ToolStatus,
)
from .dispatcher import EventDispatcher
from .message import MessageAccumulator
from .signals import BrowserSessionOpened, FileCreated, ToolSignal

__all__ = [
    "APIError",
    "AuthenticationError",
    "BrowserSessionOpened",
    "CancelToken",
    "CompletionSummary",
    "ContentPart",
    "EventDispatcher",
    "FileCreated",
    "MessageAccumulator",
    "NotFoundError",
    "PermissionDeniedError",
    "RateLimitError",
    "RunStatus",
    "RunStatusType",
    "RunStream",
    "Snapshot",
    "StepProgress",
    "StreamDecodeError",
    "TextPart",
    "ThinkingDetails",
    "ToolCallPart",
    "ToolCallStatus",
    "ToolCompleted",
    "ToolSignal",
    "ToolStatus",
    "Turnstream",
    "TurnstreamError",
    "ValidationError",
]
