"""Turns resource — send a conversation and stream the assistant's reply."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .._streaming import CancelToken, RunStream
from ..message import MessageAccumulator
from ..signals import SignalSink
from ._utils import _datetime_context, _merge_tool_preferences, _with_attachments

if TYPE_CHECKING:
    from .._http import HTTPClient

STREAM_PATH = "/api/assistant/langgraph-stream"


class Turns:
    """client.turns — stream one assistant turn."""

    def __init__(self, http: HTTPClient):
        self._http = http

    def create(
        self,
        *,
        messages: list[dict[str, Any]],
        tool_preferences: dict[str, Any] | None = None,
        document_context: str | None = None,
        recursion_limit: int | None = None,
        datetime_context: bool = True,
        cancel: CancelToken | None = None,
        signals: SignalSink | None = None,
        message: MessageAccumulator | None = None,
    ) -> RunStream:
        """Start a turn and return its RunStream.

        The request is only sent once iteration starts, after the initial
        empty snapshot. Transport failures come back as an error snapshot.
        """
        body: dict[str, Any] = {
            "messages": _with_attachments(messages),
            "toolPreferences": _merge_tool_preferences(tool_preferences),
        }
        if document_context:
            body["documentContext"] = document_context
        if datetime_context:
            body["dateTimeContext"] = _datetime_context()
        if recursion_limit is not None:
            body["recursionLimit"] = recursion_limit

        return RunStream(
            opener=lambda: self._http.stream("POST", STREAM_PATH, json=body),
            cancel=cancel,
            signals=signals,
            message=message,
        )
