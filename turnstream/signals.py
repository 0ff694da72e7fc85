"""
Tool side-effect notifications.

Some tool results matter to the surrounding application: a created file
should be opened, a browser session should be shown. The dispatcher turns
those results into ``ToolSignal`` values and hands them to an injected sink.
The sink is fire-and-forget; its failures are logged and never reach the
stream.
"""

from collections.abc import Callable
from dataclasses import dataclass
import json
import logging
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_BROWSER_TITLE = "Browser Session"

FILE_TOOLS = frozenset({"create_file", "download_from_url"})
BROWSER_SESSION_TOOLS = frozenset({"browser", "browser_create_session", "stagehand_create_session"})
BROWSER_NAVIGATION_TOOLS = frozenset({"stagehand_goto"})


@dataclass(frozen=True)
class FileCreated:
    """A file was produced; ``result`` is the decoded tool result (or None)."""

    result: Any


@dataclass(frozen=True)
class BrowserSessionOpened:
    """A page should be shown in a browser viewer."""

    viewer_url: str
    title: str = DEFAULT_BROWSER_TITLE
    session_id: str | None = None


ToolSignal = FileCreated | BrowserSessionOpened
SignalSink = Callable[[ToolSignal], None]


def decode_payload(raw: Any) -> Any:
    """Decode a JSON string result; dicts pass through, anything else is None."""
    if isinstance(raw, str):
        try:
            return json.loads(raw)
        except ValueError:
            return None
    if isinstance(raw, dict):
        return raw
    return None


def _browser_session(payload: Any) -> BrowserSessionOpened | None:
    if isinstance(payload, dict) and payload.get("viewerUrl"):
        return BrowserSessionOpened(
            viewer_url=payload["viewerUrl"],
            session_id=payload.get("sessionId"),
            title=payload.get("title") or DEFAULT_BROWSER_TITLE,
        )
    return None


def signal_for_tool_result(
    tool_name: str | None, result: Any, event: dict[str, Any] | None = None
) -> ToolSignal | None:
    """
    Map a tool result to the notification it implies, if any.

    Args:
        tool_name: Name of the tool that produced the result
        result: Raw result from the stream (JSON string or object)
        event: The whole tool-result event, consulted for servers that put
            the payload at the top level instead of inside ``part``

    Returns:
        A ToolSignal, or None when the tool needs no notification
    """
    event = event or {}
    parsed = decode_payload(result)

    if tool_name in FILE_TOOLS:
        return FileCreated(result=parsed)

    if tool_name in BROWSER_SESSION_TOOLS:
        candidate = parsed or event.get("result") or event.get("toolResult")
        if not candidate and isinstance(event.get("data"), dict):
            candidate = event["data"].get("result")
        return _browser_session(candidate)

    if tool_name in BROWSER_NAVIGATION_TOOLS:
        fallback = event.get("result") if isinstance(event.get("result"), dict) else {}
        page = parsed if isinstance(parsed, dict) else {}
        url = page.get("url") or fallback.get("url")
        if url:
            title = page.get("title") or fallback.get("title") or DEFAULT_BROWSER_TITLE
            return BrowserSessionOpened(viewer_url=url, title=title)

    return None


def signal_for_tool_completion(message: Any) -> ToolSignal | None:
    """A completion message may carry the browser viewer URL on its own."""
    return _browser_session(decode_payload(message))


def notify(sink: SignalSink | None, signal: ToolSignal | None) -> None:
    """Deliver a signal without letting the sink break the stream."""
    if sink is None or signal is None:
        return
    try:
        sink(signal)
    except Exception:
        logger.warning("Signal sink failed for %r", signal, exc_info=True)
