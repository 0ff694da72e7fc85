"""Shared helpers for building assistant request bodies."""

from datetime import datetime
from typing import Any

# Defaults applied under any caller-supplied preferences.
DEFAULT_TOOL_PREFERENCES: dict[str, bool] = {
    "web_search": True,
    "tiptap_ai": True,
    "read_file": True,
    "gmail": True,
    "langgraph_mode": True,
    "browserbase": True,
    "x_api": False,
}


def _merge_tool_preferences(preferences: dict[str, Any] | None) -> dict[str, Any]:
    """Overlay caller preferences on the defaults. LangGraph mode is always on."""
    merged: dict[str, Any] = {**DEFAULT_TOOL_PREFERENCES, **(preferences or {})}
    merged["langgraph_mode"] = True
    for key in ("browserbase", "x_api"):
        if not isinstance(merged.get(key), bool):
            merged[key] = DEFAULT_TOOL_PREFERENCES[key]
    return merged


def _datetime_context(now: datetime | None = None) -> dict[str, str]:
    """Describe the caller's local date and time for the agent prompt."""
    now = (now or datetime.now()).astimezone()
    current_date = f"{now:%A}, {now:%B} {now.day}, {now:%Y}"
    current_time = now.strftime("%I:%M %p")
    timezone = now.tzname() or "UTC"
    return {
        "currentDate": current_date,
        "currentTime": current_time,
        "timezone": timezone,
        "isoString": now.isoformat(),
        "formatted": f"{current_date} at {current_time} ({timezone})",
    }


def _attachment_part(attachment: Any) -> dict[str, Any] | None:
    """Build a file-attachment content part, or None if a required field is missing."""
    if not isinstance(attachment, dict):
        return None
    file_id = _first(attachment, "fileId", "id", "file_id")
    file_name = _first(attachment, "fileName", "name")
    file_path = _first(attachment, "filePath", "path")
    if not file_id or not file_name or not file_path:
        return None
    part: dict[str, Any] = {
        "type": "file-attachment",
        "fileId": file_id,
        "fileName": file_name,
        "filePath": file_path,
    }
    # Pre-downloaded content travels only with its mime type.
    if attachment.get("fileData") and attachment.get("mimeType"):
        part["fileData"] = attachment["fileData"]
        part["mimeType"] = attachment["mimeType"]
    return part


def _first(data: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def _with_attachments(messages: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """
    Append the latest user message's attachments to its content.

    Messages are shallow-copied; the caller's list and dicts are not modified.
    Only the last message with role ``user`` is touched.

    Args:
        messages: Conversation messages, each with ``role`` and ``content``

    Returns:
        The messages to send
    """
    msgs = [dict(m) if isinstance(m, dict) else m for m in messages]
    last_user = next(
        (m for m in reversed(msgs) if isinstance(m, dict) and m.get("role") == "user"), None
    )
    if last_user is None or not isinstance(last_user.get("attachments"), list):
        return msgs

    parts = [p for p in map(_attachment_part, last_user["attachments"]) if p is not None]
    if parts:
        content = last_user.get("content")
        if isinstance(content, str):
            content = [{"type": "text", "text": content}] if content else []
        elif not isinstance(content, list):
            content = []
        last_user["content"] = [*content, *parts]
    return msgs
