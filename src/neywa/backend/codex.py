"""Secondary backend protocol: argument building and stream translation.

The secondary backend emits dotted event types:

- ``thread.started``: carries ``thread_id``, the session id.
- ``item.started`` / ``item.completed``: tool activity and agent messages,
  discriminated by ``item.type``.
- ``turn.completed``: terminal success.
- ``turn.failed``: terminal error, message in ``error`` or ``message``.
"""

import json
from typing import Any

from neywa.backend.tools import (
    COMMAND_PREVIEW_CHARS,
    PATTERN_PREVIEW_CHARS,
    shorten_path,
    truncate,
)
from neywa.backend.types import (
    DONE,
    ErrorEvent,
    SessionIdEvent,
    StreamEvent,
    TextEvent,
    ToolUseEvent,
)


def build_exec_args(prompt: str, *, model: str, session_id: str | None) -> list[str]:
    """Arguments (after the executable) for ``exec`` in JSON-lines mode."""
    args = ["exec", "--model", model]
    if session_id:
        args += ["resume", session_id]
    args += ["--json", "--dangerously-bypass-approvals-and-sandbox", prompt]
    return args


def _field(item: dict[str, Any], key: str, default: str) -> str:
    value = item.get(key)
    return value if isinstance(value, str) and value else default


def _message_texts(item: dict[str, Any]) -> list[str]:
    """Texts of an ``agent_message`` item, from ``content`` and ``text``."""
    texts: list[str] = []
    content = item.get("content")
    if isinstance(content, list):
        for part in content:
            if isinstance(part, dict) and isinstance(part.get("text"), str):
                texts.append(part["text"])
    elif isinstance(content, str):
        texts.append(content)
    if isinstance(item.get("text"), str):
        texts.append(item["text"])
    return texts


def _error_message(data: dict[str, Any]) -> str:
    error = data.get("error")
    if isinstance(error, str) and error:
        return error
    if isinstance(error, dict) and isinstance(error.get("message"), str):
        return error["message"]
    message = data.get("message")
    if isinstance(message, str) and message:
        return message
    return "Unknown error"


class CodexStreamTranslator:
    """Translate secondary-backend stream lines into StreamEvents."""

    def __init__(self) -> None:
        self.full_text = ""
        self._session_id_sent = False

    def translate(self, line: str) -> list[StreamEvent]:
        """Translate one raw line; malformed or irrelevant lines yield []."""
        try:
            data = json.loads(line)
        except json.JSONDecodeError:
            return []
        if not isinstance(data, dict):
            return []

        event_type = data.get("type")
        if event_type == "thread.started":
            thread_id = data.get("thread_id")
            if not self._session_id_sent and isinstance(thread_id, str) and thread_id:
                self._session_id_sent = True
                return [SessionIdEvent(thread_id)]
            return []

        item = data.get("item")
        if event_type == "item.started" and isinstance(item, dict):
            return self._item_started(item)
        if event_type == "item.completed" and isinstance(item, dict):
            return self._item_completed(item)
        if event_type == "turn.completed":
            return [DONE]
        if event_type == "turn.failed":
            return [ErrorEvent(_error_message(data))]
        return []

    def _item_started(self, item: dict[str, Any]) -> list[StreamEvent]:
        item_type = item.get("type")
        if item_type == "command_execution":
            command = _field(item, "command", "...")
            return [ToolUseEvent("Bash", f"💻 {command[:COMMAND_PREVIEW_CHARS]}")]
        if item_type == "file_read":
            path = _field(item, "file_path", "...")
            return [ToolUseEvent("Read", f"📖 {shorten_path(path)}")]
        return []

    def _item_completed(self, item: dict[str, Any]) -> list[StreamEvent]:
        item_type = item.get("type")
        if item_type == "agent_message":
            for text in _message_texts(item):
                self.full_text = f"{self.full_text}\n{text}" if self.full_text else text
            return [TextEvent(self.full_text)] if self.full_text else []
        if item_type == "command_execution":
            command = _field(item, "command", "...")
            return [ToolUseEvent("Bash", f"💻 {command[:COMMAND_PREVIEW_CHARS]} ✓")]
        if item_type in ("file_change", "file_changes"):
            path = _field(item, "file_path", "files")
            return [ToolUseEvent("Edit", f"✏️ {shorten_path(path)}")]
        if item_type in ("web_search", "web_searches"):
            query = _field(item, "query", "search")
            return [ToolUseEvent("WebSearch", f"🌐 {truncate(query, PATTERN_PREVIEW_CHARS)}")]
        if item_type in ("mcp_tool_call", "mcp_tool_calls"):
            tool = _field(item, "tool_name", "tool")
            return [ToolUseEvent("MCP", f"🔌 {tool}")]
        # reasoning and unknown items are internal
        return []


def collect_agent_text(stdout: str) -> str:
    """Join every agent message in a finished JSON-lines transcript."""
    translator = CodexStreamTranslator()
    for line in stdout.splitlines():
        translator.translate(line)
    return translator.full_text.strip()
