"""Short human-readable descriptions of backend tool calls.

Both protocols map their tool calls onto the same vocabulary so the status
indicator looks the same whichever backend serves the channel.
"""

from typing import Any

COMMAND_PREVIEW_CHARS = 50
PATTERN_PREVIEW_CHARS = 40


def shorten_path(path: str) -> str:
    """Return the last path component (the whole string if there is none)."""
    tail = path.rstrip("/").rsplit("/", 1)[-1]
    return tail or path


def truncate(text: str, limit: int) -> str:
    """Cut ``text`` to ``limit`` characters, marking the cut with an ellipsis."""
    if len(text) <= limit:
        return text
    return text[:limit] + "…"


def _str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def describe_tool(name: str, tool_input: Any) -> str:
    """Render a tool call as a short status line.

    Args:
        name: Tool name from the backend (``Read``, ``Bash``, ``Task``, ...).
        tool_input: The tool's input object; anything but a dict yields "".

    Returns:
        Description such as ``"📖 main.py"`` or ``""`` for unknown tools.
    """
    if not isinstance(tool_input, dict):
        return ""

    if name in ("Read", "NotebookRead"):
        path = _str(tool_input.get("file_path") or tool_input.get("notebook_path"))
        return f"📖 {shorten_path(path)}" if path else ""
    if name in ("Edit", "Write", "MultiEdit", "NotebookEdit"):
        path = _str(tool_input.get("file_path") or tool_input.get("notebook_path"))
        return f"✏️ {shorten_path(path)}" if path else ""
    if name == "Glob":
        pattern = _str(tool_input.get("pattern"))
        return f"🔍 {truncate(pattern, PATTERN_PREVIEW_CHARS)}" if pattern else ""
    if name == "Grep":
        pattern = _str(tool_input.get("pattern"))
        return f"🔎 {truncate(pattern, PATTERN_PREVIEW_CHARS)}" if pattern else ""
    if name == "Bash":
        command = _str(tool_input.get("command"))
        return f"💻 {command[:COMMAND_PREVIEW_CHARS]}" if command else ""
    if name == "WebSearch":
        query = _str(tool_input.get("query"))
        return f"🌐 {truncate(query, PATTERN_PREVIEW_CHARS)}" if query else ""
    if name == "WebFetch":
        url = _str(tool_input.get("url"))
        return f"📥 {url}" if url else ""
    if name in ("Task", "Agent"):
        agent = _str(tool_input.get("subagent_type")) or "agent"
        summary = _str(tool_input.get("description"))
        if not summary:
            return f"🤖 {agent}"
        return f"🤖 {agent}: {truncate(summary, PATTERN_PREVIEW_CHARS)}"
    if name == "Skill":
        skill = _str(tool_input.get("skill") or tool_input.get("name"))
        return f"🧩 {skill}" if skill else ""
    return ""
