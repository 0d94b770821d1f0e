"""Primary backend protocol: argument building and stream translation.

The primary backend writes one JSON object per line. Two event types matter:

- ``assistant``: ``message.content[]`` holds ``tool_use`` and ``text`` items.
  Text items are appended to an accumulator (joined by a newline) and the
  whole accumulated text is re-emitted after each item.
- ``result``: the final text. A non-empty ``result`` replaces the accumulator.

The first object carrying a ``session_id`` yields the run's only
``SessionIdEvent``.
"""

import json
from pathlib import Path
from typing import Any

from neywa.backend.tools import describe_tool
from neywa.backend.types import (
    DONE,
    PlanArtifactEvent,
    RunMode,
    SessionIdEvent,
    StreamEvent,
    TextEvent,
    ToolUseEvent,
)

PLAN_MODE_PROMPT = (
    "You are running in PLAN mode. Do not modify project files and do not run "
    "commands that change state; read and search as much as you need. When the "
    "plan is complete, write it as a single markdown file inside {plans_dir} and "
    "stop. Writing that file is the final step: do not ask to leave plan mode or "
    "to start implementing."
)


def build_stream_args(
    prompt: str,
    *,
    session_id: str | None,
    mode: RunMode,
    plans_dir: Path,
) -> list[str]:
    """Arguments (after the executable) for a streaming run.

    Args:
        prompt: Full prompt, passed as the single trailing argument.
        session_id: Session to resume, if any.
        mode: NORMAL grants full tool permissions; PLAN uses the restricted
            plan permission profile plus the plan system prompt.
        plans_dir: Directory the plan must be written to (PLAN only).

    Returns:
        Argument list.
    """
    if mode is RunMode.PLAN:
        args = [
            "--permission-mode",
            "plan",
            "--append-system-prompt",
            PLAN_MODE_PROMPT.format(plans_dir=plans_dir),
        ]
    else:
        args = ["--dangerously-skip-permissions"]
    if session_id:
        args += ["--resume", session_id]
    args += ["--verbose", "--output-format", "stream-json", prompt]
    return args


def build_print_args(prompt: str, *, session_id: str | None = None) -> list[str]:
    """Arguments for a non-streaming ``--print`` call (collect, compact, slash)."""
    args = ["--dangerously-skip-permissions"]
    if session_id:
        args += ["--resume", session_id]
    args += ["--print", prompt]
    return args


class ClaudeStreamTranslator:
    """Translate primary-backend stream lines into StreamEvents.

    One translator is created per run; it owns the text accumulator and the
    "session id already sent" flag.
    """

    def __init__(self, *, plan_mode: bool = False, plans_dir: Path | None = None) -> None:
        self.plan_mode = plan_mode
        self.plans_dir = plans_dir
        self.full_text = ""
        self._session_id_sent = False

    def translate(self, line: str) -> list[StreamEvent]:
        """Translate one raw line.

        Args:
            line: One line of standard output.

        Returns:
            Events produced by the line; empty for blank, malformed or
            irrelevant lines.
        """
        try:
            data = json.loads(line)
        except json.JSONDecodeError:
            return []
        if not isinstance(data, dict):
            return []

        events: list[StreamEvent] = []

        if not self._session_id_sent:
            session_id = data.get("session_id")
            if isinstance(session_id, str) and session_id:
                self._session_id_sent = True
                events.append(SessionIdEvent(session_id))

        event_type = data.get("type")
        if event_type == "assistant":
            events.extend(self._assistant(data))
        elif event_type == "result":
            result = data.get("result")
            if isinstance(result, str) and result:
                self.full_text = result
                events.append(TextEvent(self.full_text))
            events.append(DONE)
        return events

    def _assistant(self, data: dict[str, Any]) -> list[StreamEvent]:
        message = data.get("message")
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, list):
            return []

        events: list[StreamEvent] = []
        for item in content:
            if not isinstance(item, dict):
                continue
            item_type = item.get("type")
            if item_type == "tool_use":
                name = item.get("name") if isinstance(item.get("name"), str) else "unknown"
                tool_input = item.get("input")
                events.append(ToolUseEvent(name, describe_tool(name, tool_input)))
                artifact = self._plan_artifact(name, tool_input)
                if artifact is not None:
                    events.append(artifact)
            elif item_type == "text":
                text = item.get("text")
                if isinstance(text, str):
                    self.full_text = f"{self.full_text}\n{text}" if self.full_text else text
                    events.append(TextEvent(self.full_text))
        return events

    def _plan_artifact(self, name: str, tool_input: Any) -> PlanArtifactEvent | None:
        if not self.plan_mode or self.plans_dir is None or name != "Write":
            return None
        if not isinstance(tool_input, dict):
            return None
        file_path = tool_input.get("file_path")
        content = tool_input.get("content")
        if not isinstance(file_path, str) or not isinstance(content, str):
            return None
        if not Path(file_path).expanduser().is_relative_to(self.plans_dir):
            return None
        return PlanArtifactEvent(file_path, content)
