"""Type definitions for the backend module.

This module defines the core types shared by every backend:
- BackendKind: which external process serves a channel
- RunMode: normal vs read-only plan execution
- StreamEvent: the closed set of events a backend run can produce
- Error classes: hierarchy of backend errors
"""

from dataclasses import dataclass
from enum import Enum
from typing import Union


class BackendKind(str, Enum):
    """Backend variants a channel can be bound to.

    CLAUDE and CLAUDE_Z speak the same streaming protocol and differ only in
    the executable invoked. CODEX speaks the secondary (dotted event) protocol.
    """

    CLAUDE = "claude"
    CLAUDE_Z = "claude_z"
    CODEX = "codex"

    @classmethod
    def from_str(cls, value: str) -> "BackendKind | None":
        """Convert string to BackendKind enum.

        Args:
            value: String representation (case-insensitive, '-' or '_').

        Returns:
            BackendKind enum or None if invalid.
        """
        normalized = value.strip().lower().replace("-", "_")
        for kind in cls:
            if kind.value == normalized:
                return kind
        return None

    @property
    def uses_primary_protocol(self) -> bool:
        """True for backends that emit the assistant/result schema."""
        return self is not BackendKind.CODEX

    @property
    def supports_compaction(self) -> bool:
        """True if the backend offers a compact request for its sessions."""
        return self.uses_primary_protocol

    @property
    def supports_plan_mode(self) -> bool:
        """True if the backend has a restricted plan permission profile."""
        return self.uses_primary_protocol

    @property
    def supports_transcript_trim(self) -> bool:
        """True if the backend's on-disk transcript format is understood here."""
        return self.uses_primary_protocol

    @property
    def status_line(self) -> str:
        """One-line description used by status replies."""
        return {
            BackendKind.CLAUDE: "🔄 Normal mode (`claude`)",
            BackendKind.CLAUDE_Z: "⚡ Z mode (`claude-z`)",
            BackendKind.CODEX: "🅾️ Codex mode (`codex`)",
        }[self]


class RunMode(str, Enum):
    """Execution mode of a single backend invocation."""

    NORMAL = "normal"
    PLAN = "plan"


@dataclass(frozen=True)
class SessionIdEvent:
    """Backend issued (or confirmed) the session identifier."""

    session_id: str


@dataclass(frozen=True)
class ToolUseEvent:
    """Backend started or finished a tool call.

    Attributes:
        name: Tool name as reported by the backend.
        description: Short human-readable summary, may be empty.
    """

    name: str
    description: str


@dataclass(frozen=True)
class TextEvent:
    """Entire response text accumulated so far (never a delta)."""

    text: str


@dataclass(frozen=True)
class PlanArtifactEvent:
    """Plan mode wrote its plan to the reserved plans directory."""

    path: str
    content: str


@dataclass(frozen=True)
class DoneEvent:
    """Terminal event; observed exactly once per run by a consumer."""


@dataclass(frozen=True)
class ErrorEvent:
    """Backend reported an explicit error."""

    message: str


StreamEvent = Union[
    SessionIdEvent, ToolUseEvent, TextEvent, PlanArtifactEvent, DoneEvent, ErrorEvent
]

DONE = DoneEvent()


# Error hierarchy


class BackendError(Exception):
    """Base exception for all backend errors."""

    pass


class BackendNotFoundError(BackendError):
    """Raised when the backend executable cannot be located."""

    pass


class BackendSpawnError(BackendError):
    """Raised when the backend process cannot be started or its pipes opened."""

    pass


class BackendCommandError(BackendError):
    """Raised when a collect-mode backend call exits with a non-zero status."""

    def __init__(self, message: str, *, returncode: int | None, stderr: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class BackendUnsupportedError(BackendError):
    """Raised when an operation is not offered by the selected backend."""

    pass
