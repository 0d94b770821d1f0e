"""Backend adapter and stream translators.

Spawns the external conversational-AI processes and converts their
line-delimited JSON output into one shared StreamEvent vocabulary.
"""

from neywa.backend.adapter import BackendAdapter
from neywa.backend.claude import ClaudeStreamTranslator
from neywa.backend.codex import CodexStreamTranslator
from neywa.backend.locator import locate_executable
from neywa.backend.process import BackendRun
from neywa.backend.types import (
    DONE,
    BackendCommandError,
    BackendError,
    BackendKind,
    BackendNotFoundError,
    BackendSpawnError,
    BackendUnsupportedError,
    DoneEvent,
    ErrorEvent,
    PlanArtifactEvent,
    RunMode,
    SessionIdEvent,
    StreamEvent,
    TextEvent,
    ToolUseEvent,
)

__all__ = [
    "BackendAdapter",
    "BackendRun",
    "ClaudeStreamTranslator",
    "CodexStreamTranslator",
    "locate_executable",
    # Types
    "BackendKind",
    "RunMode",
    "StreamEvent",
    "SessionIdEvent",
    "ToolUseEvent",
    "TextEvent",
    "PlanArtifactEvent",
    "DoneEvent",
    "ErrorEvent",
    "DONE",
    # Errors
    "BackendError",
    "BackendNotFoundError",
    "BackendSpawnError",
    "BackendCommandError",
    "BackendUnsupportedError",
]
