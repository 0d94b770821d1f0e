"""Channel task orchestrator.

Serializes backend tasks per channel (one running task, FIFO queue,
cooperative cancellation), keeps backend sessions per conversation thread,
and recovers from context-capacity failures.
"""

from neywa.orchestrator.channels import ChannelProfile
from neywa.orchestrator.commands import Command, CommandName, parse_command
from neywa.orchestrator.executor import TaskExecutor
from neywa.orchestrator.gateway import ChatGateway, InboundMessage
from neywa.orchestrator.orchestrator import ChannelOrchestrator
from neywa.orchestrator.preferences import ChannelPreferences
from neywa.orchestrator.recovery import RecoveryController, RecoveryOutcome, RecoveryResult
from neywa.orchestrator.session import SessionStore, load_sessions, save_sessions
from neywa.orchestrator.transcript import TrimResult, trim_transcript
from neywa.orchestrator.types import QueuedTask, TaskOutcome

__all__ = [
    # Main entry point
    "ChannelOrchestrator",
    "TaskExecutor",
    # Gateway
    "ChatGateway",
    "InboundMessage",
    # Types
    "ChannelProfile",
    "QueuedTask",
    "TaskOutcome",
    "Command",
    "CommandName",
    "parse_command",
    # State
    "SessionStore",
    "load_sessions",
    "save_sessions",
    "ChannelPreferences",
    # Recovery
    "RecoveryController",
    "RecoveryOutcome",
    "RecoveryResult",
    "TrimResult",
    "trim_transcript",
]
