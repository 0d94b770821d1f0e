"""Type definitions for the orchestrator module."""

from dataclasses import dataclass, field
from enum import Enum

from neywa.backend.types import RunMode
from neywa.orchestrator.channels import ChannelProfile
from neywa.orchestrator.gateway import InboundMessage


@dataclass(frozen=True)
class QueuedTask:
    """One accepted request, consumed exactly once by a channel worker.

    Attributes:
        message: Originating inbound message.
        content: Text to send to the backend (command prefix removed).
        attachment_paths: Resolved local attachment paths.
        profile: Behavior profile of the channel.
        mode: NORMAL or read-only PLAN execution.
    """

    message: InboundMessage
    content: str
    profile: ChannelProfile
    attachment_paths: tuple[str, ...] = field(default_factory=tuple)
    mode: RunMode = RunMode.NORMAL

    @property
    def channel_id(self) -> int:
        return self.message.channel_id

    @property
    def session_key(self) -> tuple[int, int]:
        return self.message.session_key


class TaskOutcome(str, Enum):
    """Terminal state of one task."""

    COMPLETED = "completed"
    PLAN_READY = "plan_ready"
    CANCELLED = "cancelled"
    FAILED = "failed"
    RECOVERED = "recovered"
    RECOVERY_ENDED = "recovery_ended"
