"""Live status message of a running task.

One message per task is posted when the task starts and edited as tool
calls stream in. It shows the last few tool-use lines and is edited at
most once per update interval, whatever the event rate. It is deleted
when the task ends.
"""

import time
from collections import deque
from typing import Callable

from neywa.backend.types import ToolUseEvent
from neywa.orchestrator.gateway import ChatGateway
from neywa.telemetry import STATUS_UPDATE_FAILED, get_logger

log = get_logger(__name__)

PROCESSING_LINE = "⏳ Processing..."


def tool_line(event: ToolUseEvent) -> str:
    """Status line of a tool call: its description, or the bare tool name."""
    return event.description or f"🔧 {event.name}"


class StatusIndicator:
    """Rate-limited status message for one task.

    Usage:
        status = StatusIndicator(gateway, channel_id)
        await status.start()
        await status.record(tool_event)
        await status.close()
    """

    def __init__(
        self,
        gateway: ChatGateway,
        channel_id: int,
        *,
        interval_ms: int = 800,
        ring_size: int = 5,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.gateway = gateway
        self.channel_id = channel_id
        self.interval = interval_ms / 1000
        self.lines: deque[str] = deque([PROCESSING_LINE], maxlen=ring_size)
        self.message_id: int | None = None
        self._clock = clock
        self._last_update = 0.0

    async def start(self) -> None:
        """Post the status message.

        Raises:
            Exception: Whatever the gateway raises; a task that cannot post
                anything cannot report its result either.
        """
        self.message_id = await self.gateway.send_text(self.channel_id, PROCESSING_LINE)
        self._last_update = self._clock()

    async def record(self, event: ToolUseEvent) -> bool:
        """Add a tool-use line and edit the message if the interval has elapsed.

        Returns:
            True if the message was edited.
        """
        self.lines.append(tool_line(event))
        if self.message_id is None or self._clock() - self._last_update < self.interval:
            return False
        try:
            await self.gateway.edit_text(self.channel_id, self.message_id, "\n".join(self.lines))
        except Exception as e:
            log.warning(STATUS_UPDATE_FAILED, channel_id=self.channel_id, error=str(e))
            return False
        self._last_update = self._clock()
        return True

    async def close(self) -> None:
        """Delete the status message (once)."""
        if self.message_id is None:
            return
        message_id, self.message_id = self.message_id, None
        try:
            await self.gateway.delete_message(self.channel_id, message_id)
        except Exception as e:
            log.warning(STATUS_UPDATE_FAILED, channel_id=self.channel_id, error=str(e))
