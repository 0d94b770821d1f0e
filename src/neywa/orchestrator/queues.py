"""Per-channel task queues and cancellation handles.

Both tables are mutated only through synchronous methods, which never
suspend, so each mutation is atomic with respect to every other coroutine
on the event loop. FIFO order and the one-handle-per-channel rule hold
without explicit locks.
"""

from collections import deque

from neywa.orchestrator.cancellation import CancellationToken
from neywa.orchestrator.types import QueuedTask


class TaskQueues:
    """Unbounded FIFO of pending tasks, one per channel."""

    def __init__(self) -> None:
        self._queues: dict[int, deque[QueuedTask]] = {}

    def push(self, channel_id: int, task: QueuedTask) -> int:
        """Append a task to the channel's queue.

        Returns:
            1-based position of the task in the queue.
        """
        queue = self._queues.setdefault(channel_id, deque())
        queue.append(task)
        return len(queue)

    def pop(self, channel_id: int) -> QueuedTask | None:
        """Remove and return the channel's oldest task, if any."""
        queue = self._queues.get(channel_id)
        if not queue:
            return None
        return queue.popleft()

    def size(self, channel_id: int) -> int:
        return len(self._queues.get(channel_id, ()))

    def clear(self, channel_id: int) -> int:
        """Discard a channel's pending tasks; return how many were discarded."""
        queue = self._queues.get(channel_id)
        if not queue:
            return 0
        count = len(queue)
        queue.clear()
        return count

    def clear_all(self) -> int:
        """Discard every pending task; return how many were discarded."""
        return sum(self.clear(channel_id) for channel_id in list(self._queues))


class CancellationRegistry:
    """Live cancellation handle of each processing channel.

    A channel is processing exactly while it has a registered handle.
    """

    def __init__(self) -> None:
        self._handles: dict[int, CancellationToken] = {}

    def register(self, channel_id: int) -> CancellationToken:
        """Register a fresh handle for a channel that is not processing.

        Raises:
            RuntimeError: If the channel already has a live handle.
        """
        if channel_id in self._handles:
            raise RuntimeError(f"channel {channel_id} is already processing")
        token = CancellationToken()
        self._handles[channel_id] = token
        return token

    def release(self, channel_id: int, token: CancellationToken) -> None:
        """Drop a channel's handle if it is still ``token``."""
        if self._handles.get(channel_id) is token:
            del self._handles[channel_id]

    def is_processing(self, channel_id: int) -> bool:
        return channel_id in self._handles

    def cancel(self, channel_id: int) -> bool:
        """Signal the channel's task; return False if nothing is processing."""
        token = self._handles.get(channel_id)
        if token is None:
            return False
        token.cancel()
        return True

    def cancel_all(self) -> int:
        """Signal every processing channel; return how many were signalled."""
        for token in self._handles.values():
            token.cancel()
        return len(self._handles)

    def __len__(self) -> int:
        return len(self._handles)
