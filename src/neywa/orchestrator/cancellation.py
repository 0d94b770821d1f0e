"""Cooperative cancellation for channel tasks."""

import asyncio

from neywa.backend.process import BackendRun
from neywa.backend.types import StreamEvent


class CancellationToken:
    """One-shot cancellation signal shared by the orchestrator and a task.

    Cancelling never interrupts the task directly: the task observes the
    signal at its next suspension point and winds down on its own.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        """Return once the token is cancelled."""
        await self._event.wait()


async def next_event_or_cancel(run: BackendRun, token: CancellationToken) -> StreamEvent | None:
    """Race the run's next event against the cancellation signal.

    Args:
        run: Event source of a backend process.
        token: Task's cancellation token.

    Returns:
        The next event, or None if the token fired first. On cancellation
        the run is detached: its process keeps going and its remaining
        output is discarded.
    """
    if token.cancelled:
        run.detach()
        return None

    next_event = asyncio.ensure_future(run.next_event())
    cancelled = asyncio.ensure_future(token.wait())
    try:
        await asyncio.wait({next_event, cancelled}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        cancelled.cancel()

    # An event that raced the signal still wins; the next call sees the token.
    if next_event.done():
        return next_event.result()
    next_event.cancel()
    run.detach()
    return None
