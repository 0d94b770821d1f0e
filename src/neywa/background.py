"""Background task management.

Keeps strong references to fire-and-forget tasks (channel workers, backend
stream readers) so they are not garbage collected mid-flight.
"""

import asyncio
from collections.abc import Coroutine
from typing import Any

from neywa.telemetry import get_logger

log = get_logger(__name__)

# Global set to hold references to running background tasks
_background_tasks: set[asyncio.Task[Any]] = set()


def run_in_background(
    coro: Coroutine[Any, Any, Any], name: str | None = None
) -> asyncio.Task[Any]:
    """Run a coroutine in the background without blocking.

    The task is tracked to prevent garbage collection but won't
    block the calling code.

    Args:
        coro: Coroutine to run in background.
        name: Optional task name (shows up in logs).

    Returns:
        The scheduled task.
    """
    task = asyncio.create_task(coro, name=name)
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)
    task.add_done_callback(_log_task_error)
    return task


def _log_task_error(task: asyncio.Task[Any]) -> None:
    """Log errors from background tasks.

    Args:
        task: Completed task to check for errors.
    """
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        log.warning(
            "background_task_error",
            error=str(error),
            error_type=type(error).__name__,
            task_name=task.get_name(),
        )


async def wait_for_background_tasks() -> None:
    """Wait for all background tasks to complete.

    This is useful for testing or graceful shutdown.
    """
    while _background_tasks:
        await asyncio.gather(*list(_background_tasks), return_exceptions=True)


def get_background_task_count() -> int:
    """Get the number of running background tasks.

    Returns:
        Number of currently running background tasks.
    """
    return len(_background_tasks)
