"""Tests for per-channel queues and the cancellation registry."""

import pytest

from neywa.orchestrator.channels import ChannelProfile
from neywa.orchestrator.gateway import InboundMessage
from neywa.orchestrator.queues import CancellationRegistry, TaskQueues
from neywa.orchestrator.types import QueuedTask


def _task(channel_id: int, content: str) -> QueuedTask:
    message = InboundMessage(channel_id=channel_id, author_id=1, author_name="u", content=content)
    return QueuedTask(message=message, content=content, profile=ChannelProfile.GENERAL)


class TestTaskQueues:
    """Test FIFO queues."""

    def test_push_returns_position_and_pop_is_fifo(self) -> None:
        """Test positions are 1-based and tasks come out in order."""
        queues = TaskQueues()

        assert queues.push(1, _task(1, "a")) == 1
        assert queues.push(1, _task(1, "b")) == 2
        assert queues.push(2, _task(2, "x")) == 1

        assert queues.size(1) == 2
        assert queues.pop(1).content == "a"
        assert queues.pop(1).content == "b"
        assert queues.pop(1) is None
        assert queues.size(2) == 1

    def test_clear_counts(self) -> None:
        """Test clearing reports how many tasks were discarded."""
        queues = TaskQueues()
        for content in "abc":
            queues.push(1, _task(1, content))
        queues.push(2, _task(2, "x"))

        assert queues.clear(3) == 0
        assert queues.clear(1) == 3
        assert queues.size(1) == 0

        queues.push(1, _task(1, "d"))
        assert queues.clear_all() == 2
        assert queues.size(2) == 0


class TestCancellationRegistry:
    """Test live cancellation handles."""

    def test_one_handle_per_channel(self) -> None:
        """Test a second registration for a processing channel is refused."""
        registry = CancellationRegistry()
        registry.register(1)

        with pytest.raises(RuntimeError):
            registry.register(1)

        registry.register(2)
        assert len(registry) == 2

    def test_release_only_own_token(self) -> None:
        """Test a stale token cannot release a newer handle."""
        registry = CancellationRegistry()
        old = registry.register(1)
        registry.release(1, old)
        new = registry.register(1)

        registry.release(1, old)

        assert registry.is_processing(1)
        registry.release(1, new)
        assert not registry.is_processing(1)

    def test_cancel(self) -> None:
        """Test cancel signals the live handle only."""
        registry = CancellationRegistry()
        token = registry.register(1)

        assert registry.cancel(2) is False
        assert registry.cancel(1) is True
        assert token.cancelled
        # Cancelling does not release; the worker does that
        assert registry.is_processing(1)

    def test_cancel_all(self) -> None:
        """Test every live handle is signalled."""
        registry = CancellationRegistry()
        tokens = [registry.register(channel_id) for channel_id in (1, 2, 3)]

        assert registry.cancel_all() == 3
        assert all(token.cancelled for token in tokens)
