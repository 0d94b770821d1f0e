"""Fixtures for orchestrator tests.

The chat surface and the backend are replaced by in-memory fakes:

- ``RecordingGateway`` records every outbound call;
- ``ScriptedRun`` replays a list of events, optionally holding before its
  terminal event until the test releases it;
- ``ScriptedAdapter`` hands out queued runs and records every invocation.
"""

import asyncio
from collections import deque
from collections.abc import Callable, Iterable
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from neywa.backend.types import DONE, BackendKind, DoneEvent, RunMode, StreamEvent, TextEvent
from neywa.config import AppConfig
from neywa.orchestrator import (
    ChannelOrchestrator,
    ChannelPreferences,
    InboundMessage,
    SessionStore,
)


class RecordingGateway:
    """ChatGateway that keeps everything it is asked to do."""

    def __init__(self) -> None:
        self.sent: list[tuple[int, str]] = []
        self.edits: list[tuple[int, int, str]] = []
        self.deleted: list[tuple[int, int]] = []
        self.files: list[tuple[int, Path]] = []
        self._next_id = 0

    async def send_text(self, channel_id: int, text: str) -> int:
        self.sent.append((channel_id, text))
        self._next_id += 1
        return self._next_id

    async def edit_text(self, channel_id: int, message_id: int, text: str) -> None:
        self.edits.append((channel_id, message_id, text))

    async def delete_message(self, channel_id: int, message_id: int) -> None:
        self.deleted.append((channel_id, message_id))

    async def send_file(self, channel_id: int, path: Path) -> bool:
        self.files.append((channel_id, path))
        return True

    def mention(self, user_id: int, user_name: str) -> str:
        return f"<@{user_id}>"

    def texts(self, channel_id: int | None = None) -> list[str]:
        """Texts sent, optionally to one channel only."""
        return [text for cid, text in self.sent if channel_id is None or cid == channel_id]


class ScriptedRun:
    """Event source replaying scripted events.

    With ``hold=True`` the terminal event is withheld until ``finish`` is
    called, which lets a test keep a task running.
    """

    def __init__(self, events: Iterable[StreamEvent] = (), *, hold: bool = False) -> None:
        self._events: asyncio.Queue[StreamEvent] = asyncio.Queue()
        for event in events:
            self._events.put_nowait(event)
        if not hold:
            self._events.put_nowait(DONE)
        self.detached = False
        self._finished = False

    def finish(self, *events: StreamEvent) -> None:
        for event in events:
            self._events.put_nowait(event)
        self._events.put_nowait(DONE)

    @property
    def finished(self) -> bool:
        return self._finished

    async def next_event(self) -> StreamEvent:
        if self._finished:
            return DONE
        event = await self._events.get()
        if isinstance(event, DoneEvent):
            self._finished = True
        return event

    def detach(self) -> None:
        self.detached = True
        self._finished = True


class ScriptedAdapter:
    """BackendAdapter stand-in; runs are handed out in the order they were queued."""

    def __init__(self) -> None:
        self.runs: deque[ScriptedRun] = deque()
        self.invocations: list[tuple[str, str | None, BackendKind, RunMode]] = []
        self.compact = AsyncMock()
        self.run_slash_command = AsyncMock(return_value="slash output")
        self.locate = MagicMock(return_value=Path("/usr/local/bin/codex"))

    def queue(self, *runs: ScriptedRun) -> None:
        self.runs.extend(runs)

    async def invoke(
        self,
        prompt: str,
        session_id: str | None,
        kind: BackendKind,
        mode: RunMode = RunMode.NORMAL,
    ) -> ScriptedRun:
        self.invocations.append((prompt, session_id, kind, mode))
        if self.runs:
            return self.runs.popleft()
        return ScriptedRun([TextEvent("ok")])

    @property
    def prompts(self) -> list[str]:
        return [prompt for prompt, _, _, _ in self.invocations]


@pytest.fixture
def settings(tmp_path: Path) -> AppConfig:
    """Settings pointing every file at a temporary directory."""
    return AppConfig(
        data_dir=tmp_path / "data",
        transcripts_dir=tmp_path / "transcripts",
        plans_dir=tmp_path / "plans",
        status_update_interval_ms=0,
        restart_settle_seconds=0,
        activity_channel_id=None,
    )


@pytest.fixture
def gateway() -> RecordingGateway:
    return RecordingGateway()


@pytest.fixture
def adapter() -> ScriptedAdapter:
    return ScriptedAdapter()


@pytest.fixture
def make_run() -> type[ScriptedRun]:
    return ScriptedRun


@pytest.fixture
def sessions(settings: AppConfig) -> SessionStore:
    return SessionStore(settings.sessions_file)


@pytest.fixture
def preferences(settings: AppConfig) -> ChannelPreferences:
    return ChannelPreferences(settings.channel_backends_file, settings.human_mode_file)


@pytest.fixture
def orchestrator(
    gateway: RecordingGateway,
    settings: AppConfig,
    adapter: ScriptedAdapter,
    sessions: SessionStore,
    preferences: ChannelPreferences,
) -> ChannelOrchestrator:
    return ChannelOrchestrator(
        gateway,
        settings=settings,
        adapter=adapter,  # type: ignore[arg-type]
        sessions=sessions,
        preferences=preferences,
    )


@pytest.fixture
def message() -> Callable[..., InboundMessage]:
    """Factory for inbound messages in channel 10 from user 7 ("alice")."""

    def factory(content: str, **overrides: object) -> InboundMessage:
        fields: dict[str, object] = {
            "channel_id": 10,
            "author_id": 7,
            "author_name": "alice",
            "content": content,
            "channel_name": "general",
        }
        fields.update(overrides)
        return InboundMessage(**fields)  # type: ignore[arg-type]

    return factory
