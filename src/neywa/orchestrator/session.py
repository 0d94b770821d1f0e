"""Session store for orchestrator.

Maps a (user, channel) key to the opaque session identifier issued by the
backend, so a conversation thread resumes where it left off.

The whole map is persisted as a JSON array of ``[user_id, channel_id,
session_id]`` triples rather than a keyed object: the file stays readable
whatever the key types are, and reloading does not depend on entry order.
Every mutation rewrites the file.
"""

import asyncio
from pathlib import Path

from pydantic import TypeAdapter

from neywa.orchestrator.snapshots import read_snapshot, write_snapshot
from neywa.telemetry import (
    SESSION_REMOVED,
    SESSION_UPDATED,
    SESSIONS_LOADED,
    SESSIONS_SAVE_FAILED,
    get_logger,
)

log = get_logger(__name__)

SessionKey = tuple[int, int]

_TRIPLES = TypeAdapter(list[tuple[int, int, str]])


def load_sessions(path: Path) -> dict[SessionKey, str]:
    """Load the session snapshot.

    Args:
        path: Snapshot file.

    Returns:
        Mapping of (user_id, channel_id) to session id. Empty if the file is
        missing or corrupt.
    """
    triples = read_snapshot(path, _TRIPLES, list)
    return {(user_id, channel_id): session_id for user_id, channel_id, session_id in triples}


def save_sessions(path: Path, sessions: dict[SessionKey, str]) -> None:
    """Rewrite the session snapshot with ``sessions``.

    Raises:
        OSError: If the file cannot be written.
    """
    triples = [(user_id, channel_id, sid) for (user_id, channel_id), sid in sessions.items()]
    write_snapshot(path, _TRIPLES, triples)


class SessionStore:
    """In-memory session map backed by a snapshot file.

    Lookups and mutations of the map are plain synchronous dict operations,
    so they never interleave on the event loop. Persistence runs in a worker
    thread and is serialized by a lock; each write dumps the map as it is
    when the write starts, so the last write always holds the latest state.

    Persistence failures are logged and never raised: a task that completed
    must not fail because its session could not be saved.
    """

    def __init__(self, path: Path, sessions: dict[SessionKey, str] | None = None) -> None:
        """Initialize store.

        Args:
            path: Snapshot file.
            sessions: Initial content, usually from ``load_sessions``.
        """
        self.path = path
        self._sessions: dict[SessionKey, str] = dict(sessions or {})
        self._write_lock = asyncio.Lock()

    @classmethod
    def from_file(cls, path: Path) -> "SessionStore":
        """Create a store holding the snapshot found at ``path``."""
        sessions = load_sessions(path)
        log.info(SESSIONS_LOADED, path=str(path), count=len(sessions))
        return cls(path, sessions)

    def get(self, key: SessionKey) -> str | None:
        """Session id of a conversation thread, if any."""
        return self._sessions.get(key)

    def snapshot(self) -> dict[SessionKey, str]:
        """Copy of the whole map."""
        return dict(self._sessions)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, key: object) -> bool:
        return key in self._sessions

    async def set(self, key: SessionKey, session_id: str) -> None:
        """Bind ``key`` to ``session_id`` and persist.

        Rebinding to the same id is a no-op and does not touch the file.
        """
        if self._sessions.get(key) == session_id:
            return
        self._sessions[key] = session_id
        log.info(SESSION_UPDATED, user_id=key[0], channel_id=key[1], session_id=session_id)
        await self.save()

    async def remove(self, key: SessionKey) -> str | None:
        """Forget a conversation thread's session.

        Returns:
            Removed session id, or None if there was none.
        """
        session_id = self._sessions.pop(key, None)
        if session_id is not None:
            log.info(SESSION_REMOVED, user_id=key[0], channel_id=key[1], session_id=session_id)
            await self.save()
        return session_id

    async def clear(self) -> int:
        """Forget every session.

        Returns:
            Number of sessions removed.
        """
        count = len(self._sessions)
        self._sessions.clear()
        await self.save()
        return count

    async def save(self) -> None:
        """Persist the current map."""
        async with self._write_lock:
            snapshot = dict(self._sessions)
            try:
                await asyncio.to_thread(save_sessions, self.path, snapshot)
            except OSError as e:
                log.error(SESSIONS_SAVE_FAILED, path=str(self.path), error=str(e))
