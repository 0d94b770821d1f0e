"""Per-channel preferences: backend selection and human mode.

Both live in their own snapshot file next to the session snapshot:
``channel_backends.json`` maps a channel to a non-default BackendKind and
``human_mode.json`` lists channels where the relay stays silent.
"""

import asyncio
from pathlib import Path

from pydantic import TypeAdapter

from neywa.backend.types import BackendKind
from neywa.orchestrator.snapshots import read_snapshot, write_snapshot
from neywa.telemetry import PREFERENCES_SAVE_FAILED, get_logger

log = get_logger(__name__)

DEFAULT_BACKEND = BackendKind.CLAUDE

_BACKENDS = TypeAdapter(dict[int, BackendKind])
_CHANNELS = TypeAdapter(list[int])


class ChannelPreferences:
    """Backend kind and human-mode flag of every channel.

    Channels without an entry use DEFAULT_BACKEND and have human mode off.
    """

    def __init__(
        self,
        backends_file: Path,
        human_mode_file: Path,
        backends: dict[int, BackendKind] | None = None,
        human_channels: set[int] | None = None,
    ) -> None:
        self.backends_file = backends_file
        self.human_mode_file = human_mode_file
        self._backends: dict[int, BackendKind] = dict(backends or {})
        self._human: set[int] = set(human_channels or ())
        self._write_lock = asyncio.Lock()

    @classmethod
    def from_files(cls, backends_file: Path, human_mode_file: Path) -> "ChannelPreferences":
        """Create preferences from the snapshot files (missing files mean defaults)."""
        return cls(
            backends_file,
            human_mode_file,
            backends=read_snapshot(backends_file, _BACKENDS, dict),
            human_channels=set(read_snapshot(human_mode_file, _CHANNELS, list)),
        )

    def backend_for(self, channel_id: int) -> BackendKind:
        """Backend kind bound to a channel."""
        return self._backends.get(channel_id, DEFAULT_BACKEND)

    async def toggle_backend(self, channel_id: int, kind: BackendKind) -> BackendKind:
        """Switch a channel to ``kind``, or back to the default if already on it.

        Returns:
            The channel's backend kind after the toggle.
        """
        if kind is DEFAULT_BACKEND or self.backend_for(channel_id) is kind:
            self._backends.pop(channel_id, None)
        else:
            self._backends[channel_id] = kind
        await self._save(self.backends_file, _BACKENDS, dict(self._backends))
        return self.backend_for(channel_id)

    def is_human_mode(self, channel_id: int) -> bool:
        return channel_id in self._human

    async def toggle_human_mode(self, channel_id: int) -> bool:
        """Flip human mode for a channel.

        Returns:
            True if human mode is now on.
        """
        if channel_id in self._human:
            self._human.discard(channel_id)
        else:
            self._human.add(channel_id)
        await self._save(self.human_mode_file, _CHANNELS, sorted(self._human))
        return channel_id in self._human

    async def _save(self, path: Path, adapter: TypeAdapter, value: object) -> None:
        async with self._write_lock:
            try:
                await asyncio.to_thread(write_snapshot, path, adapter, value)
            except OSError as e:
                log.error(PREFERENCES_SAVE_FAILED, path=str(path), error=str(e))
