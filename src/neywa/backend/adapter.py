"""Backend adapter: the only component that talks to backend processes.

The adapter resolves the executable for a BackendKind, builds its argument
list, spawns it, and hands back either a typed event source (``invoke``) or
collected text (``run_collect``, ``compact``, ``run_slash_command``).
Errors are raised to the immediate caller; nothing here retries.
"""

import asyncio
from pathlib import Path

from neywa.backend import claude, codex
from neywa.backend.locator import locate_executable
from neywa.backend.process import STREAM_LIMIT_BYTES, BackendRun
from neywa.backend.types import (
    BackendCommandError,
    BackendError,
    BackendKind,
    BackendSpawnError,
    BackendUnsupportedError,
    RunMode,
)
from neywa.config import AppConfig, get_settings
from neywa.telemetry import BACKEND_SPAWN_FAILED, BACKEND_SPAWNED, get_logger

log = get_logger(__name__)


class BackendAdapter:
    """Spawn backend processes and expose their output.

    Usage:
        adapter = BackendAdapter(settings)
        run = await adapter.invoke("hello", None, BackendKind.CLAUDE, RunMode.NORMAL)
        async for event in run:
            ...
    """

    def __init__(self, settings: AppConfig | None = None) -> None:
        """Initialize adapter.

        Args:
            settings: Application settings. If None, uses the singleton.
        """
        self.settings = settings or get_settings()

    def executable_name(self, kind: BackendKind) -> str:
        """Configured command name for a backend kind."""
        return {
            BackendKind.CLAUDE: self.settings.claude_executable,
            BackendKind.CLAUDE_Z: self.settings.claude_alt_executable,
            BackendKind.CODEX: self.settings.codex_executable,
        }[kind]

    def locate(self, kind: BackendKind) -> Path:
        """Resolve the executable of ``kind``.

        Raises:
            BackendNotFoundError: If the executable cannot be found.
        """
        return locate_executable(self.executable_name(kind), self.settings.extra_search_dirs)

    async def _spawn(self, kind: BackendKind, args: list[str]) -> asyncio.subprocess.Process:
        executable = self.locate(kind)
        try:
            process = await asyncio.create_subprocess_exec(
                str(executable),
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                limit=STREAM_LIMIT_BYTES,
            )
        except OSError as e:
            log.error(BACKEND_SPAWN_FAILED, backend=kind.value, error=str(e))
            raise BackendSpawnError(f"Failed to spawn {executable.name}: {e}") from e
        log.info(BACKEND_SPAWNED, backend=kind.value, pid=process.pid, executable=str(executable))
        return process

    async def invoke(
        self,
        prompt: str,
        session_id: str | None,
        kind: BackendKind,
        mode: RunMode = RunMode.NORMAL,
    ) -> BackendRun:
        """Start a streaming run.

        Args:
            prompt: Full prompt text.
            session_id: Backend session to resume, if any.
            kind: Backend to run.
            mode: NORMAL or PLAN.

        Returns:
            Event source over the spawned process.

        Raises:
            BackendNotFoundError: Executable missing.
            BackendSpawnError: Process could not be started.
            BackendUnsupportedError: PLAN requested on a backend without it.
        """
        if mode is RunMode.PLAN and not kind.supports_plan_mode:
            raise BackendUnsupportedError(f"{kind.value} does not support plan mode")

        if kind.uses_primary_protocol:
            args = claude.build_stream_args(
                prompt, session_id=session_id, mode=mode, plans_dir=self.settings.plans_dir
            )
            translator: claude.ClaudeStreamTranslator | codex.CodexStreamTranslator = (
                claude.ClaudeStreamTranslator(
                    plan_mode=mode is RunMode.PLAN, plans_dir=self.settings.plans_dir
                )
            )
        else:
            args = codex.build_exec_args(
                prompt, model=self.settings.codex_model, session_id=session_id
            )
            translator = codex.CodexStreamTranslator()

        process = await self._spawn(kind, args)
        return BackendRun(
            process,
            translator,
            label=kind.value,
            stderr_phrases=self.settings.stderr_capacity_phrases,
        )

    async def _collect(self, kind: BackendKind, args: list[str]) -> str:
        process = await self._spawn(kind, args)
        stdout, stderr = await process.communicate()
        if process.returncode != 0:
            stderr_text = stderr.decode("utf-8", errors="replace").strip()
            detail = stderr_text or f"exit {process.returncode}"
            raise BackendCommandError(
                f"{self.executable_name(kind)} error: {detail}",
                returncode=process.returncode,
                stderr=stderr_text,
            )
        return stdout.decode("utf-8", errors="replace")

    async def run_collect(
        self, prompt: str, kind: BackendKind, session_id: str | None = None
    ) -> str:
        """Run one prompt to completion and return the response text.

        Raises:
            BackendError: Executable missing, spawn failure or non-zero exit.
        """
        if kind.uses_primary_protocol:
            args = claude.build_print_args(prompt, session_id=session_id)
            return (await self._collect(kind, args)).strip()
        args = codex.build_exec_args(
            prompt, model=self.settings.codex_model, session_id=session_id
        )
        output = await self._collect(kind, args)
        return codex.collect_agent_text(output)

    async def compact(self, session_id: str, kind: BackendKind) -> None:
        """Ask the backend to compact a session's context.

        Raises:
            BackendUnsupportedError: The backend has no compaction.
            BackendError: The compact request failed.
        """
        if not kind.supports_compaction:
            raise BackendUnsupportedError(f"{kind.value} does not support compaction")
        await self._collect(kind, claude.build_print_args("/compact", session_id=session_id))

    async def run_slash_command(
        self, command: str, session_id: str | None, kind: BackendKind
    ) -> str:
        """Run a backend slash command (``cost``, ``/compact``...) and return its output.

        Raises:
            BackendUnsupportedError: The backend has no slash commands.
            BackendError: The command failed.
        """
        if not kind.uses_primary_protocol:
            raise BackendUnsupportedError(f"{kind.value} does not support slash commands")
        command = command.strip()
        if not command:
            raise BackendError("empty slash command")
        if not command.startswith("/"):
            command = f"/{command}"
        output = await self._collect(kind, claude.build_print_args(command, session_id=session_id))
        return output.strip()
