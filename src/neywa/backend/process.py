"""Event source over one running backend process.

Two readers run concurrently for every process:

- standard output is decoded line by line and fed to the protocol
  translator; each produced event goes onto a shared queue;
- standard error is buffered until end of file, then searched
  (case-insensitively) for capacity-exhaustion phrases. A match queues a
  synthetic ``TextEvent`` + ``DoneEvent`` pair, whatever stdout produced.

A supervisor joins both readers and the process and then queues a final
``DoneEvent``, so a consumer always observes a terminal event even when
the backend exits without sending one. Consumers stop at the first
``DoneEvent``; later duplicates are never surfaced.
"""

import asyncio
from typing import Protocol

from neywa.background import run_in_background
from neywa.backend.types import DONE, DoneEvent, StreamEvent, TextEvent
from neywa.telemetry import (
    BACKEND_EXITED,
    BACKEND_LINE_SKIPPED,
    BACKEND_STDERR_CAPACITY,
    get_logger,
)

log = get_logger(__name__)

CAPACITY_NOTICE = "Prompt is too long"

# Stream lines can embed whole file contents; asyncio's 64 KiB default is too small.
STREAM_LIMIT_BYTES = 16 * 1024 * 1024


class StreamTranslator(Protocol):
    """Per-run translator from raw stdout lines to StreamEvents."""

    def translate(self, line: str) -> list[StreamEvent]:
        """Translate one line; return [] for lines that carry nothing."""
        ...


class BackendRun:
    """Typed event sequence produced by one backend process.

    Usage:
        run = await adapter.invoke(prompt, session_id, kind, mode)
        async for event in run:
            ...  # the last event is always a DoneEvent
    """

    def __init__(
        self,
        process: asyncio.subprocess.Process,
        translator: StreamTranslator,
        *,
        label: str,
        stderr_phrases: list[str],
    ) -> None:
        """Attach readers to a freshly spawned process.

        Args:
            process: Process spawned with stdout and stderr pipes.
            translator: Protocol translator for this run.
            label: Short name used in logs and task names.
            stderr_phrases: Lowercase capacity phrases searched in stderr.
        """
        self.process = process
        self.translator = translator
        self.label = label
        self.stderr_text = ""
        self._stderr_phrases = stderr_phrases
        self._events: asyncio.Queue[StreamEvent] = asyncio.Queue()
        self._finished = False
        self._detached = False

        self._stdout_task = run_in_background(self._read_stdout(), name=f"{label}-stdout")
        self._stderr_task = run_in_background(self._read_stderr(), name=f"{label}-stderr")
        self._supervisor = run_in_background(self._supervise(), name=f"{label}-supervisor")

    @property
    def pid(self) -> int:
        """Process id of the backend."""
        return self.process.pid

    @property
    def finished(self) -> bool:
        """True once the consumer has observed the terminal event."""
        return self._finished

    def _emit(self, event: StreamEvent) -> None:
        if not self._detached:
            self._events.put_nowait(event)

    async def _read_stdout(self) -> None:
        stdout = self.process.stdout
        if stdout is None:
            return
        while True:
            try:
                raw = await stdout.readline()
            except ValueError:
                # Longer than STREAM_LIMIT_BYTES; the reader skips past it
                log.debug(BACKEND_LINE_SKIPPED, backend=self.label, reason="line_too_long")
                continue
            if not raw:
                break
            line = raw.decode("utf-8", errors="replace").strip()
            if not line:
                continue
            for event in self.translator.translate(line):
                self._emit(event)

    async def _read_stderr(self) -> None:
        stderr = self.process.stderr
        if stderr is None:
            return
        self.stderr_text = (await stderr.read()).decode("utf-8", errors="replace")
        if not self.stderr_text:
            return
        lowered = self.stderr_text.lower()
        matched = next((phrase for phrase in self._stderr_phrases if phrase in lowered), None)
        if matched is not None:
            log.warning(BACKEND_STDERR_CAPACITY, backend=self.label, phrase=matched)
            self._emit(TextEvent(CAPACITY_NOTICE))
            self._emit(DONE)

    async def _supervise(self) -> None:
        await asyncio.gather(self._stdout_task, self._stderr_task, return_exceptions=True)
        returncode = await self.process.wait()
        log.info(
            BACKEND_EXITED,
            backend=self.label,
            pid=self.process.pid,
            returncode=returncode,
            detached=self._detached,
            stderr_tail=self.stderr_text[-500:] if returncode else None,
        )
        self._emit(DONE)

    async def next_event(self) -> StreamEvent:
        """Wait for the next event.

        Returns:
            The next event; ``DONE`` forever once the terminal event was seen.
        """
        if self._finished:
            return DONE
        event = await self._events.get()
        if isinstance(event, DoneEvent):
            self._finished = True
        return event

    def detach(self) -> None:
        """Stop delivering events without touching the process.

        The readers keep draining the pipes so the process can run to
        completion; everything it still prints is discarded.
        """
        self._detached = True
        self._finished = True

    async def wait(self) -> int:
        """Wait until the process and both readers are done; return the exit code."""
        await self._supervisor
        return self.process.returncode if self.process.returncode is not None else -1

    def __aiter__(self) -> "BackendRun":
        return self

    async def __anext__(self) -> StreamEvent:
        if self._finished:
            raise StopAsyncIteration
        return await self.next_event()
