"""Recovery from context-capacity failures.

A backend whose session has outgrown its context window answers with an
error text instead of a response. Recovery degrades in stages and stops at
the first one that works:

1. Backends without compaction lose their session right away.
2. Compact the session, then retry the original prompt once.
3. If compaction fails, trim the oldest part of the session transcript and
   ask the user to resend.
4. If trimming is unavailable or fails, drop the session.

Retries are bounded at one: a retry that comes back empty is reported, not
retried again.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable

from neywa.backend.adapter import BackendAdapter
from neywa.backend.types import (
    BackendError,
    BackendKind,
    DoneEvent,
    ErrorEvent,
    RunMode,
    SessionIdEvent,
    TextEvent,
)
from neywa.config import AppConfig
from neywa.orchestrator.cancellation import CancellationToken, next_event_or_cancel
from neywa.orchestrator.session import SessionKey, SessionStore
from neywa.orchestrator.transcript import TrimResult, trim_transcript
from neywa.telemetry import (
    CAPACITY_DETECTED,
    COMPACT_FAILED,
    RETRY_COMPLETED,
    SESSION_COMPACTED,
    SESSION_RESET,
    get_logger,
)

log = get_logger(__name__)

Notify = Callable[[str], Awaitable[None]]

CONTEXT_FULL = "⚠️ Context window full. Compacting session..."
COMPACTED_RETRYING = "✅ Session compacted. Retrying your message..."
RETRY_EMPTY = (
    "⚠️ Compact succeeded but retry got empty response. Please send your message again."
)
RETRY_FAILED = "⚠️ Compact succeeded but retry failed: {error}. Please send your message again."
TRIMMED = "⚠️ Compact failed. Trimmed old messages instead. Please send your message again."
RESET = "⚠️ Context window exceeded. Session has been reset. Please send your message again."
RESET_NO_COMPACTION = (
    "⚠️ Context window exceeded. Starting a new session. Please send your message again."
)
NO_SESSION = "⚠️ Context window exceeded. Please start a new session with !new."


class RecoveryOutcome(str, Enum):
    """How a recovery attempt ended."""

    RETRIED = "retried"
    RETRY_EMPTY = "retry_empty"
    RETRY_FAILED = "retry_failed"
    TRIMMED = "trimmed"
    RESET = "reset"
    NO_SESSION = "no_session"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class RecoveryResult:
    """Result of ``RecoveryController.recover``.

    Attributes:
        outcome: Stage recovery stopped at.
        text: Retried response, set only for RETRIED.
    """

    outcome: RecoveryOutcome
    text: str | None = None

    @property
    def has_response(self) -> bool:
        return self.outcome is RecoveryOutcome.RETRIED


class RecoveryController:
    """Detect capacity failures and run the staged recovery."""

    def __init__(
        self,
        adapter: BackendAdapter,
        sessions: SessionStore,
        settings: AppConfig,
    ) -> None:
        self.adapter = adapter
        self.sessions = sessions
        self.settings = settings

    def is_capacity_failure(self, text: str) -> bool:
        """True if the lowercased text contains a capacity phrase."""
        lowered = text.lower()
        return any(phrase in lowered for phrase in self.settings.capacity_phrases)

    async def trim(self, session_id: str) -> TrimResult | None:
        """Trim a session transcript; None if unavailable or failed."""
        try:
            return await asyncio.to_thread(
                trim_transcript,
                session_id,
                transcripts_dir=self.settings.transcripts_dir,
                keep_ratio=self.settings.trim_keep_ratio,
                min_keep=self.settings.trim_min_keep_lines,
                min_total=self.settings.trim_min_total_lines,
            )
        except OSError as e:
            log.error(COMPACT_FAILED, session_id=session_id, stage="trim", error=str(e))
            return None

    async def _reset(
        self, key: SessionKey, notify: Notify, message: str, reason: str
    ) -> RecoveryResult:
        await self.sessions.remove(key)
        log.warning(SESSION_RESET, user_id=key[0], channel_id=key[1], reason=reason)
        await notify(message)
        return RecoveryResult(RecoveryOutcome.RESET)

    async def recover(
        self,
        *,
        key: SessionKey,
        session_id: str | None,
        kind: BackendKind,
        prompt: str,
        notify: Notify,
        token: CancellationToken | None = None,
        trace_id: str | None = None,
    ) -> RecoveryResult:
        """Run the staged recovery for one failed task.

        Every stage but a successful retry ends with exactly one notice sent
        through ``notify``; a successful retry leaves delivery to the caller.

        Args:
            key: (user, channel) of the conversation.
            session_id: Session that hit the limit (new or resumed).
            kind: Backend bound to the channel.
            prompt: Original prompt, resent on retry.
            notify: Sends a message to the channel.
            token: Cancellation token of the task, honored during the retry.
            trace_id: Trace id of the task, for logs.

        Returns:
            RecoveryResult.
        """
        log.warning(
            CAPACITY_DETECTED,
            trace_id=trace_id,
            session_id=session_id,
            backend=kind.value,
        )
        if session_id is None:
            await notify(NO_SESSION)
            return RecoveryResult(RecoveryOutcome.NO_SESSION)

        if not kind.supports_compaction:
            return await self._reset(key, notify, RESET_NO_COMPACTION, "compaction_unsupported")

        await notify(CONTEXT_FULL)
        try:
            await self.adapter.compact(session_id, kind)
        except BackendError as e:
            log.warning(COMPACT_FAILED, trace_id=trace_id, session_id=session_id, error=str(e))
            if await self.trim(session_id) is not None:
                await notify(TRIMMED)
                return RecoveryResult(RecoveryOutcome.TRIMMED)
            return await self._reset(key, notify, RESET, "compact_and_trim_failed")

        log.info(SESSION_COMPACTED, trace_id=trace_id, session_id=session_id)
        await notify(COMPACTED_RETRYING)
        return await self._retry(
            key, session_id, kind, prompt, notify, token or CancellationToken(), trace_id
        )

    async def _retry(
        self,
        key: SessionKey,
        session_id: str,
        kind: BackendKind,
        prompt: str,
        notify: Notify,
        token: CancellationToken,
        trace_id: str | None,
    ) -> RecoveryResult:
        try:
            run = await self.adapter.invoke(prompt, session_id, kind, RunMode.NORMAL)
        except BackendError as e:
            await notify(RETRY_FAILED.format(error=e))
            return RecoveryResult(RecoveryOutcome.RETRY_FAILED)

        text = ""
        while True:
            event = await next_event_or_cancel(run, token)
            if event is None:
                return RecoveryResult(RecoveryOutcome.CANCELLED)
            if isinstance(event, DoneEvent):
                break
            if isinstance(event, TextEvent):
                text = event.text
            elif isinstance(event, SessionIdEvent):
                await self.sessions.set(key, event.session_id)
            elif isinstance(event, ErrorEvent):
                run.detach()
                await notify(RETRY_FAILED.format(error=event.message))
                return RecoveryResult(RecoveryOutcome.RETRY_FAILED)

        log.info(
            RETRY_COMPLETED, trace_id=trace_id, session_id=session_id, reply_length=len(text)
        )
        if not text.strip():
            await notify(RETRY_EMPTY)
            return RecoveryResult(RecoveryOutcome.RETRY_EMPTY)
        return RecoveryResult(RecoveryOutcome.RETRIED, text=text)

    async def compact_on_request(self, key: SessionKey, kind: BackendKind, notify: Notify) -> None:
        """Compact a conversation's session on user request, trimming on failure.

        Never retries anything; every path ends with one notice.
        """
        if not kind.supports_compaction:
            await notify(
                "⚠️ Compaction is not supported in Codex mode. "
                "Use `!new` to start a new session."
            )
            return
        session_id = self.sessions.get(key)
        if session_id is None:
            await notify("No active session. Nothing to compact.")
            return

        await notify("🗜️ Compacting session...")
        try:
            await self.adapter.compact(session_id, kind)
        except BackendError as e:
            log.warning(COMPACT_FAILED, session_id=session_id, error=str(e), requested=True)
            if await self.trim(session_id) is not None:
                await notify("⚠️ Compact failed, trimmed old messages instead.")
            else:
                await notify(f"❌ Compact failed: {e}")
            return
        log.info(SESSION_COMPACTED, session_id=session_id, requested=True)
        await notify("✅ Session compacted.")
