"""Execution of a single channel task.

``TaskExecutor.run`` drives one request/response cycle:

1. post the status message and build the prompt;
2. invoke the channel's backend and consume its events, racing each wait
   against the task's cancellation token;
3. save the session id the backend issued;
4. hand capacity failures to the recovery controller;
5. deliver files, text and a completion notice, then log the activity.

Every path ends with exactly one terminal message in the channel (result,
error or cancellation notice).
"""

from neywa.backend.adapter import BackendAdapter
from neywa.backend.process import BackendRun
from neywa.backend.types import (
    BackendError,
    DoneEvent,
    ErrorEvent,
    PlanArtifactEvent,
    RunMode,
    SessionIdEvent,
    TextEvent,
    ToolUseEvent,
)
from neywa.config import AppConfig
from neywa.orchestrator.cancellation import CancellationToken, next_event_or_cancel
from neywa.orchestrator.delivery import (
    activity_summary,
    completion_notice,
    send_chunks,
    send_mentioned_files,
)
from neywa.orchestrator.gateway import ChatGateway
from neywa.orchestrator.preferences import ChannelPreferences
from neywa.orchestrator.prompts import build_prompt
from neywa.orchestrator.recovery import RecoveryController, RecoveryOutcome
from neywa.orchestrator.session import SessionStore
from neywa.orchestrator.status import StatusIndicator
from neywa.orchestrator.types import QueuedTask, TaskOutcome
from neywa.telemetry import (
    BACKEND_ERROR_EVENT,
    DELIVERY_FAILED,
    SESSION_DISCARDED,
    TASK_CANCELLED,
    TASK_COMPLETED,
    TASK_FAILED,
    TASK_STARTED,
    TraceContext,
    get_logger,
)

log = get_logger(__name__)

CANCELLED_NOTICE = "🛑 Cancelled."
NO_RESPONSE = "(No response)"
NO_PLAN = "(No plan generated)"


class _RunState:
    """What the event loop of one backend run collected."""

    def __init__(self) -> None:
        self.text = ""
        self.session_id: str | None = None
        self.plan: str | None = None
        self.error: str | None = None
        self.cancelled = False


class TaskExecutor:
    """Runs queued tasks against the channel's backend."""

    def __init__(
        self,
        gateway: ChatGateway,
        adapter: BackendAdapter,
        sessions: SessionStore,
        preferences: ChannelPreferences,
        recovery: RecoveryController,
        settings: AppConfig,
    ) -> None:
        self.gateway = gateway
        self.adapter = adapter
        self.sessions = sessions
        self.preferences = preferences
        self.recovery = recovery
        self.settings = settings

    async def run(self, task: QueuedTask, token: CancellationToken) -> TaskOutcome:
        """Run one task to its terminal state.

        Args:
            task: Task popped from the channel queue.
            token: Cancellation handle registered for the channel.

        Returns:
            TaskOutcome of the task.
        """
        trace_ctx = TraceContext.new_trace()
        channel_id = task.channel_id
        kind = self.preferences.backend_for(channel_id)
        # Plan runs are standalone: they neither resume nor replace the thread's session
        existing = self.sessions.get(task.session_key) if task.mode is RunMode.NORMAL else None
        prompt = build_prompt(task, has_session=existing is not None)

        log.info(
            TASK_STARTED,
            trace_id=trace_ctx.trace_id,
            channel_id=channel_id,
            user_id=task.message.author_id,
            backend=kind.value,
            mode=task.mode.value,
            resumed=existing is not None,
        )

        status = StatusIndicator(
            self.gateway,
            channel_id,
            interval_ms=self.settings.status_update_interval_ms,
            ring_size=self.settings.status_ring_size,
        )
        await status.start()
        try:
            try:
                run = await self.adapter.invoke(prompt, existing, kind, task.mode)
            except BackendError as e:
                return await self._fail(task, trace_ctx, str(e), status)
            state = await self._consume(run, token, status, trace_ctx)
        finally:
            await status.close()

        if state.cancelled:
            log.info(TASK_CANCELLED, trace_id=trace_ctx.trace_id, channel_id=channel_id)
            await self.gateway.send_text(channel_id, CANCELLED_NOTICE)
            return TaskOutcome.CANCELLED
        if state.error is not None:
            return await self._fail(task, trace_ctx, state.error)

        if task.mode is RunMode.PLAN:
            return await self._deliver_plan(task, state, trace_ctx)

        if state.session_id is not None:
            # Sessions cleared by a restart stay cleared
            if token.cancelled:
                log.info(
                    SESSION_DISCARDED,
                    trace_id=trace_ctx.trace_id,
                    channel_id=channel_id,
                    session_id=state.session_id,
                )
            else:
                await self.sessions.set(task.session_key, state.session_id)

        text = state.text or NO_RESPONSE
        outcome = TaskOutcome.COMPLETED
        if self.recovery.is_capacity_failure(text):
            result = await self.recovery.recover(
                key=task.session_key,
                session_id=state.session_id or existing,
                kind=kind,
                prompt=prompt,
                notify=lambda message: self._notify(channel_id, message),
                token=token,
                trace_id=trace_ctx.trace_id,
            )
            if result.outcome is RecoveryOutcome.CANCELLED:
                log.info(TASK_CANCELLED, trace_id=trace_ctx.trace_id, channel_id=channel_id)
                await self.gateway.send_text(channel_id, CANCELLED_NOTICE)
                return TaskOutcome.CANCELLED
            if not result.has_response:
                return TaskOutcome.RECOVERY_ENDED
            text = result.text or NO_RESPONSE
            outcome = TaskOutcome.RECOVERED

        sent = await send_mentioned_files(self.gateway, channel_id, text)
        await send_chunks(self.gateway, channel_id, text)
        mention = self.gateway.mention(task.message.author_id, task.message.author_name)
        await self.gateway.send_text(channel_id, completion_notice(mention, len(sent)))

        log.info(
            TASK_COMPLETED,
            trace_id=trace_ctx.trace_id,
            channel_id=channel_id,
            outcome=outcome.value,
            reply_length=len(text),
            files_sent=len(sent),
        )
        await self._log_activity(task, text)
        return outcome

    async def _consume(
        self,
        run: BackendRun,
        token: CancellationToken,
        status: StatusIndicator,
        trace_ctx: TraceContext,
    ) -> _RunState:
        state = _RunState()
        while True:
            event = await next_event_or_cancel(run, token)
            if event is None:
                state.cancelled = True
                return state
            if isinstance(event, DoneEvent):
                return state
            if isinstance(event, ToolUseEvent):
                await status.record(event)
            elif isinstance(event, TextEvent):
                state.text = event.text
            elif isinstance(event, SessionIdEvent):
                state.session_id = event.session_id
            elif isinstance(event, PlanArtifactEvent):
                # The plan file may be written more than once; keep the fullest version
                if state.plan is None or len(event.content) > len(state.plan):
                    state.plan = event.content
            elif isinstance(event, ErrorEvent):
                log.warning(BACKEND_ERROR_EVENT, trace_id=trace_ctx.trace_id, error=event.message)
                run.detach()
                state.error = event.message
                return state

    async def _fail(
        self,
        task: QueuedTask,
        trace_ctx: TraceContext,
        error: str,
        status: StatusIndicator | None = None,
    ) -> TaskOutcome:
        log.error(
            TASK_FAILED, trace_id=trace_ctx.trace_id, channel_id=task.channel_id, error=error
        )
        if status is not None:
            await status.close()
        await self.gateway.send_text(task.channel_id, f"❌ Error: {error}")
        return TaskOutcome.FAILED

    async def _deliver_plan(
        self, task: QueuedTask, state: _RunState, trace_ctx: TraceContext
    ) -> TaskOutcome:
        # An empty response is common: the backend stops at the plan-confirmation step
        if state.text.strip():
            plan = state.text
            if state.plan is not None and len(state.plan) > len(plan):
                plan = state.plan
        else:
            plan = state.plan or NO_PLAN

        await send_chunks(self.gateway, task.channel_id, f"📝 **Plan**\n\n{plan}")
        mention = self.gateway.mention(task.message.author_id, task.message.author_name)
        await self.gateway.send_text(task.channel_id, f"{mention} ✅ Plan ready!")
        log.info(
            TASK_COMPLETED,
            trace_id=trace_ctx.trace_id,
            channel_id=task.channel_id,
            outcome=TaskOutcome.PLAN_READY.value,
            reply_length=len(plan),
        )
        await self._log_activity(task, plan)
        return TaskOutcome.PLAN_READY

    async def _notify(self, channel_id: int, message: str) -> None:
        await self.gateway.send_text(channel_id, message)

    async def _log_activity(self, task: QueuedTask, response: str) -> None:
        channel_id = self.settings.activity_channel_id
        if channel_id is None or channel_id == task.channel_id:
            return
        summary = activity_summary(
            task.message.author_name, task.profile.value, task.content, response
        )
        try:
            await self.gateway.send_text(channel_id, summary)
        except Exception as e:
            log.warning(DELIVERY_FAILED, channel_id=channel_id, error=str(e), target="activity")
