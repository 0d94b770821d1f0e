"""Channel task orchestrator.

Entry point for inbound chat messages. Each channel is an independent
state machine:

- Idle: no cancellation handle; a new task starts right away.
- Processing: one handle registered, one worker running tasks; new tasks
  are appended to the channel's FIFO queue.
- Cancelling: the handle was signalled; the running task reports
  "cancelled" at its next suspension point and the worker moves on.

A worker runs its first task, releases the handle, pops the next task and
registers a fresh handle for it, until the queue is empty. Release, pop and
register happen without suspending, so no message can slip in between and
start a second worker for the same channel.
"""

import asyncio

from neywa import __version__
from neywa.background import run_in_background
from neywa.backend.adapter import BackendAdapter
from neywa.backend.types import BackendError, BackendKind, BackendNotFoundError, RunMode
from neywa.config import AppConfig, get_settings
from neywa.orchestrator.cancellation import CancellationToken
from neywa.orchestrator.channels import ChannelProfile
from neywa.orchestrator.commands import Command, CommandName, parse_command
from neywa.orchestrator.delivery import send_chunks
from neywa.orchestrator.executor import TaskExecutor
from neywa.orchestrator.gateway import ChatGateway, InboundMessage
from neywa.orchestrator.preferences import ChannelPreferences
from neywa.orchestrator.processes import kill_backend_processes
from neywa.orchestrator.queues import CancellationRegistry, TaskQueues
from neywa.orchestrator.recovery import RecoveryController
from neywa.orchestrator.session import SessionStore
from neywa.orchestrator.types import QueuedTask
from neywa.telemetry import (
    CHANNEL_IDLE,
    COMMAND_RECEIVED,
    DELIVERY_FAILED,
    MESSAGE_RECEIVED,
    QUEUE_CLEARED,
    RESTART_REQUESTED,
    TASK_FAILED,
    TASK_QUEUED,
    get_logger,
)

log = get_logger(__name__)

HELP_TEXT = """**Neywa v{version}** - AI Assistant

**Commands:**
`!help` - Show this help
`!status` - Check session status
`!new` - Start a new conversation
`!stop` - Stop processing & clear queue
`!queue` - Show queued messages
`!compact` - Compact session context window
`!slash <cmd>` - Run a backend slash command
`!plan <msg>` - Generate a plan without executing (read-only)
`!z` - Toggle Z mode (claude-z)
`!codex` - Toggle Codex mode (Codex CLI)
`!human` - Toggle human-only mode (Neywa stops responding)
`!restart` - Reset all sessions (fixes stuck backends)

Just type a message to chat with AI."""

_BACKEND_SWITCHED = {
    BackendKind.CLAUDE: "🔄 **Normal mode** - Using `claude` in this channel",
    BackendKind.CLAUDE_Z: "⚡ **Z mode ON** - Using `claude-z` in this channel",
    BackendKind.CODEX: "🅾️ **Codex mode ON** - Using the Codex CLI in this channel",
}


class ChannelOrchestrator:
    """Routes inbound messages to commands or per-channel task workers.

    Usage:
        orchestrator = ChannelOrchestrator(gateway)
        await orchestrator.handle_message(message)
        await orchestrator.wait_idle()
    """

    def __init__(
        self,
        gateway: ChatGateway,
        *,
        settings: AppConfig | None = None,
        adapter: BackendAdapter | None = None,
        sessions: SessionStore | None = None,
        preferences: ChannelPreferences | None = None,
    ) -> None:
        """Initialize orchestrator.

        Args:
            gateway: Chat surface used for every reply.
            settings: Application settings. If None, uses the singleton.
            adapter: Backend adapter. If None, one is built from settings.
            sessions: Session store. If None, loaded from the snapshot file.
            preferences: Channel preferences. If None, loaded from snapshot files.
        """
        self.gateway = gateway
        self.settings = settings or get_settings()
        self.adapter = adapter or BackendAdapter(self.settings)
        if sessions is None:
            sessions = SessionStore.from_file(self.settings.sessions_file)
        if preferences is None:
            preferences = ChannelPreferences.from_files(
                self.settings.channel_backends_file, self.settings.human_mode_file
            )
        self.sessions = sessions
        self.preferences = preferences
        self.recovery = RecoveryController(self.adapter, self.sessions, self.settings)
        self.executor = TaskExecutor(
            gateway, self.adapter, self.sessions, self.preferences, self.recovery, self.settings
        )
        self.queues = TaskQueues()
        self.handles = CancellationRegistry()
        self._workers: dict[int, asyncio.Task[None]] = {}

    # Inbound

    async def handle_message(self, message: InboundMessage) -> None:
        """Process one inbound chat message."""
        profile = ChannelProfile.from_name(message.channel_name)
        if not profile.replies_enabled:
            return

        command = parse_command(message.content)
        if self.preferences.is_human_mode(message.channel_id) and (
            command is None or command.name is not CommandName.HUMAN
        ):
            return

        if command is not None:
            log.info(
                COMMAND_RECEIVED,
                command=command.name.value,
                channel_id=message.channel_id,
                user_id=message.author_id,
            )
            await self._dispatch(command, message, profile)
            return

        content = message.content.strip()
        if not content and not message.attachment_paths:
            return
        log.info(
            MESSAGE_RECEIVED,
            channel_id=message.channel_id,
            user_id=message.author_id,
            profile=profile.value,
            attachments=len(message.attachment_paths),
        )
        await self.accept(
            QueuedTask(
                message=message,
                content=content,
                profile=profile,
                attachment_paths=message.attachment_paths,
            )
        )

    async def accept(self, task: QueuedTask) -> int:
        """Submit a task and report its queue position if it has to wait.

        Returns:
            0 if the task started immediately, else its 1-based queue position.
        """
        position = self.submit(task)
        if position:
            await self.gateway.send_text(task.channel_id, f"📬 Queued (#{position} in line)")
        return position

    def submit(self, task: QueuedTask) -> int:
        """Start a task, or queue it behind the channel's running task.

        Returns:
            0 if the task started immediately, else its 1-based queue position.
        """
        channel_id = task.channel_id
        if self.handles.is_processing(channel_id):
            position = self.queues.push(channel_id, task)
            log.info(TASK_QUEUED, channel_id=channel_id, position=position)
            return position

        token = self.handles.register(channel_id)
        self._workers[channel_id] = run_in_background(
            self._drain(channel_id, task, token), name=f"channel-{channel_id}"
        )
        return 0

    # Workers

    async def _drain(self, channel_id: int, task: QueuedTask, token: CancellationToken) -> None:
        try:
            while True:
                try:
                    await self._run_task(task, token)
                finally:
                    self.handles.release(channel_id, token)
                next_task = self.queues.pop(channel_id)
                if next_task is None:
                    break
                task = next_task
                token = self.handles.register(channel_id)
        finally:
            if self._workers.get(channel_id) is asyncio.current_task():
                del self._workers[channel_id]
        log.info(CHANNEL_IDLE, channel_id=channel_id)

    async def _run_task(self, task: QueuedTask, token: CancellationToken) -> None:
        try:
            await self.executor.run(task, token)
        except Exception as e:
            log.error(TASK_FAILED, channel_id=task.channel_id, error=str(e), exc_info=True)
            await self._say(task.channel_id, f"❌ Error: {e}")

    async def wait_idle(self) -> None:
        """Wait until every channel worker has drained its queue."""
        while self._workers:
            await asyncio.gather(*list(self._workers.values()), return_exceptions=True)

    def is_processing(self, channel_id: int) -> bool:
        return self.handles.is_processing(channel_id)

    # Commands

    async def _dispatch(
        self, command: Command, message: InboundMessage, profile: ChannelProfile
    ) -> None:
        channel_id = message.channel_id
        name = command.name
        if name is CommandName.HELP:
            await self._say(channel_id, HELP_TEXT.format(version=__version__))
        elif name is CommandName.STATUS:
            await self._say(channel_id, self.status_text(channel_id))
        elif name is CommandName.QUEUE:
            await self._say(channel_id, self.queue_text(channel_id))
        elif name is CommandName.STOP:
            await self.stop(channel_id)
        elif name is CommandName.NEW:
            await self.sessions.remove(message.session_key)
            await self._say(channel_id, "Session reset.")
        elif name is CommandName.COMPACT:
            await self.recovery.compact_on_request(
                message.session_key,
                self.preferences.backend_for(channel_id),
                lambda text: self._say(channel_id, text),
            )
        elif name is CommandName.SLASH:
            await self.run_slash(message, command.argument)
        elif name is CommandName.PLAN:
            await self.plan(message, command.argument, profile)
        elif name is CommandName.Z:
            await self.toggle_backend(message, BackendKind.CLAUDE_Z)
        elif name is CommandName.CODEX:
            await self.toggle_backend(message, BackendKind.CODEX)
        elif name is CommandName.HUMAN:
            await self.toggle_human_mode(channel_id)
        elif name is CommandName.RESTART:
            await self.restart(channel_id)

    def status_text(self, channel_id: int) -> str:
        kind = self.preferences.backend_for(channel_id)
        processing = "🔄 Processing" if self.is_processing(channel_id) else "✅ Idle"
        size = self.queues.size(channel_id)
        queue = f"📬 Queue: {size}" if size else "📭 Queue: empty"
        return f"{kind.status_line}\n{processing}\n{queue}"

    def queue_text(self, channel_id: int) -> str:
        size = self.queues.size(channel_id)
        if self.is_processing(channel_id):
            return f"🔄 Processing | 📬 Queue: {size}"
        if size:
            return f"📬 Queue: {size}"
        return "📭 Queue is empty."

    async def stop(self, channel_id: int) -> tuple[bool, int]:
        """Cancel the channel's running task and discard its queue.

        Returns:
            (whether a task was signalled, number of queued tasks discarded)
        """
        cancelled = self.handles.cancel(channel_id)
        cleared = self.queues.clear(channel_id)
        log.info(QUEUE_CLEARED, channel_id=channel_id, cancelled=cancelled, cleared=cleared)
        notice = "🛑 Stop requested..." if cancelled else "Nothing is being processed."
        await self._say(channel_id, notice)
        if cleared:
            await self._say(channel_id, f"📭 Cleared {cleared} queued message(s)")
        return cancelled, cleared

    async def restart(self, channel_id: int) -> tuple[int, int]:
        """Cancel every task, discard every queue, forget every session and
        terminate leftover backend processes.

        Args:
            channel_id: Channel the request came from (receives the report).

        Returns:
            (tasks cancelled, queued tasks discarded)
        """
        await self._say(channel_id, "🔄 Restarting all sessions...")
        cancelled = self.handles.cancel_all()
        cleared = self.queues.clear_all()
        sessions = await self.sessions.clear()
        log.warning(
            RESTART_REQUESTED,
            channel_id=channel_id,
            cancelled=cancelled,
            cleared=cleared,
            sessions=sessions,
        )
        await asyncio.to_thread(kill_backend_processes, self.settings.process_kill_patterns)
        await asyncio.sleep(self.settings.restart_settle_seconds)
        await self._say(
            channel_id,
            "✅ Sessions restarted.\n"
            f"• Cancelled {cancelled} active task(s)\n"
            f"• Cleared {cleared} queued message(s)\n"
            "• All session history reset\n"
            "• Backend processes terminated\n\n"
            "Ready for new messages!",
        )
        return cancelled, cleared

    async def plan(self, message: InboundMessage, request: str, profile: ChannelProfile) -> int:
        """Queue a read-only plan run.

        Returns:
            Queue position as for ``accept``; -1 if the request was rejected.
        """
        if not self.preferences.backend_for(message.channel_id).supports_plan_mode:
            await self._say(message.channel_id, "⚠️ Plan mode is not supported in Codex mode.")
            return -1
        if not request:
            await self._say(message.channel_id, "Usage: `!plan <request>`")
            return -1
        return await self.accept(
            QueuedTask(
                message=message,
                content=request,
                profile=profile,
                attachment_paths=message.attachment_paths,
                mode=RunMode.PLAN,
            )
        )

    async def run_slash(self, message: InboundMessage, command: str) -> None:
        """Run a backend slash command against the conversation's session."""
        channel_id = message.channel_id
        kind = self.preferences.backend_for(channel_id)
        if not kind.uses_primary_protocol:
            await self._say(channel_id, "ℹ️ Slash commands are not supported in Codex mode.")
            return
        if not command:
            await self._say(
                channel_id, "Usage: `!slash <command>` (e.g., `!slash compact`, `!slash cost`)"
            )
            return

        await self._say(channel_id, f"⚡ Running `/{command.lstrip('/')}`...")
        try:
            output = await self.adapter.run_slash_command(
                command, self.sessions.get(message.session_key), kind
            )
        except BackendError as e:
            await self._say(channel_id, f"❌ Error: {e}")
            return
        await send_chunks(self.gateway, channel_id, output)

    async def toggle_backend(self, message: InboundMessage, kind: BackendKind) -> BackendKind:
        """Switch the channel to ``kind`` or back to the default backend.

        The requesting conversation's session is dropped, since sessions do
        not carry over between backends.

        Returns:
            Backend kind of the channel after the toggle.
        """
        channel_id = message.channel_id
        current = self.preferences.backend_for(channel_id)
        if kind is BackendKind.CODEX and current is not kind:
            try:
                self.adapter.locate(kind)
            except BackendNotFoundError:
                await self._say(
                    channel_id, "❌ codex CLI not found. Install: `npm install -g @openai/codex`"
                )
                return current

        selected = await self.preferences.toggle_backend(channel_id, kind)
        await self.sessions.remove(message.session_key)
        await self._say(channel_id, _BACKEND_SWITCHED[selected])
        return selected

    async def toggle_human_mode(self, channel_id: int) -> bool:
        enabled = await self.preferences.toggle_human_mode(channel_id)
        if enabled:
            await self._say(
                channel_id,
                "🙋 **Human mode ON** - Neywa will not respond in this channel.\n"
                "Type `!human` again to turn off.",
            )
        else:
            await self._say(
                channel_id, "🤖 **Human mode OFF** - Neywa is back online in this channel."
            )
        return enabled

    async def _say(self, channel_id: int, text: str) -> None:
        try:
            await self.gateway.send_text(channel_id, text)
        except Exception as e:
            log.warning(DELIVERY_FAILED, channel_id=channel_id, error=str(e))
