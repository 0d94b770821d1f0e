"""Prompt construction for backend requests."""

from neywa.orchestrator.types import QueuedTask

MULTI_USER_NOTE = (
    "Multiple users may participate. Each message is prefixed with [username]. "
    "Distinguish users by name in your responses."
)

EMPTY_MESSAGE_PROMPT = "Analyze this file"


def build_prompt(task: QueuedTask, *, has_session: bool) -> str:
    """Build the full prompt for a task.

    The first message of a session carries the channel's system prompt and
    the multi-user note; later messages only carry the ``[username]: ``
    prefix, since the backend remembers the rest.

    Args:
        task: Task being run.
        has_session: Whether the conversation resumes an existing session.

    Returns:
        Prompt text passed as the backend's trailing argument.
    """
    content = task.content or EMPTY_MESSAGE_PROMPT
    attachments = ""
    if task.attachment_paths:
        attachments = f"\n\n[Attached files: {', '.join(task.attachment_paths)}]"

    message = f"[{task.message.author_name}]: {content}{attachments}"
    if has_session:
        return message
    return f"[System: {task.profile.system_prompt} {MULTI_USER_NOTE}]\n\n{message}"
