"""Tests for prompt construction."""

from neywa.backend.types import RunMode
from neywa.orchestrator.channels import ChannelProfile
from neywa.orchestrator.gateway import InboundMessage
from neywa.orchestrator.prompts import EMPTY_MESSAGE_PROMPT, MULTI_USER_NOTE, build_prompt
from neywa.orchestrator.types import QueuedTask


def _task(content: str, *, attachments: tuple[str, ...] = ()) -> QueuedTask:
    message = InboundMessage(channel_id=1, author_id=2, author_name="bob", content=content)
    return QueuedTask(
        message=message,
        content=content,
        profile=ChannelProfile.CODE,
        attachment_paths=attachments,
        mode=RunMode.NORMAL,
    )


def test_first_message_carries_system_prompt() -> None:
    """Test a new session gets the profile prompt and the multi-user note."""
    prompt = build_prompt(_task("fix the bug"), has_session=False)

    assert prompt.startswith(f"[System: {ChannelProfile.CODE.system_prompt} {MULTI_USER_NOTE}]")
    assert prompt.endswith("\n\n[bob]: fix the bug")


def test_resumed_session_has_only_username_prefix() -> None:
    """Test later messages carry only the author prefix."""
    assert build_prompt(_task("and now?"), has_session=True) == "[bob]: and now?"


def test_attachments_are_listed() -> None:
    """Test attachment paths are appended after the text."""
    prompt = build_prompt(_task("see", attachments=("/tmp/a.png", "/tmp/b.txt")), has_session=True)

    assert prompt == "[bob]: see\n\n[Attached files: /tmp/a.png, /tmp/b.txt]"


def test_attachment_only_message_gets_default_text() -> None:
    """Test an empty message with attachments asks for an analysis."""
    prompt = build_prompt(_task("", attachments=("/tmp/a.pdf",)), has_session=True)

    assert prompt.startswith(f"[bob]: {EMPTY_MESSAGE_PROMPT}")
