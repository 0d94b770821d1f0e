"""Chat gateway collaborator interface.

The orchestrator never talks to a chat service directly. Everything it
needs from the outside world goes through a ``ChatGateway``: sending,
editing and deleting plain messages, uploading files, and rendering a
mention of a participant. Inbound traffic arrives as ``InboundMessage``
values built by the gateway.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol


@dataclass(frozen=True)
class InboundMessage:
    """A chat message as received from the gateway.

    Attributes:
        channel_id: Conversation channel identifier.
        author_id: Participant identifier.
        author_name: Participant display name, used as prompt prefix.
        content: Raw message text.
        channel_name: Channel display name, None for direct conversations.
        attachment_paths: Local paths of attachments already downloaded
            by the gateway.
        message_id: Gateway identifier of the message, if any.
    """

    channel_id: int
    author_id: int
    author_name: str
    content: str
    channel_name: str | None = None
    attachment_paths: tuple[str, ...] = field(default_factory=tuple)
    message_id: int | None = None

    @property
    def session_key(self) -> tuple[int, int]:
        """(user, channel) key of the conversation thread."""
        return (self.author_id, self.channel_id)


class ChatGateway(Protocol):
    """Outbound operations the orchestrator needs from the chat surface."""

    async def send_text(self, channel_id: int, text: str) -> int:
        """Post a message; return its identifier."""
        ...

    async def edit_text(self, channel_id: int, message_id: int, text: str) -> None:
        """Replace the content of a previously sent message."""
        ...

    async def delete_message(self, channel_id: int, message_id: int) -> None:
        """Delete a previously sent message."""
        ...

    async def send_file(self, channel_id: int, path: Path) -> bool:
        """Upload a file; return False if the upload was refused."""
        ...

    def mention(self, user_id: int, user_name: str) -> str:
        """Render a mention of a participant."""
        ...
