"""Chat gateway that renders the conversation in a terminal."""

import itertools
from pathlib import Path

from rich.console import Console
from rich.markdown import Markdown


class ConsoleGateway:
    """ChatGateway printing every outbound message with rich.

    Status edits are shown dimmed; deletions are silent. The transcript of
    everything sent is kept in ``sent`` for inspection.
    """

    def __init__(self, console: Console | None = None, *, markdown: bool = True) -> None:
        self.console = console or Console()
        self.markdown = markdown
        self.sent: list[tuple[int, str]] = []
        self._ids = itertools.count(1)

    async def send_text(self, channel_id: int, text: str) -> int:
        self.sent.append((channel_id, text))
        if self.markdown:
            self.console.print(Markdown(text))
        else:
            self.console.print(text)
        return next(self._ids)

    async def edit_text(self, channel_id: int, message_id: int, text: str) -> None:
        self.console.print(f"[dim]{text}[/dim]")

    async def delete_message(self, channel_id: int, message_id: int) -> None:
        return None

    async def send_file(self, channel_id: int, path: Path) -> bool:
        self.console.print(f"[cyan]📎 {path}[/cyan]")
        return True

    def mention(self, user_id: int, user_name: str) -> str:
        return f"@{user_name}"
