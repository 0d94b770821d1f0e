"""Delivery of a task's result to the chat surface.

A final response is delivered as:
1. every existing file it mentions, uploaded as an attachment;
2. the text itself, split into message-sized chunks;
3. a completion notice mentioning the author.
"""

import re
from pathlib import Path

from neywa.orchestrator.gateway import ChatGateway
from neywa.telemetry import DELIVERY_FAILED, get_logger

log = get_logger(__name__)

MAX_MESSAGE_CHARS = 1900

FILE_EXTENSIONS = (
    "png|jpg|jpeg|gif|webp|pdf|txt|md|rs|py|js|ts|json|csv|zip|tar|gz|mp3|mp4|wav|mov"
)

_ABSOLUTE = re.compile(rf"(?<![\w.~])(/[\w\-./]+\.(?:{FILE_EXTENSIONS}))\b")
_HOME = re.compile(rf"(~/[\w\-./]+\.(?:{FILE_EXTENSIONS}))\b")
_RELATIVE = re.compile(rf"(?<![\w/~\-.])([\w\-]+/[\w\-./]+\.(?:{FILE_EXTENSIONS}))\b")

# Relative matches that are really absolute paths missing their slash
_ROOTED_PREFIXES = ("Users/", "home/", "tmp/")


def extract_file_paths(
    text: str, *, home: Path | None = None, cwd: Path | None = None
) -> list[Path]:
    """Find file paths with a known extension in a response.

    Absolute paths are taken as is, ``~/`` paths are expanded against
    ``home`` and relative paths are resolved against ``cwd``.

    Args:
        text: Response text.
        home: Home directory (defaults to the user's).
        cwd: Base of relative paths (defaults to the working directory).

    Returns:
        Paths in order of first mention, without duplicates. Existence is
        not checked.
    """
    home = home or Path.home()
    cwd = cwd or Path.cwd()
    found: list[Path] = []

    def add(path: Path) -> None:
        if path not in found:
            found.append(path)

    for match in _ABSOLUTE.finditer(text):
        add(Path(match.group(1)))
    for match in _HOME.finditer(text):
        add(home / match.group(1)[2:])
    for match in _RELATIVE.finditer(text):
        relative = match.group(1)
        if relative.startswith(_ROOTED_PREFIXES):
            continue
        add(cwd / relative)
    return found


def split_message(text: str, limit: int = MAX_MESSAGE_CHARS) -> list[str]:
    """Split text into chunks of at most ``limit`` characters.

    Lines are kept whole when they fit; longer lines are hard-wrapped.

    Returns:
        Non-empty list of chunks; "(No response)" for empty text.
    """
    chunks: list[str] = []
    current = ""
    for line in text.splitlines():
        if len(current) + len(line) + 1 > limit:
            if current:
                chunks.append(current)
                current = ""
            if len(line) > limit:
                chunks.extend(line[i : i + limit] for i in range(0, len(line), limit))
            else:
                current = line
        elif current:
            current = f"{current}\n{line}"
        else:
            current = line
    if current:
        chunks.append(current)
    return chunks or ["(No response)"]


async def send_chunks(gateway: ChatGateway, channel_id: int, text: str) -> None:
    """Send ``text`` as one or more messages."""
    for chunk in split_message(text):
        await gateway.send_text(channel_id, chunk)


async def send_mentioned_files(gateway: ChatGateway, channel_id: int, text: str) -> list[Path]:
    """Upload every existing file mentioned in ``text``.

    Upload failures are logged and skipped. Paths the filesystem rejects
    (for example a component over the name length limit) count as missing.

    Returns:
        Paths that were uploaded.
    """
    sent: list[Path] = []
    for path in extract_file_paths(text):
        try:
            if not path.is_file():
                continue
        except OSError:
            continue
        try:
            if await gateway.send_file(channel_id, path):
                sent.append(path)
        except Exception as e:
            log.warning(DELIVERY_FAILED, channel_id=channel_id, path=str(path), error=str(e))
    return sent


def completion_notice(mention: str, files_sent: int) -> str:
    if files_sent:
        return f"{mention} ✅ Done! ({files_sent} file(s) attached)"
    return f"{mention} ✅ Done!"


def _clip(text: str, limit: int) -> str:
    return text if len(text) <= limit else f"{text[:limit]}..."


def activity_summary(user_name: str, profile_name: str, request: str, response: str) -> str:
    """Short record of a completed task for the activity channel."""
    return (
        f"**{user_name}** in `{profile_name}`\n"
        f"> {_clip(request, 100)}\n"
        f"```\n{_clip(response, 200)}\n```"
    )
