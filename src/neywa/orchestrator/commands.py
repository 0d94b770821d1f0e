"""Text command triggers.

Commands start with ``!``. Most take no argument; ``slash`` and ``plan``
take the rest of the message. Text that merely looks like a command (an
unknown word, or an argument after a command that takes none) is an
ordinary message for the backend.
"""

from dataclasses import dataclass
from enum import Enum

COMMAND_PREFIX = "!"


class CommandName(str, Enum):
    HELP = "help"
    STATUS = "status"
    QUEUE = "queue"
    STOP = "stop"
    NEW = "new"
    COMPACT = "compact"
    SLASH = "slash"
    PLAN = "plan"
    Z = "z"
    CODEX = "codex"
    HUMAN = "human"
    RESTART = "restart"


@dataclass(frozen=True)
class Command:
    """A parsed command trigger."""

    name: CommandName
    argument: str = ""


_ALIASES: dict[str, CommandName] = {name.value: name for name in CommandName}
_ALIASES["reset"] = CommandName.NEW

_TAKES_ARGUMENT = frozenset({CommandName.SLASH, CommandName.PLAN})


def parse_command(content: str) -> Command | None:
    """Parse a message as a command.

    Args:
        content: Raw message text.

    Returns:
        Command, or None if the message is not a command.
    """
    text = content.strip()
    if not text.startswith(COMMAND_PREFIX):
        return None
    parts = text[len(COMMAND_PREFIX) :].split(maxsplit=1)
    if not parts:
        return None
    name = _ALIASES.get(parts[0].lower())
    if name is None:
        return None
    argument = parts[1].strip() if len(parts) > 1 else ""
    if argument and name not in _TAKES_ARGUMENT:
        return None
    return Command(name, argument)
