"""Channel behavior profiles.

A profile is derived from the channel's display name and influences:
- The system prompt embedded in the first message of a session
- Whether the relay answers in the channel at all (``logs`` never does)
"""

from enum import Enum


class ChannelProfile(str, Enum):
    """Behavior profile of a conversation channel.

    Profiles influence orchestrator behavior:
    - GENERAL: general conversation, any request
    - CODE: coding tasks on the user's filesystem
    - RESEARCH: web research with sources
    - TASKS: schedules and recurring jobs
    - LOGS: activity log only, never answered
    - UNKNOWN: any other channel name
    """

    GENERAL = "general"
    CODE = "code"
    RESEARCH = "research"
    TASKS = "tasks"
    LOGS = "logs"
    UNKNOWN = "unknown"

    @classmethod
    def from_name(cls, name: str | None) -> "ChannelProfile":
        """Derive the profile from a channel name.

        Args:
            name: Channel display name. None means a direct conversation,
                which behaves like GENERAL.

        Returns:
            Matching profile, UNKNOWN for unrecognized names.
        """
        if name is None:
            return cls.GENERAL
        return _NAME_ALIASES.get(name.strip().lower(), cls.UNKNOWN)

    @property
    def replies_enabled(self) -> bool:
        """False for channels the relay must stay silent in."""
        return self is not ChannelProfile.LOGS

    @property
    def system_prompt(self) -> str:
        """Instructions embedded in the first message of a session."""
        return _SYSTEM_PROMPTS[self]


_NAME_ALIASES: dict[str, ChannelProfile] = {
    "general": ChannelProfile.GENERAL,
    "code": ChannelProfile.CODE,
    "coding": ChannelProfile.CODE,
    "research": ChannelProfile.RESEARCH,
    "tasks": ChannelProfile.TASKS,
    "schedule": ChannelProfile.TASKS,
    "logs": ChannelProfile.LOGS,
}

_SYSTEM_PROMPTS: dict[ChannelProfile, str] = {
    ChannelProfile.GENERAL: (
        "You are Neywa, a helpful AI assistant. Respond naturally to any request."
    ),
    ChannelProfile.CODE: (
        "You are Neywa in CODE mode. Focus on coding tasks. "
        "You have access to the user's filesystem. "
        "Be concise and code-focused. Show code snippets when relevant."
    ),
    ChannelProfile.RESEARCH: (
        "You are Neywa in RESEARCH mode. Focus on finding information. "
        "Search the web, summarize findings, and provide sources. "
        "Be thorough but concise."
    ),
    ChannelProfile.TASKS: (
        "You are Neywa in TASKS mode. Help manage schedules and tasks. "
        "When the user wants to schedule something recurring, create a cron job using: "
        "crontab -l | { cat; echo \"SCHEDULE neywa run 'COMMAND'\"; } | crontab - "
        "Replace SCHEDULE with cron syntax and COMMAND with what to do. "
        "Confirm what you've scheduled."
    ),
    ChannelProfile.LOGS: "This is a logs channel. Do not respond to messages here.",
    ChannelProfile.UNKNOWN: "You are Neywa, a helpful AI assistant.",
}
