"""Application configuration settings.

This module provides the AppConfig class and settings singleton.
"""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import structlog

from neywa.config.bootstrap import DEFAULT_DATA_DIR
from neywa.config.env_loader import Environment, get_environment, load_env_files
from neywa.config.validators import (
    normalize_phrases,
    resolve_path,
    validate_log_format,
    validate_log_level,
    validate_patterns,
)

log = structlog.get_logger(__name__)

DEFAULT_CAPACITY_PHRASES = ["prompt is too long", "context window", "too many tokens"]


class AppConfig(BaseSettings):
    """Unified application configuration.

    Loads configuration from environment variables, .env files, and defaults.
    Validates all values using Pydantic.
    """

    model_config = SettingsConfigDict(
        env_prefix="NEYWA_",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Environment
    environment: Environment = Field(
        default_factory=get_environment, description="Current environment"
    )
    debug: bool = Field(default=False, alias="APP_DEBUG", description="Debug mode flag")
    version: str = Field(default="0.3.0", description="Application version")

    # Storage
    data_dir: Path = Field(
        default=DEFAULT_DATA_DIR,
        description="Directory holding session and channel preference snapshots",
    )

    # Telemetry
    log_dir: Path = Field(default=DEFAULT_DATA_DIR / "logs", description="Log directory path")
    log_level: str = Field(
        default="INFO",
        alias="APP_LOG_LEVEL",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    log_format: str = Field(
        default="json", alias="APP_LOG_FORMAT", description="Log format (json or console)"
    )

    # Backends
    claude_executable: str = Field(default="claude", description="Primary backend command")
    claude_alt_executable: str = Field(
        default="claude-z", description="Alternate primary backend command (same protocol)"
    )
    codex_executable: str = Field(default="codex", description="Secondary backend command")
    codex_model: str = Field(default="gpt-5.3-codex", description="Model passed to codex exec")
    extra_search_dirs: list[Path] = Field(
        default_factory=list,
        description="Additional directories searched for backend executables",
    )

    # Capacity detection
    capacity_phrases: list[str] = Field(
        default_factory=lambda: list(DEFAULT_CAPACITY_PHRASES),
        description=(
            "Lowercase substrings that mark a response as a context-capacity failure. "
            "Matching is a plain substring test on the lowercased final text, so the "
            "list is wording- and locale-dependent."
        ),
    )
    stderr_capacity_phrases: list[str] = Field(
        default_factory=lambda: [*DEFAULT_CAPACITY_PHRASES, "max_tokens"],
        description="Substrings searched in a backend's buffered standard error",
    )

    # Status indicator
    status_update_interval_ms: int = Field(
        default=800, ge=0, description="Minimum delay between status message edits"
    )
    status_ring_size: int = Field(
        default=5, ge=1, description="Number of recent tool-use lines shown in the status"
    )

    # Backend on-disk state
    transcripts_dir: Path = Field(
        default=Path.home() / ".claude" / "projects",
        description="Root of the primary backend's per-project session transcripts",
    )
    plans_dir: Path = Field(
        default=Path.home() / ".claude" / "plans",
        description="Reserved directory where plan mode writes its plan file",
    )

    # Transcript trimming
    trim_keep_ratio: float = Field(
        default=0.8, gt=0, le=1, description="Share of conversational lines kept by a trim"
    )
    trim_min_keep_lines: int = Field(
        default=20, ge=1, description="Minimum conversational lines kept by a trim"
    )
    trim_min_total_lines: int = Field(
        default=50, ge=1, description="Transcripts shorter than this are not trimmed"
    )

    # Restart sweep
    process_kill_patterns: list[str] = Field(
        default_factory=lambda: [
            r"claude.*--dangerously-skip-permissions",
            r"claude.*--permission-mode plan",
            r"codex exec",
        ],
        description="Command-line regexes of backend processes killed by restart",
    )
    restart_settle_seconds: float = Field(
        default=0.5, ge=0, description="Pause after the restart sweep"
    )

    # Chat surface
    activity_channel_id: int | None = Field(
        default=None, description="Channel receiving a summary of every completed task"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        return validate_log_level(v)

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format."""
        return validate_log_format(v)

    @field_validator("data_dir", "log_dir", "transcripts_dir", "plans_dir", mode="before")
    @classmethod
    def resolve_paths(cls, v: Path | str) -> Path:
        """Resolve relative paths to absolute."""
        return resolve_path(v)

    @field_validator("capacity_phrases", "stderr_capacity_phrases")
    @classmethod
    def normalize_capacity_phrases(cls, v: list[str]) -> list[str]:
        """Lowercase trigger phrases."""
        return normalize_phrases(v)

    @field_validator("process_kill_patterns")
    @classmethod
    def validate_kill_patterns(cls, v: list[str]) -> list[str]:
        """Reject patterns that do not compile."""
        return validate_patterns(v)

    @property
    def sessions_file(self) -> Path:
        """Snapshot of (user, channel) -> session id triples."""
        return self.data_dir / "sessions.json"

    @property
    def channel_backends_file(self) -> Path:
        """Snapshot of channel -> backend kind."""
        return self.data_dir / "channel_backends.json"

    @property
    def human_mode_file(self) -> Path:
        """Snapshot of channels where the relay stays silent."""
        return self.data_dir / "human_mode.json"


_settings: AppConfig | None = None


def load_app_config() -> AppConfig:
    """Load and validate application configuration.

    This function:
    1. Loads .env files in priority order (via env_loader)
    2. Creates AppConfig instance (reads from environment variables)
    3. Validates all values using Pydantic
    4. Logs configuration loading using structlog

    Returns:
        Validated AppConfig instance.

    Raises:
        ValidationError: If configuration validation fails.
    """
    log.info("loading_app_config", environment=get_environment().value)

    load_env_files()

    try:
        config = AppConfig()
        log.info(
            "app_config_loaded",
            environment=config.environment.value,
            debug=config.debug,
            log_level=config.log_level,
            data_dir=str(config.data_dir),
        )
        return config
    except Exception as e:
        log.error("app_config_load_failed", error=str(e), error_type=type(e).__name__)
        raise


def get_settings() -> AppConfig:
    """Get the application settings singleton.

    Returns:
        AppConfig instance (singleton pattern).
    """
    global _settings
    if _settings is None:
        _settings = load_app_config()
    return _settings
