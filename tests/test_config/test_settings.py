"""Tests for configuration settings."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from neywa.config import (
    AppConfig,
    Environment,
    get_environment,
    get_settings,
    load_app_config,
)


class TestEnvironmentDetection:
    """Test environment detection."""

    def test_get_environment_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test default environment is development."""
        monkeypatch.delenv("APP_ENV", raising=False)
        assert get_environment() == Environment.DEVELOPMENT

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("production", Environment.PRODUCTION),
            ("prod", Environment.PRODUCTION),
            ("staging", Environment.STAGING),
            ("stage", Environment.STAGING),
            ("test", Environment.TEST),
            ("TEST", Environment.TEST),
        ],
    )
    def test_get_environment_aliases(
        self, monkeypatch: pytest.MonkeyPatch, value: str, expected: Environment
    ) -> None:
        """Test APP_ENV values and aliases."""
        monkeypatch.setenv("APP_ENV", value)
        assert get_environment() == expected


class TestAppConfig:
    """Test AppConfig class."""

    def test_app_config_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test AppConfig has correct code defaults (isolated from .env)."""
        for name in ("APP_LOG_LEVEL", "APP_LOG_FORMAT", "NEYWA_CODEX_MODEL"):
            monkeypatch.delenv(name, raising=False)
        config = AppConfig()
        assert config.log_level == "INFO"
        assert config.log_format == "json"
        assert config.claude_executable == "claude"
        assert config.claude_alt_executable == "claude-z"
        assert config.codex_executable == "codex"
        assert config.codex_model == "gpt-5.3-codex"
        assert config.status_update_interval_ms == 800
        assert config.status_ring_size == 5
        assert config.trim_keep_ratio == 0.8
        assert config.trim_min_keep_lines == 20
        assert config.trim_min_total_lines == 50
        assert config.activity_channel_id is None

    def test_capacity_phrases_default(self) -> None:
        """Test the capacity trigger phrases are centralized in config."""
        config = AppConfig()
        assert config.capacity_phrases == [
            "prompt is too long",
            "context window",
            "too many tokens",
        ]
        assert "max_tokens" in config.stderr_capacity_phrases

    def test_capacity_phrases_normalized(self) -> None:
        """Test phrases are lowercased and deduplicated."""
        config = AppConfig(capacity_phrases=["Context Window", "context window", " Too Big "])
        assert config.capacity_phrases == ["context window", "too big"]

    def test_capacity_phrases_must_not_be_empty(self) -> None:
        """Test an empty phrase list is rejected."""
        with pytest.raises(ValidationError):
            AppConfig(capacity_phrases=[])

    def test_app_config_from_env_vars(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test AppConfig reads from environment variables with NEYWA_ prefix."""
        monkeypatch.setenv("NEYWA_CODEX_MODEL", "gpt-test")
        monkeypatch.setenv("NEYWA_ACTIVITY_CHANNEL_ID", "42")
        monkeypatch.setenv("APP_LOG_LEVEL", "debug")

        config = AppConfig()
        assert config.codex_model == "gpt-test"
        assert config.activity_channel_id == 42
        assert config.log_level == "DEBUG"

    def test_app_config_log_level_validation(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test log level validation."""
        monkeypatch.setenv("APP_LOG_LEVEL", "INVALID")
        with pytest.raises(ValidationError):
            AppConfig()

    def test_app_config_log_format_validation(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test log format validation."""
        monkeypatch.setenv("APP_LOG_FORMAT", "invalid")
        with pytest.raises(ValidationError):
            AppConfig()

    def test_kill_patterns_must_compile(self) -> None:
        """Test restart sweep patterns are validated as regexes."""
        with pytest.raises(ValidationError):
            AppConfig(process_kill_patterns=["claude("])

    def test_app_config_path_resolution(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test that relative paths are resolved to absolute."""
        monkeypatch.chdir(tmp_path)
        config = AppConfig(data_dir="state", plans_dir="~/plans")
        assert config.data_dir == tmp_path.resolve() / "state"
        assert config.plans_dir == (Path.home() / "plans").resolve()
        assert config.log_dir.is_absolute()

    def test_snapshot_files_live_in_data_dir(self, tmp_path: Path) -> None:
        """Test snapshot file locations."""
        config = AppConfig(data_dir=tmp_path)
        assert config.sessions_file == tmp_path / "sessions.json"
        assert config.channel_backends_file == tmp_path / "channel_backends.json"
        assert config.human_mode_file == tmp_path / "human_mode.json"


class TestSingleton:
    """Test singleton pattern."""

    def test_get_settings_returns_singleton(self) -> None:
        """Test that get_settings returns the same instance."""
        assert get_settings() is get_settings()


class TestLoadAppConfig:
    """Test load_app_config function."""

    def test_load_app_config_creates_config(self) -> None:
        """Test that load_app_config creates a valid config."""
        config = load_app_config()
        assert isinstance(config, AppConfig)
        assert config.log_level in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
