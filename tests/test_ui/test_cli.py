"""Tests for the command-line interface."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from rich.console import Console
from typer.testing import CliRunner

from neywa.config import AppConfig
from neywa.orchestrator import load_sessions, save_sessions
from neywa.ui.cli import app

runner = CliRunner()


@pytest.fixture
def settings(tmp_path: Path):
    config = AppConfig(
        data_dir=tmp_path / "data",
        transcripts_dir=tmp_path / "transcripts",
        extra_search_dirs=[],
        claude_executable=str(tmp_path / "missing" / "claude"),
        claude_alt_executable=str(tmp_path / "missing" / "claude-z"),
        codex_executable=str(tmp_path / "missing" / "codex"),
    )
    with patch("neywa.ui.cli.get_settings", return_value=config):
        yield config


@pytest.fixture
def console():
    """Wide recording console, so table cells are not wrapped."""
    recording = Console(record=True, width=300)
    with patch("neywa.ui.cli.console", recording):
        yield recording


def test_sessions_list_empty(settings: AppConfig, console: Console) -> None:
    """Test listing with no snapshot."""
    result = runner.invoke(app, ["sessions", "list"])

    assert result.exit_code == 0
    assert "No stored sessions" in console.export_text()


def test_sessions_list_and_clear(settings: AppConfig, console: Console) -> None:
    """Test stored sessions are listed and then cleared."""
    save_sessions(settings.sessions_file, {(1, 2): "abc-123"})

    listed = runner.invoke(app, ["sessions", "list"])
    assert listed.exit_code == 0
    assert "abc-123" in console.export_text()

    cleared = runner.invoke(app, ["sessions", "clear", "--yes"])
    assert cleared.exit_code == 0
    assert "Cleared 1 session(s)" in console.export_text()
    assert load_sessions(settings.sessions_file) == {}


def test_sessions_clear_aborts_without_confirmation(settings: AppConfig, console: Console) -> None:
    """Test declining the prompt keeps the sessions."""
    save_sessions(settings.sessions_file, {(1, 2): "abc-123"})

    result = runner.invoke(app, ["sessions", "clear"], input="n\n")

    assert result.exit_code == 1
    assert load_sessions(settings.sessions_file) == {(1, 2): "abc-123"}


def test_trim(settings: AppConfig, console: Console) -> None:
    """Test trimming a transcript from the command line."""
    path = settings.transcripts_dir / "proj" / "sid.jsonl"
    path.parent.mkdir(parents=True)
    path.write_text(
        "\n".join(json.dumps({"type": "user", "n": i}) for i in range(100)) + "\n",
        encoding="utf-8",
    )

    result = runner.invoke(app, ["trim", "sid"])

    assert result.exit_code == 0
    assert "100 → 80 lines" in console.export_text()


def test_trim_missing(settings: AppConfig, console: Console) -> None:
    """Test a missing transcript exits non-zero."""
    result = runner.invoke(app, ["trim", "nope"])

    assert result.exit_code == 1
    assert "Nothing to trim" in console.export_text()


def test_locate_reports_missing(settings: AppConfig, console: Console) -> None:
    """Test backends that cannot be found are reported, not raised."""
    result = runner.invoke(app, ["locate"])

    assert result.exit_code == 0
    assert "not found" in console.export_text()
