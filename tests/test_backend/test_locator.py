"""Tests for backend executable discovery."""

import os
from pathlib import Path

import pytest

from neywa.backend.locator import (
    candidate_paths,
    locate_executable,
    versioned_runtime_dirs,
    well_known_dirs,
)
from neywa.backend.types import BackendNotFoundError


def _make_executable(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("#!/bin/sh\nexit 0\n")
    path.chmod(0o755)
    return path


@pytest.fixture
def empty_path(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Make the PATH lookup find nothing."""
    monkeypatch.setenv("PATH", str(tmp_path / "nothing-here"))


def test_found_on_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Test PATH is searched first."""
    exe = _make_executable(tmp_path / "bin" / "fake-claude")
    monkeypatch.setenv("PATH", str(exe.parent))

    assert locate_executable("fake-claude", home=tmp_path / "home") == exe


def test_found_in_well_known_dir(tmp_path: Path, empty_path: None) -> None:
    """Test well-known install directories are searched after PATH."""
    home = tmp_path / "home"
    exe = _make_executable(home / ".local" / "bin" / "fake-claude")

    assert locate_executable("fake-claude", home=home) == exe


def test_extra_dirs_come_before_well_known(tmp_path: Path, empty_path: None) -> None:
    """Test configured directories win over the fixed list."""
    home = tmp_path / "home"
    _make_executable(home / ".local" / "bin" / "fake-claude")
    extra = _make_executable(tmp_path / "custom" / "fake-claude")

    assert locate_executable("fake-claude", [extra.parent], home=home) == extra


def test_newest_node_version_wins(tmp_path: Path, empty_path: None) -> None:
    """Test per-version runtime directories are discovered newest first."""
    home = tmp_path / "home"
    _make_executable(home / ".nvm/versions/node/v9.11.0/bin/fake-claude")
    newest = _make_executable(home / ".nvm/versions/node/v20.3.1/bin/fake-claude")

    assert versioned_runtime_dirs(home)[0] == newest.parent
    assert locate_executable("fake-claude", home=home) == newest


def test_non_executable_is_ignored(tmp_path: Path, empty_path: None) -> None:
    """Test plain files are not mistaken for executables."""
    home = tmp_path / "home"
    plain = home / ".local" / "bin" / "fake-claude"
    plain.parent.mkdir(parents=True)
    plain.write_text("not executable")
    os.chmod(plain, 0o644)

    with pytest.raises(BackendNotFoundError):
        locate_executable("fake-claude", home=home)


def test_not_found_error_is_descriptive(tmp_path: Path, empty_path: None) -> None:
    """Test the error names the command and the searched directories."""
    home = tmp_path / "home"
    with pytest.raises(BackendNotFoundError, match="fake-claude CLI not found") as exc_info:
        locate_executable("fake-claude", home=home)
    assert str(home / ".local" / "bin") in str(exc_info.value)


def test_explicit_path(tmp_path: Path) -> None:
    """Test a configured path is used as is."""
    exe = _make_executable(tmp_path / "tools" / "claude")
    assert locate_executable(str(exe)) == exe.resolve()
    with pytest.raises(BackendNotFoundError):
        locate_executable(str(tmp_path / "missing" / "claude"))


def test_candidate_order(tmp_path: Path) -> None:
    """Test candidates list extra dirs, then well-known dirs."""
    extra = tmp_path / "extra"
    candidates = candidate_paths("claude", [extra], home=tmp_path)
    assert candidates[0] == extra / "claude"
    assert candidates[1:1 + len(well_known_dirs(tmp_path))] == [
        d / "claude" for d in well_known_dirs(tmp_path)
    ]
