"""Tests for the leftover backend process sweep."""

import os
from unittest.mock import MagicMock, patch

import psutil

from neywa.orchestrator.processes import find_backend_processes, kill_backend_processes

PATTERNS = [r"claude.*--dangerously-skip-permissions", r"codex exec"]


def _proc(pid: int, cmdline: list[str] | None) -> MagicMock:
    proc = MagicMock(spec=psutil.Process)
    proc.info = {"pid": pid, "cmdline": cmdline}
    proc.pid = pid
    return proc


def _table() -> list[MagicMock]:
    return [
        _proc(10, ["claude", "--dangerously-skip-permissions", "--print", "hi"]),
        _proc(11, ["node", "/usr/bin/codex", "exec", "--json", "x"]),
        _proc(12, ["vim", "notes.md"]),
        _proc(13, None),
        _proc(os.getpid(), ["python", "claude --dangerously-skip-permissions"]),
    ]


def test_find_matches_patterns_and_skips_self() -> None:
    """Test only matching processes other than this one are returned."""
    with patch("neywa.orchestrator.processes.psutil.process_iter", return_value=_table()):
        found = find_backend_processes(PATTERNS)

    assert [proc.pid for proc in found] == [10, 11]


def test_kill_terminates_then_kills_survivors() -> None:
    """Test every match is terminated and stragglers are killed."""
    table = _table()
    stubborn = table[1]
    stubborn.terminate.side_effect = psutil.AccessDenied(11)

    with (
        patch("neywa.orchestrator.processes.psutil.process_iter", return_value=table),
        patch(
            "neywa.orchestrator.processes.psutil.wait_procs",
            return_value=([table[0]], [stubborn]),
        ) as wait_procs,
    ):
        count = kill_backend_processes(PATTERNS, timeout=0.1)

    assert count == 2
    table[0].terminate.assert_called_once()
    table[0].kill.assert_not_called()
    stubborn.kill.assert_called_once()
    table[2].terminate.assert_not_called()
    assert wait_procs.call_args.kwargs["timeout"] == 0.1


def test_kill_with_no_matches() -> None:
    """Test an empty sweep signals nothing."""
    with (
        patch("neywa.orchestrator.processes.psutil.process_iter", return_value=[]),
        patch("neywa.orchestrator.processes.psutil.wait_procs", return_value=([], [])),
    ):
        assert kill_backend_processes(PATTERNS) == 0
