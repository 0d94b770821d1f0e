"""Tests for local transcript trimming."""

import json
import os
from pathlib import Path

import pytest

from neywa.orchestrator.transcript import (
    find_transcript,
    is_system_line,
    trim_lines,
    trim_transcript,
)


def _conversation(index: int) -> str:
    return json.dumps({"type": "user", "n": index})


def _system(index: int) -> str:
    return json.dumps({"type": "system", "n": index})


def _write_transcript(root: Path, session_id: str, lines: list[str], project: str = "proj") -> Path:
    path = root / project / f"{session_id}.jsonl"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


@pytest.mark.parametrize(
    ("line", "expected"),
    [
        (json.dumps({"type": "system"}), True),
        (json.dumps({"type": "queue-operation"}), True),
        (json.dumps({"type": "assistant"}), False),
        ("not json at all", False),
        ("[1, 2]", False),
    ],
)
def test_is_system_line(line: str, expected: bool) -> None:
    """Test which lines count as metadata."""
    assert is_system_line(line) is expected


def test_trim_lines_keeps_system_lines_and_order() -> None:
    """Test system lines survive and kept lines stay in their original order."""
    lines = [_system(0)] + [_conversation(i) for i in range(10)] + [_system(1)]

    kept = trim_lines(lines, keep_ratio=0.5, min_keep=1)

    assert kept == [_system(0)] + [_conversation(i) for i in range(5, 10)] + [_system(1)]


def test_trim_lines_respects_min_keep() -> None:
    """Test the lower bound wins over the ratio."""
    lines = [_conversation(i) for i in range(10)]

    assert trim_lines(lines, keep_ratio=0.1, min_keep=4) == lines[6:]


def test_trim_transcript_drops_oldest_fifth(tmp_path: Path) -> None:
    """Test a 110-line transcript with 10 system lines keeps 80 conversation lines."""
    lines = [_system(i) for i in range(10)] + [_conversation(i) for i in range(100)]
    path = _write_transcript(tmp_path, "sess", lines)

    result = trim_transcript("sess", transcripts_dir=tmp_path)

    assert result is not None
    assert result.path == path
    assert (result.total_lines, result.kept_lines, result.removed_lines) == (110, 90, 20)
    kept = path.read_text(encoding="utf-8").splitlines()
    assert kept[:10] == lines[:10]
    assert kept[10:] == lines[30:]


def test_trim_transcript_unavailable_cases(tmp_path: Path) -> None:
    """Test missing, short and untrimmable transcripts are left alone."""
    assert trim_transcript("missing", transcripts_dir=tmp_path) is None
    assert trim_transcript("missing", transcripts_dir=tmp_path / "nope") is None

    short = [_conversation(i) for i in range(49)]
    path = _write_transcript(tmp_path, "short", short)
    assert trim_transcript("short", transcripts_dir=tmp_path) is None
    assert path.read_text(encoding="utf-8").splitlines() == short

    # Only 15 conversation lines, all protected by min_keep
    mostly_system = [_system(i) for i in range(50)] + [_conversation(i) for i in range(15)]
    _write_transcript(tmp_path, "meta", mostly_system)
    assert trim_transcript("meta", transcripts_dir=tmp_path) is None


def test_find_transcript_prefers_newest(tmp_path: Path) -> None:
    """Test the most recently modified match is picked across projects."""
    older = _write_transcript(tmp_path, "dup", ["a"], project="one")
    newer = _write_transcript(tmp_path, "dup", ["b"], project="two")
    os.utime(older, (1_000_000, 1_000_000))
    os.utime(newer, (2_000_000, 2_000_000))

    assert find_transcript("dup", tmp_path) == newer
    assert find_transcript("other", tmp_path) is None
