"""Local trimming of the primary backend's on-disk session transcript.

The primary backend stores each session as a JSON-lines file named
``<session_id>.jsonl`` in a per-project directory under the transcripts
root. When the backend cannot compact a session that has outgrown its
context window, dropping the oldest part of that file lets the next
exchange fit again.

Lines whose ``type`` is ``system`` or ``queue-operation`` are metadata and
are always kept. Every other line, including lines that are not JSON,
counts as conversation; only the most recent share of those is kept.
Relative order of the kept lines is preserved.
"""

import json
import math
from dataclasses import dataclass
from pathlib import Path

from neywa.telemetry import TRANSCRIPT_TRIM_SKIPPED, TRANSCRIPT_TRIMMED, get_logger

log = get_logger(__name__)

SYSTEM_LINE_TYPES = frozenset({"system", "queue-operation"})


@dataclass(frozen=True)
class TrimResult:
    """Outcome of a successful trim.

    Attributes:
        path: Rewritten transcript file.
        total_lines: Lines before trimming.
        kept_lines: Lines after trimming.
    """

    path: Path
    total_lines: int
    kept_lines: int

    @property
    def removed_lines(self) -> int:
        return self.total_lines - self.kept_lines


def is_system_line(line: str) -> bool:
    """True for metadata lines that survive any trim."""
    try:
        data = json.loads(line)
    except json.JSONDecodeError:
        return False
    return isinstance(data, dict) and data.get("type") in SYSTEM_LINE_TYPES


def trim_lines(lines: list[str], *, keep_ratio: float, min_keep: int) -> list[str]:
    """Drop the oldest conversational lines.

    Keeps every system line plus the most recent
    ``max(ceil(n * keep_ratio), min_keep)`` of the ``n`` conversational lines.

    Args:
        lines: Transcript lines, oldest first.
        keep_ratio: Share of conversational lines kept.
        min_keep: Lower bound on conversational lines kept.

    Returns:
        Kept lines in their original order.
    """
    conversational = [i for i, line in enumerate(lines) if not is_system_line(line)]
    keep_count = max(math.ceil(len(conversational) * keep_ratio), min_keep)
    dropped = set(conversational[: max(len(conversational) - keep_count, 0)])
    return [line for i, line in enumerate(lines) if i not in dropped]


def find_transcript(session_id: str, transcripts_dir: Path) -> Path | None:
    """Locate the transcript file of a session.

    Args:
        session_id: Backend session id.
        transcripts_dir: Root holding one directory per project.

    Returns:
        Most recently modified match, or None.
    """
    if not transcripts_dir.is_dir():
        return None
    matches = list(transcripts_dir.glob(f"*/{session_id}.jsonl"))
    if not matches:
        return None
    return max(matches, key=lambda p: p.stat().st_mtime)


def trim_transcript(
    session_id: str,
    *,
    transcripts_dir: Path,
    keep_ratio: float = 0.8,
    min_keep: int = 20,
    min_total: int = 50,
) -> TrimResult | None:
    """Trim a session transcript in place.

    Args:
        session_id: Backend session id.
        transcripts_dir: Root of the per-project transcript directories.
        keep_ratio: Share of conversational lines kept.
        min_keep: Lower bound on conversational lines kept.
        min_total: Transcripts with fewer lines are left alone.

    Returns:
        TrimResult, or None when trimming is unavailable: the file is
        missing, too short, or nothing would be removed.

    Raises:
        OSError: If the file cannot be read or rewritten.
    """
    path = find_transcript(session_id, transcripts_dir)
    if path is None:
        log.info(TRANSCRIPT_TRIM_SKIPPED, session_id=session_id, reason="not_found")
        return None

    lines = path.read_text(encoding="utf-8").splitlines()
    if len(lines) < min_total:
        log.info(
            TRANSCRIPT_TRIM_SKIPPED, session_id=session_id, reason="too_short", lines=len(lines)
        )
        return None

    kept = trim_lines(lines, keep_ratio=keep_ratio, min_keep=min_keep)
    if len(kept) == len(lines):
        log.info(
            TRANSCRIPT_TRIM_SKIPPED,
            session_id=session_id,
            reason="nothing_to_drop",
            lines=len(lines),
        )
        return None

    path.write_text("\n".join(kept) + "\n", encoding="utf-8")
    result = TrimResult(path=path, total_lines=len(lines), kept_lines=len(kept))
    log.info(
        TRANSCRIPT_TRIMMED,
        session_id=session_id,
        path=str(path),
        total_lines=result.total_lines,
        kept_lines=result.kept_lines,
    )
    return result
