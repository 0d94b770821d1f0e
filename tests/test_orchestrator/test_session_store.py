"""Tests for the session store and its snapshot file."""

import json
from pathlib import Path

import pytest

from neywa.orchestrator.session import SessionStore, load_sessions, save_sessions


def test_load_missing_file_is_empty(tmp_path: Path) -> None:
    """Test a missing snapshot loads as an empty map."""
    assert load_sessions(tmp_path / "sessions.json") == {}


def test_load_corrupt_file_is_empty(tmp_path: Path) -> None:
    """Test a corrupt snapshot loads as an empty map instead of failing startup."""
    path = tmp_path / "sessions.json"
    path.write_text("{not json", encoding="utf-8")

    assert load_sessions(path) == {}


def test_load_wrong_shape_is_empty(tmp_path: Path) -> None:
    """Test a snapshot of the wrong shape is treated like a corrupt one."""
    path = tmp_path / "sessions.json"
    path.write_text(json.dumps({"1": "abc"}), encoding="utf-8")

    assert load_sessions(path) == {}


def test_snapshot_is_list_of_triples(tmp_path: Path) -> None:
    """Test the file format is an array of [user, channel, session] triples."""
    path = tmp_path / "nested" / "sessions.json"

    save_sessions(path, {(1, 100): "s-a", (2, 100): "s-b"})

    data = json.loads(path.read_text(encoding="utf-8"))
    assert sorted(data) == [[1, 100, "s-a"], [2, 100, "s-b"]]
    assert not list(path.parent.glob(".*.tmp"))


def test_round_trip_keeps_shared_keys_apart(tmp_path: Path) -> None:
    """Test keys sharing a user or a channel survive a reload as distinct entries."""
    path = tmp_path / "sessions.json"
    sessions = {(1, 100): "a", (1, 200): "b", (2, 100): "c"}

    save_sessions(path, sessions)

    assert load_sessions(path) == sessions


@pytest.mark.asyncio
async def test_set_persists(tmp_path: Path) -> None:
    """Test binding a session writes the snapshot."""
    path = tmp_path / "sessions.json"
    store = SessionStore(path)

    await store.set((7, 10), "s-1")

    assert store.get((7, 10)) == "s-1"
    assert (7, 10) in store
    assert load_sessions(path) == {(7, 10): "s-1"}


@pytest.mark.asyncio
async def test_set_same_id_does_not_rewrite(tmp_path: Path) -> None:
    """Test rebinding the same id leaves the file alone."""
    path = tmp_path / "sessions.json"
    store = SessionStore(path, {(7, 10): "s-1"})

    await store.set((7, 10), "s-1")

    assert not path.exists()


@pytest.mark.asyncio
async def test_remove_and_clear(tmp_path: Path) -> None:
    """Test removal returns the dropped id and clear empties the file."""
    path = tmp_path / "sessions.json"
    store = SessionStore(path, {(1, 1): "a", (2, 1): "b"})

    assert await store.remove((1, 1)) == "a"
    assert await store.remove((1, 1)) is None
    assert load_sessions(path) == {(2, 1): "b"}

    assert await store.clear() == 1
    assert len(store) == 0
    assert load_sessions(path) == {}


@pytest.mark.asyncio
async def test_from_file_reloads_state(tmp_path: Path) -> None:
    """Test a new store sees what a previous one saved."""
    path = tmp_path / "sessions.json"
    first = SessionStore(path)
    await first.set((3, 30), "persisted")

    second = SessionStore.from_file(path)

    assert second.snapshot() == {(3, 30): "persisted"}


@pytest.mark.asyncio
async def test_save_failure_is_not_raised(tmp_path: Path) -> None:
    """Test a write failure keeps the in-memory value and does not raise."""
    blocker = tmp_path / "blocker"
    blocker.write_text("a file where a directory should be", encoding="utf-8")
    store = SessionStore(blocker / "sessions.json")

    await store.set((1, 1), "kept")

    assert store.get((1, 1)) == "kept"
