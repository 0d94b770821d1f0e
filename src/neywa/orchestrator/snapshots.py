"""Flat-file JSON snapshots of orchestrator state.

Each snapshot file holds one whole value, validated on read and
serialized on write with a pydantic ``TypeAdapter``. Reads never raise:
a missing file yields the default and a corrupt one yields the default
plus a warning. Writes go through a temporary file and an atomic rename.
"""

from pathlib import Path
from typing import Callable, TypeVar

from pydantic import TypeAdapter, ValidationError

from neywa.telemetry import SNAPSHOT_LOAD_FAILED, get_logger

log = get_logger(__name__)

T = TypeVar("T")


def read_snapshot(path: Path, adapter: TypeAdapter[T], default: Callable[[], T]) -> T:
    """Load a snapshot file.

    Args:
        path: Snapshot file.
        adapter: Validator for the stored value.
        default: Factory for the value used when the file is absent or unreadable.

    Returns:
        Stored value or default.
    """
    if not path.exists():
        return default()
    try:
        return adapter.validate_json(path.read_bytes())
    except (OSError, ValidationError) as e:
        log.warning(SNAPSHOT_LOAD_FAILED, path=str(path), error=str(e))
        return default()


def write_snapshot(path: Path, adapter: TypeAdapter[T], value: T) -> None:
    """Rewrite a snapshot file with ``value``.

    Raises:
        OSError: If the file cannot be written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(f".{path.name}.tmp")
    tmp.write_bytes(adapter.dump_json(value, indent=2))
    tmp.replace(path)
