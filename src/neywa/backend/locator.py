"""Backend executable discovery.

Search order:
1. ``shutil.which`` on the current PATH (service managers often run with a
   minimal PATH, so this alone is not enough).
2. Well-known install directories.
3. Per-version runtime directories discovered at call time (node version
   managers install global CLIs under a directory per node version).
"""

import os
import re
import shutil
from collections.abc import Iterable
from pathlib import Path

from neywa.backend.types import BackendNotFoundError
from neywa.telemetry import BACKEND_LOCATED, BACKEND_NOT_FOUND, get_logger

log = get_logger(__name__)

_VERSION_RE = re.compile(r"(\d+)")

# (glob root relative to home, glob pattern, bin suffix inside the match)
_VERSIONED_RUNTIME_GLOBS: tuple[tuple[str, str, str], ...] = (
    (".nvm/versions/node", "*", "bin"),
    (".local/share/fnm/node-versions", "*", "installation/bin"),
    (".asdf/installs/nodejs", "*", "bin"),
    (".local/share/mise/installs/node", "*", "bin"),
)


def well_known_dirs(home: Path | None = None) -> list[Path]:
    """Fixed install directories searched after PATH."""
    home = home or Path.home()
    return [
        home / ".local" / "bin",
        home / ".cargo" / "bin",
        home / "bin",
        Path("/usr/local/bin"),
        Path("/opt/homebrew/bin"),
        home / ".npm-global" / "bin",
        home / ".bun" / "bin",
        home / ".volta" / "bin",
    ]


def _version_key(path: Path) -> tuple[int, ...]:
    return tuple(int(part) for part in _VERSION_RE.findall(path.name))


def versioned_runtime_dirs(home: Path | None = None) -> list[Path]:
    """Per-version ``bin`` directories, newest version first within each manager."""
    home = home or Path.home()
    found: list[Path] = []
    for root, pattern, suffix in _VERSIONED_RUNTIME_GLOBS:
        base = home / root
        if not base.is_dir():
            continue
        versions = sorted(base.glob(pattern), key=_version_key, reverse=True)
        found.extend(version / suffix for version in versions if (version / suffix).is_dir())
    return found


def _is_executable(path: Path) -> bool:
    return path.is_file() and os.access(path, os.X_OK)


def candidate_paths(
    name: str, extra_dirs: Iterable[Path] = (), home: Path | None = None
) -> list[Path]:
    """Every path checked for ``name`` after the PATH lookup, in order."""
    dirs = [*extra_dirs, *well_known_dirs(home), *versioned_runtime_dirs(home)]
    return [directory / name for directory in dirs]


def locate_executable(
    name: str, extra_dirs: Iterable[Path] = (), home: Path | None = None
) -> Path:
    """Resolve a backend command name to an executable path.

    Args:
        name: Command name (``claude``) or an explicit path.
        extra_dirs: Directories searched before the well-known ones.
        home: Home directory override (tests).

    Returns:
        Absolute path of the executable.

    Raises:
        BackendNotFoundError: If nothing executable matches.
    """
    if os.sep in name:
        explicit = Path(name).expanduser()
        if _is_executable(explicit):
            return explicit.resolve()
        log.warning(BACKEND_NOT_FOUND, name=name)
        raise BackendNotFoundError(f"{name} is not an executable file")

    found = shutil.which(name)
    if found:
        log.debug(BACKEND_LOCATED, name=name, path=found, via="path")
        return Path(found)

    candidates = candidate_paths(name, extra_dirs, home)
    for candidate in candidates:
        if _is_executable(candidate):
            log.debug(BACKEND_LOCATED, name=name, path=str(candidate), via="search_dirs")
            return candidate

    searched = ", ".join(sorted({str(c.parent) for c in candidates})) or "(none)"
    log.warning(BACKEND_NOT_FOUND, name=name, searched=searched)
    raise BackendNotFoundError(f"{name} CLI not found. Searched PATH and {searched}")
