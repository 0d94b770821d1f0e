"""Bootstrap configuration helpers (pre-settings).

These helpers exist for "chicken-and-egg" situations where we need a small amount
of configuration before the full Pydantic settings singleton can be imported.

Constraints:
- Keep this module dependency-light (no telemetry imports) to avoid circular imports.
- Prefer validating values using existing config validators.
"""

from __future__ import annotations

import os
from pathlib import Path

from neywa.config.validators import resolve_path, validate_log_level

DEFAULT_DATA_DIR = Path.home() / ".config" / "neywa"


def get_bootstrap_log_level(default: str = "INFO") -> str:
    """Get logging level from environment without importing settings.

    Args:
        default: Default log level if not set or invalid.

    Returns:
        Uppercased, validated log level string.
    """
    value = os.getenv("APP_LOG_LEVEL", default)
    try:
        return validate_log_level(value)
    except ValueError:
        return validate_log_level(default)


def get_bootstrap_log_dir() -> Path:
    """Get the log directory from environment without importing settings.

    Returns:
        ``NEYWA_LOG_DIR`` if set, otherwise ``<data dir>/logs``.
    """
    value = os.getenv("NEYWA_LOG_DIR")
    if value:
        return resolve_path(value)
    data_dir = os.getenv("NEYWA_DATA_DIR")
    base = resolve_path(data_dir) if data_dir else DEFAULT_DATA_DIR
    return base / "logs"
