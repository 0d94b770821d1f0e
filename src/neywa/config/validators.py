"""Custom Pydantic validators for configuration.

This module provides validators for cross-field validation and
custom type conversions.
"""

import re
from pathlib import Path


def validate_log_level(value: str) -> str:
    """Validate log level is one of the standard levels.

    Args:
        value: Log level string.

    Returns:
        Validated log level.

    Raises:
        ValueError: If log level is not valid.
    """
    valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
    if value.upper() not in valid_levels:
        raise ValueError(f"log_level must be one of {valid_levels}, got {value}")
    return value.upper()


def validate_log_format(value: str) -> str:
    """Validate log format is 'json' or 'console'.

    Args:
        value: Log format string.

    Returns:
        Validated log format.

    Raises:
        ValueError: If log format is not valid.
    """
    valid_formats = {"json", "console"}
    if value.lower() not in valid_formats:
        raise ValueError(f"log_format must be one of {valid_formats}, got {value}")
    return value.lower()


def resolve_path(value: Path | str) -> Path:
    """Expand ``~`` and resolve paths to absolute paths.

    Args:
        value: Path value (can be string or Path).

    Returns:
        Resolved Path object.
    """
    path = Path(value).expanduser()
    return path.resolve()


def normalize_phrases(values: list[str]) -> list[str]:
    """Lowercase and de-duplicate trigger phrases, preserving order.

    Args:
        values: Raw phrases.

    Returns:
        Lowercased phrases without blanks or duplicates.

    Raises:
        ValueError: If no usable phrase remains.
    """
    seen: list[str] = []
    for raw in values:
        phrase = raw.strip().lower()
        if phrase and phrase not in seen:
            seen.append(phrase)
    if not seen:
        raise ValueError("at least one capacity phrase is required")
    return seen


def validate_patterns(values: list[str]) -> list[str]:
    """Check that every process pattern compiles as a regular expression.

    Args:
        values: Regular expression strings.

    Returns:
        The same list.

    Raises:
        ValueError: If a pattern does not compile.
    """
    for pattern in values:
        try:
            re.compile(pattern)
        except re.error as e:
            raise ValueError(f"invalid process pattern {pattern!r}: {e}") from e
    return values
