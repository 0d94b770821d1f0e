"""UI module for neywa.

This module provides:
- CLI interface (Typer-based)
- A console chat gateway that drives the orchestrator from a terminal

The CLI can be run directly:
    python -m neywa.ui.cli chat "Your message here"

Note: We don't export CLI components from __init__.py to avoid
module loading issues when running as a script.
"""

__all__ = []  # CLI is run directly, no exports needed
