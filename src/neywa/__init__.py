"""Neywa: relay chat channels to a conversational AI backend process."""

__version__ = "0.3.0"
