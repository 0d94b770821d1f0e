"""Unified configuration management for Neywa.

This module provides a single source of truth for all configuration,
integrating environment variables, .env files, and defaults.
"""

from neywa.config.env_loader import Environment, get_environment, load_env_files
from neywa.config.settings import AppConfig, get_settings, load_app_config

__all__ = [
    "AppConfig",
    "get_settings",
    "load_app_config",
    "load_env_files",
    "Environment",
    "get_environment",
]
