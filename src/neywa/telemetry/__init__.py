"""Telemetry module for structured logging and trace correlation.

This module provides:
- TraceContext for per-task correlation
- Structured logging via structlog
- Semantic event constants
"""

from neywa.telemetry.events import (
    BACKEND_ERROR_EVENT,
    BACKEND_EXITED,
    BACKEND_LINE_SKIPPED,
    BACKEND_LOCATED,
    BACKEND_NOT_FOUND,
    BACKEND_SPAWN_FAILED,
    BACKEND_SPAWNED,
    BACKEND_STDERR_CAPACITY,
    CAPACITY_DETECTED,
    CHANNEL_IDLE,
    COMMAND_RECEIVED,
    COMPACT_FAILED,
    DELIVERY_FAILED,
    MESSAGE_RECEIVED,
    PREFERENCES_SAVE_FAILED,
    QUEUE_CLEARED,
    RESTART_REQUESTED,
    RESTART_SWEEP,
    RETRY_COMPLETED,
    SESSION_COMPACTED,
    SESSION_DISCARDED,
    SESSION_REMOVED,
    SESSION_RESET,
    SESSION_UPDATED,
    SESSIONS_LOADED,
    SESSIONS_SAVE_FAILED,
    SNAPSHOT_LOAD_FAILED,
    STATUS_UPDATE_FAILED,
    TASK_CANCELLED,
    TASK_COMPLETED,
    TASK_FAILED,
    TASK_QUEUED,
    TASK_STARTED,
    TRANSCRIPT_TRIM_SKIPPED,
    TRANSCRIPT_TRIMMED,
)
from neywa.telemetry.logger import configure_logging, get_logger
from neywa.telemetry.trace import TraceContext

__all__ = [
    "TraceContext",
    "get_logger",
    "configure_logging",
    "MESSAGE_RECEIVED",
    "COMMAND_RECEIVED",
    "TASK_QUEUED",
    "TASK_STARTED",
    "TASK_COMPLETED",
    "TASK_FAILED",
    "TASK_CANCELLED",
    "QUEUE_CLEARED",
    "CHANNEL_IDLE",
    "STATUS_UPDATE_FAILED",
    "DELIVERY_FAILED",
    "BACKEND_LOCATED",
    "BACKEND_NOT_FOUND",
    "BACKEND_SPAWNED",
    "BACKEND_SPAWN_FAILED",
    "BACKEND_EXITED",
    "BACKEND_LINE_SKIPPED",
    "BACKEND_ERROR_EVENT",
    "BACKEND_STDERR_CAPACITY",
    "SESSIONS_LOADED",
    "SNAPSHOT_LOAD_FAILED",
    "SESSIONS_SAVE_FAILED",
    "SESSION_UPDATED",
    "SESSION_REMOVED",
    "SESSION_DISCARDED",
    "PREFERENCES_SAVE_FAILED",
    "CAPACITY_DETECTED",
    "SESSION_COMPACTED",
    "COMPACT_FAILED",
    "RETRY_COMPLETED",
    "TRANSCRIPT_TRIMMED",
    "TRANSCRIPT_TRIM_SKIPPED",
    "SESSION_RESET",
    "RESTART_REQUESTED",
    "RESTART_SWEEP",
]
