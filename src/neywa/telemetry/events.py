"""Semantic event constants for structured logging.

All log events should use these constants rather than magic strings to ensure
consistency and enable reliable querying and analysis.
"""

# Orchestrator events
MESSAGE_RECEIVED = "message_received"
COMMAND_RECEIVED = "command_received"
TASK_QUEUED = "task_queued"
TASK_STARTED = "task_started"
TASK_COMPLETED = "task_completed"
TASK_FAILED = "task_failed"
TASK_CANCELLED = "task_cancelled"
QUEUE_CLEARED = "queue_cleared"
CHANNEL_IDLE = "channel_idle"
STATUS_UPDATE_FAILED = "status_update_failed"
DELIVERY_FAILED = "delivery_failed"

# Backend events
BACKEND_LOCATED = "backend_located"
BACKEND_NOT_FOUND = "backend_not_found"
BACKEND_SPAWNED = "backend_spawned"
BACKEND_SPAWN_FAILED = "backend_spawn_failed"
BACKEND_EXITED = "backend_exited"
BACKEND_LINE_SKIPPED = "backend_line_skipped"
BACKEND_ERROR_EVENT = "backend_error_event"
BACKEND_STDERR_CAPACITY = "backend_stderr_capacity"

# Session and preference snapshot events
SESSIONS_LOADED = "sessions_loaded"
SNAPSHOT_LOAD_FAILED = "snapshot_load_failed"
SESSIONS_SAVE_FAILED = "sessions_save_failed"
SESSION_UPDATED = "session_updated"
SESSION_REMOVED = "session_removed"
SESSION_DISCARDED = "session_discarded"
PREFERENCES_SAVE_FAILED = "preferences_save_failed"

# Recovery events
CAPACITY_DETECTED = "capacity_detected"
SESSION_COMPACTED = "session_compacted"
COMPACT_FAILED = "compact_failed"
RETRY_COMPLETED = "retry_completed"
TRANSCRIPT_TRIMMED = "transcript_trimmed"
TRANSCRIPT_TRIM_SKIPPED = "transcript_trim_skipped"
SESSION_RESET = "session_reset"

# Restart events
RESTART_REQUESTED = "restart_requested"
RESTART_SWEEP = "restart_sweep"
