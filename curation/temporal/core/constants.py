"""Shared constants for Temporal workflows."""

from curation.core.config import settings

# Task Queues
DEFAULT_TASK_QUEUE = settings.temporal_task_queue

# Timeouts
DEFAULT_ACTIVITY_TIMEOUT_SECONDS = settings.activity_timeout_seconds
SHORT_ACTIVITY_TIMEOUT_SECONDS = 60

# Pause between a failed attempt and the retry
RETRY_BACKOFF_SECONDS = 30

# Domain failures that retrying the same activity cannot fix
NON_RETRYABLE_ERRORS = [
    "ValidationError",
    "ConfidenceRangeError",
    "InvalidStateError",
    "ConcurrencyError",
    "NotFoundError",
    "ConfigurationError",
]
