"""Error types raised by the curation domain, services and repositories.

The API layer maps these onto HTTP statuses and the Temporal worker lists
the domain ones as non-retryable, so new subclasses should extend the
closest existing branch.
"""

from typing import Any, Optional


class AppError(Exception):
    """Root of every error the application raises on purpose."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.original_error = original_error


class ValidationError(AppError):
    """Input rejected before any state changed."""


class ConfidenceRangeError(ValidationError):
    """Confidence value is not a number in [0.0, 1.0]."""


class DuplicateAgentTypeError(ValidationError):
    """The agent type already has a configuration."""


class InvalidStateError(AppError):
    """Transition not allowed from the entity's current state.

    ``current_state`` holds the state that blocked it.
    """

    def __init__(self, message: str, current_state: Optional[Any] = None):
        super().__init__(message)
        self.current_state = current_state


class ConcurrencyError(AppError):
    """Another writer changed the row first."""


class NotFoundError(AppError):
    """No entity with the requested key."""


class DatabaseError(AppError):
    """The database could not be reached or refused the schema."""


class ConfigurationError(AppError):
    """Missing or inconsistent configuration, including unregistered agents."""
