"""Shared helpers for curation entities."""

from datetime import datetime, timezone
from typing import List, Optional, Sequence
from uuid import UUID

from curation.core.exceptions import ValidationError
from curation.domain.events import DomainEvent

NIL_UUID = UUID(int=0)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def require_text(value: Optional[str], label: str) -> str:
    """Reject empty or whitespace-only required text."""
    if value is None or not str(value).strip():
        raise ValidationError(f"{label} cannot be empty")
    return value


def require_id(value: Optional[UUID], label: str) -> UUID:
    if value is None or value == NIL_UUID:
        raise ValidationError(f"{label} cannot be empty")
    return value


class EventSourceMixin:
    """Per-entity buffer of domain events.

    The buffer is not mapped; entities loaded from the database start with
    an empty one.
    """

    def _event_buffer(self) -> List[DomainEvent]:
        return self.__dict__.setdefault("_domain_events", [])

    @property
    def domain_events(self) -> Sequence[DomainEvent]:
        return tuple(self._event_buffer())

    def record_event(self, event: DomainEvent) -> DomainEvent:
        self._event_buffer().append(event)
        return event

    def clear_events(self) -> None:
        self._event_buffer().clear()

    def pull_events(self) -> List[DomainEvent]:
        """Return buffered events and empty the buffer."""
        buffer = self._event_buffer()
        events = list(buffer)
        buffer.clear()
        return events
