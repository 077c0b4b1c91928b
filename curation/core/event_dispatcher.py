"""In-process dispatch of domain events to registered handlers."""

from collections import defaultdict
from typing import Awaitable, Callable, Dict, List

from curation.domain.events import DomainEvent
from curation.utils.logging import get_logger

LOGGER = get_logger(__name__)

EventHandler = Callable[[DomainEvent], Awaitable[None]]


class EventDispatcher:
    """Registry of async handlers keyed by event type name."""

    def __init__(self):
        self._handlers: Dict[str, List[EventHandler]] = defaultdict(list)

    def register(self, event_type: str):
        """Decorator to register a handler for an event type."""
        def decorator(handler: EventHandler) -> EventHandler:
            self._handlers[event_type].append(handler)
            return handler
        return decorator

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        self._handlers[event_type].append(handler)

    def handlers_for(self, event_type: str) -> List[EventHandler]:
        return list(self._handlers.get(event_type, []))

    async def dispatch(self, event: DomainEvent) -> None:
        """Run every handler for the event; the first failure propagates."""
        handlers = self.handlers_for(event.event_type)
        if not handlers:
            LOGGER.debug(f"No handlers registered for {event.event_type}")
        for handler in handlers:
            await handler(event)


# Global dispatcher instance
event_dispatcher = EventDispatcher()
