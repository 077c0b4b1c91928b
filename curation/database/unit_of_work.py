"""Transactional boundary that drains entity event buffers into the outbox."""

from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from curation.core.event_dispatcher import EventDispatcher, event_dispatcher
from curation.core.exceptions import ConcurrencyError
from curation.database.models import DomainEventRecord
from curation.domain.base import EventSourceMixin, utc_now
from curation.domain.events import EVENT_TYPES, DomainEvent
from curation.utils.logging import get_logger

LOGGER = get_logger(__name__)


class UnitOfWork:
    """Commits a session and publishes the events its entities produced.

    Events are pulled from every tracked entity and written as outbox rows
    in the same transaction as the state change, so a buffer is drained
    once per successful commit. After the commit the events are handed to
    the dispatcher; rows whose handlers fail stay undispatched for
    ``dispatch_pending`` to pick up.
    """

    def __init__(self, session: AsyncSession, dispatcher: Optional[EventDispatcher] = None):
        self.session = session
        self.dispatcher = dispatcher or event_dispatcher
        self._extra_sources: List[EventSourceMixin] = []

    def track(self, entity: EventSourceMixin) -> None:
        """Include events from an entity that is not part of the session."""
        self._extra_sources.append(entity)

    def _event_sources(self) -> Iterable[EventSourceMixin]:
        seen = set()
        candidates = [*self.session.new, *self.session.identity_map.values(), *self._extra_sources]
        for obj in candidates:
            if isinstance(obj, EventSourceMixin) and id(obj) not in seen:
                seen.add(id(obj))
                yield obj

    async def commit(self) -> List[DomainEvent]:
        """Commit pending changes and dispatch the drained events.

        Raises:
            ConcurrencyError: a row changed underneath this session
        """
        events: List[DomainEvent] = []
        for source in self._event_sources():
            events.extend(source.pull_events())
        self._extra_sources.clear()

        records = [DomainEventRecord.from_event(event) for event in events]
        self.session.add_all(records)

        try:
            await self.session.commit()
        except StaleDataError as e:
            await self.session.rollback()
            LOGGER.warning(f"Optimistic concurrency conflict: {e}")
            raise ConcurrencyError(
                "The record was modified by another worker; reload and try again",
                original_error=e,
            )
        except IntegrityError:
            await self.session.rollback()
            raise

        if records:
            await self._dispatch(list(zip(records, events)))
        return events

    async def rollback(self) -> None:
        for source in self._event_sources():
            source.clear_events()
        self._extra_sources.clear()
        await self.session.rollback()

    async def _dispatch(self, pairs: List[Tuple[DomainEventRecord, DomainEvent]]) -> int:
        dispatched = 0
        for record, event in pairs:
            try:
                await self.dispatcher.dispatch(event)
            except Exception:
                LOGGER.error(
                    f"Handler failed for {record.event_type} {record.aggregate_id}; left in outbox",
                    exc_info=True,
                )
                continue
            record.dispatched_at = utc_now()
            dispatched += 1
        if dispatched:
            await self.session.commit()
        return dispatched

    async def dispatch_pending(self, limit: int = 100, occurred_before: Optional[datetime] = None) -> int:
        """Redeliver outbox rows that have not been dispatched yet.

        Args:
            limit: Most rows handled in one call, oldest first
            occurred_before: Only rows for events older than this, leaving
                fresh rows to the dispatch that follows their commit

        Returns:
            Number of rows marked dispatched
        """
        stmt = select(DomainEventRecord).where(DomainEventRecord.dispatched_at.is_(None))
        if occurred_before is not None:
            stmt = stmt.where(DomainEventRecord.occurred_at < occurred_before)
        result = await self.session.execute(
            stmt.order_by(DomainEventRecord.occurred_at).limit(limit)
        )
        pairs = []
        for record in result.scalars().all():
            event_cls = EVENT_TYPES.get(record.event_type)
            if event_cls is None:
                LOGGER.warning(f"Skipping outbox row with unknown event type {record.event_type}")
                continue
            pairs.append((record, event_cls.model_validate(record.event_payload)))
        return await self._dispatch(pairs)
