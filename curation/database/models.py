"""SQLAlchemy models for all database tables.

Importing this module registers every table on ``Base.metadata``.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, Index, String, TIMESTAMP, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from curation.database.base import Base
from curation.domain.agent_configuration import AgentConfiguration
from curation.domain.elevation_proposal import ElevationProposal
from curation.domain.events import DomainEvent
from curation.domain.extracted_data import ExtractedData
from curation.domain.processing_queue import ProcessingQueueItem


class DomainEventRecord(Base):
    """Outbox row for a domain event, written in the same transaction as the change."""

    __tablename__ = "domain_events"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    event_type: Mapped[str] = mapped_column(String(100), nullable=False)
    aggregate_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    event_payload: Mapped[dict] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"), nullable=False
    )
    occurred_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    dispatched_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_domain_events_undispatched", "dispatched_at", "occurred_at"),
        Index("ix_domain_events_aggregate_id", "aggregate_id"),
    )

    @classmethod
    def from_event(cls, event: DomainEvent) -> "DomainEventRecord":
        return cls(
            id=uuid.uuid4(),
            event_type=event.event_type,
            aggregate_id=event.aggregate_id,
            event_payload=event.to_payload(),
            occurred_at=event.occurred_at,
        )


__all__ = [
    "AgentConfiguration",
    "DomainEventRecord",
    "ElevationProposal",
    "ExtractedData",
    "ProcessingQueueItem",
]
