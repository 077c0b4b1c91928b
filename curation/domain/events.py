"""Domain events emitted by curation entities.

Events are immutable pydantic models so they can be written to the outbox
as JSON and handed to in-process handlers unchanged.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, ClassVar, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class DomainEvent(BaseModel):
    """Base class for all domain events."""

    model_config = ConfigDict(frozen=True)

    event_type: ClassVar[str] = "DomainEvent"

    @property
    def aggregate_id(self) -> UUID:
        raise NotImplementedError

    @property
    def occurred_at(self) -> datetime:
        raise NotImplementedError

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


class DataExtracted(DomainEvent):
    """Raised when an agent records an extracted data point."""

    event_type: ClassVar[str] = "DataExtracted"

    data_id: UUID
    agent_type: str
    source_file_path: str
    data_type: str
    data_value: str
    confidence_score: Decimal
    extracted_at: datetime

    @property
    def aggregate_id(self) -> UUID:
        return self.data_id

    @property
    def occurred_at(self) -> datetime:
        return self.extracted_at


class ProposalCreated(DomainEvent):
    """Raised when an elevation proposal is created."""

    event_type: ClassVar[str] = "ProposalCreated"

    proposal_id: UUID
    agent_type: str
    source_file_path: str
    confidence_score: Decimal
    created_at: datetime

    @property
    def aggregate_id(self) -> UUID:
        return self.proposal_id

    @property
    def occurred_at(self) -> datetime:
        return self.created_at


class ProposalApproved(DomainEvent):
    """Raised when an elevation proposal is approved for publication."""

    event_type: ClassVar[str] = "ProposalApproved"

    proposal_id: UUID
    agent_type: str
    output_destination: str
    reviewer_comments: Optional[str] = None
    approved_at: datetime

    @property
    def aggregate_id(self) -> UUID:
        return self.proposal_id

    @property
    def occurred_at(self) -> datetime:
        return self.approved_at


EVENT_TYPES: Dict[str, type] = {
    cls.event_type: cls for cls in (DataExtracted, ProposalCreated, ProposalApproved)
}
