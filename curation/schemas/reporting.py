"""Read models for the review and processing dashboards."""

from datetime import datetime
from decimal import Decimal
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from curation.domain.value_objects import AutonomyLevel, ProcessingStatus


class PendingProposalSummary(BaseModel):
    """Pending proposals grouped by agent type."""

    model_config = ConfigDict(from_attributes=True)

    agent_type: str
    pending_count: int
    average_confidence: Optional[Decimal] = None
    oldest_proposal: datetime
    newest_proposal: datetime


class AgentProcessingStats(BaseModel):
    """Proposal and extraction totals for one configured agent."""

    model_config = ConfigDict(from_attributes=True)

    agent_type: str
    is_enabled: bool
    autonomy_level: AutonomyLevel
    total_proposals: int = 0
    total_extractions: int = 0
    approved_proposals: int = 0
    average_proposal_confidence: Optional[Decimal] = None
    average_extraction_confidence: Optional[Decimal] = None


class QueueStats(BaseModel):
    counts: Dict[ProcessingStatus, int] = Field(default_factory=dict)
    max_retry_count: int

    @property
    def total(self) -> int:
        return sum(self.counts.values())
