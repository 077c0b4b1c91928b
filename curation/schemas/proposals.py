from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from curation.domain.value_objects import ReviewStatus
from curation.schemas.common import ConfidenceValue


class ProposalResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    source_file_path: str
    agent_type: str
    original_content: str
    curated_content: str
    confidence_score: ConfidenceValue
    agent_rationale: str
    review_status: ReviewStatus
    created_at: datetime
    reviewed_at: Optional[datetime] = None
    reviewer_comments: Optional[str] = None
    output_destination: str
    agent_configuration_id: UUID


class ReviewRequest(BaseModel):
    """Reviewer decision payload."""

    reviewer_comments: Optional[str] = Field(default=None, max_length=2000)
