"""What an agent hands back after processing one source file."""

from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from curation.schemas.common import ConfidenceValue


class ExtractionCandidate(BaseModel):
    """A data point the agent pulled out of the file."""

    data_type: str = Field(..., min_length=1)
    data_value: str = Field(..., min_length=1)
    data_uom: str = Field(..., min_length=1)
    confidence_score: ConfidenceValue = Field(..., ge=0, le=1)
    context: Optional[str] = None
    processing_metadata: Optional[str] = None


class ProposalCandidate(BaseModel):
    """A suggested curated replacement for the file's content."""

    original_content: str = Field(..., min_length=1)
    curated_content: str = Field(..., min_length=1)
    confidence_score: ConfidenceValue = Field(..., ge=0, le=1)
    agent_rationale: str = Field(..., min_length=1)
    output_destination: str = Field(..., min_length=1)
    processing_metadata: str = "{}"


class AgentOutput(BaseModel):
    """Output of one agent run over one source file."""

    source_file_path: str = Field(..., min_length=1)
    extractions: List[ExtractionCandidate] = Field(default_factory=list)
    proposal: Optional[ProposalCandidate] = None


class CurationResult(BaseModel):
    """What was recorded for an agent's output."""

    agent_type: str
    skipped: bool = False
    extraction_ids: List[UUID] = Field(default_factory=list)
    proposal_id: Optional[UUID] = None
    review_decision: Optional[str] = None
