from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from curation.domain.value_objects import AutonomyLevel
from curation.schemas.common import ConfidenceValue


class AgentConfigurationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    agent_type: str
    is_enabled: bool
    autonomy_level: AutonomyLevel
    confidence_threshold: ConfidenceValue
    configuration_json: str
    model_parameters: Optional[str] = None
    processing_rules: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    version: int


class AgentConfigurationUpdate(BaseModel):
    """Partial update; omitted fields are left unchanged."""

    expected_version: Optional[int] = Field(
        default=None, ge=1, description="Reject the update if the stored version differs"
    )
    autonomy_level: Optional[AutonomyLevel] = None
    confidence_threshold: Optional[Decimal] = Field(default=None, ge=0, le=1)
    configuration_json: Optional[str] = None
    model_parameters: Optional[str] = None
    processing_rules: Optional[str] = None
    is_enabled: Optional[bool] = None
