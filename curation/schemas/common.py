"""Response envelope shared by all API endpoints."""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, Dict, Optional

from pydantic import BaseModel, BeforeValidator, Field

from curation.domain.value_objects import ConfidenceScore


def _unwrap_confidence(value: Any) -> Any:
    if isinstance(value, ConfidenceScore):
        return value.value
    return value


# Accepts ConfidenceScore instances read off ORM objects
ConfidenceValue = Annotated[Decimal, BeforeValidator(_unwrap_confidence)]


class ResponseMeta(BaseModel):
    timestamp: datetime
    request_id: str
    api_version: str = "v1"


class ApiResponse(BaseModel):
    """Standard envelope: status flag, message, payload and metadata."""

    status: bool = Field(..., description="Whether the operation succeeded")
    message: str
    data: Dict[str, Any] = Field(default_factory=dict)
    meta: ResponseMeta


class ErrorDetail(BaseModel):
    """RFC 7807 style problem description."""

    title: str
    status: int
    detail: str
    instance: Optional[str] = None
    request_id: str
    timestamp: datetime
