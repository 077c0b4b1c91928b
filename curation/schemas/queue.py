from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from curation.domain.value_objects import ProcessingStatus


class FileChangeNotification(BaseModel):
    """A change to a source file reported by the watcher."""

    file_path: str = Field(..., min_length=1, max_length=500)
    message_id: str = Field(..., min_length=1, max_length=100)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class QueueItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    file_path: str
    message_id: str
    status: ProcessingStatus
    queued_at: datetime
    processing_started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    error_message: Optional[str] = None
    retry_count: int
