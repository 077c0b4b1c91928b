"""Durable unit of work tracking one source-file change through processing."""

import json
import uuid
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import CheckConstraint, Index, Integer, String, Text, TIMESTAMP, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from curation.core.exceptions import InvalidStateError
from curation.database.base import Base
from curation.database.column_types import text_enum
from curation.domain.base import require_text, utc_now
from curation.domain.value_objects import ProcessingStatus

DEFAULT_MAX_RETRY_COUNT = 3
COMPLETED_AGENTS_KEY = "completed_agents"


class ProcessingQueueItem(Base):
    """Queued -> Processing -> Completed | Failed, with Failed -> Queued retries.

    ``status`` doubles as the mapper's version column: an UPDATE only lands
    if the row still has the status this instance was loaded with, which is
    what keeps two workers from claiming the same item.
    """

    __tablename__ = "processing_queue"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    file_path: Mapped[str] = mapped_column(String(500), nullable=False)
    message_id: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    status: Mapped[ProcessingStatus] = mapped_column(text_enum(ProcessingStatus), nullable=False)
    queued_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    processing_started_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    error_message: Mapped[Optional[str]] = mapped_column(String(2000), nullable=True)
    retry_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    processing_metadata: Mapped[str] = mapped_column(Text, nullable=False, default="{}")

    __table_args__ = (
        CheckConstraint(
            "status IN ('Queued', 'Processing', 'Completed', 'Failed')",
            name="ck_processing_queue_status",
        ),
        CheckConstraint("retry_count >= 0", name="ck_processing_queue_retry_count"),
        CheckConstraint(
            "(processing_started_at IS NULL OR queued_at <= processing_started_at) AND "
            "(completed_at IS NULL OR processing_started_at <= completed_at)",
            name="ck_processing_queue_processing_time",
        ),
        Index("ix_processing_queue_status", "status"),
        Index("ix_processing_queue_file_path", "file_path"),
        Index("ix_processing_queue_status_queued_at", "status", "queued_at"),
    )

    __mapper_args__ = {"version_id_col": status, "version_id_generator": False}

    @classmethod
    def create(cls, file_path: str, message_id: str, processing_metadata: str = "{}") -> "ProcessingQueueItem":
        require_text(file_path, "File path")
        require_text(message_id, "Message ID")

        return cls(
            id=uuid.uuid4(),
            file_path=file_path,
            message_id=message_id,
            status=ProcessingStatus.QUEUED,
            queued_at=utc_now(),
            retry_count=0,
            processing_metadata=processing_metadata or "{}",
        )

    def _reject(self, action: str) -> InvalidStateError:
        return InvalidStateError(
            f"Cannot {action} from status {self.status.value}", current_state=self.status
        )

    def start_processing(self) -> None:
        if self.status not in (ProcessingStatus.QUEUED, ProcessingStatus.FAILED):
            raise self._reject("start processing")

        self.status = ProcessingStatus.PROCESSING
        self.processing_started_at = utc_now()
        # completed_at from an earlier failed attempt would precede the new start
        self.completed_at = None
        self.error_message = None

    def complete_processing(self) -> None:
        if self.status is not ProcessingStatus.PROCESSING:
            raise self._reject("complete processing")

        self.status = ProcessingStatus.COMPLETED
        self.completed_at = utc_now()

    def fail_processing(self, error_message: str) -> None:
        if self.status is not ProcessingStatus.PROCESSING:
            raise self._reject("fail processing")

        self.status = ProcessingStatus.FAILED
        self.completed_at = utc_now()
        self.error_message = error_message
        self.retry_count += 1

    def can_retry(self, max_retry_count: int = DEFAULT_MAX_RETRY_COUNT) -> bool:
        return self.status is ProcessingStatus.FAILED and self.retry_count < max_retry_count

    def retry(self, max_retry_count: int = DEFAULT_MAX_RETRY_COUNT) -> None:
        if not self.can_retry(max_retry_count):
            if self.status is ProcessingStatus.FAILED:
                raise InvalidStateError(
                    f"Cannot retry processing: retry budget exhausted "
                    f"({self.retry_count}/{max_retry_count})",
                    current_state=self.status,
                )
            raise self._reject("retry processing")

        self.status = ProcessingStatus.QUEUED
        self.error_message = None

    def _metadata(self) -> Dict[str, Any]:
        try:
            metadata = json.loads(self.processing_metadata or "{}")
        except ValueError:
            metadata = None
        if not isinstance(metadata, dict):
            # Keep free-form metadata under its own key
            return {"metadata": self.processing_metadata}
        return metadata

    @property
    def completed_agents(self) -> List[str]:
        """Agent types whose output for this item is already stored."""
        metadata = self._metadata()
        return list(metadata.get(COMPLETED_AGENTS_KEY, []))

    def record_completed_agents(self, agent_types: Iterable[str]) -> None:
        metadata = self._metadata()
        done = metadata.setdefault(COMPLETED_AGENTS_KEY, [])
        for agent_type in agent_types:
            if agent_type not in done:
                done.append(agent_type)
        self.processing_metadata = json.dumps(metadata)

    def __repr__(self) -> str:
        return (
            f"ProcessingQueueItem(message_id={self.message_id!r}, status={self.status.value}, "
            f"retry_count={self.retry_count})"
        )
