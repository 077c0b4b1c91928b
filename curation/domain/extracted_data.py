"""Structured data points pulled from source files by agents."""

import uuid
from datetime import datetime
from typing import Optional, Union

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, Text, TIMESTAMP, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from curation.database.base import Base
from curation.database.column_types import ConfidenceScoreType
from curation.domain.base import EventSourceMixin, require_id, require_text, utc_now
from curation.domain.events import DataExtracted
from curation.domain.value_objects import ConfidenceScore, RawConfidence


class ExtractedData(EventSourceMixin, Base):
    """One extracted data point. Immutable once recorded."""

    __tablename__ = "extracted_data"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    source_file_path: Mapped[str] = mapped_column(String(500), nullable=False)
    agent_type: Mapped[str] = mapped_column(String(100), nullable=False)
    data_type: Mapped[str] = mapped_column(String(100), nullable=False)
    data_value: Mapped[str] = mapped_column(Text, nullable=False)
    data_uom: Mapped[str] = mapped_column(String(50), nullable=False)
    confidence_score: Mapped[ConfidenceScore] = mapped_column(ConfidenceScoreType, nullable=False)
    extracted_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    context: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    agent_configuration_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("agent_configurations.id", ondelete="RESTRICT"),
        nullable=False,
    )
    processing_metadata: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "confidence_score >= 0.0 AND confidence_score <= 1.0",
            name="ck_extracted_data_confidence_score",
        ),
        Index("ix_extracted_data_source_file_path", "source_file_path"),
        Index("ix_extracted_data_agent_type_data_type", "agent_type", "data_type"),
        Index("ix_extracted_data_agent_configuration_id", "agent_configuration_id"),
    )

    @classmethod
    def create(
        cls,
        source_file_path: str,
        agent_type: str,
        data_type: str,
        data_value: str,
        data_uom: str,
        confidence_score: Union[ConfidenceScore, RawConfidence],
        agent_configuration_id: uuid.UUID,
        context: Optional[str] = None,
        processing_metadata: Optional[str] = None,
    ) -> "ExtractedData":
        require_text(source_file_path, "Source file path")
        require_text(agent_type, "Agent type")
        require_text(data_type, "Data type")
        require_text(data_value, "Data value")
        require_text(data_uom, "Data unit of measure")
        require_id(agent_configuration_id, "Agent configuration ID")

        data = cls(
            id=uuid.uuid4(),
            source_file_path=source_file_path,
            agent_type=agent_type,
            data_type=data_type,
            data_value=data_value,
            data_uom=data_uom,
            confidence_score=ConfidenceScore.coerce(confidence_score),
            extracted_at=utc_now(),
            context=context,
            agent_configuration_id=agent_configuration_id,
            processing_metadata=processing_metadata,
        )
        data.record_event(
            DataExtracted(
                data_id=data.id,
                agent_type=data.agent_type,
                source_file_path=data.source_file_path,
                data_type=data.data_type,
                data_value=data.data_value,
                confidence_score=data.confidence_score.value,
                extracted_at=data.extracted_at,
            )
        )
        return data

    def __repr__(self) -> str:
        return f"ExtractedData(data_type={self.data_type!r}, data_value={self.data_value!r})"
