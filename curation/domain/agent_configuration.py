"""Per-agent-type policy: enablement, autonomy level and confidence threshold."""

import uuid
from datetime import datetime
from typing import Optional, Union

from sqlalchemy import Boolean, CheckConstraint, Index, Integer, String, Text, TIMESTAMP, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from curation.database.base import Base
from curation.database.column_types import ConfidenceScoreType, text_enum
from curation.domain.base import require_text, utc_now
from curation.domain.value_objects import AutonomyLevel, ConfidenceScore, RawConfidence


class AgentConfiguration(Base):
    """Long-lived policy record, one per agent type.

    All mutation goes through ``update_configuration`` so every change bumps
    ``version``; the mapper uses ``version`` as its optimistic-concurrency
    column, so a write based on a stale read fails at flush.
    """

    __tablename__ = "agent_configurations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    agent_type: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    is_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    autonomy_level: Mapped[AutonomyLevel] = mapped_column(text_enum(AutonomyLevel), nullable=False)
    confidence_threshold: Mapped[ConfidenceScore] = mapped_column(ConfidenceScoreType, nullable=False)
    configuration_json: Mapped[str] = mapped_column(Text, nullable=False)
    model_parameters: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    processing_rules: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        CheckConstraint(
            "confidence_threshold >= 0.0 AND confidence_threshold <= 1.0",
            name="ck_agent_configurations_confidence_threshold",
        ),
        CheckConstraint(
            "autonomy_level IN ('ReviewRequired', 'SemiAutonomous', 'FullyAutonomous')",
            name="ck_agent_configurations_autonomy_level",
        ),
        CheckConstraint("version >= 1", name="ck_agent_configurations_version"),
        Index("ix_agent_configurations_is_enabled", "is_enabled"),
    )

    __mapper_args__ = {"version_id_col": version, "version_id_generator": False}

    @classmethod
    def create(
        cls,
        agent_type: str,
        autonomy_level: AutonomyLevel,
        confidence_threshold: Union[ConfidenceScore, RawConfidence],
        configuration_json: str,
        model_parameters: Optional[str] = None,
        processing_rules: Optional[str] = None,
        is_enabled: bool = True,
    ) -> "AgentConfiguration":
        require_text(agent_type, "Agent type")
        require_text(configuration_json, "Configuration JSON")

        now = utc_now()
        return cls(
            id=uuid.uuid4(),
            agent_type=agent_type,
            is_enabled=is_enabled,
            autonomy_level=AutonomyLevel(autonomy_level),
            confidence_threshold=ConfidenceScore.coerce(confidence_threshold),
            configuration_json=configuration_json,
            model_parameters=model_parameters,
            processing_rules=processing_rules,
            created_at=now,
            updated_at=now,
            version=1,
        )

    def update_configuration(
        self,
        autonomy_level: Optional[AutonomyLevel] = None,
        confidence_threshold: Optional[Union[ConfidenceScore, RawConfidence]] = None,
        configuration_json: Optional[str] = None,
        model_parameters: Optional[str] = None,
        processing_rules: Optional[str] = None,
        is_enabled: Optional[bool] = None,
    ) -> "AgentConfiguration":
        """Overwrite the supplied fields, then bump ``updated_at`` and ``version``.

        A blank ``configuration_json`` is ignored rather than rejected.
        """
        if autonomy_level is not None:
            self.autonomy_level = AutonomyLevel(autonomy_level)
        if confidence_threshold is not None:
            self.confidence_threshold = ConfidenceScore.coerce(confidence_threshold)
        if configuration_json is not None and configuration_json.strip():
            self.configuration_json = configuration_json
        if model_parameters is not None:
            self.model_parameters = model_parameters
        if processing_rules is not None:
            self.processing_rules = processing_rules
        if is_enabled is not None:
            self.is_enabled = is_enabled

        self.updated_at = utc_now()
        self.version += 1
        return self

    def enable(self) -> "AgentConfiguration":
        return self.update_configuration(is_enabled=True)

    def disable(self) -> "AgentConfiguration":
        return self.update_configuration(is_enabled=False)

    def __repr__(self) -> str:
        return (
            f"AgentConfiguration(agent_type={self.agent_type!r}, "
            f"autonomy_level={self.autonomy_level.value}, version={self.version})"
        )
