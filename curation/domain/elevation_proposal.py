"""Candidate curated replacements for source content, gated by human review."""

import uuid
from datetime import datetime
from typing import Optional, Union

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, Text, TIMESTAMP, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from curation.core.exceptions import InvalidStateError
from curation.database.base import Base
from curation.database.column_types import ConfidenceScoreType, text_enum
from curation.domain.base import EventSourceMixin, require_id, require_text, utc_now
from curation.domain.events import ProposalApproved, ProposalCreated
from curation.domain.value_objects import ConfidenceScore, RawConfidence, ReviewStatus


class ElevationProposal(EventSourceMixin, Base):
    """Pending -> Approved | Denied | Expired. Terminal states are final.

    ``reviewed_at`` is set exactly when the proposal leaves Pending. Which
    proposals get approved straight away is decided by the caller from the
    agent's autonomy level; the proposal itself never looks at it.
    """

    __tablename__ = "elevation_proposals"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    source_file_path: Mapped[str] = mapped_column(String(500), nullable=False)
    agent_type: Mapped[str] = mapped_column(String(100), nullable=False)
    original_content: Mapped[str] = mapped_column(Text, nullable=False)
    curated_content: Mapped[str] = mapped_column(Text, nullable=False)
    confidence_score: Mapped[ConfidenceScore] = mapped_column(ConfidenceScoreType, nullable=False)
    agent_rationale: Mapped[str] = mapped_column(Text, nullable=False)
    review_status: Mapped[ReviewStatus] = mapped_column(text_enum(ReviewStatus), nullable=False)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    reviewer_comments: Mapped[Optional[str]] = mapped_column(String(2000), nullable=True)
    output_destination: Mapped[str] = mapped_column(String(500), nullable=False)
    agent_configuration_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("agent_configurations.id", ondelete="RESTRICT"),
        nullable=False,
    )
    processing_metadata: Mapped[str] = mapped_column(Text, nullable=False, default="{}")

    __table_args__ = (
        CheckConstraint(
            "confidence_score >= 0.0 AND confidence_score <= 1.0",
            name="ck_elevation_proposals_confidence_score",
        ),
        CheckConstraint(
            "review_status IN ('Pending', 'Approved', 'Denied', 'Expired')",
            name="ck_elevation_proposals_review_status",
        ),
        CheckConstraint(
            "(review_status = 'Pending' AND reviewed_at IS NULL) OR "
            "(review_status != 'Pending' AND reviewed_at IS NOT NULL)",
            name="ck_elevation_proposals_reviewed_at_logic",
        ),
        Index("ix_elevation_proposals_status_created_at", "review_status", "created_at"),
        Index("ix_elevation_proposals_agent_type", "agent_type"),
        Index("ix_elevation_proposals_source_file_path", "source_file_path"),
        Index("ix_elevation_proposals_agent_configuration_id", "agent_configuration_id"),
    )

    __mapper_args__ = {"version_id_col": review_status, "version_id_generator": False}

    @classmethod
    def create(
        cls,
        source_file_path: str,
        agent_type: str,
        original_content: str,
        curated_content: str,
        confidence_score: Union[ConfidenceScore, RawConfidence],
        agent_rationale: str,
        output_destination: str,
        agent_configuration_id: uuid.UUID,
        processing_metadata: str = "{}",
    ) -> "ElevationProposal":
        require_text(source_file_path, "Source file path")
        require_text(agent_type, "Agent type")
        require_text(original_content, "Original content")
        require_text(curated_content, "Curated content")
        require_text(agent_rationale, "Agent rationale")
        require_text(output_destination, "Output destination")
        require_id(agent_configuration_id, "Agent configuration ID")

        proposal = cls(
            id=uuid.uuid4(),
            source_file_path=source_file_path,
            agent_type=agent_type,
            original_content=original_content,
            curated_content=curated_content,
            confidence_score=ConfidenceScore.coerce(confidence_score),
            agent_rationale=agent_rationale,
            review_status=ReviewStatus.PENDING,
            created_at=utc_now(),
            reviewed_at=None,
            output_destination=output_destination,
            agent_configuration_id=agent_configuration_id,
            processing_metadata=processing_metadata or "{}",
        )
        proposal.record_event(
            ProposalCreated(
                proposal_id=proposal.id,
                agent_type=proposal.agent_type,
                source_file_path=proposal.source_file_path,
                confidence_score=proposal.confidence_score.value,
                created_at=proposal.created_at,
            )
        )
        return proposal

    @property
    def is_pending(self) -> bool:
        return self.review_status is ReviewStatus.PENDING

    def _ensure_pending(self, action: str) -> None:
        if not self.is_pending:
            raise InvalidStateError(
                f"Cannot {action} proposal with status {self.review_status.value}",
                current_state=self.review_status,
            )

    def approve(self, reviewer_comments: Optional[str] = None) -> ProposalApproved:
        self._ensure_pending("approve")

        self.review_status = ReviewStatus.APPROVED
        self.reviewed_at = utc_now()
        self.reviewer_comments = reviewer_comments

        return self.record_event(
            ProposalApproved(
                proposal_id=self.id,
                agent_type=self.agent_type,
                output_destination=self.output_destination,
                reviewer_comments=self.reviewer_comments,
                approved_at=self.reviewed_at,
            )
        )

    def deny(self, reviewer_comments: Optional[str] = None) -> None:
        self._ensure_pending("deny")

        self.review_status = ReviewStatus.DENIED
        self.reviewed_at = utc_now()
        self.reviewer_comments = reviewer_comments

    def expire(self) -> None:
        self._ensure_pending("expire")

        self.review_status = ReviewStatus.EXPIRED
        self.reviewed_at = utc_now()

    def __repr__(self) -> str:
        return (
            f"ElevationProposal(source_file_path={self.source_file_path!r}, "
            f"review_status={self.review_status.value}, confidence={self.confidence_score})"
        )
