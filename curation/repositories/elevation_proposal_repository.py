"""Repository for elevation proposals and the pending-review summary."""

from datetime import datetime
from typing import List
from uuid import UUID

from sqlalchemy import Numeric, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from curation.database.models import ElevationProposal
from curation.domain.value_objects import ReviewStatus
from curation.repositories.base_repository import BaseRepository
from curation.schemas.reporting import PendingProposalSummary


class ElevationProposalRepository(BaseRepository[ElevationProposal]):
    """Repository for ElevationProposal database operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, ElevationProposal)

    async def get_by_status(
        self, status: ReviewStatus, skip: int = 0, limit: int = 100
    ) -> List[ElevationProposal]:
        """Page through proposals in one review status, oldest first.

        Args:
            status: Review status to filter on
            skip: Rows to skip
            limit: Most rows returned

        Returns:
            Matching proposals
        """
        stmt = (
            select(ElevationProposal)
            .where(ElevationProposal.review_status == status)
            .order_by(ElevationProposal.created_at)
            .offset(skip)
            .limit(limit)
        )
        return await self._all(stmt)

    async def get_by_configuration_id(self, configuration_id: UUID) -> List[ElevationProposal]:
        """Proposals produced under one agent configuration.

        Args:
            configuration_id: Agent configuration id

        Returns:
            Proposals in creation order, whatever their review status
        """
        stmt = (
            select(ElevationProposal)
            .where(ElevationProposal.agent_configuration_id == configuration_id)
            .order_by(ElevationProposal.created_at)
        )
        return await self._all(stmt)

    async def get_stale_pending(self, created_before: datetime, limit: int = 500) -> List[ElevationProposal]:
        """Pending proposals created before the cutoff.

        Args:
            created_before: Exclusive upper bound on created_at
            limit: Most proposals returned per sweep

        Returns:
            Proposals oldest first
        """
        stmt = (
            select(ElevationProposal)
            .where(
                ElevationProposal.review_status == ReviewStatus.PENDING,
                ElevationProposal.created_at < created_before,
            )
            .order_by(ElevationProposal.created_at)
            .limit(limit)
        )
        return await self._all(stmt)

    async def pending_summary(self) -> List[PendingProposalSummary]:
        """Pending count, average confidence and age range per agent type."""
        stmt = (
            select(
                ElevationProposal.agent_type,
                func.count().label("pending_count"),
                func.avg(ElevationProposal.confidence_score, type_=Numeric()).label("average_confidence"),
                func.min(ElevationProposal.created_at).label("oldest_proposal"),
                func.max(ElevationProposal.created_at).label("newest_proposal"),
            )
            .where(ElevationProposal.review_status == ReviewStatus.PENDING)
            .group_by(ElevationProposal.agent_type)
            .order_by(ElevationProposal.agent_type)
        )
        return [PendingProposalSummary.model_validate(row._mapping) for row in await self._rows(stmt)]
