"""Human review of elevation proposals."""

from datetime import datetime, timedelta
from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from curation.core.config import settings
from curation.core.event_dispatcher import EventDispatcher
from curation.core.exceptions import ConcurrencyError, NotFoundError
from curation.database.unit_of_work import UnitOfWork
from curation.domain.base import utc_now
from curation.domain.elevation_proposal import ElevationProposal
from curation.domain.value_objects import ReviewStatus
from curation.repositories.agent_configuration_repository import AgentConfigurationRepository
from curation.repositories.elevation_proposal_repository import ElevationProposalRepository
from curation.schemas.reporting import AgentProcessingStats, PendingProposalSummary
from curation.utils.logging import get_logger

LOGGER = get_logger(__name__)


class ReviewService:
    """Approve, deny and expire proposals, and report on the review backlog."""

    def __init__(
        self,
        session: AsyncSession,
        dispatcher: Optional[EventDispatcher] = None,
        review_timeout_hours: Optional[int] = None,
    ):
        self.session = session
        self.repo = ElevationProposalRepository(session)
        self.config_repo = AgentConfigurationRepository(session)
        self.uow = UnitOfWork(session, dispatcher)
        self.review_timeout = timedelta(
            hours=review_timeout_hours or settings.review_timeout_hours
        )

    async def get(self, proposal_id: UUID) -> ElevationProposal:
        """Load a proposal.

        Args:
            proposal_id: Proposal id

        Returns:
            The proposal

        Raises:
            NotFoundError: no proposal with that id
        """
        proposal = await self.repo.get_by_id(proposal_id)
        if proposal is None:
            raise NotFoundError(f"Elevation proposal {proposal_id} not found")
        return proposal

    async def approve(self, proposal_id: UUID, reviewer_comments: Optional[str] = None) -> ElevationProposal:
        """Approve a pending proposal.

        Args:
            proposal_id: Proposal id
            reviewer_comments: Optional note stored with the decision

        Returns:
            The approved proposal

        Raises:
            NotFoundError: no proposal with that id
            InvalidStateError: the proposal was already reviewed or expired
            ConcurrencyError: another reviewer decided first
        """
        proposal = await self.get(proposal_id)
        proposal.approve(reviewer_comments)
        await self.uow.commit()
        LOGGER.info(f"Approved proposal {proposal.id} for {proposal.output_destination}")
        return proposal

    async def deny(self, proposal_id: UUID, reviewer_comments: Optional[str] = None) -> ElevationProposal:
        """Deny a pending proposal. Same arguments and errors as ``approve``."""
        proposal = await self.get(proposal_id)
        proposal.deny(reviewer_comments)
        await self.uow.commit()
        LOGGER.info(f"Denied proposal {proposal.id}")
        return proposal

    async def expire_stale(self, now: Optional[datetime] = None) -> int:
        """Expire pending proposals older than the review timeout.

        Each proposal is committed on its own, so one reviewed while the
        sweep runs is skipped without holding back the rest.

        Args:
            now: Reference time, defaults to the current time

        Returns:
            Number of proposals expired
        """
        cutoff = (now or utc_now()) - self.review_timeout
        stale_ids = [proposal.id for proposal in await self.repo.get_stale_pending(cutoff)]

        expired = 0
        for proposal_id in stale_ids:
            proposal = await self.repo.get_by_id(proposal_id)
            if proposal is None or not proposal.is_pending:
                continue
            proposal.expire()
            try:
                await self.uow.commit()
            except ConcurrencyError:
                LOGGER.info(f"Proposal {proposal_id} was reviewed during the sweep; left as is")
                continue
            expired += 1

        LOGGER.info(f"Expired {expired} proposals pending since before {cutoff.isoformat()}")
        return expired

    async def list_by_status(
        self, status: ReviewStatus = ReviewStatus.PENDING, skip: int = 0, limit: int = 100
    ) -> List[ElevationProposal]:
        """Page through proposals in one review status, oldest first.

        Args:
            status: Review status to filter on
            skip: Rows to skip
            limit: Most rows returned

        Returns:
            Matching proposals
        """
        return await self.repo.get_by_status(status, skip=skip, limit=limit)

    async def list_pending(self, skip: int = 0, limit: int = 100) -> List[ElevationProposal]:
        return await self.list_by_status(ReviewStatus.PENDING, skip=skip, limit=limit)

    async def pending_summary(self) -> List[PendingProposalSummary]:
        """Pending proposal counts and oldest age per agent type."""
        return await self.repo.pending_summary()

    async def agent_stats(self, agent_type: Optional[str] = None) -> List[AgentProcessingStats]:
        """Per-agent extraction and proposal totals, optionally for one agent type."""
        return await self.config_repo.processing_stats(agent_type)
