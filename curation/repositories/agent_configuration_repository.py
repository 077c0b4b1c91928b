"""Repository for agent configurations and per-agent processing statistics."""

from typing import List, Optional

from sqlalchemy import Numeric, case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from curation.database.models import AgentConfiguration, ElevationProposal, ExtractedData
from curation.domain.value_objects import ReviewStatus
from curation.repositories.base_repository import BaseRepository
from curation.schemas.reporting import AgentProcessingStats


class AgentConfigurationRepository(BaseRepository[AgentConfiguration]):
    """Repository for AgentConfiguration database operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, AgentConfiguration)

    async def get_by_agent_type(self, agent_type: str) -> Optional[AgentConfiguration]:
        """Look up the configuration of one agent type.

        Args:
            agent_type: Agent type name, e.g. "Statistics"

        Returns:
            The configuration, or None if the agent type is not configured
        """
        stmt = select(AgentConfiguration).where(AgentConfiguration.agent_type == agent_type)
        return await self._one_or_none(stmt)

    async def list_all(self) -> List[AgentConfiguration]:
        stmt = select(AgentConfiguration).order_by(AgentConfiguration.agent_type)
        return await self._all(stmt)

    async def get_enabled(self) -> List[AgentConfiguration]:
        """Enabled configurations ordered by agent type."""
        stmt = (
            select(AgentConfiguration)
            .where(AgentConfiguration.is_enabled.is_(True))
            .order_by(AgentConfiguration.agent_type)
        )
        return await self._all(stmt)

    async def processing_stats(self, agent_type: Optional[str] = None) -> List[AgentProcessingStats]:
        """Proposal and extraction totals per configured agent.

        Proposals and extractions are aggregated separately before the join
        so neither count is multiplied by the other.

        Args:
            agent_type: Restrict the report to one agent type

        Returns:
            One row per configuration, agents with no output included
        """
        proposals = (
            select(
                ElevationProposal.agent_configuration_id.label("configuration_id"),
                func.count(ElevationProposal.id).label("total"),
                func.count(
                    case((ElevationProposal.review_status == ReviewStatus.APPROVED, ElevationProposal.id))
                ).label("approved"),
                func.avg(ElevationProposal.confidence_score, type_=Numeric()).label("average_confidence"),
            )
            .group_by(ElevationProposal.agent_configuration_id)
            .subquery()
        )
        extractions = (
            select(
                ExtractedData.agent_configuration_id.label("configuration_id"),
                func.count(ExtractedData.id).label("total"),
                func.avg(ExtractedData.confidence_score, type_=Numeric()).label("average_confidence"),
            )
            .group_by(ExtractedData.agent_configuration_id)
            .subquery()
        )
        stmt = (
            select(
                AgentConfiguration.agent_type,
                AgentConfiguration.is_enabled,
                AgentConfiguration.autonomy_level,
                func.coalesce(proposals.c.total, 0).label("total_proposals"),
                func.coalesce(extractions.c.total, 0).label("total_extractions"),
                func.coalesce(proposals.c.approved, 0).label("approved_proposals"),
                proposals.c.average_confidence.label("average_proposal_confidence"),
                extractions.c.average_confidence.label("average_extraction_confidence"),
            )
            .outerjoin(proposals, proposals.c.configuration_id == AgentConfiguration.id)
            .outerjoin(extractions, extractions.c.configuration_id == AgentConfiguration.id)
            .order_by(AgentConfiguration.agent_type)
        )
        if agent_type is not None:
            stmt = stmt.where(AgentConfiguration.agent_type == agent_type)

        return [AgentProcessingStats.model_validate(row._mapping) for row in await self._rows(stmt)]
