"""Records agent output: extracted data and review-gated proposals."""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from curation.core.event_dispatcher import EventDispatcher
from curation.core.exceptions import NotFoundError
from curation.database.unit_of_work import UnitOfWork
from curation.domain.agent_configuration import AgentConfiguration
from curation.domain.elevation_proposal import ElevationProposal
from curation.domain.extracted_data import ExtractedData
from curation.repositories.agent_configuration_repository import AgentConfigurationRepository
from curation.repositories.elevation_proposal_repository import ElevationProposalRepository
from curation.repositories.extracted_data_repository import ExtractedDataRepository
from curation.schemas.agent_output import AgentOutput, CurationResult, ProposalCandidate
from curation.services.autonomy import ReviewDecision, review_decision
from curation.utils.logging import get_logger

LOGGER = get_logger(__name__)


class CurationService:
    """Persists what an agent produced for one source file."""

    def __init__(self, session: AsyncSession, dispatcher: Optional[EventDispatcher] = None):
        self.session = session
        self.config_repo = AgentConfigurationRepository(session)
        self.extraction_repo = ExtractedDataRepository(session)
        self.proposal_repo = ElevationProposalRepository(session)
        self.uow = UnitOfWork(session, dispatcher)

    async def record_agent_output(self, agent_type: str, output: AgentOutput) -> CurationResult:
        """Store extractions and route the proposal through the autonomy policy, then commit.

        Output from a disabled agent is dropped. A bypassed proposal is never
        stored, but its created and approved events are still published.

        Args:
            agent_type: Agent that produced the output
            output: Extractions and optional proposal for one source file

        Returns:
            Ids of what was stored and the review decision taken

        Raises:
            NotFoundError: the agent type has no configuration
        """
        result = await self.stage_agent_output(agent_type, output)
        if not result.skipped:
            await self.commit()
        return result

    async def stage_agent_output(self, agent_type: str, output: AgentOutput) -> CurationResult:
        """Same as ``record_agent_output`` but leaves the transaction open.

        Several agents' output can be staged and then stored together by one
        ``commit``, so a failed agent discards the others' rows too.
        """
        configuration = await self.config_repo.get_by_agent_type(agent_type)
        if configuration is None:
            raise NotFoundError(f"No configuration for agent type {agent_type}")
        if not configuration.is_enabled:
            LOGGER.info(f"Agent {agent_type} is disabled; ignoring output for {output.source_file_path}")
            return CurationResult(agent_type=agent_type, skipped=True)

        result = CurationResult(agent_type=agent_type)

        for candidate in output.extractions:
            data = ExtractedData.create(
                source_file_path=output.source_file_path,
                agent_type=agent_type,
                data_type=candidate.data_type,
                data_value=candidate.data_value,
                data_uom=candidate.data_uom,
                confidence_score=candidate.confidence_score,
                agent_configuration_id=configuration.id,
                context=candidate.context,
                processing_metadata=candidate.processing_metadata,
            )
            await self.extraction_repo.add(data)
            result.extraction_ids.append(data.id)

        if output.proposal is not None:
            proposal, decision = await self._route_proposal(
                configuration, output.source_file_path, output.proposal
            )
            result.proposal_id = proposal.id
            result.review_decision = decision.value

        LOGGER.info(
            f"Staged {len(result.extraction_ids)} extractions from {agent_type} for "
            f"{output.source_file_path} (proposal decision: {result.review_decision})"
        )
        return result

    async def commit(self) -> None:
        await self.uow.commit()

    async def _route_proposal(
        self,
        configuration: AgentConfiguration,
        source_file_path: str,
        candidate: ProposalCandidate,
    ):
        proposal = ElevationProposal.create(
            source_file_path=source_file_path,
            agent_type=configuration.agent_type,
            original_content=candidate.original_content,
            curated_content=candidate.curated_content,
            confidence_score=candidate.confidence_score,
            agent_rationale=candidate.agent_rationale,
            output_destination=candidate.output_destination,
            agent_configuration_id=configuration.id,
            processing_metadata=candidate.processing_metadata,
        )
        decision = review_decision(configuration, proposal.confidence_score)

        if decision is ReviewDecision.REQUIRE_REVIEW:
            await self.proposal_repo.add(proposal)
        elif decision is ReviewDecision.AUTO_APPROVE:
            proposal.approve(
                f"Auto-approved: confidence {proposal.confidence_score} meets threshold "
                f"{configuration.confidence_threshold}"
            )
            await self.proposal_repo.add(proposal)
        else:
            proposal.approve(
                f"Review bypassed: confidence {proposal.confidence_score} meets threshold "
                f"{configuration.confidence_threshold}"
            )
            self.uow.track(proposal)

        return proposal, decision
