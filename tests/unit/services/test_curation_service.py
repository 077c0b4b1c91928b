"""Tests for recording agent output through the autonomy policy."""

from unittest.mock import AsyncMock

import pytest

from curation.core.exceptions import NotFoundError
from curation.domain.elevation_proposal import ElevationProposal
from curation.domain.extracted_data import ExtractedData
from curation.domain.value_objects import AutonomyLevel, ReviewStatus
from curation.schemas.agent_output import AgentOutput, ExtractionCandidate, ProposalCandidate
from curation.services.autonomy import ReviewDecision
from curation.services.curation_service import CurationService


def _output(confidence: float = 0.9, with_proposal: bool = True) -> AgentOutput:
    return AgentOutput(
        source_file_path="/journal/2024-05-01.md",
        extractions=[
            ExtractionCandidate(data_type="distance", data_value="12.4", data_uom="km", confidence_score=0.95),
            ExtractionCandidate(data_type="pace", data_value="5:10", data_uom="min/km", confidence_score=0.7),
        ],
        proposal=ProposalCandidate(
            original_content="ran far today",
            curated_content="Ran 12.4 km at 5:10/km.",
            confidence_score=confidence,
            agent_rationale="Normalised units",
            output_destination="/blog/2024-05-01.md",
        ) if with_proposal else None,
    )


@pytest.fixture
def service(mock_session) -> CurationService:
    service = CurationService(mock_session)
    service.config_repo = AsyncMock()
    service.extraction_repo = AsyncMock()
    service.proposal_repo = AsyncMock()
    service.uow = AsyncMock()
    service.uow.track = lambda entity: service.tracked.append(entity)
    service.tracked = []
    return service


def _added(repo) -> list:
    return [call.args[0] for call in repo.add.await_args_list]


class TestRecordAgentOutput:

    @pytest.mark.asyncio
    async def test_review_required_leaves_proposal_pending(self, service, make_configuration):
        configuration = make_configuration(autonomy_level=AutonomyLevel.REVIEW_REQUIRED)
        service.config_repo.get_by_agent_type.return_value = configuration

        result = await service.record_agent_output("Statistics", _output(confidence=0.99))

        extractions = _added(service.extraction_repo)
        assert len(extractions) == 2
        assert all(isinstance(e, ExtractedData) for e in extractions)
        assert all(e.agent_configuration_id == configuration.id for e in extractions)
        assert result.extraction_ids == [e.id for e in extractions]

        (proposal,) = _added(service.proposal_repo)
        assert proposal.review_status is ReviewStatus.PENDING
        assert result.proposal_id == proposal.id
        assert result.review_decision == ReviewDecision.REQUIRE_REVIEW.value
        service.uow.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_semi_autonomous_approves_on_creation(self, service, make_configuration):
        service.config_repo.get_by_agent_type.return_value = make_configuration(
            autonomy_level=AutonomyLevel.SEMI_AUTONOMOUS, confidence_threshold=0.8
        )

        result = await service.record_agent_output("Statistics", _output(confidence=0.85))

        (proposal,) = _added(service.proposal_repo)
        assert proposal.review_status is ReviewStatus.APPROVED
        assert proposal.reviewed_at is not None
        assert "Auto-approved" in proposal.reviewer_comments
        assert result.review_decision == ReviewDecision.AUTO_APPROVE.value

    @pytest.mark.asyncio
    async def test_semi_autonomous_below_threshold_needs_review(self, service, make_configuration):
        service.config_repo.get_by_agent_type.return_value = make_configuration(
            autonomy_level=AutonomyLevel.SEMI_AUTONOMOUS, confidence_threshold=0.8
        )

        await service.record_agent_output("Statistics", _output(confidence=0.6))

        (proposal,) = _added(service.proposal_repo)
        assert proposal.is_pending

    @pytest.mark.asyncio
    async def test_fully_autonomous_bypasses_storage_but_keeps_events(self, service, make_configuration):
        service.config_repo.get_by_agent_type.return_value = make_configuration(
            autonomy_level=AutonomyLevel.FULLY_AUTONOMOUS, confidence_threshold=0.8
        )

        result = await service.record_agent_output("Statistics", _output(confidence=0.9))

        service.proposal_repo.add.assert_not_awaited()
        (proposal,) = service.tracked
        assert isinstance(proposal, ElevationProposal)
        assert proposal.review_status is ReviewStatus.APPROVED
        assert [e.event_type for e in proposal.domain_events] == ["ProposalCreated", "ProposalApproved"]
        assert result.review_decision == ReviewDecision.BYPASS_REVIEW.value

    @pytest.mark.asyncio
    async def test_disabled_agent_is_skipped(self, service, make_configuration):
        service.config_repo.get_by_agent_type.return_value = make_configuration(is_enabled=False)

        result = await service.record_agent_output("Statistics", _output())

        assert result.skipped is True
        service.extraction_repo.add.assert_not_awaited()
        service.uow.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_extractions_without_proposal(self, service, make_configuration):
        service.config_repo.get_by_agent_type.return_value = make_configuration()

        result = await service.record_agent_output("Statistics", _output(with_proposal=False))

        assert len(result.extraction_ids) == 2
        assert result.proposal_id is None
        service.proposal_repo.add.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_agent_type(self, service):
        service.config_repo.get_by_agent_type.return_value = None

        with pytest.raises(NotFoundError):
            await service.record_agent_output("Podcast", _output())

    @pytest.mark.asyncio
    async def test_staged_output_waits_for_explicit_commit(self, service, make_configuration):
        service.config_repo.get_by_agent_type.return_value = make_configuration()

        first = await service.stage_agent_output("Statistics", _output(with_proposal=False))
        second = await service.stage_agent_output("Statistics", _output())
        service.uow.commit.assert_not_awaited()

        await service.commit()

        service.uow.commit.assert_awaited_once()
        assert len(first.extraction_ids) + len(second.extraction_ids) == 4
