"""Tests for the elevation proposal review lifecycle."""

import uuid
from decimal import Decimal

import pytest

from curation.core.exceptions import ConfidenceRangeError, InvalidStateError, ValidationError
from curation.domain.elevation_proposal import ElevationProposal
from curation.domain.events import ProposalApproved, ProposalCreated
from curation.domain.value_objects import ReviewStatus


@pytest.fixture
def proposal(configuration_id) -> ElevationProposal:
    return ElevationProposal.create(
        "/n.md", "Stats", "orig", "curated", 0.85, "because X", "/out.md", configuration_id
    )


class TestElevationProposalCreate:

    def test_new_proposal_is_pending_with_one_event(self, proposal, configuration_id):
        assert proposal.review_status is ReviewStatus.PENDING
        assert proposal.reviewed_at is None
        assert proposal.is_pending

        events = proposal.domain_events
        assert len(events) == 1
        assert isinstance(events[0], ProposalCreated)
        assert events[0].proposal_id == proposal.id
        assert events[0].confidence_score == Decimal("0.85")
        assert events[0].agent_type == "Stats"

    @pytest.mark.parametrize(
        "field", ["source_file_path", "agent_type", "original_content", "curated_content", "agent_rationale", "output_destination"]
    )
    def test_rejects_empty_text(self, field, configuration_id):
        kwargs = dict(
            source_file_path="/n.md",
            agent_type="Stats",
            original_content="orig",
            curated_content="curated",
            confidence_score=0.85,
            agent_rationale="because X",
            output_destination="/out.md",
            agent_configuration_id=configuration_id,
        )
        kwargs[field] = "   "
        with pytest.raises(ValidationError):
            ElevationProposal.create(**kwargs)

    def test_rejects_nil_configuration_id(self):
        with pytest.raises(ValidationError):
            ElevationProposal.create("/n.md", "Stats", "o", "c", 0.5, "r", "/out.md", uuid.UUID(int=0))

    def test_rejects_out_of_range_confidence(self, configuration_id):
        with pytest.raises(ConfidenceRangeError):
            ElevationProposal.create("/n.md", "Stats", "o", "c", 1.5, "r", "/out.md", configuration_id)


class TestElevationProposalReview:

    def test_approve(self, proposal):
        event = proposal.approve("looks good")

        assert proposal.review_status is ReviewStatus.APPROVED
        assert proposal.reviewed_at is not None
        assert proposal.reviewer_comments == "looks good"
        assert isinstance(event, ProposalApproved)
        assert event.output_destination == "/out.md"
        assert event.approved_at == proposal.reviewed_at
        assert [type(e) for e in proposal.domain_events] == [ProposalCreated, ProposalApproved]

    def test_second_approve_fails_naming_status(self, proposal):
        proposal.approve("looks good")

        with pytest.raises(InvalidStateError, match="Approved") as exc_info:
            proposal.approve()
        assert exc_info.value.current_state is ReviewStatus.APPROVED
        assert len(proposal.domain_events) == 2

    def test_deny_emits_nothing(self, proposal):
        assert proposal.deny("off topic") is None

        assert proposal.review_status is ReviewStatus.DENIED
        assert proposal.reviewed_at is not None
        assert proposal.reviewer_comments == "off topic"
        assert len(proposal.domain_events) == 1

    def test_expire(self, proposal):
        proposal.expire()

        assert proposal.review_status is ReviewStatus.EXPIRED
        assert proposal.reviewed_at is not None
        assert proposal.review_status.is_terminal

    @pytest.mark.parametrize("first", ["approve", "deny", "expire"])
    @pytest.mark.parametrize("second", ["approve", "deny", "expire"])
    def test_decisions_are_final(self, proposal, first, second):
        getattr(proposal, first)()
        status = proposal.review_status
        reviewed_at = proposal.reviewed_at

        with pytest.raises(InvalidStateError, match=status.value):
            getattr(proposal, second)()
        assert proposal.review_status is status
        assert proposal.reviewed_at == reviewed_at


class TestEventBuffer:

    def test_clear_events_is_idempotent(self, proposal):
        proposal.clear_events()
        assert proposal.domain_events == ()
        proposal.clear_events()
        assert proposal.domain_events == ()

    def test_pull_events_drains_once(self, proposal):
        proposal.approve()

        pulled = proposal.pull_events()
        assert [type(e) for e in pulled] == [ProposalCreated, ProposalApproved]
        assert proposal.pull_events() == []

    def test_domain_events_is_read_only_view(self, proposal):
        assert isinstance(proposal.domain_events, tuple)


class TestElevationProposalMapping:

    def test_review_status_is_the_version_column(self):
        assert ElevationProposal.__mapper__.version_id_col is ElevationProposal.__table__.c.review_status
