"""Tests for domain event payloads."""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError as PydanticValidationError

from curation.domain.events import EVENT_TYPES, ProposalApproved, ProposalCreated


class TestDomainEvents:

    def test_payload_round_trips_through_registry(self):
        event = ProposalCreated(
            proposal_id=uuid.uuid4(),
            agent_type="Blogging",
            source_file_path="/n.md",
            confidence_score=Decimal("0.85"),
            created_at=datetime(2024, 5, 1, tzinfo=timezone.utc),
        )

        payload = event.to_payload()
        restored = EVENT_TYPES[event.event_type].model_validate(payload)

        assert restored == event
        assert restored.aggregate_id == event.proposal_id
        assert restored.occurred_at == event.created_at

    def test_events_are_frozen(self):
        event = ProposalApproved(
            proposal_id=uuid.uuid4(),
            agent_type="Blogging",
            output_destination="/out.md",
            approved_at=datetime.now(timezone.utc),
        )
        with pytest.raises(PydanticValidationError):
            event.agent_type = "Other"

    def test_registry_covers_all_event_types(self):
        assert set(EVENT_TYPES) == {"DataExtracted", "ProposalCreated", "ProposalApproved"}
