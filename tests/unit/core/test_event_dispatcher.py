"""Tests for the in-process event dispatcher."""

import uuid
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from curation.core.event_dispatcher import EventDispatcher
from curation.domain.events import ProposalApproved


def _approved() -> ProposalApproved:
    return ProposalApproved(
        proposal_id=uuid.uuid4(),
        agent_type="Blogging",
        output_destination="/out.md",
        approved_at=datetime.now(timezone.utc),
    )


class TestEventDispatcher:

    @pytest.mark.asyncio
    async def test_dispatches_to_handlers_for_event_type(self):
        dispatcher = EventDispatcher()
        received = []

        @dispatcher.register("ProposalApproved")
        async def on_approved(event):
            received.append(event)

        other = AsyncMock()
        dispatcher.subscribe("ProposalCreated", other)

        event = _approved()
        await dispatcher.dispatch(event)

        assert received == [event]
        other.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_handlers_is_not_an_error(self):
        await EventDispatcher().dispatch(_approved())

    @pytest.mark.asyncio
    async def test_handler_failure_propagates(self):
        dispatcher = EventDispatcher()
        dispatcher.subscribe("ProposalApproved", AsyncMock(side_effect=RuntimeError("publish failed")))

        with pytest.raises(RuntimeError, match="publish failed"):
            await dispatcher.dispatch(_approved())
