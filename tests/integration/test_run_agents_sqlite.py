"""Agent runs for a queue item stored against a real database."""

from unittest.mock import patch

import pytest
from sqlalchemy import func, select
from temporalio.testing import ActivityEnvironment

from curation.domain.extracted_data import ExtractedData
from curation.domain.value_objects import AutonomyLevel
from curation.schemas.agent_output import AgentOutput, ExtractionCandidate
from curation.services.agent_configuration_service import AgentConfigurationService
from curation.services.agent_runner import AgentRegistry
from curation.services.processing_queue_service import ProcessingQueueService
from curation.temporal.activities.queue_activities import run_agents_for_item

MODULE = "curation.temporal.activities.queue_activities"


class ScriptedRunner:
    """Emits one extraction per call after failing the first ``failures`` calls."""

    def __init__(self, data_type: str, failures: int = 0):
        self.data_type = data_type
        self.failures = failures
        self.calls = 0

    async def run(self, file_path, configuration) -> AgentOutput:
        self.calls += 1
        if self.calls <= self.failures:
            raise RuntimeError(f"{configuration.agent_type} model offline")
        return AgentOutput(
            source_file_path=file_path,
            extractions=[
                ExtractionCandidate(data_type=self.data_type, data_value="12.4", data_uom="km", confidence_score=0.9)
            ],
        )


@pytest.fixture
def runners():
    saved = dict(AgentRegistry._runners)
    AgentRegistry.clear()
    statistics = ScriptedRunner("distance", failures=1)
    blogging = ScriptedRunner("word_count")
    AgentRegistry.add("Statistics", statistics)
    AgentRegistry.add("Blogging", blogging)
    yield statistics, blogging
    AgentRegistry.clear()
    AgentRegistry._runners.update(saved)


async def _claimed_item(session_factory) -> str:
    async with session_factory() as session:
        configurations = AgentConfigurationService(session)
        for agent_type in ("Statistics", "Blogging"):
            await configurations.create(agent_type, AutonomyLevel.REVIEW_REQUIRED, 0.75, '{"model": "llama3.2"}')
        queue = ProcessingQueueService(session)
        item = await queue.enqueue("/journal/2024-05-01.md", "msg-1")
        await queue.claim(item.id)
        return str(item.id)


async def _extraction_count(session_factory) -> int:
    async with session_factory() as session:
        return (await session.execute(select(func.count()).select_from(ExtractedData))).scalar_one()


# Blogging sorts before Statistics, so its output is staged when Statistics fails
class TestRunAgentsAgainstDatabase:

    @pytest.mark.asyncio
    async def test_failed_agent_discards_output_and_rerun_is_not_duplicated(self, session_factory, runners):
        statistics, blogging = runners
        item_id = await _claimed_item(session_factory)

        with patch(f"{MODULE}.async_session_maker", session_factory):
            with pytest.raises(RuntimeError, match="Statistics model offline"):
                await ActivityEnvironment().run(run_agents_for_item, item_id)
            assert await _extraction_count(session_factory) == 0

            first = await ActivityEnvironment().run(run_agents_for_item, item_id)
            assert first["extractions"] == 2
            assert await _extraction_count(session_factory) == 2

            again = await ActivityEnvironment().run(run_agents_for_item, item_id)

        assert again["agents"] == []
        assert await _extraction_count(session_factory) == 2
        assert (statistics.calls, blogging.calls) == (2, 2)
