"""Tests for queue activities, run in Temporal's activity test environment."""

import uuid
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from temporalio.testing import ActivityEnvironment

from curation.domain.processing_queue import ProcessingQueueItem
from curation.domain.value_objects import ProcessingStatus
from curation.schemas.agent_output import AgentOutput, CurationResult
from curation.services.agent_runner import AgentRegistry
from curation.temporal.activities import queue_activities
from curation.temporal.activities.queue_activities import (
    claim_queue_item,
    complete_queue_item,
    fail_queue_item,
    get_queue_item,
    retry_queue_item,
    run_agents_for_item,
)
from curation.temporal.core.activity_registry import ActivityRegistry

MODULE = "curation.temporal.activities.queue_activities"


@pytest.fixture
def session_maker():
    session = MagicMock()
    maker = MagicMock()
    maker.return_value.__aenter__ = AsyncMock(return_value=session)
    maker.return_value.__aexit__ = AsyncMock(return_value=False)
    with patch(f"{MODULE}.async_session_maker", maker):
        yield session


@pytest.fixture
def queue_service(session_maker):
    service = AsyncMock()
    with patch(f"{MODULE}.ProcessingQueueService", return_value=service):
        yield service


@pytest.fixture
def item() -> ProcessingQueueItem:
    return ProcessingQueueItem.create("/journal/2024-05-01.md", "msg-1")


class TestQueueBookkeepingActivities:

    @pytest.mark.asyncio
    async def test_claim(self, queue_service, item):
        item.start_processing()
        queue_service.claim.return_value = item

        result = await ActivityEnvironment().run(claim_queue_item, str(item.id))

        queue_service.claim.assert_awaited_once_with(item.id, None)
        assert result["status"] == "Processing"
        assert result["file_path"] == item.file_path

    @pytest.mark.asyncio
    async def test_get_snapshot(self, queue_service, item):
        item.retry_count = 2
        queue_service.get.return_value = item

        result = await ActivityEnvironment().run(get_queue_item, str(item.id))

        assert result == {"item_id": str(item.id), "status": "Queued", "retry_count": 2}

    @pytest.mark.asyncio
    async def test_claim_passes_expected_attempt(self, queue_service, item):
        item.start_processing()
        queue_service.claim.return_value = item

        await ActivityEnvironment().run(claim_queue_item, str(item.id), 1)

        queue_service.claim.assert_awaited_once_with(item.id, 1)

    @pytest.mark.asyncio
    async def test_fail_passes_expected_attempt(self, queue_service, item):
        queue_service.fail.return_value = True

        result = await ActivityEnvironment().run(fail_queue_item, str(item.id), "agent crashed", 0)

        queue_service.fail.assert_awaited_once_with(item.id, "agent crashed", 0)
        assert result["can_retry"] is True

    @pytest.mark.asyncio
    async def test_complete(self, queue_service, item):
        item.start_processing()
        item.complete_processing()
        queue_service.complete.return_value = item

        result = await ActivityEnvironment().run(complete_queue_item, str(item.id))

        assert result == {"item_id": str(item.id), "status": "Completed"}

    @pytest.mark.asyncio
    async def test_fail_reports_retry_budget(self, queue_service, item):
        queue_service.fail.return_value = False

        result = await ActivityEnvironment().run(fail_queue_item, str(item.id), "agent crashed")

        queue_service.fail.assert_awaited_once_with(item.id, "agent crashed", None)
        assert result["can_retry"] is False

    @pytest.mark.asyncio
    async def test_retry(self, queue_service, item):
        item.start_processing()
        item.fail_processing("boom")
        item.retry()
        queue_service.retry.return_value = item

        result = await ActivityEnvironment().run(retry_queue_item, str(item.id))

        assert result["status"] == ProcessingStatus.QUEUED.value
        assert result["retry_count"] == 1


@pytest.fixture
def runner():
    runner = MagicMock()
    runner.run = AsyncMock(side_effect=lambda path, configuration: AgentOutput(source_file_path=path))
    saved = dict(AgentRegistry._runners)
    AgentRegistry.clear()
    AgentRegistry.add("Statistics", runner)
    AgentRegistry.add("Tagging", runner)
    yield runner
    AgentRegistry.clear()
    AgentRegistry._runners.update(saved)


@pytest.fixture
def curation():
    curation = AsyncMock()
    curation.stage_agent_output.side_effect = lambda agent_type, output: CurationResult(
        agent_type=agent_type, extraction_ids=[uuid.uuid4()], proposal_id=uuid.uuid4()
    )
    return curation


async def _run_agents(item, configurations, curation):
    config_repo = AsyncMock()
    config_repo.get_enabled.return_value = configurations
    with patch(f"{MODULE}.AgentConfigurationRepository", return_value=config_repo), \
            patch(f"{MODULE}.CurationService", return_value=curation):
        return await ActivityEnvironment().run(run_agents_for_item, str(item.id))


class TestRunAgentsForItem:

    @pytest.mark.asyncio
    async def test_runs_registered_agents_only(self, queue_service, item, runner, curation, make_configuration):
        queue_service.get.return_value = item
        statistics = make_configuration(agent_type="Statistics")
        blogging = make_configuration(agent_type="Blogging")

        result = await _run_agents(item, [statistics, blogging], curation)

        runner.run.assert_awaited_once_with(item.file_path, statistics)
        curation.stage_agent_output.assert_awaited_once_with(
            "Statistics", AgentOutput(source_file_path=item.file_path)
        )
        assert result["extractions"] == 1
        assert result["proposals"] == 1
        assert len(result["agents"]) == 1

    @pytest.mark.asyncio
    async def test_all_output_is_committed_once(self, queue_service, item, runner, curation, make_configuration):
        queue_service.get.return_value = item
        configurations = [make_configuration(agent_type="Statistics"), make_configuration(agent_type="Tagging")]

        result = await _run_agents(item, configurations, curation)

        assert curation.stage_agent_output.await_count == 2
        curation.commit.assert_awaited_once()
        curation.record_agent_output.assert_not_awaited()
        assert item.completed_agents == ["Statistics", "Tagging"]
        assert result["extractions"] == 2

    @pytest.mark.asyncio
    async def test_failing_agent_commits_nothing(self, queue_service, item, runner, curation, make_configuration):
        queue_service.get.return_value = item
        configurations = [make_configuration(agent_type="Statistics"), make_configuration(agent_type="Tagging")]
        runner.run.side_effect = [AgentOutput(source_file_path=item.file_path), RuntimeError("model offline")]

        with pytest.raises(RuntimeError, match="model offline"):
            await _run_agents(item, configurations, curation)

        curation.commit.assert_not_awaited()
        assert item.completed_agents == []

    @pytest.mark.asyncio
    async def test_rerun_skips_agents_already_stored(self, queue_service, item, runner, curation, make_configuration):
        item.record_completed_agents(["Statistics"])
        queue_service.get.return_value = item
        statistics = make_configuration(agent_type="Statistics")
        tagging = make_configuration(agent_type="Tagging")

        result = await _run_agents(item, [statistics, tagging], curation)

        runner.run.assert_awaited_once_with(item.file_path, tagging)
        assert [a["agent_type"] for a in result["agents"]] == ["Tagging"]
        assert item.completed_agents == ["Statistics", "Tagging"]

    @pytest.mark.asyncio
    async def test_nothing_left_to_run(self, queue_service, item, runner, curation, make_configuration):
        item.record_completed_agents(["Statistics"])
        queue_service.get.return_value = item

        result = await _run_agents(item, [make_configuration(agent_type="Statistics")], curation)

        runner.run.assert_not_awaited()
        curation.commit.assert_not_awaited()
        assert result["agents"] == []

    def test_activities_are_registered(self):
        names = set(ActivityRegistry.get_all_activities())
        assert {
            "queue:get_queue_item",
            "queue:claim_queue_item",
            "queue:run_agents_for_item",
            "queue:complete_queue_item",
            "queue:fail_queue_item",
            "queue:retry_queue_item",
        } <= names
        assert queue_activities.claim_queue_item in ActivityRegistry.get_by_category("queue")
