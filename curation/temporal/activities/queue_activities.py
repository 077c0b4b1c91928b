"""Activities that move processing queue items through their lifecycle and run agents.

The bookkeeping activities take the retry count the workflow last saw, so a
retried delivery of a claim or fail that already landed is recognised and
not applied twice.
"""

from typing import Dict, List, Optional
from uuid import UUID

from temporalio import activity

from curation.database.base import async_session_maker
from curation.repositories.agent_configuration_repository import AgentConfigurationRepository
from curation.services.agent_runner import AgentRegistry
from curation.services.curation_service import CurationService
from curation.services.processing_queue_service import ProcessingQueueService
from curation.temporal.core.activity_registry import ActivityRegistry


@ActivityRegistry.register("queue", "get_queue_item")
@activity.defn
async def get_queue_item(item_id: str) -> Dict:
    """Snapshot of the item's status and retry count."""
    async with async_session_maker() as session:
        item = await ProcessingQueueService(session).get(UUID(item_id))
        return {
            "item_id": str(item.id),
            "status": item.status.value,
            "retry_count": item.retry_count,
        }


@ActivityRegistry.register("queue", "claim_queue_item")
@activity.defn
async def claim_queue_item(item_id: str, expected_retry_count: Optional[int] = None) -> Dict:
    """Move a queued (or failed) item to Processing."""
    async with async_session_maker() as session:
        item = await ProcessingQueueService(session).claim(UUID(item_id), expected_retry_count)
        activity.logger.info(
            f"Claimed {item.file_path}",
            extra={"item_id": item_id, "retry_count": item.retry_count},
        )
        return {
            "item_id": str(item.id),
            "file_path": item.file_path,
            "status": item.status.value,
            "retry_count": item.retry_count,
        }


@ActivityRegistry.register("queue", "run_agents_for_item")
@activity.defn
async def run_agents_for_item(item_id: str) -> Dict:
    """Run every enabled agent that has a registered runner over the item's file.

    All agents' output is stored in one transaction together with the list of
    agents that produced it. If any agent fails nothing is stored, and agents
    recorded by an earlier successful run are skipped.
    """
    async with async_session_maker() as session:
        item = await ProcessingQueueService(session).get(UUID(item_id))
        configurations = await AgentConfigurationRepository(session).get_enabled()
        curation = CurationService(session)

        done = set(item.completed_agents)
        results: List[Dict] = []
        registered = set(AgentRegistry.registered_types())
        for configuration in configurations:
            agent_type = configuration.agent_type
            if agent_type in done:
                activity.logger.info(
                    f"Output from {agent_type} already stored", extra={"item_id": item_id}
                )
                continue
            if agent_type not in registered:
                activity.logger.warning(
                    f"No runner registered for enabled agent {agent_type}",
                    extra={"item_id": item_id},
                )
                continue

            runner = AgentRegistry.get(agent_type)
            output = await runner.run(item.file_path, configuration)
            result = await curation.stage_agent_output(agent_type, output)
            results.append(result.model_dump(mode="json"))
            activity.heartbeat(agent_type)

        if results:
            item.record_completed_agents(r["agent_type"] for r in results)
            await curation.commit()

        activity.logger.info(
            f"Ran {len(results)} agents over {item.file_path}",
            extra={"item_id": item_id},
        )
        return {
            "item_id": item_id,
            "file_path": item.file_path,
            "agents": results,
            "extractions": sum(len(r["extraction_ids"]) for r in results),
            "proposals": sum(1 for r in results if r["proposal_id"]),
        }


@ActivityRegistry.register("queue", "complete_queue_item")
@activity.defn
async def complete_queue_item(item_id: str) -> Dict:
    async with async_session_maker() as session:
        item = await ProcessingQueueService(session).complete(UUID(item_id))
        return {"item_id": str(item.id), "status": item.status.value}


@ActivityRegistry.register("queue", "fail_queue_item")
@activity.defn
async def fail_queue_item(
    item_id: str, error_message: str, expected_retry_count: Optional[int] = None
) -> Dict:
    """Record a failed attempt and report whether the retry budget allows another."""
    async with async_session_maker() as session:
        can_retry = await ProcessingQueueService(session).fail(
            UUID(item_id), error_message, expected_retry_count
        )
        return {"item_id": item_id, "can_retry": can_retry}


@ActivityRegistry.register("queue", "retry_queue_item")
@activity.defn
async def retry_queue_item(item_id: str) -> Dict:
    async with async_session_maker() as session:
        item = await ProcessingQueueService(session).retry(UUID(item_id))
        return {
            "item_id": str(item.id),
            "status": item.status.value,
            "retry_count": item.retry_count,
        }
