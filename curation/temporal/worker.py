"""Temporal worker for the curation workflows.

Connects to Temporal with retries, seeds missing agent configurations and
runs one worker per task queue with every registered activity. The
recurring sweeps are created as Temporal schedules on startup.
"""

import asyncio
from typing import List

from temporalio.client import Client
from temporalio.worker import Worker
from temporalio.worker.workflow_sandbox import SandboxedWorkflowRunner, SandboxRestrictions

from curation.core.config import settings
from curation.database.base import async_session_maker
from curation.database.client import close_database, init_database
from curation.services.agent_configuration_service import AgentConfigurationService
from curation.temporal.core.activity_registry import ActivityRegistry
from curation.temporal.core.discovery import discover_all
from curation.temporal.core.workflow_registry import WorkflowRegistry
from curation.temporal.schedules import ensure_schedules
from curation.utils.logging import get_logger

logger = get_logger(__name__, settings.log_level)

MAX_CONNECT_ATTEMPTS = 5
CONNECT_RETRY_DELAY_SECONDS = 5


async def connect_with_retries() -> Client:
    for attempt in range(MAX_CONNECT_ATTEMPTS):
        try:
            logger.info(
                f"Connecting to Temporal server at {settings.temporal_target} "
                f"(Attempt {attempt + 1}/{MAX_CONNECT_ATTEMPTS})"
            )
            return await Client.connect(
                settings.temporal_target,
                namespace=settings.temporal_namespace,
            )
        except Exception as e:
            if attempt < MAX_CONNECT_ATTEMPTS - 1:
                logger.warning(
                    f"Connection attempt {attempt + 1} failed: {e}. "
                    f"Retrying in {CONNECT_RETRY_DELAY_SECONDS}s..."
                )
                await asyncio.sleep(CONNECT_RETRY_DELAY_SECONDS)
            else:
                logger.error(f"Failed to connect to Temporal server after {MAX_CONNECT_ATTEMPTS} attempts: {e}")
                raise


def build_workers(client: Client) -> List[Worker]:
    """One worker per task queue that has workflows registered on it."""
    queues = WorkflowRegistry.by_task_queue()
    activities = list(ActivityRegistry.get_all_activities().values())
    logger.info(
        f"Registered {sum(len(w) for w in queues.values())} workflows on "
        f"{sorted(queues)} and {len(activities)} activities"
    )

    return [
        Worker(
            client,
            task_queue=queue_name,
            workflows=workflows,
            activities=activities,
            max_concurrent_activities=10,
            max_concurrent_workflow_tasks=20,
            workflow_runner=SandboxedWorkflowRunner(
                restrictions=SandboxRestrictions.default.with_passthrough_all_modules()
            ),
        )
        for queue_name, workflows in queues.items()
    ]


async def run_workers() -> None:
    discover_all()
    await init_database(auto_migrate=settings.db_auto_migrate)
    async with async_session_maker() as session:
        await AgentConfigurationService(session).seed_defaults()

    client = await connect_with_retries()
    await ensure_schedules(client)
    workers = build_workers(client)

    logger.info(f"Workers polling {len(workers)} task queues on {settings.temporal_target}")
    try:
        await asyncio.gather(*(worker.run() for worker in workers))
    finally:
        await close_database()


if __name__ == "__main__":
    asyncio.run(run_workers())
