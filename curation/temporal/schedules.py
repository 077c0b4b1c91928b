"""Recurring workflows, registered as Temporal schedules when the worker starts.

A schedule that already exists is left as it is; change its interval with
the Temporal CLI or delete it so the next worker start recreates it.
"""

from datetime import timedelta
from typing import Dict, List

from temporalio.client import (
    Client,
    Schedule,
    ScheduleActionStartWorkflow,
    ScheduleAlreadyRunningError,
    ScheduleIntervalSpec,
    ScheduleOverlapPolicy,
    SchedulePolicy,
    ScheduleSpec,
)

from curation.core.config import settings
from curation.temporal.core.workflow_registry import WorkflowRegistry
from curation.temporal.workflows.expire_stale_proposals import ExpireStaleProposalsWorkflow
from curation.temporal.workflows.redeliver_domain_events import RedeliverDomainEventsWorkflow
from curation.utils.logging import get_logger

LOGGER = get_logger(__name__)

EXPIRE_STALE_PROPOSALS_SCHEDULE_ID = "expire-stale-proposals"
REDELIVER_DOMAIN_EVENTS_SCHEDULE_ID = "redeliver-domain-events"


def _task_queue(workflow_class: type) -> str:
    return WorkflowRegistry.get_all_workflows()[workflow_class.__name__].task_queue


def _every(minutes: int) -> ScheduleSpec:
    return ScheduleSpec(intervals=[ScheduleIntervalSpec(every=timedelta(minutes=minutes))])


def build_schedules() -> Dict[str, Schedule]:
    """Schedule id -> schedule for every recurring workflow."""
    # A sweep still running when the next one is due is not doubled up
    policy = SchedulePolicy(overlap=ScheduleOverlapPolicy.SKIP)
    return {
        EXPIRE_STALE_PROPOSALS_SCHEDULE_ID: Schedule(
            action=ScheduleActionStartWorkflow(
                ExpireStaleProposalsWorkflow.run,
                id=EXPIRE_STALE_PROPOSALS_SCHEDULE_ID,
                task_queue=_task_queue(ExpireStaleProposalsWorkflow),
            ),
            spec=_every(settings.expiry_sweep_interval_minutes),
            policy=policy,
        ),
        REDELIVER_DOMAIN_EVENTS_SCHEDULE_ID: Schedule(
            action=ScheduleActionStartWorkflow(
                RedeliverDomainEventsWorkflow.run,
                id=REDELIVER_DOMAIN_EVENTS_SCHEDULE_ID,
                task_queue=_task_queue(RedeliverDomainEventsWorkflow),
            ),
            spec=_every(settings.outbox_redelivery_interval_minutes),
            policy=policy,
        ),
    }


async def ensure_schedules(client: Client) -> List[str]:
    """Create the schedules that do not exist yet.

    Returns:
        Ids of the schedules created by this call
    """
    created = []
    for schedule_id, schedule in build_schedules().items():
        try:
            await client.create_schedule(schedule_id, schedule)
        except ScheduleAlreadyRunningError:
            LOGGER.info(f"Schedule {schedule_id} already exists")
            continue
        created.append(schedule_id)
        LOGGER.info(f"Created schedule {schedule_id}")
    return created
