"""Periodic redelivery of outbox rows whose handlers failed."""

from datetime import timedelta
from typing import Optional

from temporalio import workflow
from temporalio.common import RetryPolicy

from curation.temporal.core.constants import SHORT_ACTIVITY_TIMEOUT_SECONDS
from curation.temporal.core.workflow_registry import WorkflowRegistry, WorkflowType


@WorkflowRegistry.register(category=WorkflowType.OUTBOX)
@workflow.defn
class RedeliverDomainEventsWorkflow:
    """Started by the worker's redelivery schedule."""

    def __init__(self):
        self._status = "initialized"
        self._dispatched: Optional[int] = None

    @workflow.query
    def get_status(self) -> dict:
        return {"status": self._status, "dispatched": self._dispatched}

    @workflow.run
    async def run(self, limit: Optional[int] = None) -> dict:
        self._status = "redelivering"
        result = await workflow.execute_activity(
            "redeliver_domain_events",
            args=[limit],
            start_to_close_timeout=timedelta(seconds=SHORT_ACTIVITY_TIMEOUT_SECONDS),
            retry_policy=RetryPolicy(maximum_attempts=3),
        )
        self._dispatched = result["dispatched"]
        self._status = "completed"
        return {"status": self._status, "dispatched": self._dispatched}
