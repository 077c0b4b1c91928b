"""Periodic sweep expiring proposals nobody reviewed in time."""

from datetime import timedelta
from typing import Optional

from temporalio import workflow
from temporalio.common import RetryPolicy

from curation.temporal.core.constants import NON_RETRYABLE_ERRORS, SHORT_ACTIVITY_TIMEOUT_SECONDS
from curation.temporal.core.workflow_registry import WorkflowRegistry, WorkflowType


@WorkflowRegistry.register(category=WorkflowType.REVIEW)
@workflow.defn
class ExpireStaleProposalsWorkflow:
    """Started by the worker's expiry schedule."""

    def __init__(self):
        self._status = "initialized"
        self._expired: Optional[int] = None

    @workflow.query
    def get_status(self) -> dict:
        return {"status": self._status, "expired": self._expired}

    @workflow.run
    async def run(self, as_of: Optional[str] = None) -> dict:
        self._status = "expiring"
        result = await workflow.execute_activity(
            "expire_stale_proposals",
            args=[as_of],
            start_to_close_timeout=timedelta(seconds=SHORT_ACTIVITY_TIMEOUT_SECONDS),
            retry_policy=RetryPolicy(maximum_attempts=3, non_retryable_error_types=NON_RETRYABLE_ERRORS),
        )
        self._expired = result["expired"]
        self._status = "completed"
        return {"status": self._status, "expired": self._expired}
