"""Workflow carrying one source-file change from the queue through the agents."""

import asyncio
from datetime import timedelta
from typing import Dict, Optional

from temporalio import workflow
from temporalio.common import RetryPolicy
from temporalio.exceptions import ActivityError

from curation.domain.value_objects import ProcessingStatus
from curation.temporal.core.constants import (
    DEFAULT_ACTIVITY_TIMEOUT_SECONDS,
    NON_RETRYABLE_ERRORS,
    RETRY_BACKOFF_SECONDS,
    SHORT_ACTIVITY_TIMEOUT_SECONDS,
)
from curation.temporal.core.workflow_registry import WorkflowRegistry, WorkflowType

# Queue bookkeeping is retried by Temporal; agent runs are not, their
# failures go through the queue's own retry budget instead.
BOOKKEEPING_RETRY = RetryPolicy(maximum_attempts=5, non_retryable_error_types=NON_RETRYABLE_ERRORS)
AGENT_RUN_RETRY = RetryPolicy(maximum_attempts=1)


@WorkflowRegistry.register(category=WorkflowType.QUEUE)
@workflow.defn
class ProcessFileChangeWorkflow:
    """Claim -> run agents -> complete, falling back to fail/retry on errors."""

    def __init__(self):
        self._status = "initialized"
        self._item_id: Optional[str] = None
        self._attempts = 0
        self._last_error: Optional[str] = None

    @workflow.query
    def get_status(self) -> dict:
        """Query handler for real-time status updates."""
        return {
            "status": self._status,
            "item_id": self._item_id,
            "attempts": self._attempts,
            "last_error": self._last_error,
        }

    async def _bookkeeping(self, activity_name: str, *args) -> Dict:
        return await workflow.execute_activity(
            activity_name,
            args=list(args),
            start_to_close_timeout=timedelta(seconds=SHORT_ACTIVITY_TIMEOUT_SECONDS),
            retry_policy=BOOKKEEPING_RETRY,
        )

    @workflow.run
    async def run(self, item_id: str) -> dict:
        self._item_id = item_id
        snapshot = await self._bookkeeping("get_queue_item", item_id)
        if snapshot["status"] == ProcessingStatus.COMPLETED.value:
            # Duplicate start for a change that was already processed
            self._status = "completed"
            return {"status": self._status, "item_id": item_id, "attempts": 0}

        # Bookkeeping calls carry the attempt they belong to, so a retried
        # delivery of one that already landed is accepted rather than rejected
        retry_count = snapshot["retry_count"]

        while True:
            self._attempts += 1
            self._status = "claiming"
            await self._bookkeeping("claim_queue_item", item_id, retry_count)

            try:
                self._status = "processing"
                summary = await workflow.execute_activity(
                    "run_agents_for_item",
                    args=[item_id],
                    start_to_close_timeout=timedelta(seconds=DEFAULT_ACTIVITY_TIMEOUT_SECONDS),
                    retry_policy=AGENT_RUN_RETRY,
                )
            except ActivityError as e:
                self._last_error = str(e.cause or e)
                self._status = "failed"
                outcome = await self._bookkeeping(
                    "fail_queue_item", item_id, self._last_error, retry_count
                )
                retry_count += 1
                if not outcome["can_retry"]:
                    return {
                        "status": self._status,
                        "item_id": item_id,
                        "attempts": self._attempts,
                        "error": self._last_error,
                    }

                self._status = "retrying"
                await asyncio.sleep(RETRY_BACKOFF_SECONDS)
                try:
                    await self._bookkeeping("retry_queue_item", item_id)
                except ActivityError as e:
                    # Already requeued elsewhere; claiming still works from Failed
                    self._last_error = f"retry skipped: {e.cause or e}"
                continue

            await self._bookkeeping("complete_queue_item", item_id)
            self._status = "completed"
            return {
                "status": self._status,
                "item_id": item_id,
                "attempts": self._attempts,
                "extractions": summary.get("extractions", 0),
                "proposals": summary.get("proposals", 0),
            }
