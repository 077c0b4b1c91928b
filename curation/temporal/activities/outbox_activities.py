"""Activities for the domain event outbox."""

from datetime import timedelta
from typing import Dict, Optional

from temporalio import activity

from curation.core.config import settings
from curation.database.base import async_session_maker
from curation.database.unit_of_work import UnitOfWork
from curation.domain.base import utc_now
from curation.temporal.core.activity_registry import ActivityRegistry


@ActivityRegistry.register("outbox", "redeliver_domain_events")
@activity.defn
async def redeliver_domain_events(limit: Optional[int] = None) -> Dict:
    """Hand undispatched outbox rows to the event handlers again.

    Rows younger than ``outbox_redelivery_delay_seconds`` are skipped; their
    own commit is probably still dispatching them.
    """
    occurred_before = utc_now() - timedelta(seconds=settings.outbox_redelivery_delay_seconds)
    async with async_session_maker() as session:
        dispatched = await UnitOfWork(session).dispatch_pending(
            limit or settings.outbox_redelivery_batch_size, occurred_before
        )
    activity.logger.info(f"Redelivered {dispatched} domain events")
    return {"dispatched": dispatched}
