"""Activities for the review backlog."""

from datetime import datetime
from typing import Dict, Optional

from temporalio import activity

from curation.database.base import async_session_maker
from curation.services.review_service import ReviewService
from curation.temporal.core.activity_registry import ActivityRegistry


@ActivityRegistry.register("review", "expire_stale_proposals")
@activity.defn
async def expire_stale_proposals(as_of: Optional[str] = None) -> Dict:
    """Expire pending proposals older than the review timeout.

    Args:
        as_of: ISO-8601 reference time; defaults to now
    """
    now = datetime.fromisoformat(as_of) if as_of else None
    async with async_session_maker() as session:
        expired = await ReviewService(session).expire_stale(now)
    activity.logger.info(f"Expired {expired} stale proposals")
    return {"expired": expired}
