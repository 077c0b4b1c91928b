"""Repository for processing queue items."""

from typing import Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from curation.database.models import ProcessingQueueItem
from curation.domain.value_objects import ProcessingStatus
from curation.repositories.base_repository import BaseRepository


class ProcessingQueueRepository(BaseRepository[ProcessingQueueItem]):
    """Repository for ProcessingQueueItem database operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, ProcessingQueueItem)

    async def get_by_message_id(self, message_id: str) -> Optional[ProcessingQueueItem]:
        """Look up the item created for a change notification.

        Args:
            message_id: Id of the change notification

        Returns:
            The item, or None if the message was never queued
        """
        stmt = select(ProcessingQueueItem).where(ProcessingQueueItem.message_id == message_id)
        return await self._one_or_none(stmt)

    async def get_next_queued(self, limit: int = 10) -> List[ProcessingQueueItem]:
        """Queued items, oldest first.

        Args:
            limit: Most items returned

        Returns:
            Items still in Queued status
        """
        stmt = (
            select(ProcessingQueueItem)
            .where(ProcessingQueueItem.status == ProcessingStatus.QUEUED)
            .order_by(ProcessingQueueItem.queued_at)
            .limit(limit)
        )
        return await self._all(stmt)

    async def get_failed(self, limit: int = 200) -> List[ProcessingQueueItem]:
        """Failed items in the order they failed.

        Args:
            limit: Most items returned

        Returns:
            Items in Failed status, whatever their remaining retry budget
        """
        stmt = (
            select(ProcessingQueueItem)
            .where(ProcessingQueueItem.status == ProcessingStatus.FAILED)
            .order_by(ProcessingQueueItem.completed_at)
            .limit(limit)
        )
        return await self._all(stmt)

    async def count_by_status(self) -> Dict[ProcessingStatus, int]:
        """Item count for every status, zero-filled."""
        stmt = select(ProcessingQueueItem.status, func.count()).group_by(ProcessingQueueItem.status)
        counts = {status: 0 for status in ProcessingStatus}
        for status, total in await self._rows(stmt):
            counts[ProcessingStatus(status)] = total
        return counts
