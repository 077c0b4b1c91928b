"""Processing queue orchestration: enqueue, claim, complete, fail and retry."""

import json
from typing import Any, Dict, List, Optional, Union
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from curation.core.config import settings
from curation.core.event_dispatcher import EventDispatcher
from curation.core.exceptions import ConcurrencyError, InvalidStateError, NotFoundError
from curation.database.unit_of_work import UnitOfWork
from curation.domain.processing_queue import ProcessingQueueItem
from curation.domain.value_objects import ProcessingStatus
from curation.repositories.processing_queue_repository import ProcessingQueueRepository
from curation.schemas.reporting import QueueStats
from curation.utils.logging import get_logger

LOGGER = get_logger(__name__)

ERROR_MESSAGE_MAX_LENGTH = 2000


class ProcessingQueueService:
    """Drives queue items through their lifecycle.

    The retry ceiling lives here and is passed into every ``can_retry`` and
    ``retry`` call, so all workers share one limit.
    """

    def __init__(
        self,
        session: AsyncSession,
        max_retry_count: Optional[int] = None,
        dispatcher: Optional[EventDispatcher] = None,
    ):
        self.session = session
        self.repo = ProcessingQueueRepository(session)
        self.uow = UnitOfWork(session, dispatcher)
        self.max_retry_count = (
            settings.queue_max_retry_count if max_retry_count is None else max_retry_count
        )

    async def get(self, item_id: UUID) -> ProcessingQueueItem:
        """Load a queue item.

        Args:
            item_id: Queue item id

        Returns:
            The item

        Raises:
            NotFoundError: no item with that id
        """
        item = await self.repo.get_by_id(item_id)
        if item is None:
            raise NotFoundError(f"Processing queue item {item_id} not found")
        return item

    async def enqueue(
        self,
        file_path: str,
        message_id: str,
        processing_metadata: Optional[Union[str, Dict[str, Any]]] = None,
    ) -> ProcessingQueueItem:
        """Queue a file change. Re-delivered message ids return the existing item.

        Args:
            file_path: Vault path of the changed file
            message_id: Id of the change notification, unique per item
            processing_metadata: JSON text or a dict that is serialized to it

        Returns:
            The new item, or the one already queued for ``message_id``
        """
        existing = await self.repo.get_by_message_id(message_id)
        if existing is not None:
            LOGGER.info(f"Message {message_id} already queued as {existing.id}")
            return existing

        if isinstance(processing_metadata, dict):
            processing_metadata = json.dumps(processing_metadata)

        item = ProcessingQueueItem.create(file_path, message_id, processing_metadata or "{}")
        try:
            await self.repo.add(item)
            await self.uow.commit()
        except IntegrityError:
            # Lost an insert race on message_id
            await self.session.rollback()
            existing = await self.repo.get_by_message_id(message_id)
            if existing is None:
                raise
            return existing

        LOGGER.info(f"Queued {file_path} as {item.id} (message {message_id})")
        return item

    async def claim(self, item_id: UUID, expected_retry_count: Optional[int] = None) -> ProcessingQueueItem:
        """Move an item to Processing.

        Args:
            item_id: Queue item id
            expected_retry_count: Retry count the caller saw before claiming. An
                item already Processing with this count was claimed by an earlier
                delivery of the same request and is returned unchanged.

        Returns:
            The claimed item

        Raises:
            InvalidStateError: the item is not Queued or Failed
            ConcurrencyError: another worker claimed it first
        """
        item = await self.get(item_id)
        if (
            expected_retry_count is not None
            and item.status is ProcessingStatus.PROCESSING
            and item.retry_count == expected_retry_count
        ):
            LOGGER.info(f"Queue item {item.id} already claimed for attempt {expected_retry_count + 1}")
            return item

        item.start_processing()
        await self.uow.commit()
        LOGGER.info(f"Claimed queue item {item.id} ({item.file_path})")
        return item

    async def claim_next(self, limit: Optional[int] = None) -> List[ProcessingQueueItem]:
        """Claim up to ``limit`` of the oldest queued items, skipping ones lost to other workers.

        Args:
            limit: Batch size, ``settings.claim_batch_size`` when omitted

        Returns:
            The items this call claimed, oldest first
        """
        candidates = await self.repo.get_next_queued(limit or settings.claim_batch_size)
        candidate_ids = [candidate.id for candidate in candidates]

        claimed = []
        lost_race = False
        for item_id in candidate_ids:
            try:
                claimed.append(await self.claim(item_id))
            except ConcurrencyError as e:
                lost_race = True
                LOGGER.debug(f"Skipping queue item {item_id}: {e}")
            except InvalidStateError as e:
                LOGGER.debug(f"Skipping queue item {item_id}: {e}")

        if lost_race:
            # The conflict rollback expired every instance in the session
            for item in claimed:
                await self.session.refresh(item)
        return claimed

    async def complete(self, item_id: UUID) -> ProcessingQueueItem:
        """Mark an item Completed. Completing a Completed item is a no-op.

        Args:
            item_id: Queue item id

        Returns:
            The completed item

        Raises:
            InvalidStateError: the item is not Processing
        """
        item = await self.get(item_id)
        if item.status is ProcessingStatus.COMPLETED:
            LOGGER.info(f"Queue item {item.id} already completed")
            return item

        item.complete_processing()
        await self.uow.commit()
        LOGGER.info(f"Completed queue item {item.id}")
        return item

    async def fail(
        self, item_id: UUID, error_message: str, expected_retry_count: Optional[int] = None
    ) -> bool:
        """Record a failed attempt.

        Args:
            item_id: Queue item id
            error_message: Failure text, truncated to 2000 characters
            expected_retry_count: Retry count of the attempt being failed. A Failed
                item whose count is one higher already carries this failure, so
                nothing is written again.

        Returns:
            Whether the item may still be retried

        Raises:
            InvalidStateError: the item is not Processing
        """
        item = await self.get(item_id)
        if (
            expected_retry_count is not None
            and item.status is ProcessingStatus.FAILED
            and item.retry_count == expected_retry_count + 1
        ):
            LOGGER.info(f"Failure of attempt {item.retry_count} already recorded for {item.id}")
            return item.can_retry(self.max_retry_count)

        item.fail_processing((error_message or "Unknown error")[:ERROR_MESSAGE_MAX_LENGTH])
        await self.uow.commit()

        can_retry = item.can_retry(self.max_retry_count)
        LOGGER.warning(
            f"Queue item {item.id} failed (attempt {item.retry_count}/{self.max_retry_count}, "
            f"retryable={can_retry}): {item.error_message}"
        )
        return can_retry

    async def retry(self, item_id: UUID) -> ProcessingQueueItem:
        """Send a Failed item back to the queue. A Queued item is returned as is.

        Args:
            item_id: Queue item id

        Returns:
            The queued item

        Raises:
            InvalidStateError: the item is not Failed or its retry budget is spent
        """
        item = await self.get(item_id)
        if item.status is ProcessingStatus.QUEUED:
            LOGGER.info(f"Queue item {item.id} already queued")
            return item

        item.retry(self.max_retry_count)
        await self.uow.commit()
        LOGGER.info(f"Requeued queue item {item.id} (retry {item.retry_count})")
        return item

    async def requeue_failed(self) -> List[ProcessingQueueItem]:
        """Send every failed item with retry budget left back to the queue.

        Returns:
            The items requeued
        """
        requeued = []
        for item in await self.repo.get_failed():
            if item.can_retry(self.max_retry_count):
                item.retry(self.max_retry_count)
                requeued.append(item)
        if requeued:
            await self.uow.commit()
        LOGGER.info(f"Requeued {len(requeued)} failed queue items")
        return requeued

    async def stats(self) -> QueueStats:
        """Item counts per status alongside the retry ceiling."""
        return QueueStats(
            counts=await self.repo.count_by_status(),
            max_retry_count=self.max_retry_count,
        )
