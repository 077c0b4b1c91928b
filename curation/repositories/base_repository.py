from typing import Generic, List, Optional, Type, TypeVar
from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from curation.utils.logging import get_logger

ModelType = TypeVar("ModelType")

LOGGER = get_logger(__name__)


class BaseRepository(Generic[ModelType]):
    """Query helpers shared by the entity repositories.

    Repositories only flush. Committing belongs to the unit of work, which
    writes outbox rows in the same transaction.
    """

    def __init__(self, session: AsyncSession, model: Type[ModelType]):
        self.session = session
        self.model = model

    def _log_failure(self, action: str, error: SQLAlchemyError) -> None:
        LOGGER.error(f"{self.model.__name__}: {action} failed: {error}", exc_info=True)

    async def _all(self, stmt: Select) -> List[ModelType]:
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            self._log_failure("list query", e)
            raise
        return list(result.scalars().all())

    async def _one_or_none(self, stmt: Select) -> Optional[ModelType]:
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            self._log_failure("lookup", e)
            raise
        return result.scalar_one_or_none()

    async def _rows(self, stmt: Select) -> list:
        """Raw rows for aggregate queries."""
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            self._log_failure("aggregate query", e)
            raise
        return list(result.all())

    async def get_by_id(self, id: UUID) -> Optional[ModelType]:
        """Fetch an entity by primary key.

        Args:
            id: Primary key

        Returns:
            The entity, or None if no row matches
        """
        return await self._one_or_none(select(self.model).where(self.model.id == id))

    async def add(self, instance: ModelType) -> ModelType:
        """Stage an entity built by its factory and flush it so constraint violations surface here."""
        self.session.add(instance)
        try:
            await self.session.flush()
        except SQLAlchemyError as e:
            self._log_failure("insert", e)
            raise
        return instance
