"""Repository for extracted data points."""

from typing import List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from curation.database.models import ExtractedData
from curation.repositories.base_repository import BaseRepository


class ExtractedDataRepository(BaseRepository[ExtractedData]):
    """Repository for ExtractedData database operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, ExtractedData)

    async def get_by_source_file(self, source_file_path: str) -> List[ExtractedData]:
        """Everything extracted from one source file.

        Args:
            source_file_path: Vault path of the source file

        Returns:
            Extractions from every agent, oldest first
        """
        stmt = (
            select(ExtractedData)
            .where(ExtractedData.source_file_path == source_file_path)
            .order_by(ExtractedData.extracted_at)
        )
        return await self._all(stmt)

    async def get_by_configuration_id(self, configuration_id: UUID) -> List[ExtractedData]:
        """Extractions produced under one agent configuration.

        Args:
            configuration_id: Agent configuration id

        Returns:
            Extractions oldest first
        """
        stmt = (
            select(ExtractedData)
            .where(ExtractedData.agent_configuration_id == configuration_id)
            .order_by(ExtractedData.extracted_at)
        )
        return await self._all(stmt)
