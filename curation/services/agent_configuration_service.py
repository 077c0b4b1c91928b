"""Agent configuration management."""

import json
from typing import List, Optional, Union
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from curation.core.config import AgentDefaults, settings
from curation.core.exceptions import ConcurrencyError, DuplicateAgentTypeError, NotFoundError
from curation.database.unit_of_work import UnitOfWork
from curation.domain.agent_configuration import AgentConfiguration
from curation.domain.value_objects import AutonomyLevel, ConfidenceScore, RawConfidence
from curation.repositories.agent_configuration_repository import AgentConfigurationRepository
from curation.schemas.reporting import AgentProcessingStats
from curation.utils.logging import get_logger

LOGGER = get_logger(__name__)


class AgentConfigurationService:
    """Create, read and update agent configurations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.repo = AgentConfigurationRepository(session)
        self.uow = UnitOfWork(session)

    async def get(self, agent_type: str) -> AgentConfiguration:
        """Load the configuration of one agent type.

        Args:
            agent_type: Agent type name

        Returns:
            The configuration

        Raises:
            NotFoundError: the agent type is not configured
        """
        configuration = await self.repo.get_by_agent_type(agent_type)
        if configuration is None:
            raise NotFoundError(f"No configuration for agent type {agent_type}")
        return configuration

    async def get_by_id(self, configuration_id: UUID) -> AgentConfiguration:
        """Same as ``get`` but keyed by configuration id."""
        configuration = await self.repo.get_by_id(configuration_id)
        if configuration is None:
            raise NotFoundError(f"Agent configuration {configuration_id} not found")
        return configuration

    async def list(self, enabled_only: bool = False) -> List[AgentConfiguration]:
        """All configurations ordered by agent type.

        Args:
            enabled_only: Leave out disabled agents

        Returns:
            Matching configurations
        """
        if enabled_only:
            return await self.repo.get_enabled()
        return await self.repo.list_all()

    async def create(
        self,
        agent_type: str,
        autonomy_level: AutonomyLevel,
        confidence_threshold: Union[ConfidenceScore, RawConfidence],
        configuration_json: str,
        model_parameters: Optional[str] = None,
        processing_rules: Optional[str] = None,
        is_enabled: bool = True,
    ) -> AgentConfiguration:
        """Create a configuration for a new agent type.

        Args:
            agent_type: Name of the new agent type
            autonomy_level: How much review the agent's proposals need
            confidence_threshold: Minimum confidence for skipping review
            configuration_json: Model settings as JSON text
            model_parameters: Optional extra model parameters
            processing_rules: Optional processing rules
            is_enabled: Whether the agent runs on new files

        Returns:
            The stored configuration at version 1

        Raises:
            DuplicateAgentTypeError: the agent type is already configured
        """
        if await self.repo.get_by_agent_type(agent_type) is not None:
            raise DuplicateAgentTypeError(f"Agent type {agent_type} is already configured")

        configuration = AgentConfiguration.create(
            agent_type=agent_type,
            autonomy_level=autonomy_level,
            confidence_threshold=confidence_threshold,
            configuration_json=configuration_json,
            model_parameters=model_parameters,
            processing_rules=processing_rules,
            is_enabled=is_enabled,
        )
        try:
            await self.repo.add(configuration)
            await self.uow.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise DuplicateAgentTypeError(
                f"Agent type {agent_type} is already configured", original_error=e
            )

        LOGGER.info(f"Created configuration for {agent_type} ({configuration.autonomy_level.value})")
        return configuration

    async def update(
        self,
        agent_type: str,
        expected_version: Optional[int] = None,
        **changes,
    ) -> AgentConfiguration:
        """Apply a partial update.

        Args:
            agent_type: Agent whose configuration changes
            expected_version: When given, the stored version must match
            **changes: Keyword arguments for ``update_configuration``

        Returns:
            The configuration at its new version

        Raises:
            ConcurrencyError: the stored version differs from ``expected_version``
        """
        configuration = await self.get(agent_type)
        if expected_version is not None and configuration.version != expected_version:
            raise ConcurrencyError(
                f"Configuration for {agent_type} is at version {configuration.version}, "
                f"expected {expected_version}"
            )

        configuration.update_configuration(**changes)
        await self.uow.commit()
        LOGGER.info(f"Updated configuration for {agent_type} to version {configuration.version}")
        return configuration

    async def enable(self, agent_type: str) -> AgentConfiguration:
        """Let the agent run on new files again. Raises NotFoundError for unknown agents."""
        configuration = await self.get(agent_type)
        configuration.enable()
        await self.uow.commit()
        return configuration

    async def disable(self, agent_type: str) -> AgentConfiguration:
        """Stop the agent from running. Raises NotFoundError for unknown agents."""
        configuration = await self.get(agent_type)
        configuration.disable()
        await self.uow.commit()
        return configuration

    async def seed_defaults(self) -> List[AgentConfiguration]:
        """Create configurations for known agent types that have none yet.

        Returns:
            The configurations created by this call
        """
        created = []
        for agent_type, defaults in settings.agent_defaults().items():
            if await self.repo.get_by_agent_type(agent_type) is not None:
                continue
            created.append(
                await self.create(
                    agent_type=agent_type,
                    autonomy_level=defaults.autonomy_level,
                    confidence_threshold=defaults.confidence_threshold,
                    configuration_json=default_configuration_json(defaults),
                )
            )
        if created:
            LOGGER.info(f"Seeded configurations for {[c.agent_type for c in created]}")
        return created

    async def stats(self, agent_type: Optional[str] = None) -> List[AgentProcessingStats]:
        """Per-agent extraction and proposal totals, optionally for one agent type."""
        return await self.repo.processing_stats(agent_type)


def default_configuration_json(defaults: AgentDefaults) -> str:
    return json.dumps(
        {
            "model": defaults.model,
            "temperature": defaults.temperature,
            "max_tokens": defaults.max_tokens,
        }
    )
