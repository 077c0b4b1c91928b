"""Registry of the agents that process source files."""

from typing import Dict, List, Protocol

from curation.core.exceptions import ConfigurationError
from curation.domain.agent_configuration import AgentConfiguration
from curation.schemas.agent_output import AgentOutput


class AgentRunner(Protocol):
    """An agent that turns one source file into extractions and a proposal."""

    async def run(self, file_path: str, configuration: AgentConfiguration) -> AgentOutput:
        ...


class AgentRegistry:
    """Central registry of agent runners, keyed by agent type."""

    _runners: Dict[str, AgentRunner] = {}

    @classmethod
    def register(cls, agent_type: str):
        """Class decorator registering an instance of the runner."""
        def decorator(runner_class):
            cls._runners[agent_type] = runner_class()
            return runner_class
        return decorator

    @classmethod
    def add(cls, agent_type: str, runner: AgentRunner) -> None:
        cls._runners[agent_type] = runner

    @classmethod
    def get(cls, agent_type: str) -> AgentRunner:
        try:
            return cls._runners[agent_type]
        except KeyError:
            raise ConfigurationError(f"No agent runner registered for {agent_type}")

    @classmethod
    def registered_types(cls) -> List[str]:
        return sorted(cls._runners)

    @classmethod
    def clear(cls) -> None:
        cls._runners.clear()
