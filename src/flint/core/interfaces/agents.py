"""Agent catalog protocol."""

from typing import Protocol

from flint.core.domain.models import AgentDefinition


class AgentCatalogProtocol(Protocol):
    """Lookup of agent definitions by id."""

    async def get_agent(self, agent_id: str) -> AgentDefinition | None:
        """Return the agent, or None when no bundle exposes ``agent_id``."""
        ...

    def list_agents(self) -> list[AgentDefinition]:
        ...
