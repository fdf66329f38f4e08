"""
Application Layer - Agent Executor Service

Entry point used by the CLI (and any other front end) to run agents. Adds
session ids, timing and start/complete/failed logging around the
execution loop.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

import structlog

from flint.application.factory import AgentFactory
from flint.core.domain.models import AgentDefinition, CriticalContext, ExecutionResult

logger = structlog.get_logger()


class AgentExecutor:
    """Service layer orchestrating agent execution."""

    def __init__(self, factory: Optional[AgentFactory] = None):
        """Initialize AgentExecutor with optional factory.

        Args:
            factory: Optional AgentFactory instance. If not provided,
                    creates a default factory.
        """
        self.factory = factory or AgentFactory()
        self.logger = logger.bind(component="agent_executor")

    async def execute_message(
        self,
        agent_id: str,
        message: str,
        conversation_history: Optional[List[Dict[str, Any]]] = None,
        bundle_root: Optional[str] = None,
        session_id: Optional[str] = None,
    ) -> ExecutionResult:
        """Run one user message against an agent.

        Args:
            agent_id: Id of the agent to run
            message: User message
            conversation_history: Prior messages of the conversation
            bundle_root: Override for the agent's bundle directory
            session_id: Correlation id for logs (generated if omitted)

        Returns:
            ExecutionResult of the loop

        Raises:
            FlintError: Any fatal engine error, after logging it
        """
        start_time = datetime.now()
        session_id = session_id or self._generate_session_id()

        self.logger.info(
            "agent.execution.started",
            agent_id=agent_id,
            session_id=session_id,
            message=message[:100],
            history_length=len(conversation_history or []),
        )

        loop = self.factory.create_loop()
        try:
            result = await loop.execute(
                agent_id,
                message,
                history=conversation_history,
                bundle_root=bundle_root,
            )
        except Exception as e:
            self.logger.error(
                "agent.execution.failed",
                agent_id=agent_id,
                session_id=session_id,
                error=str(e),
                error_type=type(e).__name__,
                duration_seconds=(datetime.now() - start_time).total_seconds(),
            )
            raise

        self.logger.info(
            "agent.execution.completed",
            agent_id=agent_id,
            session_id=session_id,
            iterations=result.iterations,
            duration_seconds=(datetime.now() - start_time).total_seconds(),
        )
        return result

    async def initialize_agent(
        self, agent_id: str, bundle_root: Optional[str] = None
    ) -> CriticalContext:
        """Run only the agent's critical actions.

        Lets a front end verify an agent can start before the user types
        anything.

        Raises:
            AgentNotFoundError: Unknown agent
            CriticalActionError: A critical action failed
        """
        self.logger.info("agent.initialization.started", agent_id=agent_id)
        _, _, critical = await self.factory.create_loop().initialize(agent_id, bundle_root)
        self.logger.info(
            "agent.initialization.completed",
            agent_id=agent_id,
            messages=len(critical.messages),
        )
        return critical

    def list_agents(self) -> List[AgentDefinition]:
        return self.factory.agent_catalog.list_agents()

    def _generate_session_id(self) -> str:
        return str(uuid.uuid4())
