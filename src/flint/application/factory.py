"""
Application Layer - Agent Factory

Wires the execution loop with its infrastructure adapters:
- BundleAgentCatalog for agent lookup
- LiteLLMProvider for model calls
- ToolExecutor with shared FileOperations (one write-lock registry per process)
"""

from typing import Optional

import structlog

from flint.application.settings import FlintSettings
from flint.core.domain.critical_actions import CriticalActionsProcessor
from flint.core.domain.execution_loop import AgentExecutionLoop
from flint.core.interfaces.agents import AgentCatalogProtocol
from flint.core.interfaces.llm import LLMProviderProtocol
from flint.infrastructure.filesystem.file_operations import FileOperations
from flint.infrastructure.llm.litellm_provider import LiteLLMProvider, RetryPolicy
from flint.infrastructure.persistence.bundle_catalog import BundleAgentCatalog
from flint.infrastructure.tools.tool_executor import ToolExecutor
from flint.infrastructure.workflows.workflow_preloader import WorkflowPreloader


class AgentFactory:
    """
    Factory for creating execution loops with dependency injection.

    Adapters are created once per factory and shared by every loop it
    creates; pass your own catalog or provider to override them.
    """

    def __init__(
        self,
        settings: Optional[FlintSettings] = None,
        agent_catalog: Optional[AgentCatalogProtocol] = None,
        llm_provider: Optional[LLMProviderProtocol] = None,
    ):
        """
        Initialize AgentFactory.

        Args:
            settings: Engine settings (read from the environment if omitted)
            agent_catalog: Catalog override, defaults to the bundles directory
            llm_provider: Model client override, defaults to LiteLLM
        """
        self.settings = settings or FlintSettings()
        self.logger = structlog.get_logger().bind(component="agent_factory")
        self._agent_catalog = agent_catalog
        self._llm_provider = llm_provider
        self._file_operations = FileOperations()

    @property
    def agent_catalog(self) -> AgentCatalogProtocol:
        if self._agent_catalog is None:
            self._agent_catalog = BundleAgentCatalog(self.settings.bundles_path)
        return self._agent_catalog

    @property
    def llm_provider(self) -> LLMProviderProtocol:
        if self._llm_provider is None:
            self._llm_provider = self._create_llm_provider()
        return self._llm_provider

    def _create_llm_provider(self) -> LLMProviderProtocol:
        params = {}
        if self.settings.temperature is not None:
            params["temperature"] = self.settings.temperature

        return LiteLLMProvider(
            default_model=self.settings.model,
            retry_policy=RetryPolicy(
                max_attempts=self.settings.llm_max_attempts,
                backoff_multiplier=self.settings.llm_backoff_multiplier,
                timeout=self.settings.llm_timeout,
            ),
            default_params=params,
        )

    def create_tool_executor(self) -> ToolExecutor:
        return ToolExecutor(
            file_operations=self._file_operations,
            workflow_preloader=WorkflowPreloader(),
        )

    def create_loop(self) -> AgentExecutionLoop:
        """Create an execution loop wired to this factory's adapters."""
        self.logger.debug(
            "execution_loop.created",
            model=self.settings.model,
            project_root=self.settings.project_path,
            max_iterations=self.settings.max_iterations,
        )
        return AgentExecutionLoop(
            agent_catalog=self.agent_catalog,
            llm_provider=self.llm_provider,
            context_factory=self.settings.path_context,
            tool_executor=self.create_tool_executor(),
            critical_actions=CriticalActionsProcessor(),
            model=self.settings.model,
            max_iterations=self.settings.max_iterations,
        )
