"""
Agent Execution Loop

Bounded model-call / tool-call loop using native tool calling:

1. INIT: look up the agent, run its critical actions, build the messages
   ``[system] + critical messages + history + [user]``
2. ITERATE: call the model with the tool schemas. If it returns tool calls,
   execute them one at a time in the returned order, append one ``tool``
   message per call, and call the model again
3. DONE when a response carries no tool calls

Initialization errors and model transport errors abort the execution. Tool
errors are fed back to the model as failed tool results so it can recover.
"""

from typing import Any, Callable

import structlog

from flint.core.domain.critical_actions import CriticalActionsProcessor
from flint.core.domain.errors import (
    AgentNotFoundError,
    MaxIterationsExceededError,
    ModelTransportError,
)
from flint.core.domain.models import (
    AgentDefinition,
    CriticalContext,
    ExecutionResult,
    PathContext,
)
from flint.core.interfaces.agents import AgentCatalogProtocol
from flint.core.interfaces.llm import LLMProviderProtocol
from flint.core.prompts.system_prompt_builder import build_system_prompt
from flint.infrastructure.tools.tool_converter import (
    assistant_message,
    tool_result_to_message,
)
from flint.infrastructure.tools.tool_definitions import get_tool_definitions
from flint.infrastructure.tools.tool_executor import ToolExecutor

ContextFactory = Callable[[str], PathContext]


class AgentExecutionLoop:
    """
    Runs one agent conversation turn to completion.

    Instances hold no per-execution state, so one loop can serve concurrent
    executions; each call builds its own messages and PathContext.
    """

    MAX_ITERATIONS = 50  # Safety limit to prevent infinite loops

    def __init__(
        self,
        agent_catalog: AgentCatalogProtocol,
        llm_provider: LLMProviderProtocol,
        context_factory: ContextFactory,
        tool_executor: ToolExecutor | None = None,
        critical_actions: CriticalActionsProcessor | None = None,
        model: str | None = None,
        max_iterations: int | None = None,
        completion_params: dict[str, Any] | None = None,
    ):
        """
        Initialize the loop with injected dependencies.

        Args:
            agent_catalog: Lookup of agent definitions by id
            llm_provider: Model client (must support the tools parameter)
            context_factory: Builds a PathContext for a bundle root
            tool_executor: Dispatcher for tool calls
            critical_actions: Processor for the agent's bootstrap actions
            model: Model name passed to the provider (provider default if None)
            max_iterations: Model-call budget (defaults to MAX_ITERATIONS)
            completion_params: Extra parameters for every model call
        """
        self.agent_catalog = agent_catalog
        self.llm_provider = llm_provider
        self.context_factory = context_factory
        self.tool_executor = tool_executor or ToolExecutor()
        self.critical_actions = critical_actions or CriticalActionsProcessor()
        self.model = model
        self.max_iterations = max_iterations or self.MAX_ITERATIONS
        self.completion_params = completion_params or {}
        self.logger = structlog.get_logger().bind(component="execution_loop")
        self._tools = get_tool_definitions()

    async def initialize(
        self, agent_id: str, bundle_root: str | None = None
    ) -> tuple[AgentDefinition, PathContext, CriticalContext]:
        """
        Load the agent and run its critical actions.

        Raises:
            AgentNotFoundError: If the catalog has no such agent
            CriticalActionError: If any critical action fails
        """
        agent = await self.agent_catalog.get_agent(agent_id)
        if agent is None:
            self.logger.error("agent_not_found", agent_id=agent_id)
            raise AgentNotFoundError(agent_id)

        context = self.context_factory(bundle_root or agent.bundle_path)
        critical = await self.critical_actions.process(agent, context)
        return agent, context, critical

    async def execute(
        self,
        agent_id: str,
        user_message: str,
        history: list[dict[str, Any]] | None = None,
        bundle_root: str | None = None,
    ) -> ExecutionResult:
        """
        Execute one user message against an agent.

        Args:
            agent_id: Id of the agent in the catalog
            user_message: The new user message
            history: Prior conversation messages, appended after the
                critical-action messages
            bundle_root: Overrides the agent's bundle directory

        Returns:
            ExecutionResult with the final response and full message sequence

        Raises:
            AgentNotFoundError: Unknown agent
            CriticalActionError: Initialization failed
            ModelTransportError: The model client failed
            MaxIterationsExceededError: Iteration budget exhausted
        """
        self.logger.info(
            "execute_start",
            agent_id=agent_id,
            message=user_message[:100],
            history_length=len(history or []),
        )

        agent, context, critical = await self.initialize(agent_id, bundle_root)

        messages: list[dict[str, Any]] = [
            {"role": "system", "content": build_system_prompt(agent, context)}
        ]
        messages.extend(critical.messages)
        messages.extend(dict(message) for message in history or [])
        messages.append({"role": "user", "content": user_message})

        for iteration in range(1, self.max_iterations + 1):
            self.logger.info(
                "iteration_start",
                agent_id=agent_id,
                iteration=iteration,
                message_count=len(messages),
            )

            response = await self._complete(messages)
            content = response.get("content")
            tool_calls = response.get("tool_calls") or []
            messages.append(assistant_message(content, tool_calls))

            if not tool_calls:
                self.logger.info(
                    "final_answer_received",
                    agent_id=agent_id,
                    iteration=iteration,
                    tool_calls_total=context.tool_call_count,
                )
                return ExecutionResult(
                    success=True,
                    response=content or "",
                    iterations=iteration,
                    messages=messages,
                )

            self.logger.info(
                "tool_calls_received",
                iteration=iteration,
                count=len(tool_calls),
                tools=[(tc.get("function") or {}).get("name") for tc in tool_calls],
            )

            # One at a time, in the order the model returned them
            for tool_call in tool_calls:
                result = await self.tool_executor.execute(tool_call, context)
                messages.append(tool_result_to_message(tool_call.get("id", ""), result))

                if not result.success:
                    self.logger.warning(
                        "tool_failed",
                        iteration=iteration,
                        tool=(tool_call.get("function") or {}).get("name"),
                        error=result.error,
                    )

        self.logger.error(
            "max_iterations_exceeded",
            agent_id=agent_id,
            max_iterations=self.max_iterations,
        )
        raise MaxIterationsExceededError(self.max_iterations)

    async def _complete(self, messages: list[dict[str, Any]]) -> dict[str, Any]:
        try:
            result = await self.llm_provider.complete(
                messages=list(messages),
                model=self.model,
                tools=self._tools,
                tool_choice="auto",
                **self.completion_params,
            )
        except Exception as e:
            self.logger.error("llm_call_failed", error_type=type(e).__name__, error=str(e))
            raise ModelTransportError(str(e), type(e).__name__) from e

        if not result.get("success"):
            self.logger.error(
                "llm_call_failed",
                error_type=result.get("error_type"),
                error=result.get("error"),
            )
            raise ModelTransportError(
                str(result.get("error") or "unknown error"), result.get("error_type")
            )
        return result
