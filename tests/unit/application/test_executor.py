"""
Unit Tests for the application layer: settings, factory and AgentExecutor.
"""

import json
import os
from unittest.mock import AsyncMock

import pytest

from flint.application.executor import AgentExecutor
from flint.application.factory import AgentFactory
from flint.application.settings import FlintSettings
from flint.core.domain.errors import AgentNotFoundError
from flint.infrastructure.llm.litellm_provider import LiteLLMProvider
from flint.infrastructure.persistence.bundle_catalog import BundleAgentCatalog


@pytest.fixture
def mock_llm_provider():
    return AsyncMock()


@pytest.fixture
def executor(settings, mock_llm_provider):
    return AgentExecutor(AgentFactory(settings, llm_provider=mock_llm_provider))


class TestFlintSettings:
    """Tests for FlintSettings."""

    def test_paths_relative_to_project_root(self, project):
        settings = FlintSettings(project_root=str(project))

        assert settings.bundles_path == os.path.join(str(project), "bmad", "custom", "bundles")
        assert settings.core_path == os.path.join(str(project), "bmad", "core")
        assert settings.output_path == os.path.join(str(project), "data", "conversations")

    def test_environment_variables(self, project, monkeypatch):
        monkeypatch.setenv("FLINT_PROJECT_ROOT", str(project))
        monkeypatch.setenv("FLINT_MODEL", "azure/gpt-4o-deployment")
        monkeypatch.setenv("FLINT_MAX_ITERATIONS", "7")

        settings = FlintSettings()

        assert settings.project_path == str(project)
        assert settings.model == "azure/gpt-4o-deployment"
        assert settings.max_iterations == 7

    def test_path_context(self, settings, bundle_root):
        context = settings.path_context(str(bundle_root))

        assert context.bundle_root == str(bundle_root)
        assert context.output_root == settings.output_path
        assert os.path.join(settings.project_path, "bmad") in context.protected_roots
        assert context.tool_call_count == 0


class TestAgentFactory:
    def test_default_adapters(self, settings):
        factory = AgentFactory(settings)

        assert isinstance(factory.agent_catalog, BundleAgentCatalog)
        assert isinstance(factory.llm_provider, LiteLLMProvider)
        assert factory.llm_provider.default_model == "gpt-4o"

    def test_loop_uses_settings(self, settings, mock_llm_provider):
        settings.max_iterations = 12
        loop = AgentFactory(settings, llm_provider=mock_llm_provider).create_loop()

        assert loop.max_iterations == 12
        assert loop.llm_provider is mock_llm_provider

    def test_loops_share_file_operations(self, settings, mock_llm_provider):
        factory = AgentFactory(settings, llm_provider=mock_llm_provider)

        first, second = factory.create_loop(), factory.create_loop()

        assert first.tool_executor.file_operations is second.tool_executor.file_operations


class TestAgentExecutor:
    """Tests for AgentExecutor."""

    @pytest.mark.asyncio
    async def test_execute_message(self, executor, mock_llm_provider):
        mock_llm_provider.complete.return_value = {
            "success": True,
            "content": "Hello Alice",
            "tool_calls": [],
        }

        result = await executor.execute_message("analyst", "hello")

        assert result.success is True
        assert result.response == "Hello Alice"
        assert result.iterations == 1

    @pytest.mark.asyncio
    async def test_execute_message_saves_output(self, executor, mock_llm_provider, project):
        mock_llm_provider.complete.side_effect = [
            {
                "success": True,
                "content": None,
                "tool_calls": [
                    {
                        "id": "c1",
                        "type": "function",
                        "function": {
                            "name": "save_output",
                            "arguments": json.dumps(
                                {
                                    "file_path": "{project-root}/data/conversations/q3-budget.md",
                                    "content": "# Q3",
                                }
                            ),
                        },
                    }
                ],
            },
            {"success": True, "content": "Saved.", "tool_calls": []},
        ]

        await executor.execute_message("analyst", "save the budget")

        saved = project / "data" / "conversations" / "q3-budget.md"
        assert saved.read_text(encoding="utf-8") == "# Q3"

    @pytest.mark.asyncio
    async def test_errors_propagate(self, executor):
        with pytest.raises(AgentNotFoundError):
            await executor.execute_message("nobody", "hello")

    @pytest.mark.asyncio
    async def test_initialize_agent(self, executor, mock_llm_provider):
        critical = await executor.initialize_agent("analyst")

        assert len(critical.messages) == 2
        assert critical.config["user_name"] == "Alice"
        mock_llm_provider.complete.assert_not_called()

    def test_list_agents(self, executor):
        assert [agent.id for agent in executor.list_agents()] == ["analyst"]
