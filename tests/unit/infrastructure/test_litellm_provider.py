"""
Unit Tests for LiteLLMProvider

litellm.acompletion is patched; no network access.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

from flint.infrastructure.llm.litellm_provider import (
    LiteLLMProvider,
    RetryPolicy,
    normalize_tool_calls,
)


def make_response(content=None, tool_calls=None):
    message = SimpleNamespace(content=content, tool_calls=tool_calls)
    usage = SimpleNamespace(total_tokens=30, prompt_tokens=20, completion_tokens=10)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)], usage=usage)


def make_tool_call(call_id, name, arguments):
    return SimpleNamespace(
        id=call_id,
        type="function",
        function=SimpleNamespace(name=name, arguments=arguments),
    )


@pytest.fixture
def provider():
    return LiteLLMProvider(
        default_model="gpt-4o",
        retry_policy=RetryPolicy(max_attempts=3, backoff_multiplier=0.0, timeout=5),
    )


class TestComplete:
    """Tests for LiteLLMProvider.complete()."""

    @pytest.mark.asyncio
    async def test_returns_content_and_usage(self, provider):
        with patch(
            "litellm.acompletion", new=AsyncMock(return_value=make_response("Hello"))
        ) as acompletion:
            result = await provider.complete([{"role": "user", "content": "Hi"}])

        assert result["success"] is True
        assert result["content"] == "Hello"
        assert result["tool_calls"] == []
        assert result["usage"]["total_tokens"] == 30
        assert acompletion.call_args.kwargs["model"] == "gpt-4o"
        assert "tools" not in acompletion.call_args.kwargs

    @pytest.mark.asyncio
    async def test_passes_tools_and_normalizes_tool_calls(self, provider):
        response = make_response(
            tool_calls=[make_tool_call("c1", "read_file", '{"file_path": "a.md"}')]
        )
        tools = [{"type": "function", "function": {"name": "read_file"}}]

        with patch("litellm.acompletion", new=AsyncMock(return_value=response)) as acompletion:
            result = await provider.complete(
                [{"role": "user", "content": "read"}],
                model="other-model",
                tools=tools,
                tool_choice="auto",
            )

        kwargs = acompletion.call_args.kwargs
        assert kwargs["model"] == "other-model"
        assert kwargs["tools"] == tools
        assert kwargs["tool_choice"] == "auto"
        assert result["tool_calls"] == [
            {
                "id": "c1",
                "type": "function",
                "function": {"name": "read_file", "arguments": '{"file_path": "a.md"}'},
            }
        ]

    @pytest.mark.asyncio
    async def test_retries_transient_errors(self, provider):
        class RateLimitError(Exception):
            pass

        acompletion = AsyncMock(side_effect=[RateLimitError("slow down"), make_response("ok")])
        with patch("litellm.acompletion", new=acompletion), patch(
            "flint.infrastructure.llm.litellm_provider.asyncio.sleep", new=AsyncMock()
        ) as sleep:
            result = await provider.complete([{"role": "user", "content": "Hi"}])

        assert result["success"] is True
        assert acompletion.call_count == 2
        sleep.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_non_retryable_error_returns_failure(self, provider):
        acompletion = AsyncMock(side_effect=ValueError("bad request"))
        with patch("litellm.acompletion", new=acompletion):
            result = await provider.complete([{"role": "user", "content": "Hi"}])

        assert result == {
            "success": False,
            "error": "bad request",
            "error_type": "ValueError",
            "model": "gpt-4o",
        }
        assert acompletion.call_count == 1


class TestNormalizeToolCalls:
    def test_accepts_dicts(self):
        calls = [{"id": "x", "function": {"name": "save_output", "arguments": None}}]

        assert normalize_tool_calls(calls) == [
            {"id": "x", "type": "function", "function": {"name": "save_output", "arguments": "{}"}}
        ]

    def test_none_is_empty(self):
        assert normalize_tool_calls(None) == []
