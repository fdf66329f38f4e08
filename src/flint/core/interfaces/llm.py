"""
LLM Provider Protocol

The execution loop only depends on this protocol; LiteLLMProvider is the
production implementation and tests substitute an AsyncMock.
"""

from typing import Any, Protocol


class LLMProviderProtocol(Protocol):
    """
    Model client accepting OpenAI-format messages and tool schemas.

    ``complete`` never raises for API failures. It returns a dict:

    Success::

        {
            "success": True,
            "content": "text or None",
            "tool_calls": [{"id": "...", "type": "function",
                            "function": {"name": "...", "arguments": "{...}"}}],
            "usage": {...},
        }

    Failure::

        {"success": False, "error": "...", "error_type": "RateLimitError"}
    """

    async def complete(
        self,
        messages: list[dict[str, Any]],
        model: str | None = None,
        tools: list[dict[str, Any]] | None = None,
        tool_choice: str | None = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        ...
