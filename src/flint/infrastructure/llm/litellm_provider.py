"""
LiteLLM model client.

Wraps ``litellm.acompletion`` with retry logic and returns plain dicts, so
the execution loop never handles provider-specific response objects.
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import litellm
import structlog

DEFAULT_RETRY_ERRORS = ["RateLimitError", "Timeout", "APIConnectionError", "ServiceUnavailable"]


@dataclass
class RetryPolicy:
    """Retry policy configuration."""

    max_attempts: int = 3
    backoff_multiplier: float = 2.0
    timeout: int = 60
    retry_on_errors: List[str] = field(default_factory=lambda: list(DEFAULT_RETRY_ERRORS))


class LiteLLMProvider:
    """
    Model client for any provider LiteLLM supports.

    Model names are passed straight to LiteLLM (``gpt-4o``,
    ``azure/<deployment>``, ``anthropic/claude-...``). API keys come from
    the provider's usual environment variables.
    """

    def __init__(
        self,
        default_model: str = "gpt-4o",
        retry_policy: Optional[RetryPolicy] = None,
        default_params: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize the provider.

        Args:
            default_model: Model used when ``complete`` gets no model
            retry_policy: Retry behaviour for transient errors
            default_params: Parameters merged into every call (temperature, ...)
        """
        self.default_model = default_model
        self.retry_policy = retry_policy or RetryPolicy()
        self.default_params = default_params or {}
        self.logger = structlog.get_logger().bind(component="litellm_provider")

    async def complete(
        self,
        messages: List[Dict[str, Any]],
        model: Optional[str] = None,
        tools: Optional[List[Dict[str, Any]]] = None,
        tool_choice: Optional[str] = None,
        **kwargs: Any,
    ) -> Dict[str, Any]:
        """
        Perform a completion with retry logic.

        Args:
            messages: OpenAI-format messages
            model: Model name or None (uses default)
            tools: Tool schemas in OpenAI function format
            tool_choice: Tool choice mode, usually "auto"
            **kwargs: Additional parameters (temperature, max_tokens, etc.)

        Returns:
            Dict with:
            - success: bool
            - content: str or None (if successful)
            - tool_calls: list of tool call dicts (if successful)
            - usage: Dict with token counts
            - error / error_type: str (if failed)
        """
        actual_model = model or self.default_model
        params = {**self.default_params, **kwargs}
        if tools:
            params["tools"] = tools
            if tool_choice:
                params["tool_choice"] = tool_choice

        for attempt in range(self.retry_policy.max_attempts):
            try:
                start_time = time.time()

                self.logger.info(
                    "llm_completion_started",
                    model=actual_model,
                    attempt=attempt + 1,
                    message_count=len(messages),
                    tools=len(tools or []),
                )

                response = await litellm.acompletion(
                    model=actual_model,
                    messages=messages,
                    timeout=self.retry_policy.timeout,
                    **params,
                )

                message = response.choices[0].message
                tool_calls = normalize_tool_calls(getattr(message, "tool_calls", None))
                token_stats = _usage(getattr(response, "usage", None))
                latency_ms = int((time.time() - start_time) * 1000)

                self.logger.info(
                    "llm_completion_success",
                    model=actual_model,
                    tokens=token_stats.get("total_tokens", 0),
                    tool_calls=len(tool_calls),
                    latency_ms=latency_ms,
                )

                return {
                    "success": True,
                    "content": message.content,
                    "tool_calls": tool_calls,
                    "usage": token_stats,
                    "model": actual_model,
                    "latency_ms": latency_ms,
                }

            except Exception as e:
                error_type = type(e).__name__
                error_msg = str(e)

                should_retry = attempt < self.retry_policy.max_attempts - 1 and any(
                    err_type in error_type or err_type in error_msg
                    for err_type in self.retry_policy.retry_on_errors
                )

                if should_retry:
                    backoff_time = self.retry_policy.backoff_multiplier**attempt
                    self.logger.warning(
                        "llm_completion_retry",
                        model=actual_model,
                        error_type=error_type,
                        attempt=attempt + 1,
                        backoff_seconds=backoff_time,
                    )
                    await asyncio.sleep(backoff_time)
                else:
                    self.logger.error(
                        "llm_completion_failed",
                        model=actual_model,
                        error_type=error_type,
                        error=error_msg[:200],
                        attempts=attempt + 1,
                    )
                    return {
                        "success": False,
                        "error": error_msg,
                        "error_type": error_type,
                        "model": actual_model,
                    }

        return {
            "success": False,
            "error": "Max retries exceeded",
            "model": actual_model,
        }


def normalize_tool_calls(tool_calls: Any) -> List[Dict[str, Any]]:
    """Convert provider tool call objects (or dicts) to plain dicts."""
    normalized = []
    for call in tool_calls or []:
        if isinstance(call, dict):
            function = call.get("function", {})
            call_id, call_type = call.get("id"), call.get("type")
            name, arguments = function.get("name"), function.get("arguments")
        else:
            call_id, call_type = getattr(call, "id", None), getattr(call, "type", None)
            name = getattr(call.function, "name", None)
            arguments = getattr(call.function, "arguments", None)
        normalized.append(
            {
                "id": call_id or "",
                "type": call_type or "function",
                "function": {"name": name or "", "arguments": arguments or "{}"},
            }
        )
    return normalized


def _usage(usage: Any) -> Dict[str, Any]:
    if usage is None:
        return {}
    if isinstance(usage, dict):
        return usage
    return {
        "total_tokens": getattr(usage, "total_tokens", 0),
        "prompt_tokens": getattr(usage, "prompt_tokens", 0),
        "completion_tokens": getattr(usage, "completion_tokens", 0),
    }
