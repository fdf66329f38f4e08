"""
Tool Converter - message conversion at the model boundary.

Tool results stay typed (ToolResult) inside the engine; these helpers turn
them and the model's tool calls into OpenAI-format messages.
"""

import json
from typing import Any

from flint.core.domain.models import ToolResult


def tool_result_to_message(tool_call_id: str, result: ToolResult) -> dict[str, Any]:
    """
    Convert a tool execution result to an OpenAI tool message.

    Args:
        tool_call_id: The unique ID from the tool_call request
        result: Result of the tool execution

    Returns:
        Message dict in OpenAI tool response format:
        {
            "role": "tool",
            "tool_call_id": "...",
            "content": "JSON string of result"
        }

    Example:
        >>> msg = tool_result_to_message("call_abc123", ToolResult(success=True, size=3))
        >>> msg["content"]
        '{"success": true, "size": 3}'
    """
    return {
        "role": "tool",
        "tool_call_id": tool_call_id,
        "content": json.dumps(result.to_dict(), ensure_ascii=False, default=str),
    }


def assistant_message(
    content: str | None,
    tool_calls: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """
    Create the assistant message appended after each model call.

    The ``tool_calls`` key is only present when the model requested tools,
    and must precede the tool messages answering them.
    """
    message: dict[str, Any] = {"role": "assistant", "content": content}
    if tool_calls:
        message["tool_calls"] = tool_calls
    return message


def parse_tool_arguments(tool_call: dict[str, Any]) -> dict[str, Any]:
    """
    Decode the JSON arguments of a tool call.

    Raises:
        ValueError: If the arguments are not a JSON object
    """
    raw = (tool_call.get("function") or {}).get("arguments") or "{}"
    if isinstance(raw, dict):
        return raw
    try:
        arguments = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid tool arguments (not valid JSON): {e.msg}") from e
    if not isinstance(arguments, dict):
        raise ValueError("Invalid tool arguments: expected a JSON object")
    return arguments
