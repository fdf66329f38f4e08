"""Dispatch of model-issued tool calls.

``ToolExecutor.execute`` never raises: unknown tools, malformed arguments
and handler failures all come back as ``ToolResult(success=False)`` which
the loop feeds to the model.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable

import structlog

from flint.core.domain.errors import ToolExecutionError, WorkflowPreloadError
from flint.core.domain.models import PathContext, PreloadResult, ToolResult
from flint.infrastructure.filesystem.file_operations import FileOperations
from flint.infrastructure.tools.tool_converter import parse_tool_arguments
from flint.infrastructure.workflows.workflow_preloader import WorkflowPreloader

logger = structlog.get_logger()

ToolHandler = Callable[[dict[str, Any], PathContext], Awaitable[ToolResult]]


class ToolExecutor:
    """Name -> handler dispatch table for the engine's tools."""

    def __init__(
        self,
        file_operations: FileOperations | None = None,
        workflow_preloader: WorkflowPreloader | None = None,
    ):
        self.file_operations = file_operations or FileOperations()
        self.workflow_preloader = workflow_preloader or WorkflowPreloader()
        self.logger = logger.bind(component="tool_executor")
        self._handlers: dict[str, ToolHandler] = {
            "read_file": self._read_file,
            "save_output": self._save_output,
            "preload_workflow": self._preload_workflow,
        }

    @property
    def tool_names(self) -> list[str]:
        return list(self._handlers)

    async def execute(self, tool_call: dict[str, Any], context: PathContext) -> ToolResult:
        """
        Execute one tool call.

        Args:
            tool_call: OpenAI-format call ``{id, function: {name, arguments}}``
            context: Path context; its tool-call counter is incremented

        Returns:
            ToolResult of the call, failed results included
        """
        context.tool_call_count += 1
        name = (tool_call.get("function") or {}).get("name") or ""
        self.logger.info(
            "tool_execute",
            tool=name,
            tool_call_id=tool_call.get("id"),
            call_number=context.tool_call_count,
        )

        try:
            handler = self._handlers.get(name)
            if handler is None:
                raise ToolExecutionError(name, f"Unknown function: {name}")
            arguments = parse_tool_arguments(tool_call)
            result = await handler(arguments, context)
        except Exception as e:
            self.logger.error(
                "tool_execute_failed",
                tool=name,
                error_type=type(e).__name__,
                error=str(e),
            )
            return ToolResult.failure(str(e))

        self.logger.info(
            "tool_complete",
            tool=name,
            call_number=context.tool_call_count,
            success=result.success,
            error=result.error,
        )
        return result

    async def _read_file(self, arguments: dict[str, Any], context: PathContext) -> ToolResult:
        file_path = _required(arguments, "read_file", "file_path")
        return await self.file_operations.read_file(file_path, context)

    async def _save_output(self, arguments: dict[str, Any], context: PathContext) -> ToolResult:
        file_path = _required(arguments, "save_output", "file_path")
        content = arguments.get("content")
        if not isinstance(content, str):
            raise ToolExecutionError("save_output", "Missing required argument: content")
        return await self.file_operations.save_output(file_path, content, context)

    async def _preload_workflow(
        self, arguments: dict[str, Any], context: PathContext
    ) -> ToolResult:
        workflow_path = _required(arguments, "preload_workflow", "workflow_path")
        try:
            preloaded = await self.workflow_preloader.preload(workflow_path, context)
        except WorkflowPreloadError as e:
            return ToolResult.failure(str(e), path=workflow_path)
        return ToolResult(success=True, extra=preload_payload(preloaded))


def preload_payload(preloaded: PreloadResult) -> dict[str, Any]:
    """Shape a PreloadResult for the model."""
    files: dict[str, Any] = {
        "workflow_config": {
            "path": preloaded.workflow.path,
            "content": preloaded.workflow.content,
        },
        "config": {
            "path": preloaded.config_file.path,
            "content": preloaded.config_file.content,
            "parsed": preloaded.config,
        },
        "instructions": {
            "path": preloaded.instructions.path,
            "content": preloaded.instructions.content,
        },
        "template": None,
        "workflow_engine": {
            "path": preloaded.engine.path,
            "content": preloaded.engine.content,
        },
    }
    if preloaded.template is not None:
        files["template"] = {
            "path": preloaded.template.path,
            "content": preloaded.template.content,
        }
    if preloaded.elicitation is not None:
        files["elicit_task"] = {
            "path": preloaded.elicitation.path,
            "content": preloaded.elicitation.content,
        }
    return {
        "files": files,
        "files_loaded": preloaded.files_loaded,
        "message": preloaded.message,
    }


def _required(arguments: dict[str, Any], tool: str, name: str) -> str:
    value = arguments.get(name)
    if not isinstance(value, str) or not value:
        raise ToolExecutionError(tool, f"Missing required argument: {name}")
    return value
