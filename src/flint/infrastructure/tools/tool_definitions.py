"""
Tool Definitions - schemas of the tools offered to the model.

Schemas use the OpenAI function calling format and are passed unchanged to
the model client on every loop iteration.
"""

from typing import Any

READ_FILE_TOOL: dict[str, Any] = {
    "type": "function",
    "function": {
        "name": "read_file",
        "description": (
            "Read a file from the agent bundle, the core library or the project. "
            "Supports path variables: {bundle-root}, {core-root}, {project-root}."
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "file_path": {
                    "type": "string",
                    "description": "Path of the file, e.g. {bundle-root}/config.yaml",
                },
            },
            "required": ["file_path"],
        },
    },
}

SAVE_OUTPUT_TOOL: dict[str, Any] = {
    "type": "function",
    "function": {
        "name": "save_output",
        "description": (
            "Save content to a file under {project-root}/data/conversations. "
            "Use a descriptive filename based on the content, "
            "e.g. budget-analysis-q3.md, never output.md or result.txt."
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "file_path": {
                    "type": "string",
                    "description": (
                        "Path of the file to write, "
                        "e.g. {project-root}/data/conversations/procurement-request.md"
                    ),
                },
                "content": {
                    "type": "string",
                    "description": "Full content to write",
                },
            },
            "required": ["file_path", "content"],
        },
    },
}

PRELOAD_WORKFLOW_TOOL: dict[str, Any] = {
    "type": "function",
    "function": {
        "name": "preload_workflow",
        "description": (
            "Load a workflow and all of its files (config, instructions, template, "
            "workflow engine rules) in one call. Use this instead of several "
            "read_file calls whenever a command runs a workflow."
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "workflow_path": {
                    "type": "string",
                    "description": "Path of the workflow.yaml, e.g. {bundle-root}/workflows/budget/workflow.yaml",
                },
            },
            "required": ["workflow_path"],
        },
    },
}


def get_tool_definitions() -> list[dict[str, Any]]:
    """Return the schemas of every tool, in catalog order."""
    return [READ_FILE_TOOL, SAVE_OUTPUT_TOOL, PRELOAD_WORKFLOW_TOOL]
