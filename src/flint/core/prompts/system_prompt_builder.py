"""
System Prompt Builder

Turns an agent definition into the system message that opens every
execution. The section order is fixed:

1. identity header
2. IDENTITY
3. COMMUNICATION STYLE
4. PRINCIPLES
5. CRITICAL INSTRUCTIONS FOR TOOL USAGE
6. AVAILABLE TOOLS
7. WORKFLOW EXECUTION PATTERN
8. AVAILABLE COMMANDS (omitted when the agent has none)
9. ENVIRONMENT VARIABLES
"""

import os
from typing import Any

from flint.core.domain.models import AgentDefinition, PathContext
from flint.infrastructure.tools.tool_definitions import get_tool_definitions

TOOL_USAGE_RULES = """CRITICAL INSTRUCTIONS FOR TOOL USAGE:
- When you see instructions to load files, you MUST use the read_file tool. Do not pretend a file was loaded.
- DO NOT just acknowledge file load instructions - actually call the tools.
- When a command runs a workflow, call preload_workflow with the workflow path before doing anything else.
- When you produce a document for the user, call save_output with a descriptive filename.
- You have access to tools - use them actively, not just describe them.
- If a tool returns an error, read the error message, correct the call and try again."""

WORKFLOW_PATTERN = """WORKFLOW EXECUTION PATTERN:
1. The user selects a command that has an associated workflow.
2. Call preload_workflow with that workflow path. It returns the workflow config, instructions, template and workflow engine rules in one result.
3. Do NOT call read_file for files preload_workflow already returned.
4. Follow the workflow engine rules and execute the instructions step by step.
5. Save the resulting document with save_output under {project-root}/data/conversations."""


def _section(title: str, body: str) -> str:
    return f"{title}\n{body}" if body else ""


def _tool_catalog(tools: list[dict[str, Any]]) -> str:
    lines = ["AVAILABLE TOOLS:"]
    for tool in tools:
        function = tool["function"]
        params = ", ".join(function.get("parameters", {}).get("properties", {}))
        lines.append(f"- {function['name']}({params}): {function['description']}")
    return "\n".join(lines)


def _commands(agent: AgentDefinition) -> str:
    if not agent.commands:
        return ""
    lines = ["AVAILABLE COMMANDS:"]
    for command in agent.commands:
        entry = f"{command.trigger} - {command.description}".rstrip(" -")
        if command.workflow:
            entry += f"\n  Workflow: {command.workflow}"
        lines.append(entry)
    return "\n".join(lines)


def _environment(agent: AgentDefinition, context: PathContext) -> str:
    output_dir = os.path.relpath(context.output_root, context.project_root).replace(os.sep, "/")
    lines = [
        "ENVIRONMENT VARIABLES:",
        f"- {{project-root}} or {{project_root}} = {context.project_root}",
        f"- {{bundle-root}} = {context.bundle_root}",
        f"- {{core-root}} = {context.core_root}",
        f"- Output directory = {{project-root}}/{output_dir}",
    ]
    agent_directory = agent.directory or context.bundle_root
    lines.append(f"- Agent directory = {agent_directory}")
    return "\n".join(lines)


def build_system_prompt(agent: AgentDefinition, context: PathContext) -> str:
    """
    Build the system prompt for an agent.

    Pure function of its inputs. Absent persona fields drop their section;
    no section ever prints ``None``.

    Args:
        agent: Parsed agent definition
        context: Path context supplying the environment glossary

    Returns:
        System prompt text
    """
    name = agent.name or agent.id or "an AI assistant"
    header = f"You are {name}, {agent.title}." if agent.title else f"You are {name}."
    if agent.persona.role:
        header += f"\n\n{agent.persona.role}"

    sections = [
        header,
        _section("IDENTITY:", agent.persona.identity),
        _section("COMMUNICATION STYLE:", agent.persona.communication_style),
        _section("PRINCIPLES:", agent.persona.principles),
        TOOL_USAGE_RULES,
        _tool_catalog(get_tool_definitions()),
        WORKFLOW_PATTERN,
        _commands(agent),
        _environment(agent, context),
    ]
    return "\n\n".join(section for section in sections if section)
