"""
Agent Definition Parsing

Agent documents are markdown files with an embedded XML-like block:

    <agent id="finance/analyst" name="Casey" title="Financial Analyst" icon="💰">
      <persona>
        <role>Budget analyst</role>
        <identity>...</identity>
        <communication_style>...</communication_style>
        <principles>...</principles>
      </persona>
      <critical-actions>
        <i>Load into memory {bundle-root}/config.yaml and set variables: user_name</i>
      </critical-actions>
      <cmds>
        <c cmd="*budget" run-workflow="{bundle-root}/workflows/budget/workflow.yaml">Review a budget</c>
      </cmds>
    </agent>

Extraction is tag-scoped and tolerant: absent or malformed sections yield
empty values instead of errors.
"""

import html
import re

from flint.core.domain.models import AgentCommand, AgentDefinition, Persona

_AGENT_TAG = re.compile(r"<agent\b([^>]*)>", re.IGNORECASE)
_ATTRIBUTE = re.compile(r"([A-Za-z_][\w-]*)\s*=\s*(?:\"([^\"]*)\"|'([^']*)')")
_CRITICAL_ACTIONS = re.compile(
    r"<critical-actions\b[^>]*>(.*?)</critical-actions>", re.IGNORECASE | re.DOTALL
)
_ITEM = re.compile(r"<i\b[^>]*>(.*?)</i>", re.IGNORECASE | re.DOTALL)
_COMMANDS = re.compile(r"<cmds\b[^>]*>(.*?)</cmds>", re.IGNORECASE | re.DOTALL)
_COMMAND = re.compile(r"<c\b([^>]*)>(.*?)</c>", re.IGNORECASE | re.DOTALL)


def parse_attributes(fragment: str) -> dict[str, str]:
    """Parse ``key="value"`` pairs from the inside of a start tag."""
    attributes = {}
    for match in _ATTRIBUTE.finditer(fragment):
        value = match.group(2) if match.group(2) is not None else match.group(3)
        attributes[match.group(1).lower()] = html.unescape(value)
    return attributes


def extract_tag(content: str, tag: str) -> str:
    """Return the stripped text of the first ``<tag>...</tag>``, or ``""``."""
    match = re.search(
        rf"<{re.escape(tag)}\b[^>]*>(.*?)</{re.escape(tag)}>",
        content,
        re.IGNORECASE | re.DOTALL,
    )
    return match.group(1).strip() if match else ""


def extract_critical_actions(content: str) -> list[str]:
    block = _CRITICAL_ACTIONS.search(content)
    if not block:
        return []
    items = (html.unescape(item.strip()) for item in _ITEM.findall(block.group(1)))
    return [item for item in items if item]


def extract_commands(content: str) -> list[AgentCommand]:
    block = _COMMANDS.search(content)
    if not block:
        return []

    commands = []
    for attributes_text, description in _COMMAND.findall(block.group(1)):
        attributes = parse_attributes(attributes_text)
        trigger = attributes.get("cmd", "").strip()
        if not trigger:
            continue
        workflow = attributes.get("run-workflow") or attributes.get("workflow") or None
        commands.append(
            AgentCommand(
                trigger=trigger,
                description=html.unescape(description.strip()),
                workflow=workflow,
            )
        )
    return commands


def parse_agent_definition(
    content: str,
    agent_id: str = "",
    *,
    file_path: str = "",
    bundle_name: str = "",
    bundle_path: str = "",
) -> AgentDefinition:
    """
    Parse an agent document into an AgentDefinition.

    Args:
        content: Full text of the agent file
        agent_id: Fallback id when the ``<agent>`` tag has none
        file_path: Absolute path of the agent file
        bundle_name: Name of the bundle the agent ships in
        bundle_path: Root directory of that bundle

    Returns:
        AgentDefinition with empty defaults for absent sections
    """
    agent_tag = _AGENT_TAG.search(content)
    attributes = parse_attributes(agent_tag.group(1)) if agent_tag else {}

    return AgentDefinition(
        id=attributes.get("id") or agent_id,
        name=attributes.get("name", ""),
        title=attributes.get("title", ""),
        icon=attributes.get("icon", ""),
        bundle_name=bundle_name,
        bundle_path=bundle_path,
        file_path=file_path,
        content=content,
        persona=Persona(
            role=extract_tag(content, "role"),
            identity=extract_tag(content, "identity"),
            communication_style=extract_tag(content, "communication_style"),
            principles=extract_tag(content, "principles"),
        ),
        critical_actions=extract_critical_actions(content),
        commands=extract_commands(content),
    )
