"""
Critical Actions

An agent's critical actions run once, before the first user message is
processed. Most of them load files (typically the bundle config) into the
conversation; the rest are plain instructions that may reference config
values as ``{key}``.

Processing is strictly ordered and all-or-nothing: the first failure aborts
initialization with a CriticalActionError.
"""

import os
import re
from typing import Any

import aiofiles
import structlog
import yaml

from flint.core.domain.errors import ConfigParseError, CriticalActionError
from flint.core.domain.models import AgentDefinition, CriticalContext, PathContext
from flint.infrastructure.filesystem.path_resolver import resolve_path

logger = structlog.get_logger()

LOAD_PATTERN = re.compile(
    r"^Load\s+(?:into\s+memory\s+)?(.+?)(?:\s+and\s+set\s+variables:\s*(.+))?$",
    re.IGNORECASE | re.DOTALL,
)
CONFIG_TOKEN = re.compile(r"\{([^{}\s]+)\}")
CONFIG_SUFFIXES = ("config.yaml", "config.yml")


class CriticalActionsProcessor:
    """Runs an agent's critical actions against a path context."""

    def __init__(self):
        self.logger = logger.bind(component="critical_actions")

    async def process(self, agent: AgentDefinition, context: PathContext) -> CriticalContext:
        """
        Run the agent's critical actions in order.

        Loaded config is merged into ``context`` as it is read, so later
        actions (and every tool call of the execution) can use its keys.

        Args:
            agent: Agent whose critical actions to run
            context: Path context rooted at the agent's bundle

        Returns:
            CriticalContext with one system message per action and the merged
            config (None when the agent has no critical actions)

        Raises:
            CriticalActionError: On the first failing action
        """
        if not agent.critical_actions:
            return CriticalContext()

        self.logger.info(
            "critical_actions_start",
            agent_id=agent.id,
            count=len(agent.critical_actions),
        )

        messages: list[dict[str, Any]] = []
        config: dict[str, Any] = {}

        for index, instruction in enumerate(agent.critical_actions, start=1):
            try:
                match = LOAD_PATTERN.match(instruction.strip())
                if match:
                    message = await self._load_file(
                        match.group(1), match.group(2), config, context
                    )
                else:
                    message = (
                        "[Critical Instruction] "
                        + substitute_config(instruction, config)
                    )
            except Exception as e:
                self.logger.error(
                    "critical_action_failed",
                    agent_id=agent.id,
                    index=index,
                    error_type=type(e).__name__,
                    error=str(e),
                )
                raise CriticalActionError(instruction, e) from e

            messages.append({"role": "system", "content": message})

        self.logger.info(
            "critical_actions_complete",
            agent_id=agent.id,
            messages=len(messages),
            config_keys=len(config),
        )
        return CriticalContext(messages=messages, config=config)

    async def _load_file(
        self,
        raw_path: str,
        variables: str | None,
        config: dict[str, Any],
        context: PathContext,
    ) -> str:
        path_template = raw_path.strip().strip("`'\"")
        resolved = resolve_path(path_template, context)
        async with aiofiles.open(resolved, "r", encoding="utf-8") as f:
            content = await f.read()

        if os.path.basename(resolved).lower().endswith(CONFIG_SUFFIXES):
            loaded = parse_config(path_template, content)
            config.update(loaded)
            context.merge_config(loaded)

            for name in _variable_names(variables):
                if name not in config:
                    self.logger.warning(
                        "critical_action_variable_missing",
                        variable=name,
                        path=path_template,
                    )

        self.logger.info("critical_action_loaded", path=path_template, size=len(content))
        return f"[Critical Action] Loaded file: {path_template}\n\n{content}"


def parse_config(path: str, content: str) -> dict[str, Any]:
    """Parse a config file; an empty file is an empty config."""
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigParseError(path, str(e)) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigParseError(path, "expected a YAML mapping at the top level")
    return data


def substitute_config(text: str, config: dict[str, Any]) -> str:
    """Replace ``{key}`` with config values; unknown tokens stay verbatim."""

    def replace(match: re.Match) -> str:
        key = match.group(1)
        if key in config and config[key] is not None:
            return str(config[key])
        return match.group(0)

    return CONFIG_TOKEN.sub(replace, text)


def _variable_names(variables: str | None) -> list[str]:
    if not variables:
        return []
    return [name.strip() for name in variables.split(",") if name.strip()]
