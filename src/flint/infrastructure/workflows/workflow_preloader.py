"""
Workflow Preloader

Loads every file a workflow needs in a single operation instead of one
model-directed ``read_file`` call per file.

A workflow definition is a YAML file such as::

    name: budget-review
    installed_path: "{project-root}/bmad/custom/bundles/finance/workflows/budget"
    config_source: "{bundle-root}/config.yaml"
    instructions: "{installed_path}/instructions.md"
    template: "{installed_path}/template.md"     # or false

Fields ending in ``_path`` define workflow-internal variables. They are
substituted into ``config_source``, ``instructions`` and ``template`` by
bounded fixed-point iteration; the remaining ``{root}`` tokens go through
the normal path resolver.
"""

from __future__ import annotations

import asyncio
import os
from typing import Any

import aiofiles
import structlog
import yaml

from flint.core.domain.errors import FlintError, WorkflowPreloadError
from flint.core.domain.models import LoadedFile, PathContext, PreloadResult
from flint.infrastructure.filesystem.path_resolver import resolve_path

logger = structlog.get_logger()

ENGINE_PATH = "{core-root}/tasks/workflow.md"
ELICITATION_PATH = "{core-root}/tasks/adv-elicit.md"
ELICITATION_MARKER = "<elicit-required>"

MAX_SUBSTITUTION_ROUNDS = 10


async def read_text(path: str) -> str:
    async with aiofiles.open(path, "r", encoding="utf-8") as f:
        return await f.read()


def internal_variables(definition: dict[str, Any]) -> dict[str, str]:
    """Collect workflow-internal path variables (``installed_path`` etc.)."""
    return {
        str(key): value
        for key, value in definition.items()
        if str(key).endswith("_path") and isinstance(value, str)
    }


def substitute_internal(value: str, variables: dict[str, str]) -> str:
    """
    Replace internal variable tokens until the value stops changing.

    Capped at MAX_SUBSTITUTION_ROUNDS so a cyclic definition terminates;
    whatever tokens remain are left to the path resolver.
    """
    for _ in range(MAX_SUBSTITUTION_ROUNDS):
        updated = value
        for name, replacement in variables.items():
            updated = updated.replace("{" + name + "}", replacement)
        if updated == value:
            return value
        value = updated

    logger.warning("workflow_substitution_limit_reached", value=value)
    return value


class WorkflowPreloader:
    """Batch loader for workflow definitions and their companion files."""

    def __init__(self):
        self.logger = logger.bind(component="workflow_preloader")

    async def preload(self, workflow_path: str, context: PathContext) -> PreloadResult:
        """
        Load a workflow and all of its files.

        Args:
            workflow_path: Path template of the workflow YAML
            context: Path context of the current execution

        Returns:
            PreloadResult with every file loaded

        Raises:
            WorkflowPreloadError: If any file is missing, unreadable, outside
                the sandbox or fails to parse. No partial result is returned.
        """
        self.logger.info("workflow_preload_start", workflow=workflow_path)

        try:
            result = await self._preload(workflow_path, context)
        except WorkflowPreloadError:
            raise
        except FileNotFoundError as e:
            raise WorkflowPreloadError(
                workflow_path, f"File not found: {e.filename}"
            ) from e
        except (FlintError, OSError, yaml.YAMLError, UnicodeDecodeError) as e:
            raise WorkflowPreloadError(workflow_path, str(e)) from e

        self.logger.info(
            "workflow_preloaded",
            workflow=workflow_path,
            files_loaded=len(result.files_loaded),
            elicitation=result.elicitation is not None,
        )
        return result

    async def _preload(self, workflow_path: str, context: PathContext) -> PreloadResult:
        workflow = await self._load(workflow_path, context)
        definition = yaml.safe_load(workflow.content)
        if not isinstance(definition, dict):
            raise WorkflowPreloadError(
                workflow_path, "Workflow definition must be a YAML mapping"
            )

        variables = internal_variables(definition)
        paths: dict[str, str | None] = {}
        for field in ("config_source", "instructions", "template"):
            value = definition.get(field)
            if field == "template" and (value is None or value is False):
                paths[field] = None
                continue
            if not isinstance(value, str) or not value.strip():
                raise WorkflowPreloadError(
                    workflow_path, f"Workflow definition missing required field: {field}"
                )
            paths[field] = substitute_internal(value, variables)

        loads = [
            self._load(paths["config_source"], context),
            self._load(paths["instructions"], context),
            self._load(ENGINE_PATH, context),
        ]
        if paths["template"] is not None:
            loads.append(self._load(paths["template"], context))

        # Independent files, read concurrently
        loaded = await asyncio.gather(*loads)
        config_file, instructions, engine = loaded[0], loaded[1], loaded[2]
        template = loaded[3] if len(loaded) > 3 else None

        config = yaml.safe_load(config_file.content)

        elicitation = None
        if ELICITATION_MARKER in instructions.content:
            elicitation = await self._load(ELICITATION_PATH, context)

        files_loaded = [workflow.path, config_file.path, instructions.path]
        if template is not None:
            files_loaded.append(template.path)
        files_loaded.append(engine.path)
        if elicitation is not None:
            files_loaded.append(elicitation.path)

        name = definition.get("name") or os.path.basename(workflow_path)
        return PreloadResult(
            workflow=workflow,
            definition=definition,
            config=config,
            config_file=config_file,
            instructions=instructions,
            template=template,
            engine=engine,
            elicitation=elicitation,
            files_loaded=files_loaded,
            message=build_status_message(str(name), files_loaded),
        )

    async def _load(self, template: str, context: PathContext) -> LoadedFile:
        resolved = resolve_path(template, context)
        content = await read_text(resolved)
        self.logger.debug("workflow_file_loaded", path=template, size=len(content))
        return LoadedFile(path=template, content=content)


def build_status_message(workflow_name: str, files_loaded: list[str]) -> str:
    listing = "\n".join(f"  - {path}" for path in files_loaded)
    return (
        f"Workflow '{workflow_name}' preloaded. "
        f"Files loaded ({len(files_loaded)}):\n{listing}\n\n"
        "All workflow files are included in this result. "
        "You do NOT need to call read_file for these files. "
        "Follow the workflow engine rules and the instructions now."
    )
