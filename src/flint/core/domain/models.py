"""
Core Domain Models

This module defines the data models shared by the execution engine: the
path context every file access is scoped to, the parsed agent definition,
and the result types produced by tools and by the execution loop.
"""

import os
from dataclasses import dataclass, field
from datetime import date
from typing import Any


@dataclass
class PathContext:
    """
    Variables and sandbox roots for one execution.

    Built once per execution. Only the critical-actions config merge and the
    tool-call counter mutate it afterwards.

    Attributes:
        bundle_root: Root directory of the agent's bundle
        core_root: Read-only core directory shared by all bundles
        project_root: Project directory all other roots live under
        output_root: The only subtree writes may target
        protected_roots: Subtrees that are never writable
        config: Config merged from critical actions (empty until loaded)
        tool_call_count: Number of tool calls dispatched so far
        today: Value of the ``{date}`` variable
    """

    bundle_root: str
    core_root: str
    project_root: str
    output_root: str
    protected_roots: list[str] = field(default_factory=list)
    config: dict[str, Any] = field(default_factory=dict)
    tool_call_count: int = 0
    today: str = field(default_factory=lambda: date.today().isoformat())
    _config_variables: dict[str, str] = field(default_factory=dict, init=False, repr=False)

    def roots(self) -> dict[str, str]:
        """Return the sandbox roots keyed by their variable name."""
        return {
            "bundle-root": self.bundle_root,
            "core-root": self.core_root,
            "project-root": self.project_root,
        }

    def variables(self) -> dict[str, str]:
        """
        Flat name -> value mapping used for ``{name}`` substitution.

        Root variables always win over config keys of the same name.
        """
        values = dict(self._config_variables)
        values["date"] = self.today
        values.update(self.roots())
        values["project_root"] = self.project_root
        return values

    def merge_config(self, config: dict[str, Any]) -> None:
        """
        Merge parsed config and expose its scalar values as variables.

        Root tokens inside config values are substituted here, once, so a
        value like ``{project-root}/data`` becomes usable in a path template
        without recursive resolution later.
        """
        self.config.update(config)
        roots = self.roots()
        roots["project_root"] = self.project_root
        for key, value in config.items():
            if isinstance(value, bool) or not isinstance(value, (str, int, float)):
                continue
            text = str(value)
            for name, root in roots.items():
                text = text.replace("{" + name + "}", root)
            self._config_variables[str(key)] = text


@dataclass
class Persona:
    """Persona section of an agent definition."""

    role: str = ""
    identity: str = ""
    communication_style: str = ""
    principles: str = ""


@dataclass
class AgentCommand:
    """
    A command the agent advertises to the user.

    Attributes:
        trigger: Text the user types (e.g. ``*budget``)
        description: Human-readable description
        workflow: Optional workflow path template run by the command
    """

    trigger: str
    description: str = ""
    workflow: str | None = None


@dataclass
class AgentDefinition:
    """
    Parsed agent document plus the bundle metadata it was found in.

    Missing sections default to empty values, never errors.
    """

    id: str
    name: str = ""
    title: str = ""
    icon: str = ""
    description: str = ""
    bundle_name: str = ""
    bundle_path: str = ""
    file_path: str = ""
    content: str = ""
    persona: Persona = field(default_factory=Persona)
    critical_actions: list[str] = field(default_factory=list)
    commands: list[AgentCommand] = field(default_factory=list)

    @property
    def directory(self) -> str:
        """Directory containing the agent file (bundle path as fallback)."""
        if self.file_path:
            return os.path.dirname(self.file_path)
        return self.bundle_path


@dataclass
class ToolResult:
    """
    Canonical outcome of one tool execution.

    Kept typed inside the engine and serialized with ``to_dict`` only when it
    crosses the model boundary as a tool message.
    """

    success: bool
    path: str | None = None
    content: str | None = None
    size: int | None = None
    error: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"success": self.success}
        for key in ("path", "content", "size", "error"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        data.update(self.extra)
        return data

    @classmethod
    def failure(cls, error: str, path: str | None = None) -> "ToolResult":
        return cls(success=False, error=error, path=path)


@dataclass
class LoadedFile:
    """A file read during workflow preloading."""

    path: str
    content: str


@dataclass
class PreloadResult:
    """
    Every file a workflow needs, loaded in one operation.

    Attributes:
        workflow: The workflow definition file (raw text)
        definition: Parsed workflow definition
        config: Parsed config referenced by ``config_source``
        config_file: Raw config file
        instructions: Instructions file
        template: Template file, or None when the workflow declares none
        engine: Shared workflow engine rules
        elicitation: Elicitation helper, loaded only when instructions ask for it
        files_loaded: Path templates of every loaded file, in load order
        message: Status message for the model
    """

    workflow: LoadedFile
    definition: dict[str, Any]
    config: Any
    config_file: LoadedFile
    instructions: LoadedFile
    template: LoadedFile | None
    engine: LoadedFile
    elicitation: LoadedFile | None = None
    files_loaded: list[str] = field(default_factory=list)
    message: str = ""


@dataclass
class CriticalContext:
    """Messages and merged config produced by an agent's critical actions."""

    messages: list[dict[str, Any]] = field(default_factory=list)
    config: dict[str, Any] | None = None


@dataclass
class ExecutionResult:
    """
    Result of one execution of the agent loop.

    Attributes:
        success: True when the model produced a tool-call-free answer
        response: Final assistant text
        iterations: Number of model calls made
        messages: Full message sequence of the execution
    """

    success: bool
    response: str
    iterations: int
    messages: list[dict[str, Any]] = field(default_factory=list)
