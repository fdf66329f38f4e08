"""
Exception hierarchy for the agent execution engine.

Errors raised during initialization (agent lookup, critical actions)
propagate to the caller and abort the execution. Errors raised while a tool
runs are converted into a failed ToolResult so the model can react.
"""


class FlintError(Exception):
    """Base exception for all engine errors."""


class AgentNotFoundError(FlintError):
    """Requested agent is not in the catalog."""

    def __init__(self, agent_id: str):
        self.agent_id = agent_id
        super().__init__(f"Agent not found: {agent_id}")


class ModelTransportError(FlintError):
    """The model client failed to produce a response."""

    def __init__(self, reason: str, error_type: str | None = None):
        self.reason = reason
        self.error_type = error_type
        super().__init__(f"Model API error: {reason}")


class MaxIterationsExceededError(FlintError):
    """The loop hit its iteration budget without a final answer."""

    def __init__(self, max_iterations: int):
        self.max_iterations = max_iterations
        super().__init__(
            f"Maximum iterations ({max_iterations}) exceeded. "
            "Possible infinite loop detected."
        )


class ToolExecutionError(FlintError):
    """A tool call could not be carried out."""

    def __init__(self, tool_name: str, reason: str):
        self.tool_name = tool_name
        self.reason = reason
        super().__init__(reason)


class PathResolutionError(FlintError):
    """A path template could not be turned into a filesystem path."""


class UnknownVariableError(PathResolutionError):
    """A ``{name}`` token has no value in the path context."""

    def __init__(self, name: str, available: list[str]):
        self.name = name
        self.available = available
        super().__init__(
            f"Unknown path variable: {{{name}}}. "
            f"Available variables: {', '.join(sorted(available))}"
        )


class PathSecurityError(PathResolutionError):
    """A path escapes the sandbox or targets a protected location.

    Messages always start with ``Security violation`` and never contain the
    offending absolute path.
    """

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Security violation: {reason}")


class FilenameValidationError(FlintError):
    """An output filename is not descriptive enough to be accepted."""

    def __init__(self, filename: str, message: str):
        self.filename = filename
        super().__init__(message)


class ConfigParseError(FlintError):
    """A config file loaded by a critical action is not a YAML mapping."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to parse config {path}: {reason}")


class CriticalActionError(FlintError):
    """A critical action failed, so the agent cannot be initialized."""

    def __init__(self, instruction: str, cause: Exception):
        self.instruction = instruction
        self.cause = cause
        super().__init__(f"Critical action failed: {instruction}\nError: {cause}")


class WorkflowPreloadError(FlintError):
    """A workflow could not be preloaded in full."""

    def __init__(self, workflow_path: str, reason: str):
        self.workflow_path = workflow_path
        self.reason = reason
        super().__init__(f"Failed to preload workflow {workflow_path}: {reason}")
