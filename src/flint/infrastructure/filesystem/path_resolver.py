"""Path variable resolution and sandbox validation.

Every file access made on behalf of an agent goes through ``resolve_path``:
``{name}`` tokens are substituted from the PathContext and the result must
stay inside the bundle, core or project root. Writes are additionally
checked by ``validate_write_path``, which confines them to the output root.
"""

from __future__ import annotations

import os
import re

import structlog

from flint.core.domain.errors import PathSecurityError, UnknownVariableError
from flint.core.domain.models import PathContext

logger = structlog.get_logger().bind(component="path_resolver")

VARIABLE_PATTERN = re.compile(r"\{([A-Za-z0-9_-]+)\}")

DEPRECATED_OUTPUT_DIR = os.path.join("data", "agent-outputs")


def resolve_path(template: str, context: PathContext) -> str:
    """Resolve a path template to an absolute path inside the sandbox.

    Args:
        template: Path with ``{variable}`` tokens, e.g. ``{bundle-root}/config.yaml``
        context: Variables and roots of the current execution

    Returns:
        Normalized absolute path

    Raises:
        PathSecurityError: Traversal attempt, invalid characters or a path
            outside every allowed root
        UnknownVariableError: A token has no value in the context
    """
    # Must run before normalization, which would silently drop the segments
    _reject_traversal(template)

    variables = context.variables()

    def substitute(match: re.Match) -> str:
        name = match.group(1)
        if name not in variables:
            raise UnknownVariableError(name, list(variables))
        return variables[name]

    substituted = VARIABLE_PATTERN.sub(substitute, template)
    _reject_traversal(substituted)

    if not os.path.isabs(substituted):
        substituted = os.path.join(context.project_root, substituted)
    normalized = os.path.normpath(substituted)

    real_path = _real_path(normalized)
    if real_path != normalized and os.path.islink(normalized):
        logger.warning("path_symlink_followed", template=template)

    allowed = [_real_path(root) for root in context.roots().values()]
    if not any(_is_within(real_path, root) for root in allowed):
        logger.warning(
            "path_access_denied",
            template=template,
            allowed_roots=list(context.roots()),
        )
        raise PathSecurityError("Access denied")

    return normalized


def validate_write_path(path: str, context: PathContext) -> None:
    """Check that a resolved path may be written.

    Only the output root is writable. The deprecated ``data/agent-outputs``
    directory and the protected source directories are rejected even though
    they live under the project root.

    Raises:
        PathSecurityError: If the path is not writable
    """
    real_path = _real_path(os.path.normpath(path))

    deprecated = _real_path(os.path.join(context.project_root, DEPRECATED_OUTPUT_DIR))
    if _is_within(real_path, deprecated):
        raise PathSecurityError(
            "data/agent-outputs is deprecated. "
            "Save files under the conversations output directory instead"
        )

    for protected in context.protected_roots:
        if _is_within(real_path, _real_path(protected)):
            logger.warning(
                "write_to_protected_directory",
                directory=os.path.basename(protected),
            )
            raise PathSecurityError("Write access to protected directory denied")

    if not _is_within(real_path, _real_path(context.output_root)):
        raise PathSecurityError(
            "Writes are only allowed inside the output directory "
            "({project-root}/"
            + os.path.relpath(context.output_root, context.project_root).replace(os.sep, "/")
            + ")"
        )


def is_within(path: str, root: str) -> bool:
    """True if ``path`` is ``root`` or lies below it, after resolving symlinks."""
    return _is_within(_real_path(os.path.normpath(path)), _real_path(root))


def _reject_traversal(value: str) -> None:
    if ".." in value:
        logger.warning("path_traversal_rejected")
        raise PathSecurityError("Path traversal attempt detected")
    if "\x00" in value:
        raise PathSecurityError("Invalid path characters detected")


def _real_path(path: str) -> str:
    try:
        return os.path.realpath(path, strict=True)
    except FileNotFoundError:
        # Not created yet: keep the normalized tail, resolve what exists
        return os.path.realpath(path)
    except OSError as e:
        logger.warning("path_validation_failed", error_type=type(e).__name__)
        raise PathSecurityError("Unable to validate path") from e


def _is_within(path: str, root: str) -> bool:
    if path == root:
        return True
    prefix = root if root.endswith(os.sep) else root + os.sep
    return path.startswith(prefix)
