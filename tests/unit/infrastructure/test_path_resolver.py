"""
Unit Tests for path resolution and write confinement.
"""

import os

import pytest

from flint.core.domain.errors import PathSecurityError, UnknownVariableError
from flint.infrastructure.filesystem.path_resolver import (
    resolve_path,
    validate_write_path,
)


class TestResolvePath:
    """Tests for resolve_path()."""

    def test_substitutes_bundle_root(self, context):
        """Test that {bundle-root}/x resolves to the normalized join."""
        resolved = resolve_path("{bundle-root}/x", context)

        assert resolved == os.path.normpath(os.path.join(context.bundle_root, "x"))

    def test_substitutes_every_root_variable(self, context):
        """Test core-root, project-root and the underscore alias."""
        assert resolve_path("{core-root}/tasks/workflow.md", context) == os.path.join(
            context.core_root, "tasks", "workflow.md"
        )
        assert resolve_path("{project-root}/data", context) == os.path.join(
            context.project_root, "data"
        )
        assert resolve_path("{project_root}/data", context) == os.path.join(
            context.project_root, "data"
        )

    def test_nonexistent_target_still_resolves(self, context):
        """Test that not-yet-created output files validate."""
        resolved = resolve_path(
            "{project-root}/data/conversations/new/report.md", context
        )

        assert resolved.endswith(os.path.join("conversations", "new", "report.md"))

    @pytest.mark.parametrize(
        "template",
        [
            "{bundle-root}/../../../etc/passwd",
            "../../etc/passwd",
            "{project-root}/data/..",
            "{bundle-root}/a/../b",
        ],
    )
    def test_traversal_rejected_before_normalization(self, context, template):
        """Test that any template containing '..' is rejected."""
        with pytest.raises(PathSecurityError, match="Path traversal attempt detected"):
            resolve_path(template, context)

    def test_unknown_variable_raises(self, context):
        """Test that a token missing from the context is an error."""
        with pytest.raises(UnknownVariableError, match="missing-var"):
            resolve_path("{missing-var}/file.md", context)

    def test_absolute_path_outside_roots_denied(self, context):
        """Test that access outside every root is denied without leaking the path."""
        with pytest.raises(PathSecurityError) as exc_info:
            resolve_path("/etc/passwd", context)

        assert str(exc_info.value) == "Security violation: Access denied"

    def test_sibling_prefix_is_not_inside_root(self, context, tmp_path):
        """Test that /x/project-evil is not accepted as being under /x/project."""
        evil = tmp_path / "project-evil"
        evil.mkdir()

        with pytest.raises(PathSecurityError, match="Access denied"):
            resolve_path(str(evil / "secret.txt"), context)

    def test_symlink_escaping_root_denied(self, context, tmp_path):
        """Test that a symlink pointing outside the sandbox is rejected."""
        outside = tmp_path / "outside.txt"
        outside.write_text("secret", encoding="utf-8")
        link = os.path.join(context.bundle_root, "link.txt")
        os.symlink(outside, link)

        with pytest.raises(PathSecurityError, match="Access denied"):
            resolve_path("{bundle-root}/link.txt", context)

    def test_null_byte_rejected(self, context):
        with pytest.raises(PathSecurityError, match="Invalid path characters"):
            resolve_path("{bundle-root}/config.yaml\x00.md", context)

    def test_relative_path_anchored_at_project_root(self, context):
        """Test that a template without variables is relative to the project."""
        assert resolve_path("data/conversations/a.md", context) == os.path.join(
            context.project_root, "data", "conversations", "a.md"
        )

    def test_config_variables_available_after_merge(self, context):
        """Test that merged config values become single-pass variables."""
        context.merge_config({"output_folder": "{project-root}/data/conversations"})

        resolved = resolve_path("{output_folder}/summary.md", context)

        assert resolved == os.path.join(
            context.project_root, "data", "conversations", "summary.md"
        )


class TestValidateWritePath:
    """Tests for validate_write_path()."""

    def test_output_directory_is_writable(self, context):
        path = os.path.join(context.output_root, "session-1", "budget-review.md")

        validate_write_path(path, context)

    def test_project_root_outside_output_rejected(self, context):
        """Test that a path nominally under the project root is still rejected."""
        path = os.path.join(context.project_root, "notes", "budget.md")

        with pytest.raises(PathSecurityError, match="Security violation"):
            validate_write_path(path, context)

    @pytest.mark.parametrize("directory", ["agents", "bmad", "lib", "app", "docs", "components"])
    def test_protected_directories_rejected(self, context, directory):
        path = os.path.join(context.project_root, directory, "file.md")

        with pytest.raises(PathSecurityError, match="protected directory"):
            validate_write_path(path, context)

    def test_deprecated_output_directory_rejected(self, context):
        path = os.path.join(context.project_root, "data", "agent-outputs", "report.md")

        with pytest.raises(PathSecurityError, match="deprecated"):
            validate_write_path(path, context)

    def test_bundle_root_not_writable(self, context):
        path = os.path.join(context.bundle_root, "config.yaml")

        with pytest.raises(PathSecurityError, match="Security violation"):
            validate_write_path(path, context)
