"""CLI command groups."""

import typer

from flint.application.settings import FlintSettings


def settings_from_context(ctx: typer.Context) -> FlintSettings:
    """Build settings, applying the global ``--project-root`` option."""
    options = ctx.find_root().obj or {}
    if options.get("project_root"):
        return FlintSettings(project_root=options["project_root"])
    return FlintSettings()
