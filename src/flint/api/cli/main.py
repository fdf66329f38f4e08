"""Flint CLI entry point."""

import logging
from typing import Optional

import structlog
import typer
from dotenv import load_dotenv
from rich.console import Console

from flint.api.cli.commands import agents, run, tools
from flint.application.settings import FlintSettings

load_dotenv()

app = typer.Typer(
    name="flint",
    help="Flint - run file-based agents with native tool calling",
    add_completion=True,
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()

# Register command groups
app.command("run", help="Send a message to an agent")(run.run_agent)
app.add_typer(agents.app, name="agents", help="Agent discovery and initialization")
app.add_typer(tools.app, name="tools", help="Tool schemas")


def configure_logging(debug: bool, log_level: str = "WARNING") -> int:
    """Route structlog through a level filter; --debug overrides FLINT_LOG_LEVEL."""
    level = logging.DEBUG if debug else logging.getLevelName(log_level.upper())
    logging.basicConfig(level=level, format="%(message)s")
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(level),
    )
    return level


@app.callback()
def main(
    ctx: typer.Context,
    project_root: Optional[str] = typer.Option(
        None, "--project-root", "-r", help="Project root (overrides FLINT_PROJECT_ROOT)"
    ),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
):
    """Flint Agent CLI."""
    configure_logging(debug, FlintSettings().log_level)
    # Store global options in context for subcommands
    ctx.obj = {"project_root": project_root, "debug": debug}


@app.command()
def version():
    """Show Flint version."""
    from flint import __version__

    console.print(f"[bold blue]Flint[/bold blue] version [cyan]{__version__}[/cyan]")


if __name__ == "__main__":
    app()
