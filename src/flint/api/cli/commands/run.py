"""Run command - send one message to an agent."""

import asyncio
import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel

from flint.api.cli.commands import settings_from_context
from flint.application.executor import AgentExecutor
from flint.application.factory import AgentFactory
from flint.core.domain.errors import FlintError

console = Console()


def run_agent(
    ctx: typer.Context,
    agent_id: str = typer.Argument(..., help="Agent id from the bundle manifest"),
    message: str = typer.Argument(..., help="Message to send"),
    bundle_root: Optional[str] = typer.Option(
        None, "--bundle-root", "-b", help="Override the agent's bundle directory"
    ),
    history_file: Optional[Path] = typer.Option(
        None, "--history", help="JSON file with prior conversation messages"
    ),
    show_messages: bool = typer.Option(
        False, "--show-messages", help="Print the full message sequence"
    ),
):
    """Send a message to an agent and print its answer.

    Examples:
        flint run analyst "Review the Q3 budget"

        flint --debug run analyst "*budget" --bundle-root ./my-bundle
    """
    history = None
    if history_file is not None:
        try:
            history = json.loads(history_file.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            console.print(f"[red]Could not read history file {history_file}: {e}[/red]")
            raise typer.Exit(1)
        if not isinstance(history, list):
            console.print("[red]History file must contain a JSON list of messages[/red]")
            raise typer.Exit(1)

    executor = AgentExecutor(AgentFactory(settings_from_context(ctx)))

    try:
        with console.status(f"[cyan]{agent_id}[/cyan] is working..."):
            result = asyncio.run(
                executor.execute_message(
                    agent_id,
                    message,
                    conversation_history=history,
                    bundle_root=bundle_root,
                )
            )
    except FlintError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if show_messages:
        for entry in result.messages:
            console.print(f"[dim]{entry['role']}[/dim] {str(entry.get('content'))[:200]}")

    console.print(
        Panel(
            Markdown(result.response or "_(empty response)_"),
            title=f"[bold green]{agent_id}[/bold green]",
            subtitle=f"{result.iterations} iteration(s)",
        )
    )
