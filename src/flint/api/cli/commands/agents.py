"""Agents command - discover agents and check that they initialize."""

import asyncio
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from flint.api.cli.commands import settings_from_context
from flint.application.executor import AgentExecutor
from flint.application.factory import AgentFactory
from flint.core.domain.errors import FlintError

app = typer.Typer(help="Agent discovery and initialization")
console = Console()


@app.command("list")
def list_agents(ctx: typer.Context):
    """List agents exposed by the installed bundles."""
    settings = settings_from_context(ctx)
    executor = AgentExecutor(AgentFactory(settings))
    agents = executor.list_agents()

    if not agents:
        console.print(f"[yellow]No agents found in {settings.bundles_path}[/yellow]")
        return

    table = Table(title="Available Agents")
    table.add_column("Id", style="cyan")
    table.add_column("Name", style="white")
    table.add_column("Title", style="white")
    table.add_column("Bundle", style="magenta")
    table.add_column("Commands", justify="right")

    for agent in agents:
        table.add_row(
            agent.id,
            f"{agent.icon} {agent.name}".strip(),
            agent.title,
            agent.bundle_name,
            str(len(agent.commands)),
        )

    console.print(table)


@app.command("init")
def init_agent(
    ctx: typer.Context,
    agent_id: str = typer.Argument(..., help="Agent id to initialize"),
    bundle_root: Optional[str] = typer.Option(
        None, "--bundle-root", "-b", help="Override the agent's bundle directory"
    ),
):
    """Run an agent's critical actions without sending a message."""
    executor = AgentExecutor(AgentFactory(settings_from_context(ctx)))

    try:
        critical = asyncio.run(executor.initialize_agent(agent_id, bundle_root))
    except FlintError as e:
        console.print(f"[bold red]Initialization failed:[/bold red] {e}")
        raise typer.Exit(1)

    console.print(
        f"[green]Agent [bold]{agent_id}[/bold] initialized[/green] "
        f"({len(critical.messages)} critical action(s))"
    )
    for key, value in (critical.config or {}).items():
        console.print(f"  [dim]{key}[/dim] = {value}")
