"""Tools command - list and inspect the tools offered to agents."""

import typer
from rich.console import Console
from rich.table import Table

from flint.infrastructure.tools.tool_definitions import get_tool_definitions

app = typer.Typer(help="Tool schemas")
console = Console()


@app.command("list")
def list_tools():
    """List available tools."""
    table = Table(title="Available Tools")
    table.add_column("Name", style="cyan")
    table.add_column("Parameters", style="magenta")
    table.add_column("Description", style="white")

    for tool in get_tool_definitions():
        function = tool["function"]
        params = ", ".join(function["parameters"]["properties"])
        table.add_row(function["name"], params, function["description"])

    console.print(table)


@app.command("inspect")
def inspect_tool(tool_name: str = typer.Argument(..., help="Tool name to inspect")):
    """Inspect tool details and parameters."""
    tool = next(
        (t for t in get_tool_definitions() if t["function"]["name"] == tool_name),
        None,
    )

    if not tool:
        console.print(f"[red]Tool '{tool_name}' not found[/red]")
        raise typer.Exit(1)

    console.print(f"\n[bold cyan]{tool_name}[/bold cyan]")
    console.print(f"{tool['function']['description']}\n")

    console.print("[bold]Parameters:[/bold]")
    console.print_json(data=tool["function"]["parameters"])
