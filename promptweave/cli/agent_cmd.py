"""promptweave agent - inspect configured agents.

Subcommands:
  promptweave agent list          List agents
  promptweave agent show <id>     Show one agent's parameters and tools
"""

from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table

from promptweave.cli.common import build_service
from promptweave.errors import NotFoundError

console = Console()
agent_app = typer.Typer(no_args_is_help=True)


@agent_app.command(name="list")
def agent_list() -> None:
    """List all agents."""
    service = build_service()
    agents = service.agents.list()
    if not agents:
        console.print("[dim]No agents configured.[/dim]")
        return

    table = Table(title="Agents")
    table.add_column("ID", style="bold")
    table.add_column("Name")
    table.add_column("Role")
    table.add_column("Model")
    table.add_column("Active")

    for agent in agents:
        table.add_row(agent.id, agent.name, agent.role, agent.model, "yes" if agent.is_active else "no")

    console.print(table)


@agent_app.command(name="show")
def agent_show(
    agent_id: str = typer.Argument(help="Agent id to display."),  # noqa: B008
) -> None:
    """Show an agent's generation parameters, behavior, and tools."""
    service = build_service()
    try:
        agent = service.agents.get(agent_id)
    except NotFoundError:
        console.print(f"[red]Agent '{agent_id}' not found.[/red]")
        raise typer.Exit(1) from None

    console.print(f"\n[bold cyan]{agent.name}[/bold cyan] ({agent.id})")
    if agent.description:
        console.print(f"[dim]{agent.description}[/dim]")
    console.print(f"  Model:        {agent.model}")
    console.print(f"  Temperature:  {agent.temperature}")
    console.print(f"  Max output:   {agent.max_output_length}")
    console.print(
        f"  Behavior:     {agent.behavior.tone}, {agent.behavior.verbosity}, "
        f"proactivity {agent.behavior.proactivity}"
    )
    if agent.tools:
        console.print("  Tools:")
        for tool in agent.tools.values():
            console.print(f"    {tool.name} [dim]{tool.description}[/dim]")
