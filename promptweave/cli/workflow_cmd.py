"""promptweave workflow - manage and execute multi-agent workflows.

Subcommands:
  promptweave workflow list          List saved workflow definitions
  promptweave workflow show <id>     Show workflow steps and dependencies
  promptweave workflow run <id>      Execute a workflow
  promptweave workflow create <file> Create a workflow from a JSON file
  promptweave workflow delete <id>   Delete a saved workflow
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from promptweave.cli.common import build_service
from promptweave.errors import NotFoundError, ValidationError
from promptweave.service import PromptweaveService
from promptweave.workflow.execution import ExecutionStatus, WorkflowExecution
from promptweave.workflow.templates import to_text

console = Console()
workflow_app = typer.Typer(no_args_is_help=True)


def _parse_vars(pairs: list[str]) -> dict[str, object]:
    """Turn key=value pairs into variables. Values that parse as JSON are decoded."""
    variables: dict[str, object] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"Expected key=value, got '{pair}'")
        try:
            variables[key] = json.loads(value)
        except json.JSONDecodeError:
            variables[key] = value
    return variables


@workflow_app.command(name="list")
def workflow_list() -> None:
    """List all saved workflow definitions."""
    service = build_service()
    workflows = service.workflows.list()
    if not workflows:
        console.print("[dim]No workflows saved. Create one with: promptweave workflow create <file>[/dim]")
        return

    table = Table(title="Workflows")
    table.add_column("ID", style="bold")
    table.add_column("Name")
    table.add_column("Steps")
    table.add_column("Description")

    for wf in workflows:
        table.add_row(wf.id, wf.name, str(len(wf.steps)), wf.description[:60])

    console.print(table)


@workflow_app.command(name="show")
def workflow_show(
    workflow_id: str = typer.Argument(help="Workflow id to display."),  # noqa: B008
) -> None:
    """Show workflow steps, dependencies, and wave order."""
    service = build_service()
    wf = service.workflows.find(workflow_id)
    if not wf:
        console.print(f"[red]Workflow '{workflow_id}' not found.[/red]")
        raise typer.Exit(1)

    console.print(f"\n[bold cyan]{wf.name}[/bold cyan] ({wf.id})")
    if wf.description:
        console.print(f"[dim]{wf.description}[/dim]")

    for i, wave in enumerate(wf.get_execution_order(), 1):
        console.print(f"\n  [bold]Wave {i}[/bold] (parallel):")
        for step_id in wave:
            step = wf.step(step_id)
            deps = f" ← [{', '.join(step.depends_on)}]" if step.depends_on else ""
            console.print(f"    [{step.kind}] {step.id}{deps} [dim](on_error={step.on_error})[/dim]")


@workflow_app.command(name="run")
def workflow_run(
    workflow_id: str = typer.Argument(help="Workflow id to execute."),  # noqa: B008
    var: list[str] = typer.Option([], "--var", help="Initial variable as key=value."),  # noqa: B008
) -> None:
    """Execute a workflow and print its results."""
    variables = _parse_vars(var)
    service = build_service()
    if not service.workflows.find(workflow_id):
        console.print(f"[red]Workflow '{workflow_id}' not found.[/red]")
        raise typer.Exit(1)

    console.print(f"[bold]Running workflow:[/bold] {workflow_id}")
    execution = asyncio.run(_run_workflow(service, workflow_id, variables))
    _print_execution(execution)
    if execution.status != ExecutionStatus.COMPLETED:
        raise typer.Exit(1)


async def _run_workflow(
    service: PromptweaveService, workflow_id: str, variables: dict[str, object]
) -> WorkflowExecution:
    try:
        return await service.run_execution(workflow_id, variables)
    finally:
        await service.aclose()


def _print_execution(execution: WorkflowExecution) -> None:
    console.print(
        f"\n[bold]Result:[/bold] {execution.status} "
        f"({execution.waves} waves, {execution.duration_seconds:.1f}s)"
    )
    for key, value in execution.results.items():
        text = to_text(value)
        console.print(f"  {key}: [dim]{text[:120]}{'...' if len(text) > 120 else ''}[/dim]")
    for error in execution.errors:
        console.print(f"  [red]✗ {error.step_id or 'workflow'}: {error.message}[/red]")


@workflow_app.command(name="create")
def workflow_create(
    file: Path = typer.Argument(help="Path to workflow JSON file."),  # noqa: B008
) -> None:
    """Create a workflow from a JSON definition file."""
    if not file.exists():
        console.print(f"[red]File not found: {file}[/red]")
        raise typer.Exit(1)

    try:
        data = json.loads(file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        console.print(f"[red]Invalid workflow file: {exc}[/red]")
        raise typer.Exit(1) from exc

    service = build_service()
    try:
        wf = service.workflows.create(data)
    except ValidationError as exc:
        console.print(f"[red]Validation errors: {'; '.join(exc.errors)}[/red]")
        raise typer.Exit(1) from exc

    console.print(f"[green]Workflow '{wf.id}' saved[/green] ({len(wf.steps)} steps)")


@workflow_app.command(name="delete")
def workflow_delete(
    workflow_id: str = typer.Argument(help="Workflow id to delete."),  # noqa: B008
) -> None:
    """Delete a saved workflow."""
    service = build_service()
    if service.workflows.delete(workflow_id):
        console.print(f"[green]Deleted workflow: {workflow_id}[/green]")
    else:
        console.print(f"[red]Workflow '{workflow_id}' not found.[/red]")
        raise typer.Exit(1)


@workflow_app.command(name="executions")
def workflow_executions(
    workflow_id: str = typer.Argument(help="Workflow id whose archived executions to list."),  # noqa: B008
) -> None:
    """List archived executions of a workflow."""
    service = build_service()
    try:
        service.workflows.get(workflow_id)
    except NotFoundError:
        console.print(f"[red]Workflow '{workflow_id}' not found.[/red]")
        raise typer.Exit(1) from None

    archive = service.executions.archived(workflow_id=workflow_id)
    if not archive:
        console.print("[dim]No executions recorded.[/dim]")
        return

    table = Table(title=f"Executions of {workflow_id}")
    table.add_column("ID", style="bold")
    table.add_column("Status")
    table.add_column("Started")
    table.add_column("Errors")
    for record in archive:
        table.add_row(record["id"], record["status"], record["started_at"], str(len(record["errors"])))
    console.print(table)
