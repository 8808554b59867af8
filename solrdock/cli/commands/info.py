"""Inspection commands: ``config`` and ``history``."""

from __future__ import annotations

from typing import Optional

import typer
from rich.console import Console

from solrdock.core.task_history import TaskHistory
from solrdock.monitor.renderer import RunRenderer

console = Console()


def config_cmd(ctx: typer.Context) -> None:
    """Show the resolved image inputs and tool paths."""
    state = ctx.obj
    settings = state.settings
    renderer = RunRenderer(console=console)

    renderer.print_inputs(state.resolve_inputs())
    console.print()
    console.print(f"[bold]Project dir:[/bold]  {settings.project_dir}")
    console.print(f"[bold]Build dir:[/bold]    {settings.build_path}")
    console.print(f"[bold]Release dir:[/bold]  {settings.path(settings.release_dir)}")
    console.print(f"[bold]Tests dir:[/bold]    {settings.path(settings.tests_dir)}")
    console.print(f"[bold]Image id file:[/bold] {settings.image_id_file}")


def history_cmd(
    ctx: typer.Context,
    task: Optional[str] = typer.Option(None, "--task", "-t", help="Only show this task."),
    limit: int = typer.Option(20, "--limit", "-n", help="Number of records to show."),
) -> None:
    """Show recorded task executions, newest first."""
    settings = ctx.obj.settings
    if not settings.history_path.exists():
        console.print(f"[dim]No history at {settings.history_path}.[/dim]")
        raise typer.Exit(code=0)

    history = TaskHistory(settings.history_path)
    RunRenderer(console=console).print_history(history.records(task, limit=limit))
