"""Rich terminal renderer for run summaries, test reports and history.

Color scheme
------------
- green     : PASSED
- cyan      : UP-TO-DATE
- bold red  : FAILED
- red       : BLOCKED
- yellow    : RUNNING
- dim       : NOT STARTED
"""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from solrdock.models.history import RunSummary, TaskOutcome, TaskRecord
from solrdock.models.inputs import DockerInputs
from solrdock.models.reports import TestReport
from solrdock.models.tasks import TaskState

_STATE_LABELS: dict[TaskState, str] = {
    TaskState.PASSED: "[green]PASSED[/green]",
    TaskState.UP_TO_DATE: "[cyan]UP-TO-DATE[/cyan]",
    TaskState.FAILED: "[bold red]FAILED[/bold red]",
    TaskState.BLOCKED: "[red]BLOCKED[/red]",
    TaskState.RUNNING: "[yellow]RUNNING[/yellow]",
    TaskState.NOT_STARTED: "[dim]NOT STARTED[/dim]",
}


class RunRenderer:
    """Renders solrdock results as Rich tables.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    # ------------------------------------------------------------------
    # Run summary
    # ------------------------------------------------------------------

    def render_summary(self, summary: RunSummary) -> Panel:
        table = Table(show_header=True, header_style="bold cyan", expand=True)
        table.add_column("#", style="dim", width=3, justify="right")
        table.add_column("Task", min_width=10)
        table.add_column("State", min_width=12, justify="center")
        table.add_column("Duration", justify="right", width=10)

        for i, run in enumerate(summary.tasks):
            duration = (
                f"{run.duration_seconds:.1f}s"
                if run.state in (TaskState.PASSED, TaskState.FAILED)
                else "[dim]-[/dim]"
            )
            table.add_row(str(i), run.task_id, _STATE_LABELS[run.state], duration)

        failed = any(r.state == TaskState.FAILED for r in summary.tasks)
        return Panel(
            table,
            title=f"[bold]solrdock run {summary.run_id}[/bold]",
            border_style="red" if failed else "green",
        )

    def print_summary(self, summary: RunSummary) -> None:
        self.console.print(self.render_summary(summary))

    # ------------------------------------------------------------------
    # Test report
    # ------------------------------------------------------------------

    def render_test_report(self, report: TestReport) -> Table:
        table = Table(
            title=f"Test cases for {report.image_id}",
            show_header=True,
            header_style="bold cyan",
        )
        table.add_column("Test case")
        table.add_column("Result", justify="center")
        table.add_column("Exit", justify="right")
        table.add_column("Duration", justify="right")

        for result in report.results:
            label = "[green]PASSED[/green]" if result.passed else "[bold red]FAILED[/bold red]"
            table.add_row(
                result.name, label, str(result.exit_code), f"{result.duration_seconds:.1f}s"
            )
        for name in report.skipped:
            table.add_row(f"[dim]{name}[/dim]", "[dim]SKIPPED[/dim]", "", "")
        return table

    def print_test_report(self, report: TestReport) -> None:
        self.console.print(self.render_test_report(report))

    # ------------------------------------------------------------------
    # Configuration and history
    # ------------------------------------------------------------------

    def render_inputs(self, inputs: DockerInputs) -> Table:
        table = Table(title="Solr Docker inputs", show_header=True, header_style="bold cyan")
        table.add_column("Setting")
        table.add_column("Value")
        table.add_row("Solr version", inputs.version)
        table.add_row("Image repo", inputs.image_repo)
        table.add_row("Image tag", inputs.image_tag)
        table.add_row("Image name", inputs.image_name)
        table.add_row("Base image", inputs.base_image)
        table.add_row("GitHub URL", inputs.github_url)
        table.add_row("Tests include", ", ".join(sorted(inputs.tests_include)) or "[dim]-[/dim]")
        table.add_row("Tests exclude", ", ".join(sorted(inputs.tests_exclude)) or "[dim]-[/dim]")
        return table

    def print_inputs(self, inputs: DockerInputs) -> None:
        self.console.print(self.render_inputs(inputs))

    def render_history(self, records: list[TaskRecord]) -> Table:
        table = Table(title="Task history", show_header=True, header_style="bold cyan")
        table.add_column("When (UTC)", style="dim")
        table.add_column("Run")
        table.add_column("Task")
        table.add_column("Outcome", justify="center")
        table.add_column("Exit", justify="right")
        table.add_column("Inputs", style="dim")

        for record in records:
            outcome = (
                "[green]success[/green]"
                if record.outcome == TaskOutcome.SUCCESS
                else "[bold red]failure[/bold red]"
            )
            table.add_row(
                record.timestamp_utc.strftime("%Y-%m-%d %H:%M:%S"),
                record.run_id,
                record.task_id,
                outcome,
                str(record.exit_code),
                record.input_hash[:12],
            )
        return table

    def print_history(self, records: list[TaskRecord]) -> None:
        if not records:
            self.console.print("[dim]No task executions recorded.[/dim]")
            return
        self.console.print(self.render_history(records))
