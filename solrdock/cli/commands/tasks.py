"""Task commands: ``package``, ``build``, ``tag``, ``test``, ``push``,
``docker`` and ``run``.

Each command runs its task plus whatever the task depends on. Tasks whose
inputs and outputs are unchanged since their last success are skipped.
A failing subprocess makes the command exit with that subprocess's code.
"""

from __future__ import annotations

from typing import Optional

import typer
from rich.console import Console

from solrdock.cli import context
from solrdock.cli.context import CliState
from solrdock.core.executor import TaskExecutor
from solrdock.core.task_graph import UnknownTaskError
from solrdock.models.reports import TestReport
from solrdock.monitor.renderer import RunRenderer
from solrdock.tasks.base import TaskExecutionError

console = Console()


def run_targets(
    state: CliState,
    targets: list[str],
    *,
    tests_fail_fast: Optional[bool] = None,
) -> None:
    """Run *targets* and render the outcome; exits non-zero on failure."""
    renderer = RunRenderer(console=console)
    settings = state.settings
    inputs = state.resolve_inputs()

    try:
        executor = TaskExecutor(
            settings,
            inputs,
            runner=context.make_runner(settings),
            rerun_tasks=state.rerun_tasks,
        )
        executor.plan(targets)
    except UnknownTaskError as exc:
        console.print(f"[bold red]Unknown task:[/bold red] {exc}")
        raise typer.Exit(code=2)

    if tests_fail_fast is not None:
        executor.run_context["tests_fail_fast"] = tests_fail_fast

    try:
        summary = executor.run(targets)
    except TaskExecutionError as exc:
        _print_test_report(renderer, executor.run_context.get("test_report"))
        renderer.print_summary(executor.summary())
        console.print(f"[bold red]BUILD FAILED:[/bold red] {exc}")
        raise typer.Exit(code=exc.exit_code)

    _print_test_report(renderer, executor.run_context.get("test_report"))
    renderer.print_summary(summary)


def _print_test_report(renderer: RunRenderer, report: Optional[TestReport]) -> None:
    if report is not None:
        renderer.print_test_report(report)


def package_cmd(ctx: typer.Context) -> None:
    """Package the docker context to prepare for docker build."""
    run_targets(ctx.obj, ["package"])


def build_cmd(ctx: typer.Context) -> None:
    """Build the Solr docker image."""
    run_targets(ctx.obj, ["build"])


def tag_cmd(ctx: typer.Context) -> None:
    """Tag the Solr docker image."""
    run_targets(ctx.obj, ["tag"])


def test_cmd(
    ctx: typer.Context,
    fail_fast: Optional[bool] = typer.Option(
        None,
        "--fail-fast/--no-fail-fast",
        help="Stop at the first failing test case (default from SOLRDOCK_TESTS_FAIL_FAST).",
    ),
) -> None:
    """Test the Solr docker image."""
    run_targets(ctx.obj, ["test"], tests_fail_fast=fail_fast)


def push_cmd(ctx: typer.Context) -> None:
    """Push the Solr docker image."""
    run_targets(ctx.obj, ["push"])


def docker_cmd(ctx: typer.Context) -> None:
    """Build and tag a Solr docker image."""
    run_targets(ctx.obj, ["docker"])


def run_cmd(
    ctx: typer.Context,
    tasks: list[str] = typer.Argument(..., help="Tasks to run, e.g. 'test push'."),
    fail_fast: Optional[bool] = typer.Option(
        None,
        "--fail-fast/--no-fail-fast",
        help="Stop at the first failing test case.",
    ),
) -> None:
    """Run any combination of tasks in dependency order."""
    run_targets(ctx.obj, tasks, tests_fail_fast=fail_fast)
