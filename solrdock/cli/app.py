"""Main Typer application: global options and command registration.

Entry point: ``solrdock`` (configured via pyproject.toml [project.scripts]).

Global options go before the command::

    solrdock -P solr.docker.imageTag=latest --rerun-tasks docker
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from solrdock.cli.commands.info import config_cmd, history_cmd
from solrdock.cli.commands.tasks import (
    build_cmd,
    docker_cmd,
    package_cmd,
    push_cmd,
    run_cmd,
    tag_cmd,
    test_cmd,
)
from solrdock.cli.context import CliState
from solrdock.config import ToolSettings, parse_overrides
from solrdock.log import configure_logging, is_valid_level

app = typer.Typer(
    name="solrdock",
    help="Build, test and publish the Solr Docker image.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def main_callback(
    ctx: typer.Context,
    properties: Optional[list[str]] = typer.Option(
        None,
        "--property",
        "-P",
        help="Override an input, e.g. -P solr.docker.imageTag=latest. Repeatable.",
    ),
    project_dir: Optional[Path] = typer.Option(
        None, "--project-dir", help="Directory holding Dockerfile, scripts/ and tests/."
    ),
    rerun_tasks: bool = typer.Option(
        False, "--rerun-tasks", help="Ignore up-to-date checks and run every task."
    ),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level."),
) -> None:
    """Build, test and publish the Solr Docker image."""
    try:
        overrides = parse_overrides(properties or [])
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--property") from exc

    explicit: dict[str, object] = {}
    if project_dir is not None:
        explicit["project_dir"] = project_dir
    if log_level is not None:
        explicit["log_level"] = log_level
    settings = ToolSettings(**explicit)

    if not is_valid_level(settings.log_level):
        raise typer.BadParameter(
            f"Unknown log level {settings.log_level!r}", param_hint="--log-level"
        )
    configure_logging(settings.log_level)
    ctx.obj = CliState(settings=settings, overrides=overrides, rerun_tasks=rerun_tasks)


# Register subcommands
app.command(name="package", help="Package the docker context.")(package_cmd)
app.command(name="build", help="Build the Solr docker image.")(build_cmd)
app.command(name="tag", help="Tag the Solr docker image.")(tag_cmd)
app.command(name="test", help="Test the Solr docker image.")(test_cmd)
app.command(name="push", help="Push the Solr docker image.")(push_cmd)
app.command(name="docker", help="Build and tag the Solr docker image.")(docker_cmd)
app.command(name="run", help="Run tasks in dependency order.")(run_cmd)
app.command(name="config", help="Show resolved inputs.")(config_cmd)
app.command(name="history", help="Show task history.")(history_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
