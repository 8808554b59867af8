"""Shared CLI state built once by the global callback."""

from __future__ import annotations

import os

from pydantic import BaseModel, ConfigDict

from solrdock.config import ToolSettings, resolve_inputs
from solrdock.core.process import CommandRunner, SubprocessRunner
from solrdock.models.inputs import DockerInputs


class CliState(BaseModel):
    """Global options, carried to every subcommand via ``ctx.obj``."""

    model_config = ConfigDict(frozen=True)

    settings: ToolSettings
    overrides: dict[str, str] = {}
    rerun_tasks: bool = False

    def resolve_inputs(self) -> DockerInputs:
        return resolve_inputs(
            self.overrides, dict(os.environ), version=self.settings.solr_version
        )


def make_runner(settings: ToolSettings) -> CommandRunner:
    """Command runner used by the CLI; tests replace this."""
    return SubprocessRunner(cwd=settings.project_dir)
