"""Build task: ``docker build`` from the packaged context.

The archive is streamed to ``docker build -`` on stdin and docker writes the
resulting image id to the id file (``--iidfile``). The image is rebuilt when
a build argument or the distributions directory changes.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from solrdock.config import ToolSettings
from solrdock.core.process import CommandRunner
from solrdock.models.artifacts import ContextArchive, ImageId
from solrdock.models.inputs import DockerInputs
from solrdock.tasks.base import BaseTask, require_path

logger = logging.getLogger(__name__)


def build_command(
    docker: str, image_id_file: Path, build_args: dict[str, str]
) -> list[str]:
    """The ``docker build`` argument vector, reading the context from stdin."""
    command = [docker, "build", "--iidfile", str(image_id_file)]
    for key, value in build_args.items():
        command.extend(["--build-arg", f"{key}={value}"])
    command.append("-")
    return command


def build_image(
    archive_path: Path,
    image_id_file: Path,
    build_args: dict[str, str],
    runner: CommandRunner,
    *,
    docker: str = "docker",
) -> ImageId:
    """Build the image and return the id docker wrote to *image_id_file*.

    A failing build is not cleaned up; the error propagates unchanged.
    """
    archive_path = require_path(archive_path, what="docker context archive")
    image_id_file = Path(image_id_file)
    image_id_file.parent.mkdir(parents=True, exist_ok=True)

    runner.run(
        build_command(docker, image_id_file, build_args),
        stdin_path=archive_path,
    )
    return ImageId.read(image_id_file)


class BuildTask(BaseTask):
    """Build the Solr docker image."""

    task_id = "build"

    def input_properties(self, run_context: dict[str, Any]) -> dict[str, Any]:
        inputs: DockerInputs = run_context["inputs"]
        return {
            "baseDockerImage": inputs.base_image,
            "githubUrlOrMirror": inputs.github_url,
            "version": inputs.version,
        }

    def input_paths(self, run_context: dict[str, Any]) -> list[Path]:
        settings: ToolSettings = run_context["settings"]
        return [settings.distributions_dir]

    def output_paths(self, run_context: dict[str, Any]) -> list[Path]:
        settings: ToolSettings = run_context["settings"]
        return [settings.image_id_file]

    def execute(self, run_context: dict[str, Any]) -> dict[str, Any]:
        settings: ToolSettings = run_context["settings"]
        inputs: DockerInputs = run_context["inputs"]
        archive: ContextArchive | None = run_context.get("archive")
        archive_path = archive.path if archive else settings.archive_path(inputs.version)

        image_id = build_image(
            archive_path,
            settings.image_id_file,
            inputs.build_args(),
            run_context["runner"],
            docker=settings.docker_command,
        )
        run_context["image_id"] = image_id

        logger.info("Solr Docker Image Created")
        logger.info("\tID: \t%s", image_id)
        logger.info("\tBase Image: \t%s", inputs.base_image)
        logger.info("\tSolr Version: \t%s", inputs.version)
        return {"image_id": image_id.value}
