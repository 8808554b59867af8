"""Tag task: ``docker tag <image id> <image name>``."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from solrdock.config import ToolSettings
from solrdock.models.artifacts import ImageId
from solrdock.models.inputs import DockerInputs
from solrdock.tasks.base import BaseTask

logger = logging.getLogger(__name__)


def current_image_id(run_context: dict[str, Any]) -> ImageId:
    """The id built in this run, else the one recorded in the id file."""
    image_id: ImageId | None = run_context.get("image_id")
    if image_id is None:
        settings: ToolSettings = run_context["settings"]
        image_id = ImageId.read(settings.image_id_file)
        run_context["image_id"] = image_id
    return image_id


class TagTask(BaseTask):
    """Re-tagged whenever the image id or the desired name changes."""

    task_id = "tag"

    def input_properties(self, run_context: dict[str, Any]) -> dict[str, Any]:
        inputs: DockerInputs = run_context["inputs"]
        return {"dockerImageName": inputs.image_name}

    def input_paths(self, run_context: dict[str, Any]) -> list[Path]:
        settings: ToolSettings = run_context["settings"]
        return [settings.image_id_file]

    def execute(self, run_context: dict[str, Any]) -> dict[str, Any]:
        settings: ToolSettings = run_context["settings"]
        inputs: DockerInputs = run_context["inputs"]
        image_id = current_image_id(run_context)

        run_context["runner"].run(
            [settings.docker_command, "tag", image_id.value, inputs.image_name]
        )

        logger.info("Solr Docker Image Tagged")
        logger.info("\tID: \t%s", image_id)
        logger.info("\tTag: \t%s", inputs.image_name)
        return {"image_id": image_id.value, "image_name": inputs.image_name}
