"""Push task: ``docker push <image name>``.

Ordered after the test task when both run, so an image is not pushed
before its tests have finished.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from solrdock.config import ToolSettings
from solrdock.models.inputs import DockerInputs
from solrdock.tasks.base import BaseTask
from solrdock.tasks.tag import current_image_id

logger = logging.getLogger(__name__)


class PushTask(BaseTask):
    """Re-pushed whenever the image id or the tag changes."""

    task_id = "push"

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

        run_context["runner"].run([settings.docker_command, "push", inputs.image_name])

        logger.info("Solr Docker Image Pushed: \t%s", inputs.image_name)
        logger.info("\tID: \t%s", image_id)
        return {"image_id": image_id.value, "image_name": inputs.image_name}
