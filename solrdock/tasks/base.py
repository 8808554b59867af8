"""Abstract base task with a fixed lifecycle.

Every concrete task inherits from BaseTask, declares what it is sensitive to
(``input_properties``, ``input_paths``), what it produces (``output_paths``)
and implements ``execute()``. The ``run_task()`` wrapper is **not
overridable**: it checks the declared inputs exist, runs the task and
normalises failures into ``TaskExecutionError``.

Up-to-date checks happen in the executor, which uses the declarations to
decide whether ``run_task()`` is called at all.

The run context is a plain dict shared by the tasks of one invocation:

``run_id``    invocation id
``settings``  ``ToolSettings``
``inputs``    ``DockerInputs``
``runner``    ``CommandRunner``
``archive``   ``ContextArchive``, set by the package task
``image_id``  ``ImageId``, set by the build task
"""

from __future__ import annotations

import abc
import logging
from pathlib import Path
from typing import Any, ClassVar, final

from solrdock.core.process import CommandFailedError

logger = logging.getLogger(__name__)


class MissingInputError(FileNotFoundError):
    """Raised when a required input file or directory does not exist."""


class TaskExecutionError(RuntimeError):
    """Raised when a task's execute() method fails.

    ``exit_code`` is the failing subprocess's exit code when there is one,
    otherwise 1.
    """

    def __init__(self, task_id: str, cause: BaseException) -> None:
        self.task_id = task_id
        self.exit_code = cause.returncode if isinstance(cause, CommandFailedError) else 1
        super().__init__(f"Task {task_id} failed: {cause}")


def require_path(path: Path, *, what: str) -> Path:
    """Return *path* if it exists, else raise ``MissingInputError``."""
    path = Path(path)
    if not path.exists():
        raise MissingInputError(f"Missing {what}: {path}")
    return path


class BaseTask(abc.ABC):
    """Abstract base for the Docker pipeline tasks.

    Subclasses **must** set ``task_id`` and implement ``execute()``.
    Subclasses **may** override the input/output declarations; the defaults
    declare nothing.
    """

    task_id: ClassVar[str]

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def input_properties(self, run_context: dict[str, Any]) -> dict[str, Any]:
        """JSON-serialisable values the task output depends on."""
        return {}

    def input_paths(self, run_context: dict[str, Any]) -> list[Path]:
        """Files and directories the task reads."""
        return []

    def output_paths(self, run_context: dict[str, Any]) -> list[Path]:
        """Files and directories the task produces."""
        return []

    @abc.abstractmethod
    def execute(self, run_context: dict[str, Any]) -> dict[str, Any]:
        """Do the work. Returns a small, JSON-friendly summary dict."""
        ...

    # ------------------------------------------------------------------
    # Lifecycle (not overridable)
    # ------------------------------------------------------------------

    @final
    def run_task(self, run_context: dict[str, Any]) -> dict[str, Any]:
        """Execute the task.  **Do not override.**"""
        logger.debug("%s: starting", self.task_id)
        try:
            for path in self.input_paths(run_context):
                require_path(path, what=f"{self.task_id} input")
            result = self.execute(run_context)
        except Exception as exc:
            logger.error("%s: %s", self.task_id, exc)
            raise TaskExecutionError(self.task_id, exc) from exc
        logger.debug("%s: finished", self.task_id)
        return result

    def __repr__(self) -> str:
        return f"<{type(self).__name__} task_id={self.task_id!r}>"
