"""Docker pipeline tasks: package, build, tag, test, push.

Each task is a ``BaseTask`` subclass with declared inputs and outputs.
``default_tasks()`` returns one instance per task id, ready to register
with the executor.
"""

from solrdock.tasks.base import BaseTask, MissingInputError, TaskExecutionError
from solrdock.tasks.build import BuildTask
from solrdock.tasks.package import PackageTask
from solrdock.tasks.push import PushTask
from solrdock.tasks.tag import TagTask
from solrdock.tasks.testing import TestCaseFailedError, TestTask


def default_tasks() -> dict[str, BaseTask]:
    """One instance of every task, keyed by task id."""
    tasks: list[BaseTask] = [PackageTask(), BuildTask(), TagTask(), TestTask(), PushTask()]
    return {t.task_id: t for t in tasks}


__all__ = [
    "BaseTask",
    "BuildTask",
    "MissingInputError",
    "PackageTask",
    "PushTask",
    "TagTask",
    "TaskExecutionError",
    "TestCaseFailedError",
    "TestTask",
    "default_tasks",
]
