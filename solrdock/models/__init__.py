"""solrdock data models: all Pydantic v2, all frozen (immutable)."""

from solrdock.models.artifacts import ContextArchive, ImageId, ImageIdMissingError
from solrdock.models.history import RunSummary, TaskOutcome, TaskRecord, TaskRun
from solrdock.models.inputs import DockerInputs
from solrdock.models.reports import TestCase, TestCaseResult, TestReport
from solrdock.models.tasks import (
    DEFAULT_TASK_DEFINITIONS,
    VALID_TRANSITIONS,
    TaskDefinition,
    TaskState,
)

__all__ = [
    # inputs
    "DockerInputs",
    # artifacts
    "ContextArchive",
    "ImageId",
    "ImageIdMissingError",
    # tasks
    "TaskState",
    "TaskDefinition",
    "VALID_TRANSITIONS",
    "DEFAULT_TASK_DEFINITIONS",
    # history
    "TaskOutcome",
    "TaskRecord",
    "TaskRun",
    "RunSummary",
    # reports
    "TestCase",
    "TestCaseResult",
    "TestReport",
]
