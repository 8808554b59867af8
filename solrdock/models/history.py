"""Task history records backing the skip-if-unchanged check."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from solrdock.models.tasks import TaskState


class TaskOutcome(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


class TaskRecord(BaseModel):
    """One executed task, appended to the history after it finishes.

    Up-to-date tasks are not recorded; only real executions are.
    """

    model_config = ConfigDict(frozen=True)

    record_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    run_id: str
    task_id: str
    outcome: TaskOutcome
    input_hash: str = ""  # SHA-256 of declared properties + input fingerprints
    output_hash: str = ""  # SHA-256 of declared output fingerprints after the run
    exit_code: int = 0
    duration_seconds: float = 0.0
    timestamp_utc: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


class TaskRun(BaseModel):
    """One task's fate within a single invocation."""

    model_config = ConfigDict(frozen=True)

    task_id: str
    state: TaskState
    duration_seconds: float = 0.0
    is_aggregate: bool = False  # no action of its own, e.g. docker


class RunSummary(BaseModel):
    """Per-invocation view of every planned task, in plan order."""

    model_config = ConfigDict(frozen=True)

    run_id: str
    tasks: list[TaskRun] = []

    def state_of(self, task_id: str) -> TaskState | None:
        for run in self.tasks:
            if run.task_id == task_id:
                return run.state
        return None

    @property
    def executed(self) -> list[str]:
        """Tasks whose action ran (passed or failed); skips and aggregates excluded."""
        return [
            r.task_id for r in self.tasks
            if not r.is_aggregate and r.state in (TaskState.PASSED, TaskState.FAILED)
        ]
