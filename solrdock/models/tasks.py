"""Task state machine models and the fixed Docker task graph."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class TaskState(str, Enum):
    """State of a task within one invocation."""

    NOT_STARTED = "not_started"
    RUNNING = "running"
    UP_TO_DATE = "up_to_date"
    PASSED = "passed"
    FAILED = "failed"
    BLOCKED = "blocked"


# Valid state transitions within a single run.
# PASSED, UP_TO_DATE, FAILED and BLOCKED are terminal for the run.
VALID_TRANSITIONS: dict[TaskState, set[TaskState]] = {
    TaskState.NOT_STARTED: {TaskState.RUNNING, TaskState.UP_TO_DATE, TaskState.BLOCKED},
    TaskState.RUNNING: {TaskState.PASSED, TaskState.FAILED},
    TaskState.UP_TO_DATE: set(),
    TaskState.PASSED: set(),
    TaskState.FAILED: set(),
    TaskState.BLOCKED: set(),
}

# States that satisfy a dependency.
SATISFIED_STATES = frozenset({TaskState.PASSED, TaskState.UP_TO_DATE})


class TaskDefinition(BaseModel):
    """Defines a task and its place in the graph.

    ``depends_on`` pulls tasks into the plan and must succeed first.
    ``must_run_after`` only orders two tasks that are both in the plan.
    """

    model_config = ConfigDict(frozen=True)

    task_id: str
    description: str
    ordinal: float
    depends_on: list[str] = []
    must_run_after: list[str] = []
    is_aggregate: bool = False  # no action of its own


DEFAULT_TASK_DEFINITIONS: list[TaskDefinition] = [
    TaskDefinition(
        task_id="package",
        description="Package docker context to prepare for docker build",
        ordinal=0.0,
    ),
    TaskDefinition(
        task_id="build",
        description="Build Solr docker image",
        ordinal=1.0,
        depends_on=["package"],
    ),
    TaskDefinition(
        task_id="tag",
        description="Tag Solr docker image",
        ordinal=2.0,
        depends_on=["build"],
    ),
    TaskDefinition(
        task_id="test",
        description="Test Solr docker image",
        ordinal=3.0,
        depends_on=["build"],
    ),
    TaskDefinition(
        task_id="push",
        description="Push Solr docker image",
        ordinal=4.0,
        depends_on=["tag"],
        must_run_after=["test"],
    ),
    TaskDefinition(
        task_id="docker",
        description="Build and tag a Solr docker image",
        ordinal=5.0,
        depends_on=["build", "tag"],
        is_aggregate=True,
    ),
]
