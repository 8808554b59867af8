"""Task executor: the central coordinator for a solrdock invocation.

The TaskExecutor wires together the TaskGraph, TaskHistory and the task
instances. For each task in the plan it decides whether the task is up to
date, runs it if not, and records the outcome.

A task is up to date when its latest successful history record has the same
input hash and the same output hash as now, and every declared output
exists. Up-to-date tasks make no subprocess calls.
"""

from __future__ import annotations

import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Any

from solrdock.config import ToolSettings
from solrdock.core.hasher import compute_input_hash, compute_output_hash
from solrdock.core.process import CommandRunner, SubprocessRunner
from solrdock.core.task_graph import TaskGraph
from solrdock.core.task_history import TaskHistory
from solrdock.models.history import RunSummary, TaskOutcome, TaskRecord, TaskRun
from solrdock.models.inputs import DockerInputs
from solrdock.models.tasks import (
    DEFAULT_TASK_DEFINITIONS,
    VALID_TRANSITIONS,
    TaskDefinition,
    TaskState,
)
from solrdock.tasks import default_tasks
from solrdock.tasks.base import BaseTask, TaskExecutionError

logger = logging.getLogger(__name__)


class InvalidTransitionError(RuntimeError):
    """Raised when a requested task state transition is not valid."""


class TaskExecutor:
    """Runs requested tasks and their dependencies in order.

    Parameters
    ----------
    settings:
        Tool settings (paths, binaries).
    inputs:
        Resolved image inputs.
    runner:
        Command runner for docker and the test scripts.
    history:
        Task history. Opened at ``settings.history_path`` if not provided.
    rerun_tasks:
        Ignore up-to-date checks and run every planned task.
    """

    def __init__(
        self,
        settings: ToolSettings,
        inputs: DockerInputs,
        *,
        runner: CommandRunner | None = None,
        history: TaskHistory | None = None,
        tasks: dict[str, BaseTask] | None = None,
        definitions: list[TaskDefinition] | None = None,
        rerun_tasks: bool = False,
        run_id: str | None = None,
    ) -> None:
        self.settings = settings
        self.inputs = inputs
        self.runner = runner or SubprocessRunner(cwd=settings.project_dir)
        self.history = history or TaskHistory(settings.history_path)
        self.graph = TaskGraph(definitions or DEFAULT_TASK_DEFINITIONS)
        self.tasks = tasks if tasks is not None else default_tasks()
        self.rerun_tasks = rerun_tasks

        ts = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
        self.run_id = run_id or f"sd-{ts}-{uuid.uuid4().hex[:4]}"

        self.run_context: dict[str, Any] = {
            "run_id": self.run_id,
            "settings": settings,
            "inputs": inputs,
            "runner": self.runner,
        }
        self._states: dict[str, TaskState] = {}
        self._durations: dict[str, float] = {}

    # ------------------------------------------------------------------
    # Planning
    # ------------------------------------------------------------------

    def plan(self, targets: list[str]) -> list[str]:
        """Execution order for *targets*, dependencies first."""
        return self.graph.plan(targets)

    def _fingerprints(self, task: BaseTask) -> tuple[str, str]:
        input_hash = compute_input_hash(
            task.task_id,
            task.input_properties(self.run_context),
            task.input_paths(self.run_context),
        )
        output_hash = compute_output_hash(task.task_id, task.output_paths(self.run_context))
        return input_hash, output_hash

    def is_up_to_date(self, task: BaseTask) -> bool:
        """Whether *task* can be skipped given its history."""
        if self.rerun_tasks:
            return False
        last = self.history.latest_success(task.task_id)
        if last is None:
            return False
        if not all(p.exists() for p in task.output_paths(self.run_context)):
            return False
        input_hash, output_hash = self._fingerprints(task)
        return last.input_hash == input_hash and last.output_hash == output_hash

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _transition(self, task_id: str, target: TaskState) -> None:
        current = self._states.get(task_id, TaskState.NOT_STARTED)
        if target not in VALID_TRANSITIONS[current]:
            raise InvalidTransitionError(
                f"Cannot transition {task_id} from {current.value} to {target.value}"
            )
        self._states[task_id] = target

    def run(self, targets: list[str]) -> RunSummary:
        """Run *targets* and everything they depend on.

        Raises ``TaskExecutionError`` from the first failing task; every
        task that had not started by then is marked BLOCKED.
        """
        order = self.plan(targets)
        self._states = {tid: TaskState.NOT_STARTED for tid in order}
        self._durations = {}
        logger.debug("run %s plan: %s", self.run_id, " -> ".join(order))

        for task_id in order:
            if not self.graph.are_dependencies_met(task_id, self._states):
                reasons = self.graph.get_blocking_reasons(task_id, self._states)
                raise InvalidTransitionError(
                    f"Cannot start {task_id}: {'; '.join(reasons)}"
                )
            definition = self.graph.get_definition(task_id)
            if definition.is_aggregate:
                self._run_aggregate(definition)
                continue
            self._run_one(self.tasks[task_id])

        return self.summary()

    def _run_aggregate(self, definition: TaskDefinition) -> None:
        """Aggregates have no action; they are up to date when all their dependencies are."""
        task_id = definition.task_id
        if all(self._states[dep] == TaskState.UP_TO_DATE for dep in definition.depends_on):
            self._transition(task_id, TaskState.UP_TO_DATE)
            logger.info("> Task :%s UP-TO-DATE", task_id)
            return
        self._transition(task_id, TaskState.RUNNING)
        self._transition(task_id, TaskState.PASSED)
        logger.info("> Task :%s", task_id)

    def _run_one(self, task: BaseTask) -> None:
        task_id = task.task_id
        if self.is_up_to_date(task):
            self._transition(task_id, TaskState.UP_TO_DATE)
            logger.info("> Task :%s UP-TO-DATE", task_id)
            return

        logger.info("> Task :%s", task_id)
        self._transition(task_id, TaskState.RUNNING)
        input_hash, _ = self._fingerprints(task)
        started = time.monotonic()
        try:
            task.run_task(self.run_context)
        except TaskExecutionError as exc:
            duration = time.monotonic() - started
            self._durations[task_id] = duration
            self._transition(task_id, TaskState.FAILED)
            self.history.append(
                TaskRecord(
                    run_id=self.run_id,
                    task_id=task_id,
                    outcome=TaskOutcome.FAILURE,
                    input_hash=input_hash,
                    exit_code=exc.exit_code,
                    duration_seconds=round(duration, 3),
                )
            )
            blocked = self.graph.cascade_block(self._states)
            if blocked:
                logger.warning("Not run after %s failed: %s", task_id, ", ".join(blocked))
            raise

        duration = time.monotonic() - started
        self._durations[task_id] = duration
        output_hash = compute_output_hash(task_id, task.output_paths(self.run_context))
        self.history.append(
            TaskRecord(
                run_id=self.run_id,
                task_id=task_id,
                outcome=TaskOutcome.SUCCESS,
                input_hash=input_hash,
                output_hash=output_hash,
                duration_seconds=round(duration, 3),
            )
        )
        self._transition(task_id, TaskState.PASSED)

    # ------------------------------------------------------------------
    # Query methods
    # ------------------------------------------------------------------

    def get_states(self) -> dict[str, TaskState]:
        return dict(self._states)

    def summary(self) -> RunSummary:
        """Snapshot of the current (or last) run."""
        return RunSummary(
            run_id=self.run_id,
            tasks=[
                TaskRun(
                    task_id=tid,
                    state=state,
                    duration_seconds=round(self._durations.get(tid, 0.0), 3),
                    is_aggregate=self.graph.get_definition(tid).is_aggregate,
                )
                for tid, state in self._states.items()
            ],
        )
