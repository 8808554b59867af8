"""Task DAG with dependency closure, ordering hints and cascade blocking.

The graph enforces:
- A task runs only after every ``depends_on`` task is PASSED or UP_TO_DATE.
- ``must_run_after`` orders two tasks only when both are scheduled.
- When a task fails, every task still waiting in the plan is BLOCKED.
"""

from __future__ import annotations

from collections import deque

from solrdock.models.tasks import SATISFIED_STATES, TaskDefinition, TaskState


class UnknownTaskError(KeyError):
    """Raised when a requested task id is not part of the graph."""


class CyclicDependencyError(ValueError):
    """Raised when the task graph contains a cycle."""


class TaskGraph:
    """Directed acyclic graph over task definitions.

    Both ``depends_on`` and ``must_run_after`` edges take part in the cycle
    check, since either kind would make a plan impossible to order.
    """

    def __init__(self, definitions: list[TaskDefinition]) -> None:
        self._tasks: dict[str, TaskDefinition] = {d.task_id: d for d in definitions}
        # Forward edges: task_id -> tasks that must finish first
        self._depends_on: dict[str, list[str]] = {
            d.task_id: list(d.depends_on) for d in definitions
        }
        self._after: dict[str, list[str]] = {
            d.task_id: list(d.must_run_after) for d in definitions
        }
        for d in definitions:
            for ref in (*d.depends_on, *d.must_run_after):
                if ref not in self._tasks:
                    raise UnknownTaskError(f"{d.task_id} refers to unknown task {ref!r}")

        self._validate_no_cycles()

    def _predecessors(self, task_id: str) -> list[str]:
        return self._depends_on[task_id] + self._after[task_id]

    def _validate_no_cycles(self) -> None:
        """Verify the graph is a DAG using Kahn's algorithm."""
        in_degree = {tid: len(self._predecessors(tid)) for tid in self._tasks}
        successors: dict[str, list[str]] = {tid: [] for tid in self._tasks}
        for tid in self._tasks:
            for pred in self._predecessors(tid):
                successors[pred].append(tid)

        queue = deque(tid for tid, deg in in_degree.items() if deg == 0)
        visited = 0
        while queue:
            node = queue.popleft()
            visited += 1
            for succ in successors[node]:
                in_degree[succ] -= 1
                if in_degree[succ] == 0:
                    queue.append(succ)

        if visited != len(self._tasks):
            raise CyclicDependencyError(
                f"Task graph has a cycle. Visited {visited}/{len(self._tasks)} tasks."
            )

    # ------------------------------------------------------------------
    # Query methods
    # ------------------------------------------------------------------

    def __contains__(self, task_id: str) -> bool:
        return task_id in self._tasks

    @property
    def task_ids(self) -> list[str]:
        """All task ids in definition order."""
        return sorted(self._tasks, key=lambda t: self._tasks[t].ordinal)

    def get_definition(self, task_id: str) -> TaskDefinition:
        try:
            return self._tasks[task_id]
        except KeyError:
            raise UnknownTaskError(f"Unknown task {task_id!r}") from None

    def get_dependencies(self, task_id: str) -> list[str]:
        """Direct ``depends_on`` task ids."""
        self.get_definition(task_id)
        return list(self._depends_on[task_id])

    def closure(self, targets: list[str]) -> set[str]:
        """All tasks needed to run *targets*, following ``depends_on`` only."""
        needed: set[str] = set()
        queue = deque(targets)
        while queue:
            tid = queue.popleft()
            self.get_definition(tid)
            if tid in needed:
                continue
            needed.add(tid)
            queue.extend(self._depends_on[tid])
        return needed

    def plan(self, targets: list[str]) -> list[str]:
        """Execution order for *targets* and their dependencies.

        Topological over ``depends_on`` plus those ``must_run_after`` edges
        whose both ends are scheduled. Ties break on ordinal.
        """
        scheduled = self.closure(targets)
        preds = {
            tid: [p for p in self._predecessors(tid) if p in scheduled]
            for tid in scheduled
        }
        in_degree = {tid: len(p) for tid, p in preds.items()}
        ready = sorted(
            (tid for tid, deg in in_degree.items() if deg == 0),
            key=lambda t: self._tasks[t].ordinal,
        )
        order: list[str] = []
        while ready:
            node = ready.pop(0)
            order.append(node)
            for tid in scheduled:
                if node in preds[tid]:
                    in_degree[tid] -= 1
                    if in_degree[tid] == 0:
                        ready.append(tid)
            ready.sort(key=lambda t: self._tasks[t].ordinal)
        return order

    # ------------------------------------------------------------------
    # Dependency checking
    # ------------------------------------------------------------------

    def are_dependencies_met(self, task_id: str, states: dict[str, TaskState]) -> bool:
        return all(
            states.get(dep) in SATISFIED_STATES for dep in self._depends_on[task_id]
        )

    def get_blocking_reasons(self, task_id: str, states: dict[str, TaskState]) -> list[str]:
        """Human-readable reasons why a task cannot start."""
        reasons = []
        for dep in self._depends_on[task_id]:
            state = states.get(dep, TaskState.NOT_STARTED)
            if state not in SATISFIED_STATES:
                reasons.append(f"{dep} is {state.value}")
        return reasons

    def cascade_block(self, states: dict[str, TaskState]) -> list[str]:
        """Block every task in *states* that has not started yet.

        Called after a failure: the run stops, so nothing else will start.
        Returns the newly blocked task ids in plan order.
        """
        blocked = []
        for tid, state in states.items():
            if state == TaskState.NOT_STARTED:
                states[tid] = TaskState.BLOCKED
                blocked.append(tid)
        return blocked
