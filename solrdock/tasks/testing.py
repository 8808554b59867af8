"""Test task: run the shell test cases against the built image.

Each directory under the test cases root is one test case with a ``test.sh``
entry point. A case is invoked as::

    bash <case>/test.sh <short image id>

with ``TEST_DIR`` set to the case directory and ``BUILD_DIR`` set to a fresh
per-case output directory.

Selection: when an include set is given, only those cases run and the
exclude set is ignored; otherwise every case not in the exclude set runs.
"""

from __future__ import annotations

import logging
import shutil
import time
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any

from solrdock.config import ToolSettings
from solrdock.core.process import CommandFailedError, CommandRunner
from solrdock.models.artifacts import ImageId
from solrdock.models.inputs import DockerInputs
from solrdock.models.reports import TestCase, TestCaseResult, TestReport
from solrdock.tasks.base import BaseTask, require_path
from solrdock.tasks.tag import current_image_id

logger = logging.getLogger(__name__)


class TestCaseFailedError(CommandFailedError):
    """Raised when one or more test cases exit non-zero.

    ``report`` holds the results gathered up to the point of failure.
    """

    __test__ = False

    def __init__(self, failed: TestCaseResult, command: list[str], report: TestReport) -> None:
        self.report = report
        self.failed_case = failed.name
        super().__init__(command, failed.exit_code, f"Test case {failed.name!r} failed")


def discover_test_cases(root: Path) -> Iterator[TestCase]:
    """Yield the test case directories under *root* in name order.

    Lazy and restartable: every call lists the directory again.
    """
    root = require_path(root, what="test cases directory")
    for child in sorted(root.iterdir(), key=lambda p: p.name):
        if child.is_dir():
            yield TestCase(name=child.name, directory=child.resolve())


def should_run(name: str, include: Iterable[str], exclude: Iterable[str]) -> bool:
    """Apply the include/exclude filter to one test case name."""
    include = set(include)
    if include:
        return name in include
    return name not in set(exclude)


def run_test_cases(
    image_id: ImageId,
    cases: Iterable[TestCase],
    include: Iterable[str],
    exclude: Iterable[str],
    output_root: Path,
    runner: CommandRunner,
    *,
    shell: str = "bash",
    fail_fast: bool = True,
) -> TestReport:
    """Run every selected case and return the report.

    With *fail_fast* the first failing case stops the run. Otherwise all
    selected cases run and the first failure is raised at the end. Either
    way a failure raises ``TestCaseFailedError`` carrying the report.
    """
    include = frozenset(include)
    exclude = frozenset(exclude)
    output_root = Path(output_root)
    short_id = image_id.short

    results: list[TestCaseResult] = []
    skipped: list[str] = []
    first_failure: tuple[TestCaseResult, list[str]] | None = None

    def _report() -> TestReport:
        return TestReport(image_id=image_id.value, results=list(results), skipped=list(skipped))

    for case in cases:
        if not should_run(case.name, include, exclude):
            skipped.append(case.name)
            continue

        case_build_dir = output_root / case.name
        if case_build_dir.exists():
            shutil.rmtree(case_build_dir)
        case_build_dir.mkdir(parents=True)

        command = [shell, str(case.entry_point), short_id]
        env = {"TEST_DIR": str(case.directory), "BUILD_DIR": str(case_build_dir.resolve())}

        logger.info("Running test case %s", case.name)
        started = time.monotonic()
        try:
            runner.run(command, env=env)
            exit_code = 0
        except CommandFailedError as exc:
            exit_code = exc.returncode
        result = TestCaseResult(
            name=case.name,
            exit_code=exit_code,
            duration_seconds=round(time.monotonic() - started, 3),
            output_dir=case_build_dir,
        )
        results.append(result)

        if result.passed:
            logger.info("Test case %s passed", case.name)
            continue

        logger.error("Test case %s failed with exit code %d", case.name, exit_code)
        if fail_fast:
            raise TestCaseFailedError(result, command, _report())
        if first_failure is None:
            first_failure = (result, command)

    if first_failure is not None:
        raise TestCaseFailedError(first_failure[0], first_failure[1], _report())
    return _report()


class TestTask(BaseTask):
    """Re-tested when the image id, the selection or the test files change."""

    __test__ = False

    task_id = "test"

    def input_properties(self, run_context: dict[str, Any]) -> dict[str, Any]:
        inputs: DockerInputs = run_context["inputs"]
        return {
            "includeTests": sorted(inputs.tests_include),
            "excludeTests": sorted(inputs.tests_exclude),
        }

    def input_paths(self, run_context: dict[str, Any]) -> list[Path]:
        settings: ToolSettings = run_context["settings"]
        return [settings.image_id_file, settings.path(settings.tests_dir)]

    def output_paths(self, run_context: dict[str, Any]) -> list[Path]:
        settings: ToolSettings = run_context["settings"]
        return [settings.test_output_dir]

    def execute(self, run_context: dict[str, Any]) -> dict[str, Any]:
        settings: ToolSettings = run_context["settings"]
        inputs: DockerInputs = run_context["inputs"]
        image_id = current_image_id(run_context)
        fail_fast = run_context.get("tests_fail_fast", settings.tests_fail_fast)

        logger.info("Testing Solr Image:")
        logger.info("\tID: %s", image_id)

        settings.test_output_dir.mkdir(parents=True, exist_ok=True)
        try:
            report = run_test_cases(
                image_id,
                discover_test_cases(settings.path(settings.tests_dir)),
                inputs.tests_include,
                inputs.tests_exclude,
                settings.test_output_dir,
                run_context["runner"],
                shell=settings.shell_command,
                fail_fast=fail_fast,
            )
        except TestCaseFailedError as exc:
            run_context["test_report"] = exc.report
            raise
        run_context["test_report"] = report
        return {"ran": report.ran, "skipped": report.skipped}
