"""Tests for test case discovery, selection and execution."""

from __future__ import annotations

from pathlib import Path

import pytest

from solrdock.models.artifacts import ImageId
from solrdock.tasks.base import MissingInputError, TaskExecutionError
from solrdock.tasks.testing import (
    TestCaseFailedError,
    TestTask,
    discover_test_cases,
    run_test_cases,
    should_run,
)


@pytest.fixture
def cases_dir(project: Path) -> Path:
    return project / "tests" / "cases"


@pytest.fixture
def image_id(image_id_value: str) -> ImageId:
    return ImageId(value=image_id_value)


class TestDiscovery:
    def test_sorted_directories_only(self, cases_dir: Path):
        """Only directories are test cases, in name order."""
        (cases_dir / "README.md").write_text("not a test case")
        assert [c.name for c in discover_test_cases(cases_dir)] == ["a", "b", "c", "d"]

    def test_lazy_and_restartable(self, cases_dir: Path):
        """Each discovery call lists the directory afresh."""
        cases = discover_test_cases(cases_dir)
        assert next(cases).name == "a"
        (cases_dir / "e").mkdir()
        assert [c.name for c in discover_test_cases(cases_dir)][-1] == "e"

    def test_entry_point(self, cases_dir: Path):
        """A case's entry point is its test.sh."""
        first = next(discover_test_cases(cases_dir))
        assert first.entry_point == (cases_dir / "a" / "test.sh").resolve()

    def test_missing_root(self, tmp_path: Path):
        """A missing cases root raises MissingInputError."""
        with pytest.raises(MissingInputError):
            list(discover_test_cases(tmp_path / "none"))


class TestSelection:
    def test_include_wins_and_ignores_exclude(self):
        """With an include set only included cases run."""
        selected = [n for n in "abcd" if should_run(n, {"a"}, {"b", "c"})]
        assert selected == ["a"]

    def test_exclude_only(self):
        """Without an include set excluded cases are skipped."""
        selected = [n for n in "abcd" if should_run(n, set(), {"b"})]
        assert selected == ["a", "c", "d"]

    def test_no_filters_runs_everything(self):
        """No filters selects every case."""
        assert all(should_run(n, [], []) for n in "abcd")

    def test_include_may_name_excluded_case(self):
        """A case in both sets still runs."""
        assert should_run("b", {"b"}, {"b"}) is True


class TestRunTestCases:
    def test_invocation_and_environment(self, cases_dir, image_id, runner, tmp_path):
        """Each case runs as bash test.sh <short id> with TEST_DIR and BUILD_DIR."""
        out = tmp_path / "out"
        run_test_cases(image_id, discover_test_cases(cases_dir), {"a"}, set(), out, runner)
        [call] = runner.test_scripts()
        assert call.args == ["bash", str((cases_dir / "a" / "test.sh").resolve()), "0123456"]
        assert call.env["TEST_DIR"] == str((cases_dir / "a").resolve())
        assert call.env["BUILD_DIR"] == str((out / "a").resolve())

    def test_selection_applied(self, cases_dir, image_id, runner, tmp_path):
        """Skipped cases are reported and not run."""
        report = run_test_cases(
            image_id, discover_test_cases(cases_dir), set(), {"b"}, tmp_path / "out", runner
        )
        assert runner.test_names() == ["a", "c", "d"]
        assert report.ran == ["a", "c", "d"]
        assert report.skipped == ["b"]
        assert report.passed

    def test_output_dirs_fresh_and_separate(self, cases_dir, image_id, runner, tmp_path):
        """Each case gets its own freshly created output dir."""
        out = tmp_path / "out"
        (out / "a").mkdir(parents=True)
        (out / "a" / "stale.log").write_text("old run")
        run_test_cases(image_id, discover_test_cases(cases_dir), {"a", "c"}, set(), out, runner)
        assert (out / "a").is_dir() and not (out / "a" / "stale.log").exists()
        assert (out / "c").is_dir()
        envs = {c.env["BUILD_DIR"] for c in runner.test_scripts()}
        assert len(envs) == 2

    def test_fail_fast_stops_at_first_failure(self, cases_dir, image_id, runner, tmp_path):
        """Fail fast stops at the first failing case."""
        runner.failures["/b/test.sh"] = 3
        with pytest.raises(TestCaseFailedError) as info:
            run_test_cases(image_id, discover_test_cases(cases_dir), set(), set(),
                           tmp_path / "out", runner)
        assert runner.test_names() == ["a", "b"]
        assert info.value.returncode == 3
        assert info.value.failed_case == "b"
        assert info.value.report.ran == ["a", "b"]

    def test_no_fail_fast_runs_all_and_aggregates(self, cases_dir, image_id, runner, tmp_path):
        """Without fail fast all cases run and failures are collected."""
        runner.failures["/b/test.sh"] = 3
        runner.failures["/d/test.sh"] = 9
        with pytest.raises(TestCaseFailedError) as info:
            run_test_cases(image_id, discover_test_cases(cases_dir), set(), set(),
                           tmp_path / "out", runner, fail_fast=False)
        assert runner.test_names() == ["a", "b", "c", "d"]
        assert info.value.returncode == 3
        assert [r.name for r in info.value.report.failures] == ["b", "d"]

    def test_custom_shell(self, cases_dir, image_id, runner, tmp_path):
        """The shell binary is configurable."""
        run_test_cases(image_id, discover_test_cases(cases_dir), {"a"}, set(),
                       tmp_path / "out", runner, shell="/bin/bash")
        assert runner.calls[0].args[0] == "/bin/bash"


class TestTestTask:
    def _write_id(self, settings, value):
        settings.image_id_file.parent.mkdir(parents=True, exist_ok=True)
        settings.image_id_file.write_text(value)

    def test_runs_with_resolved_filters(self, run_context, runner, settings, image_id_value):
        """TestTask applies the resolved include/exclude lists."""
        from solrdock.config import resolve_inputs

        self._write_id(settings, image_id_value)
        run_context["inputs"] = resolve_inputs({}, {"SOLR_DOCKER_TESTS_EXCLUDE": "c,d"}, version="9.0.0")
        result = TestTask().run_task(run_context)
        assert result == {"ran": ["a", "b"], "skipped": ["c", "d"]}
        assert run_context["test_report"].passed
        assert settings.test_output_dir.is_dir()

    def test_missing_image_id_fails_without_running(self, run_context, runner):
        """No image id means no test scripts run."""
        with pytest.raises(TaskExecutionError):
            TestTask().run_task(run_context)
        assert runner.calls == []

    def test_failure_keeps_partial_report(self, run_context, runner, settings, image_id_value):
        """A failing case keeps the report gathered so far."""
        self._write_id(settings, image_id_value)
        runner.failures["/a/test.sh"] = 4
        with pytest.raises(TaskExecutionError) as info:
            TestTask().run_task(run_context)
        assert info.value.exit_code == 4
        assert run_context["test_report"].ran == ["a"]

    def test_fail_fast_override_from_context(self, run_context, runner, settings, image_id_value):
        """The run context can turn fail fast off."""
        self._write_id(settings, image_id_value)
        run_context["tests_fail_fast"] = False
        runner.failures["/a/test.sh"] = 4
        with pytest.raises(TaskExecutionError):
            TestTask().run_task(run_context)
        assert runner.test_names() == ["a", "b", "c", "d"]

    def test_declared_properties_sorted(self, run_context):
        """Test lists are declared sorted so hashes are stable."""
        from solrdock.config import resolve_inputs

        run_context["inputs"] = resolve_inputs({"solr.docker.tests.include": "z,a"}, {})
        assert TestTask().input_properties(run_context) == {
            "includeTests": ["a", "z"],
            "excludeTests": [],
        }
