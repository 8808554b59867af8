"""End-to-end integration tests: package, build, tag, test and push together.

These tests exercise the TaskExecutor, TaskGraph, TaskHistory and every task
against a real project tree, with docker and bash replaced by the recording
runner.
"""

from __future__ import annotations

import tarfile
from pathlib import Path

import pytest

from solrdock.config import resolve_inputs
from solrdock.models.history import TaskOutcome
from solrdock.models.tasks import TaskState
from solrdock.tasks.base import TaskExecutionError

ALL_TASKS = ["package", "build", "tag", "test", "push"]


class TestFullPipeline:
    """A release: build, test, then publish."""

    def test_release_flow(self, make_executor, runner, settings, history):
        """test push runs every task once, in order, and records them."""
        executor = make_executor()
        summary = executor.run(["test", "push"])

        assert summary.executed == ALL_TASKS
        kinds = [c.args[1] if c.args[0] == "docker" else "test" for c in runner.calls]
        assert kinds == ["build", "tag", "test", "test", "test", "test", "push"]

        records = history.run_records(executor.run_id)
        assert [r.task_id for r in records] == ALL_TASKS
        assert all(r.outcome == TaskOutcome.SUCCESS for r in records)

    def test_archive_fed_to_build_matches_package_output(self, make_executor, runner, settings):
        """docker build receives the packaged archive."""
        make_executor().run(["build"])
        archive = settings.archive_path("9.0.0")
        [build] = runner.docker("build")
        assert build.stdin == archive.read_bytes()
        with tarfile.open(archive, "r:gz") as tar:
            assert "Dockerfile" in tar.getnames()

    def test_custom_image_name_end_to_end(self, make_executor, runner):
        """Overridden repo and tag reach tag and push."""
        inputs = resolve_inputs(
            {"solr.docker.imageRepo": "example/solr", "solr.docker.imageTag": "edge"},
            {"SOLR_DOCKER_TESTS_INCLUDE": "b"},
            version="9.0.0",
        )
        make_executor(inputs=inputs).run(["test", "push"])
        assert runner.docker("tag")[0].args[-1] == "example/solr:edge"
        assert runner.docker("push")[0].args[-1] == "example/solr:edge"
        assert runner.test_names() == ["b"]

    def test_repeat_release_is_up_to_date(self, make_executor, runner):
        """Repeating an unchanged release does nothing."""
        make_executor().run(["test", "push"])
        runner.calls.clear()

        summary = make_executor().run(["test", "push"])
        assert runner.calls == []
        assert all(summary.state_of(t) == TaskState.UP_TO_DATE for t in ALL_TASKS)

    def test_new_release_artifact_rebuilds_image(self, make_executor, runner, project):
        """A new release tgz repackages and rebuilds."""
        make_executor().run(["test", "push"])
        runner.calls.clear()

        releases = project.parent / "packaging" / "build" / "distributions"
        (releases / "solr-9.0.0.tgz").write_bytes(b"new-release-bytes")

        summary = make_executor().run(["test", "push"])
        assert summary.state_of("package") == TaskState.PASSED
        assert summary.state_of("build") == TaskState.PASSED
        # The engine returned the same image id, so the id file is unchanged.
        assert summary.state_of("tag") == TaskState.UP_TO_DATE
        assert summary.state_of("test") == TaskState.UP_TO_DATE

    def test_changed_test_case_reruns_tests_only(self, make_executor, runner, project):
        """Editing a test case reruns only the tests."""
        make_executor().run(["test"])
        runner.calls.clear()

        (project / "tests" / "cases" / "c" / "test.sh").write_text("#!/bin/bash\nexit 0\n")
        summary = make_executor().run(["test"])
        assert summary.executed == ["test"]
        assert runner.docker("build") == []
        assert runner.test_names() == ["a", "b", "c", "d"]


class TestFailedRelease:
    def test_failing_case_blocks_push_then_recovers(self, make_executor, runner, history):
        """A failed test blocks push; the next clean run pushes."""
        runner.failures["/b/test.sh"] = 1
        failed = make_executor()
        with pytest.raises(TaskExecutionError):
            failed.run(["test", "push"])
        assert runner.docker("push") == []
        assert failed.get_states()["push"] == TaskState.BLOCKED

        runner.failures.clear()
        runner.calls.clear()
        recovered = make_executor()
        summary = recovered.run(["test", "push"])
        assert summary.executed == ["test", "push"]
        assert len(runner.docker("push")) == 1

    def test_missing_release_directory_fails_package(self, make_executor, runner, project):
        """A missing release dir fails package before any docker call."""
        releases = project.parent / "packaging" / "build" / "distributions"
        for path in releases.iterdir():
            path.unlink()
        releases.rmdir()

        executor = make_executor()
        with pytest.raises(TaskExecutionError) as info:
            executor.run(["docker"])
        assert info.value.task_id == "package"
        assert runner.calls == []
        assert executor.get_states()["build"] == TaskState.BLOCKED


@pytest.mark.parametrize("target", ["package", "build", "tag", "test", "push", "docker"])
def test_every_target_runs_from_scratch(make_executor, target: str, tmp_path: Path):
    """Every target passes on a fresh project."""
    summary = make_executor().run([target])
    assert summary.state_of(target) == TaskState.PASSED
