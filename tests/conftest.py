"""Shared test fixtures for solrdock."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import pytest

from solrdock.config import ToolSettings, resolve_inputs
from solrdock.core.executor import TaskExecutor
from solrdock.core.process import CommandFailedError
from solrdock.core.task_history import TaskHistory
from solrdock.models.inputs import DockerInputs

FAKE_IMAGE_ID = "sha256:" + "0123456789abcdef" * 4


class RecordedCall:
    def __init__(self, args: list[str], stdin_path: Path | None, env: dict[str, str]) -> None:
        self.args = args
        self.stdin_path = stdin_path
        self.env = env
        # Capture stdin now: the archive may be rewritten by a later task.
        self.stdin = Path(stdin_path).read_bytes() if stdin_path else b""

    def __repr__(self) -> str:
        return f"RecordedCall({self.args!r})"


class FakeRunner:
    """Records commands instead of running them.

    ``docker build`` writes ``image_id`` to the ``--iidfile`` path, like the
    real engine. ``failures`` maps a substring of the joined command line to
    the exit code that command should fail with.
    """

    def __init__(self, image_id: str = FAKE_IMAGE_ID) -> None:
        self.image_id = image_id
        self.calls: list[RecordedCall] = []
        self.failures: dict[str, int] = {}

    def run(
        self,
        args: Sequence[str],
        *,
        stdin_path: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        args = [str(a) for a in args]
        self.calls.append(RecordedCall(args, stdin_path, dict(env or {})))
        joined = " ".join(args)
        for needle, code in self.failures.items():
            if needle in joined:
                raise CommandFailedError(args, code)
        if args[1:2] == ["build"]:
            Path(args[args.index("--iidfile") + 1]).write_text(self.image_id + "\n")

    def docker(self, subcommand: str) -> list[RecordedCall]:
        """Recorded ``docker <subcommand>`` calls."""
        return [c for c in self.calls if c.args[0] == "docker" and c.args[1] == subcommand]

    def test_scripts(self) -> list[RecordedCall]:
        return [c for c in self.calls if c.args[0] == "bash"]

    def test_names(self) -> list[str]:
        return [Path(c.args[1]).parent.name for c in self.test_scripts()]


def _write_test_case(cases: Path, name: str) -> None:
    case = cases / name
    case.mkdir(parents=True)
    (case / "test.sh").write_text(f"#!/bin/bash\necho {name}\n")


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A minimal Solr docker project tree with four test cases a..d."""
    root = tmp_path / "docker"
    (root / "scripts").mkdir(parents=True)
    (root / "scripts" / "solr-foreground").write_text("#!/bin/bash\nexec solr -f\n")
    (root / "scripts" / "lib").mkdir()
    (root / "scripts" / "lib" / "common.sh").write_text("SOLR_HOME=/var/solr\n")
    (root / "Dockerfile").write_text("ARG BASE_IMAGE\nFROM $BASE_IMAGE\n")

    releases = tmp_path / "packaging" / "build" / "distributions"
    releases.mkdir(parents=True)
    (releases / "solr-9.0.0.tgz").write_bytes(b"release-bytes")
    (releases / "solr-9.0.0.zip").write_bytes(b"not packaged")

    for name in ("a", "b", "c", "d"):
        _write_test_case(root / "tests" / "cases", name)
    return root


@pytest.fixture
def settings(project: Path) -> ToolSettings:
    """ToolSettings pointing at the temp project, ignoring any .env file."""
    return ToolSettings(_env_file=None, project_dir=project, solr_version="9.0.0")


@pytest.fixture
def inputs() -> DockerInputs:
    return resolve_inputs({}, {}, version="9.0.0")


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def run_context(settings: ToolSettings, inputs: DockerInputs, runner: FakeRunner) -> dict[str, Any]:
    return {"run_id": "sd-test", "settings": settings, "inputs": inputs, "runner": runner}


@pytest.fixture
def history(settings: ToolSettings) -> TaskHistory:
    return TaskHistory(settings.history_path)


@pytest.fixture
def make_executor(settings: ToolSettings, runner: FakeRunner, history: TaskHistory):
    """Factory fixture: a TaskExecutor sharing the test runner and history."""

    def _factory(inputs: DockerInputs | None = None, **overrides: Any) -> TaskExecutor:
        return TaskExecutor(
            overrides.pop("settings", settings),
            inputs or resolve_inputs({}, {}, version="9.0.0"),
            runner=overrides.pop("runner", runner),
            history=overrides.pop("history", history),
            **overrides,
        )

    return _factory


@pytest.fixture
def image_id_value() -> str:
    return FAKE_IMAGE_ID
