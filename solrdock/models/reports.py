"""Test case descriptors and per-run test reports."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict

ENTRY_POINT = "test.sh"


class TestCase(BaseModel):
    """A test case directory discovered under the test cases root."""

    __test__ = False  # not a pytest class

    model_config = ConfigDict(frozen=True)

    name: str
    directory: Path

    @property
    def entry_point(self) -> Path:
        return self.directory / ENTRY_POINT


class TestCaseResult(BaseModel):
    """Outcome of one executed test case."""

    __test__ = False

    model_config = ConfigDict(frozen=True)

    name: str
    exit_code: int
    duration_seconds: float
    output_dir: Path

    @property
    def passed(self) -> bool:
        return self.exit_code == 0


class TestReport(BaseModel):
    """Which test cases ran, which were filtered out, and how they ended."""

    __test__ = False

    model_config = ConfigDict(frozen=True)

    image_id: str
    results: list[TestCaseResult] = []
    skipped: list[str] = []

    @property
    def failures(self) -> list[TestCaseResult]:
        return [r for r in self.results if not r.passed]

    @property
    def passed(self) -> bool:
        return not self.failures

    @property
    def ran(self) -> list[str]:
        return [r.name for r in self.results]
