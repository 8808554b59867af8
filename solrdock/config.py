"""Configuration: tool settings and layered image inputs.

Two layers live here:

* ``ToolSettings``: where things are on disk and which binaries to call.
  Uses pydantic-settings, so every field can be overridden through a
  ``SOLRDOCK_*`` environment variable or a ``.env`` file.
* ``resolve`` / ``resolve_inputs``: the image coordinates and build
  arguments. Each value is looked up as explicit override (``-P key=value``
  on the command line), then environment variable (``SOLR_DOCKER_*``), then
  default. The resolver takes the override map and an environment snapshot
  as arguments and never reads ``os.environ`` itself.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from solrdock.models.inputs import DockerInputs

DEFAULT_SOLR_VERSION = "9.0.0-SNAPSHOT"


class ToolSettings(BaseSettings):
    """Tool configuration with environment variable overrides.

    Examples
    --------
    Override via environment::

        export SOLRDOCK_BUILD_DIR=/tmp/solr-docker
        export SOLRDOCK_DOCKER_COMMAND=podman
        export SOLRDOCK_TESTS_FAIL_FAST=false
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="SOLRDOCK_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Product
    solr_version: str = DEFAULT_SOLR_VERSION

    # Layout (relative paths resolve against project_dir)
    project_dir: Path = Path(".")
    build_dir: Path = Path("build")
    scripts_dir: Path = Path("scripts")
    dockerfile: Path = Path("Dockerfile")
    release_dir: Path = Path("../packaging/build/distributions")
    tests_dir: Path = Path("tests/cases")
    history_db: Path | None = None  # defaults to <build_dir>/.solrdock/history.db

    # External tools
    docker_command: str = "docker"
    shell_command: str = "bash"

    # Behaviour
    tests_fail_fast: bool = True
    log_level: str = "INFO"

    def path(self, value: Path) -> Path:
        """Resolve *value* against the project directory."""
        value = Path(value)
        return value if value.is_absolute() else self.project_dir / value

    @property
    def build_path(self) -> Path:
        return self.path(self.build_dir)

    @property
    def distributions_dir(self) -> Path:
        return self.build_path / "distributions"

    @property
    def image_id_file(self) -> Path:
        return self.build_path / "image-id"

    @property
    def test_output_dir(self) -> Path:
        return self.build_path / "tmp" / "tests"

    @property
    def history_path(self) -> Path:
        if self.history_db is not None:
            return self.path(self.history_db)
        return self.build_path / ".solrdock" / "history.db"

    def archive_path(self, version: str) -> Path:
        return self.distributions_dir / f"solr-docker-{version}.tgz"


# ---------------------------------------------------------------------------
# Layered image inputs
# ---------------------------------------------------------------------------


def resolve(
    name: str,
    env_var: str,
    default: str,
    *,
    overrides: Mapping[str, str] | None = None,
    environ: Mapping[str, str] | None = None,
) -> str:
    """Return the override for *name*, else the env var *env_var*, else *default*."""
    if overrides and name in overrides:
        return overrides[name]
    if environ and env_var in environ:
        return environ[env_var]
    return default


def parse_name_set(value: str) -> frozenset[str]:
    """Split a comma-separated list into a set, dropping blank items."""
    return frozenset(item.strip() for item in value.split(",") if item.strip())


def parse_overrides(pairs: Iterable[str]) -> dict[str, str]:
    """Parse ``key=value`` strings into an override map; the last one wins."""
    overrides: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Expected key=value, got {pair!r}")
        overrides[key.strip()] = value
    return overrides


def resolve_inputs(
    overrides: Mapping[str, str] | None = None,
    environ: Mapping[str, str] | None = None,
    *,
    version: str = DEFAULT_SOLR_VERSION,
) -> DockerInputs:
    """Resolve every image input; later defaults build on earlier values."""

    def _get(name: str, env_var: str, default: str) -> str:
        return resolve(name, env_var, default, overrides=overrides, environ=environ)

    image_repo = _get("solr.docker.imageRepo", "SOLR_DOCKER_IMAGE_REPO", "apache/solr")
    image_tag = _get("solr.docker.imageTag", "SOLR_DOCKER_IMAGE_TAG", version)
    image_name = _get(
        "solr.docker.imageName", "SOLR_DOCKER_IMAGE_NAME", f"{image_repo}:{image_tag}"
    )
    base_image = _get("solr.docker.baseImage", "SOLR_DOCKER_BASE_IMAGE", "openjdk:11-jre-slim")
    github_url = _get("solr.docker.githubUrl", "SOLR_DOCKER_GITHUB_URL", "github.com")
    include = _get("solr.docker.tests.include", "SOLR_DOCKER_TESTS_INCLUDE", "")
    exclude = _get("solr.docker.tests.exclude", "SOLR_DOCKER_TESTS_EXCLUDE", "")

    return DockerInputs(
        version=version,
        image_repo=image_repo,
        image_tag=image_tag,
        image_name=image_name,
        base_image=base_image,
        github_url=github_url,
        tests_include=parse_name_set(include),
        tests_exclude=parse_name_set(exclude),
    )
