"""Resolved Docker image inputs (one immutable snapshot per run)."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class DockerInputs(BaseModel):
    """Image coordinates and build arguments, resolved once per run.

    See ``solrdock.config.resolve_inputs`` for the precedence rules.
    """

    model_config = ConfigDict(frozen=True)

    version: str
    image_repo: str
    image_tag: str
    image_name: str
    base_image: str
    github_url: str
    tests_include: frozenset[str] = frozenset()
    tests_exclude: frozenset[str] = frozenset()

    def build_args(self) -> dict[str, str]:
        """Return the ``--build-arg`` values passed to ``docker build``."""
        return {
            "BASE_IMAGE": self.base_image,
            "SOLR_VERSION": self.version,
            "GITHUB_URL": self.github_url,
        }
