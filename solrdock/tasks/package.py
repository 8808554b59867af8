"""Package task: build the docker context archive.

Layout of the archive::

    Dockerfile
    releases/<solr release>.tgz
    scripts/<...>              (mode 0755)

The archive is reproducible: members are sorted, timestamps and ownership
are zeroed and the gzip header carries no mtime or file name, so the same
inputs always give the same bytes.
"""

from __future__ import annotations

import gzip
import logging
import os
import tarfile
import tempfile
from pathlib import Path
from typing import Any

from solrdock.config import ToolSettings
from solrdock.core.hasher import file_sha256
from solrdock.models.artifacts import ContextArchive
from solrdock.models.inputs import DockerInputs
from solrdock.tasks.base import BaseTask, require_path

logger = logging.getLogger(__name__)

RELEASE_PATTERN = "*.tgz"
SCRIPT_MODE = 0o755
FILE_MODE = 0o644


def release_archives(release_dir: Path) -> list[Path]:
    """The ``*.tgz`` files in *release_dir*, sorted by name."""
    return sorted(p for p in Path(release_dir).glob(RELEASE_PATTERN) if p.is_file())


def _members(
    scripts_dir: Path, releases: list[Path], dockerfile: Path
) -> list[tuple[str, Path, int]]:
    members = [("Dockerfile", dockerfile, FILE_MODE)]
    members.extend((f"releases/{p.name}", p, FILE_MODE) for p in releases)
    members.extend(
        (f"scripts/{p.relative_to(scripts_dir).as_posix()}", p, SCRIPT_MODE)
        for p in scripts_dir.rglob("*")
        if p.is_file()
    )
    return sorted(members, key=lambda m: m[0])


def _tarinfo(arcname: str, source: Path, mode: int) -> tarfile.TarInfo:
    info = tarfile.TarInfo(arcname)
    info.size = source.stat().st_size
    info.mode = mode
    info.mtime = 0
    info.uid = info.gid = 0
    info.uname = info.gname = ""
    return info


def package_context(
    scripts_dir: Path,
    release_dir: Path,
    dockerfile: Path,
    destination: Path,
) -> ContextArchive:
    """Write the gzip tar build context to *destination*.

    Raises ``MissingInputError`` when the scripts dir, release dir or
    Dockerfile is missing.
    """
    scripts_dir = require_path(scripts_dir, what="scripts directory")
    release_dir = require_path(release_dir, what="release directory")
    dockerfile = require_path(dockerfile, what="Dockerfile")

    members = _members(scripts_dir, release_archives(release_dir), dockerfile)

    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=destination.parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as raw:
            with gzip.GzipFile(filename="", mode="wb", fileobj=raw, mtime=0) as gz:
                with tarfile.open(fileobj=gz, mode="w", format=tarfile.GNU_FORMAT) as tar:
                    for arcname, source, mode in members:
                        with open(source, "rb") as handle:
                            tar.addfile(_tarinfo(arcname, source, mode), handle)
        os.replace(tmp_name, destination)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

    return ContextArchive(
        path=destination,
        sha256=file_sha256(destination),
        size_bytes=destination.stat().st_size,
        member_count=len(members),
    )


class PackageTask(BaseTask):
    """Bundle scripts, release archives and the Dockerfile into one tgz."""

    task_id = "package"

    def input_properties(self, run_context: dict[str, Any]) -> dict[str, Any]:
        inputs: DockerInputs = run_context["inputs"]
        return {"version": inputs.version}

    def input_paths(self, run_context: dict[str, Any]) -> list[Path]:
        settings: ToolSettings = run_context["settings"]
        return [
            settings.path(settings.scripts_dir),
            settings.path(settings.dockerfile),
            *release_archives(settings.path(settings.release_dir)),
        ]

    def output_paths(self, run_context: dict[str, Any]) -> list[Path]:
        settings: ToolSettings = run_context["settings"]
        inputs: DockerInputs = run_context["inputs"]
        return [settings.archive_path(inputs.version)]

    def execute(self, run_context: dict[str, Any]) -> dict[str, Any]:
        settings: ToolSettings = run_context["settings"]
        inputs: DockerInputs = run_context["inputs"]

        archive = package_context(
            settings.path(settings.scripts_dir),
            settings.path(settings.release_dir),
            settings.path(settings.dockerfile),
            settings.archive_path(inputs.version),
        )
        run_context["archive"] = archive
        logger.info(
            "Docker context packaged: %s (%d files, %d bytes)",
            archive.path,
            archive.member_count,
            archive.size_bytes,
        )
        return {"archive": str(archive.path), "sha256": archive.sha256}
