"""Subprocess runner for the external tools (docker, bash).

Output is streamed straight to the terminal. A non-zero exit becomes a
``CommandFailedError`` carrying the exit code, which the CLI forwards as its
own exit status. There are no retries and no timeouts.
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)

# Exit status used by shells when the executable cannot be found.
COMMAND_NOT_FOUND = 127


class CommandFailedError(RuntimeError):
    """Raised when an external command exits non-zero."""

    def __init__(self, args: Sequence[str], returncode: int, detail: str = "") -> None:
        self.command = list(args)
        self.returncode = returncode
        message = f"Command failed with exit code {returncode}: {shlex.join(self.command)}"
        if detail:
            message = f"{message}\n{detail}"
        super().__init__(message)


@runtime_checkable
class CommandRunner(Protocol):
    """Anything that can run a command to completion or raise."""

    def run(
        self,
        args: Sequence[str],
        *,
        stdin_path: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None: ...


class SubprocessRunner:
    """Runs commands with ``subprocess.run``.

    Parameters
    ----------
    cwd:
        Working directory for every command. Defaults to the current one.
    """

    def __init__(self, cwd: Path | None = None) -> None:
        self._cwd = cwd

    def run(
        self,
        args: Sequence[str],
        *,
        stdin_path: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        """Run *args*, optionally feeding *stdin_path* and extra *env* vars."""
        command = [str(a) for a in args]
        full_env = None
        if env:
            full_env = {**os.environ, **{k: str(v) for k, v in env.items()}}

        logger.debug("exec: %s", shlex.join(command))
        try:
            if stdin_path is not None:
                with open(stdin_path, "rb") as stdin:
                    result = subprocess.run(
                        command, stdin=stdin, env=full_env, cwd=self._cwd, check=False
                    )
            else:
                result = subprocess.run(command, env=full_env, cwd=self._cwd, check=False)
        except FileNotFoundError as exc:
            raise CommandFailedError(command, COMMAND_NOT_FOUND, str(exc)) from exc

        if result.returncode != 0:
            raise CommandFailedError(command, result.returncode)
