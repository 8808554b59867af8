"""Logging setup: one Rich handler on stderr for the whole process."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

_HANDLER_NAME = "solrdock-rich"


def is_valid_level(level: str | int) -> bool:
    """Whether *level* names a standard logging level."""
    if isinstance(level, int):
        return True
    return isinstance(logging.getLevelName(level.upper()), int)


def configure_logging(level: str | int = "INFO") -> None:
    """Configure the ``solrdock`` logger. Safe to call more than once."""
    root = logging.getLogger("solrdock")
    root.setLevel(level.upper() if isinstance(level, str) else level)

    if any(h.get_name() == _HANDLER_NAME for h in root.handlers):
        return

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        omit_repeated_times=False,
        markup=False,
    )
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(handler)
