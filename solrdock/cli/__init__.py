"""solrdock CLI: Typer-based command-line interface.

Provides the ``solrdock`` command with one subcommand per task (package,
build, tag, test, push), the ``docker`` aggregate, ``run`` for arbitrary
task combinations, and ``config`` / ``history`` for inspection.

All output uses Rich for formatted terminal display.
"""
