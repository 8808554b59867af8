"""Append-only task history backed by SQLite.

The history is what makes tasks incremental: the executor compares a task's
current input and output hashes with its latest successful record and skips
the task when they match.

Design:
- Append-only: only ``append()`` writes; no update, no delete.
- One row per real execution; up-to-date skips are not recorded.
- WAL journal mode so ``solrdock history`` can read during a run.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path

from solrdock.models.history import TaskOutcome, TaskRecord

_CREATE_HISTORY = """
CREATE TABLE IF NOT EXISTS task_history (
    id                INTEGER PRIMARY KEY AUTOINCREMENT,
    record_id         TEXT NOT NULL UNIQUE,
    run_id            TEXT NOT NULL,
    task_id           TEXT NOT NULL,
    outcome           TEXT NOT NULL,
    input_hash        TEXT NOT NULL DEFAULT '',
    output_hash       TEXT NOT NULL DEFAULT '',
    exit_code         INTEGER NOT NULL DEFAULT 0,
    duration_seconds  REAL NOT NULL DEFAULT 0,
    timestamp_utc     TEXT NOT NULL
);
"""

_CREATE_IDX_TASK = """
CREATE INDEX IF NOT EXISTS idx_task_id ON task_history(task_id, id);
"""

_COLUMNS = (
    "record_id, run_id, task_id, outcome, input_hash, output_hash, "
    "exit_code, duration_seconds, timestamp_utc"
)


class TaskHistory:
    """Append-only record of task executions.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file. Created if it does not exist.
    """

    def __init__(self, db_path: Path) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    @property
    def db_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path))
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _init_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(_CREATE_HISTORY)
            conn.execute(_CREATE_IDX_TASK)
            conn.commit()

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def append(self, record: TaskRecord) -> TaskRecord:
        """Append a record. This is the only write method."""
        with self._connect() as conn:
            conn.execute(
                f"INSERT INTO task_history ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    record.record_id,
                    record.run_id,
                    record.task_id,
                    record.outcome.value,
                    record.input_hash,
                    record.output_hash,
                    record.exit_code,
                    record.duration_seconds,
                    record.timestamp_utc.isoformat(),
                ),
            )
            conn.commit()
        return record

    # ------------------------------------------------------------------
    # Queries (read-only)
    # ------------------------------------------------------------------

    def latest_success(self, task_id: str) -> TaskRecord | None:
        """Most recent successful record for *task_id*, or None."""
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM task_history "
                "WHERE task_id = ? AND outcome = ? ORDER BY id DESC LIMIT 1",
                (task_id, TaskOutcome.SUCCESS.value),
            ).fetchone()
        return self._row_to_record(row) if row else None

    def records(self, task_id: str | None = None, limit: int = 50) -> list[TaskRecord]:
        """Most recent records first, optionally for one task."""
        query = f"SELECT {_COLUMNS} FROM task_history"
        params: tuple = ()
        if task_id is not None:
            query += " WHERE task_id = ?"
            params = (task_id,)
        query += " ORDER BY id DESC LIMIT ?"
        with self._connect() as conn:
            rows = conn.execute(query, (*params, limit)).fetchall()
        return [self._row_to_record(row) for row in rows]

    def run_records(self, run_id: str) -> list[TaskRecord]:
        """All records for one invocation, in execution order."""
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM task_history WHERE run_id = ? ORDER BY id ASC",
                (run_id,),
            ).fetchall()
        return [self._row_to_record(row) for row in rows]

    @staticmethod
    def _row_to_record(row: tuple) -> TaskRecord:
        (
            record_id,
            run_id,
            task_id,
            outcome,
            input_hash,
            output_hash,
            exit_code,
            duration_seconds,
            timestamp_utc,
        ) = row
        return TaskRecord(
            record_id=record_id,
            run_id=run_id,
            task_id=task_id,
            outcome=TaskOutcome(outcome),
            input_hash=input_hash,
            output_hash=output_hash,
            exit_code=exit_code,
            duration_seconds=duration_seconds,
            timestamp_utc=timestamp_utc,
        )
