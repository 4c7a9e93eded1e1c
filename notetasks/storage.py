"""Persistent run ledger for Notetasks.

This module is intentionally small and focused. It provides:

- A SQLite database at ~/.notetasks.db (override with NOTETASKS_DB_PATH)
- A `tasks` table recording every attempt to file a task and its outcome
- A `runs` table with per-run metrics

Nothing in here knows about specific providers or note formats, and
nothing in the pipeline reads it back to decide what to do: the note
itself is the source of truth for what is still pending.
"""

from __future__ import annotations

import os
import sqlite3
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

# Location of the Notetasks database
DB_PATH: Path = Path(
    os.environ.get("NOTETASKS_DB_PATH") or Path.home() / ".notetasks.db"
).expanduser()

# Global connection handle (lazy-initialized)
_CONN: Optional[sqlite3.Connection] = None


@dataclass(frozen=True)
class TaskSyncResult:
    """Outcome of attempting to file one task with a todo provider."""

    local_id: str                 # e.g. "x-coredata://.../ICNote/p42:7"
    provider: str                 # e.g. "notion"
    external_id: Optional[str]    # provider's task id, if created
    status: str                   # "created", "skipped", "failed"
    error: Optional[str] = None   # error message, if any

    @property
    def persisted(self) -> bool:
        return self.status == "created"


def local_task_id(note_id: str, line_no: int) -> str:
    return f"{note_id}:{line_no}"


def _get_connection() -> sqlite3.Connection:
    """Return a singleton SQLite connection, initializing the schema if needed."""

    global _CONN
    if _CONN is not None:
        return _CONN

    DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(DB_PATH)
    conn.row_factory = sqlite3.Row
    _init_schema(conn)

    _CONN = conn
    return conn


def close_connection() -> None:
    global _CONN
    if _CONN is not None:
        _CONN.close()
        _CONN = None


def _init_schema(conn: sqlite3.Connection) -> None:
    """Create tables if they do not exist."""

    cur = conn.cursor()

    # One row per filing attempt. The same local_id can appear again on a
    # later run if the line stayed in the note (noop rewrite, failed filing).
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS tasks (
            id              INTEGER PRIMARY KEY AUTOINCREMENT,
            local_id        TEXT NOT NULL,
            note_id         TEXT NOT NULL,
            note_title      TEXT NOT NULL,
            line_no         INTEGER NOT NULL,
            text            TEXT NOT NULL,
            section         TEXT,
            category        TEXT,
            provider        TEXT,
            external_id     TEXT,
            status          TEXT NOT NULL,
            error           TEXT,
            created_at      TEXT NOT NULL
        )
        """
    )

    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS runs (
            id                  INTEGER PRIMARY KEY AUTOINCREMENT,
            started_at          TEXT NOT NULL,
            finished_at         TEXT,
            notes_found         INTEGER DEFAULT 0,
            notes_unreadable    INTEGER DEFAULT 0,
            tasks_found         INTEGER DEFAULT 0,
            tasks_created       INTEGER DEFAULT 0,
            tasks_failed        INTEGER DEFAULT 0,
            tasks_fallback      INTEGER DEFAULT 0,
            notes_rewritten     INTEGER DEFAULT 0,
            rewrites_failed     INTEGER DEFAULT 0,
            aborted             INTEGER DEFAULT 0
        )
        """
    )

    conn.commit()


# ---------------------------------------------------------------------------
# Task-level operations
# ---------------------------------------------------------------------------


def record_task_result(
    note_id: str,
    note_title: str,
    task,
    result: TaskSyncResult,
) -> None:
    """Persist the outcome of filing a single task.

    `task` is a notetasks.parser.TaskRecord (duck-typed to keep this module
    free of imports from the rest of the package).
    """

    conn = _get_connection()
    now = datetime.utcnow().isoformat(timespec="seconds")

    conn.execute(
        """
        INSERT INTO tasks (
            local_id, note_id, note_title, line_no, text, section,
            category, provider, external_id, status, error, created_at
        ) VALUES (
            :local_id, :note_id, :note_title, :line_no, :text, :section,
            :category, :provider, :external_id, :status, :error, :created_at
        )
        """,
        {
            "local_id": result.local_id,
            "note_id": note_id,
            "note_title": note_title,
            "line_no": task.line_no,
            "text": task.text,
            "section": task.section,
            "category": task.category,
            "provider": result.provider,
            "external_id": result.external_id,
            "status": result.status,
            "error": result.error,
            "created_at": now,
        },
    )
    conn.commit()


def list_task_results(note_id: Optional[str] = None) -> list[sqlite3.Row]:
    conn = _get_connection()
    if note_id is None:
        cur = conn.execute("SELECT * FROM tasks ORDER BY id")
    else:
        cur = conn.execute("SELECT * FROM tasks WHERE note_id = ? ORDER BY id", (note_id,))
    return cur.fetchall()


# ---------------------------------------------------------------------------
# Run-level operations
# ---------------------------------------------------------------------------


def start_run() -> int:
    """Insert a new run row and return its id."""

    conn = _get_connection()
    cur = conn.cursor()
    started_at = datetime.utcnow().isoformat(timespec="seconds")
    cur.execute("INSERT INTO runs (started_at) VALUES (?)", (started_at,))
    conn.commit()
    return int(cur.lastrowid)


_RUN_FIELDS: Iterable[str] = (
    "notes_found",
    "notes_unreadable",
    "tasks_found",
    "tasks_created",
    "tasks_failed",
    "tasks_fallback",
    "notes_rewritten",
    "rewrites_failed",
    "aborted",
)


def finish_run(run_id: int, **metrics: int) -> None:
    """Update a run row with metrics gathered during the run."""

    unknown = set(metrics) - set(_RUN_FIELDS)
    if unknown:
        raise ValueError(f"Unknown run metrics: {sorted(unknown)}")

    params = {name: int(metrics.get(name, 0)) for name in _RUN_FIELDS}
    params["finished_at"] = datetime.utcnow().isoformat(timespec="seconds")
    params["run_id"] = run_id
    assignments = ",\n            ".join(f"{name} = :{name}" for name in _RUN_FIELDS)

    conn = _get_connection()
    conn.execute(
        f"""
        UPDATE runs SET
            finished_at = :finished_at,
            {assignments}
        WHERE id = :run_id
        """,
        params,
    )
    conn.commit()


def get_run(run_id: int) -> Optional[sqlite3.Row]:
    conn = _get_connection()
    return conn.execute("SELECT * FROM runs WHERE id = ?", (run_id,)).fetchone()
