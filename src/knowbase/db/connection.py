"""SQLite connections for the knowbase store.

Every connection loads sqlite-vec (the vec0 tables holding chunk vectors) and
enforces foreign keys, so deleting a document cascades to its chunk rows.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path

import sqlite_vec

from knowbase.db.migrations import run_migrations

_PRAGMAS = (
    "PRAGMA foreign_keys = ON",
    "PRAGMA journal_mode = WAL",
    "PRAGMA busy_timeout = 5000",
)


def _load_vec_extension(conn: sqlite3.Connection) -> None:
    conn.enable_load_extension(True)
    try:
        sqlite_vec.load(conn)
    finally:
        conn.enable_load_extension(False)


class Database:
    """Handle on one knowbase SQLite file.

    Args:
        db_path: Database file, created on first connect.
        migrate: Apply pending schema migrations on every connect.
    """

    def __init__(self, db_path: Path | str, *, migrate: bool = False) -> None:
        self.db_path = Path(db_path)
        self.migrate = migrate
        self._conn: sqlite3.Connection | None = None

    def connect(self) -> sqlite3.Connection:
        """Return a new connection. The caller closes it."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        _load_vec_extension(conn)
        for pragma in _PRAGMAS:
            conn.execute(pragma)
        if self.migrate:
            run_migrations(conn)
        return conn

    def __enter__(self) -> sqlite3.Connection:
        self._conn = self.connect()
        return self._conn

    def __exit__(self, *args: object) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
