"""Tests for the Database connection layer."""

from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from knowbase.db.connection import Database


def test_connect_creates_file(tmp_path):
    db_path = tmp_path / ".knowbase.db"
    conn = Database(db_path).connect()
    conn.close()
    assert db_path.exists()


def test_sqlite_vec_loads(tmp_path):
    conn = Database(tmp_path / ".knowbase.db").connect()
    version = conn.execute("SELECT vec_version()").fetchone()[0]
    conn.close()
    assert version.startswith("v")


def test_pragmas(tmp_path):
    conn = Database(tmp_path / ".knowbase.db").connect()
    foreign_keys = conn.execute("PRAGMA foreign_keys").fetchone()[0]
    mode = conn.execute("PRAGMA journal_mode").fetchone()[0]
    timeout = conn.execute("PRAGMA busy_timeout").fetchone()[0]
    conn.close()
    assert foreign_keys == 1
    assert mode == "wal"
    assert timeout == 5000


def test_row_factory_set(tmp_path):
    conn = Database(tmp_path / ".knowbase.db").connect()
    conn.execute("CREATE TABLE t (x INTEGER)")
    conn.execute("INSERT INTO t VALUES (42)")
    row = conn.execute("SELECT x FROM t").fetchone()
    conn.close()
    assert row["x"] == 42


def test_context_manager_closes_connection(tmp_path):
    db = Database(str(tmp_path / ".knowbase.db"))
    assert isinstance(db.db_path, Path)
    with db as conn:
        assert conn.execute("SELECT 1").fetchone()[0] == 1
    with pytest.raises(sqlite3.ProgrammingError):
        conn.execute("SELECT 1")
