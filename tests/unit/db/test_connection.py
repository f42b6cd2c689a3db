"""Tests for the search DB connection layer and migrations."""

from __future__ import annotations

from pathlib import Path

from omakure.db.connection import Database
from omakure.db.migrations import CURRENT_VERSION, run_migrations


def test_connect_creates_parent_and_applies_pragmas(tmp_path: Path) -> None:
    conn = Database(tmp_path / "nested" / "index.sqlite", busy_timeout_ms=250).connect()
    try:
        assert (tmp_path / "nested").is_dir()
        assert conn.execute("PRAGMA foreign_keys").fetchone()[0] == 1
        assert conn.execute("PRAGMA busy_timeout").fetchone()[0] == 250
        assert conn.execute("PRAGMA journal_mode").fetchone()[0] == "wal"
    finally:
        conn.close()


def test_migrations_create_tables(tmp_db) -> None:
    names = {
        r["name"]
        for r in tmp_db.execute("SELECT name FROM sqlite_master WHERE type IN ('table', 'index')")
    }
    assert {"script_index", "script_fields", "schema_version", "idx_script_search"} <= names


def test_migrations_idempotent(tmp_db) -> None:
    run_migrations(tmp_db)
    run_migrations(tmp_db)
    rows = tmp_db.execute("SELECT version FROM schema_version").fetchall()
    assert [r["version"] for r in rows] == [CURRENT_VERSION]
