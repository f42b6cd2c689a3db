"""Forward-only migration runner for the search index schema."""

from __future__ import annotations

import sqlite3

# schema_version is the bootstrap table, created before migrations run.
_CREATE_SCHEMA_VERSION = """
CREATE TABLE IF NOT EXISTS schema_version (
    version     INTEGER NOT NULL,
    applied_at  DATETIME NOT NULL DEFAULT (datetime('now'))
)
"""

_V1_SQL = """
CREATE TABLE IF NOT EXISTS script_index (
    script_path     TEXT PRIMARY KEY,
    display_name    TEXT NOT NULL,
    description     TEXT,
    tags            TEXT,
    search_blob     TEXT NOT NULL,
    schema_error    TEXT,
    indexed_at      INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS script_fields (
    script_path     TEXT NOT NULL REFERENCES script_index(script_path) ON DELETE CASCADE,
    field_order     INTEGER NOT NULL,
    name            TEXT NOT NULL,
    prompt          TEXT,
    kind            TEXT,
    required        INTEGER NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_script_search ON script_index(search_blob);
CREATE INDEX IF NOT EXISTS idx_script_fields ON script_fields(script_path);
"""

# Append-only. Each entry: (version: int, sql: str).
# executescript() issues an implicit COMMIT before running.
MIGRATIONS: list[tuple[int, str]] = [
    (1, _V1_SQL),
]

CURRENT_VERSION = MIGRATIONS[-1][0]


def run_migrations(conn: sqlite3.Connection) -> None:
    """Apply all pending migrations in ascending version order.

    Idempotent: safe to call on a database at any version.
    """
    conn.execute(_CREATE_SCHEMA_VERSION)
    conn.commit()

    row = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
    current = row[0] if row[0] is not None else 0

    for version, sql in MIGRATIONS:
        if version > current:
            conn.executescript(sql)
            conn.execute(
                "INSERT INTO schema_version (version) VALUES (?)", (version,)
            )
            conn.commit()
