"""Repository for all search index reads and writes.

Single interface for: generation replacement, substring queries, detail reads.
"""

from __future__ import annotations

import json
import sqlite3

from omakure.db.models import SearchDetails, SearchField, SearchRecord, SearchResult

_LIKE_ESCAPE = "\\"


class SearchRepository:
    """Data access layer for the script_index / script_fields tables.

    Wraps an open sqlite3.Connection. The connection is owned by the caller
    and must be closed after use.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        """Initialise with an open database connection.

        Args:
            conn: An open sqlite3.Connection with migrations applied
                (see omakure.db.migrations.run_migrations).
        """
        self._conn = conn

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def replace_generation(self, records: list[SearchRecord]) -> None:
        """Swap the whole index for *records* inside one transaction.

        Readers on other connections keep seeing the previous generation
        until the commit, then see the new one in full.
        """
        try:
            self._conn.execute("DELETE FROM script_fields")
            self._conn.execute("DELETE FROM script_index")
            for record in records:
                self._conn.execute(
                    """
                    INSERT OR REPLACE INTO script_index
                        (script_path, display_name, description, tags,
                         search_blob, schema_error, indexed_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        record.script_path,
                        record.display_name,
                        record.description,
                        json.dumps(record.tags) if record.tags else None,
                        record.search_blob,
                        record.schema_error,
                        record.indexed_at,
                    ),
                )
                self._conn.executemany(
                    """
                    INSERT INTO script_fields
                        (script_path, field_order, name, prompt, kind, required)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    [
                        (record.script_path, order, f.name, f.prompt, f.kind, int(f.required))
                        for order, f in enumerate(record.fields)
                    ],
                )
        except sqlite3.Error:
            self._conn.rollback()
            raise
        self._conn.commit()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def count(self) -> int:
        return self._conn.execute("SELECT COUNT(*) FROM script_index").fetchone()[0]

    def query(self, text: str) -> list[SearchResult]:
        """Return records whose blob contains every whitespace token of *text*.

        No tokens returns every record. ``%``, ``_`` and ``\\`` in the input
        match literally. Ordered by display name, then path (case-insensitive).
        """
        tokens = split_query(text)
        sql = (
            "SELECT script_path, display_name, description, tags, schema_error "
            "FROM script_index"
        )
        if tokens:
            sql += " WHERE " + " AND ".join(
                f"search_blob LIKE ? ESCAPE '{_LIKE_ESCAPE}'" for _ in tokens
            )
        sql += " ORDER BY display_name COLLATE NOCASE, script_path COLLATE NOCASE"

        params = [f"%{escape_like(token)}%" for token in tokens]
        rows = self._conn.execute(sql, params).fetchall()
        return [
            SearchResult(
                script_path=r["script_path"],
                display_name=r["display_name"],
                description=r["description"],
                tags=parse_tags(r["tags"]),
                schema_error=r["schema_error"],
            )
            for r in rows
        ]

    def load_details(self, script_path: str) -> SearchDetails | None:
        """Return one record with its ordered fields, or None if not indexed."""
        row = self._conn.execute(
            """
            SELECT display_name, description, tags, schema_error
            FROM script_index WHERE script_path = ?
            """,
            (script_path,),
        ).fetchone()
        if row is None:
            return None

        field_rows = self._conn.execute(
            """
            SELECT name, prompt, kind, required
            FROM script_fields WHERE script_path = ?
            ORDER BY field_order
            """,
            (script_path,),
        ).fetchall()

        return SearchDetails(
            display_name=row["display_name"],
            description=row["description"],
            tags=parse_tags(row["tags"]),
            schema_error=row["schema_error"],
            fields=[
                SearchField(
                    name=f["name"],
                    prompt=f["prompt"],
                    kind=f["kind"] or "",
                    required=bool(f["required"]),
                )
                for f in field_rows
            ],
        )


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def split_query(text: str) -> list[str]:
    return [token.lower() for token in text.split()]


def escape_like(token: str) -> str:
    return (
        token.replace(_LIKE_ESCAPE, _LIKE_ESCAPE * 2)
        .replace("%", _LIKE_ESCAPE + "%")
        .replace("_", _LIKE_ESCAPE + "_")
    )


def parse_tags(raw: str | None) -> list[str]:
    """Decode the tags column: a JSON array, or comma-joined in older indexes."""
    if not raw:
        return []
    try:
        data = json.loads(raw)
    except ValueError:
        data = None
    if isinstance(data, list):
        return [tag for tag in data if isinstance(tag, str) and tag]
    return [tag.strip() for tag in raw.split(",") if tag.strip()]
