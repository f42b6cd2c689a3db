"""Persisted, background-rebuildable search index over the script catalog.

A rebuild resolves every script's schema, then swaps the whole table pair in
one transaction, so a query sees either the previous generation or the new
one, never a mix. Progress is published through a SharedCell that the session
polls once per tick.

Usage:
    index = SearchIndex(workspace.search_db_path)
    index.start_background_rebuild(workspace.root)
    ...
    if index.status() != last_seen:
        results = index.query("azure list")
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from omakure.catalog import Catalog
from omakure.db.connection import DEFAULT_BUSY_TIMEOUT_MS, Database
from omakure.db.migrations import run_migrations
from omakure.db.models import SearchDetails, SearchField, SearchRecord, SearchResult
from omakure.db.repository import SearchRepository
from omakure.exceptions import OmakureError
from omakure.history import timestamp_ms
from omakure.jobs import SharedCell
from omakure.schema.parser import SchemaError

logger = logging.getLogger(__name__)


class SearchIndexError(OmakureError):
    """Raised when the search store cannot be opened, queried, or rebuilt."""


class StatusKind(Enum):
    IDLE = "idle"
    INDEXING = "indexing"
    READY = "ready"
    ERROR = "error"


@dataclass(frozen=True)
class SearchStatus:
    kind: StatusKind
    script_count: int | None = None
    message: str | None = None

    @classmethod
    def idle(cls) -> SearchStatus:
        return cls(StatusKind.IDLE)

    @classmethod
    def indexing(cls) -> SearchStatus:
        return cls(StatusKind.INDEXING)

    @classmethod
    def ready(cls, script_count: int) -> SearchStatus:
        return cls(StatusKind.READY, script_count=script_count)

    @classmethod
    def error(cls, message: str) -> SearchStatus:
        return cls(StatusKind.ERROR, message=message)

    def describe(self) -> str:
        if self.kind is StatusKind.READY:
            return f"Ready ({self.script_count} scripts)"
        if self.kind is StatusKind.ERROR:
            return f"Error: {self.message}"
        return self.kind.value.capitalize()


def build_search_blob(
    script_path: str,
    display_name: str,
    description: str | None,
    tags: list[str],
    fields: list[SearchField],
) -> str:
    """Lowercase concatenation of every searchable string of one script."""
    parts = [script_path, display_name]
    if description:
        parts.append(description)
    parts.extend(tags)
    for f in fields:
        parts.append(f.name)
        if f.prompt:
            parts.append(f.prompt)
        parts.append(f.kind)
    return " ".join(parts).lower()


class SearchIndex:
    """Search store at *db_path* plus the shared rebuild status."""

    def __init__(self, db_path: Path, busy_timeout_ms: int = DEFAULT_BUSY_TIMEOUT_MS) -> None:
        self.db_path = Path(db_path)
        self._database = Database(self.db_path, busy_timeout_ms)
        self._status: SharedCell[SearchStatus] = SharedCell(SearchStatus.idle())

    def status(self) -> SearchStatus:
        return self._status.get()

    # ------------------------------------------------------------------
    # Rebuild
    # ------------------------------------------------------------------

    def start_background_rebuild(self, root: Path) -> threading.Thread:
        """Rebuild on a daemon thread; returns the thread (tests join it)."""
        worker = threading.Thread(
            target=self._rebuild_job, args=(Path(root),), name="omakure-index", daemon=True
        )
        worker.start()
        return worker

    def _rebuild_job(self, root: Path) -> None:
        self._status.set(SearchStatus.indexing())
        try:
            count = self.rebuild(root)
        except SearchIndexError as e:
            logger.warning("Search index rebuild failed: %s", e)
            self._status.set(SearchStatus.error(str(e)))
        except Exception as e:
            logger.exception("Search index rebuild crashed")
            self._status.set(SearchStatus.error(f"Rebuild crashed: {e}"))
        else:
            self._status.set(SearchStatus.ready(count))

    def rebuild(self, root: Path) -> int:
        """Index every script under *root* and return how many were indexed.

        Schema failures do not abort the rebuild: the script is stored with
        its error message and its file name as display name.

        Raises:
            SearchIndexError: Listing the catalog or writing the store failed.
        """
        root = Path(root)
        catalog = Catalog(root)
        try:
            scripts = catalog.list_scripts_recursive()
        except OSError as e:
            raise SearchIndexError(f"List scripts failed: {e}") from e

        records = [self._record_for(catalog, root, script) for script in scripts]

        conn = self._open()
        try:
            SearchRepository(conn).replace_generation(records)
        except sqlite3.Error as e:
            raise SearchIndexError(f"Write search index failed: {e}") from e
        finally:
            conn.close()

        logger.info("Indexed %d scripts under %s", len(records), root)
        return len(records)

    @staticmethod
    def _record_for(catalog: Catalog, root: Path, script: Path) -> SearchRecord:
        try:
            relative = script.relative_to(root).as_posix()
        except ValueError:
            relative = script.as_posix()

        display_name = script.name
        description: str | None = None
        tags: list[str] = []
        fields: list[SearchField] = []
        schema_error: str | None = None

        try:
            schema = catalog.read_schema(script)
        except SchemaError as e:
            schema_error = str(e)
        else:
            display_name = schema.name
            description = schema.description
            tags = list(schema.tags)
            fields = [
                SearchField(name=f.name, prompt=f.prompt, kind=f.kind, required=f.required)
                for f in schema.sorted_fields()
            ]

        return SearchRecord(
            script_path=relative,
            display_name=display_name,
            description=description,
            tags=tags,
            search_blob=build_search_blob(relative, display_name, description, tags, fields),
            schema_error=schema_error,
            indexed_at=timestamp_ms(),
            fields=fields,
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def query(self, text: str) -> list[SearchResult]:
        """Conjunctive substring search; see SearchRepository.query.

        Raises:
            SearchIndexError: The store cannot be opened or queried.
        """
        conn = self._open()
        try:
            return SearchRepository(conn).query(text)
        except sqlite3.Error as e:
            raise SearchIndexError(f"Search query failed: {e}") from e
        finally:
            conn.close()

    def load_details(self, script_path: str) -> SearchDetails | None:
        """Return the indexed record for a workspace-relative path, or None.

        Raises:
            SearchIndexError: The store cannot be opened or queried.
        """
        conn = self._open()
        try:
            return SearchRepository(conn).load_details(script_path)
        except sqlite3.Error as e:
            raise SearchIndexError(f"Search detail query failed: {e}") from e
        finally:
            conn.close()

    def _open(self) -> sqlite3.Connection:
        try:
            conn = self._database.connect()
        except (sqlite3.Error, OSError) as e:
            raise SearchIndexError(f"Open search db failed: {e}") from e
        try:
            run_migrations(conn)
        except sqlite3.Error as e:
            conn.close()
            raise SearchIndexError(f"Init search db failed: {e}") from e
        return conn
