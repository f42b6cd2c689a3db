"""Shared pytest fixtures."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from omakure.db.connection import Database
from omakure.db.migrations import run_migrations
from omakure.workspace import Workspace


def schema_script(schema: dict, body: str = 'echo "$@"', prefix: str = "#") -> str:
    """Script text carrying *schema* in a comment-delimited block."""
    lines = ["#!/usr/bin/env bash", f"{prefix} OMAKURE_SCHEMA_START"]
    lines += [f"{prefix} {line}" for line in json.dumps(schema, indent=2).splitlines()]
    lines += [f"{prefix} OMAKURE_SCHEMA_END", body, ""]
    return "\n".join(lines)


@pytest.fixture
def workspace(tmp_path: Path) -> Workspace:
    """Empty workspace rooted at tmp_path/scripts."""
    root = tmp_path / "scripts"
    root.mkdir()
    return Workspace(root)


@pytest.fixture
def make_script(workspace: Workspace):
    """Write a script under the workspace root; returns its absolute path."""

    def _make(relpath: str, schema: dict | None = None, body: str = 'echo "$@"') -> Path:
        path = workspace.root / relpath
        path.parent.mkdir(parents=True, exist_ok=True)
        text = schema_script(schema, body) if schema is not None else f"#!/usr/bin/env bash\n{body}\n"
        path.write_text(text, encoding="utf-8")
        return path

    return _make


@pytest.fixture
def tmp_db(tmp_path):
    """File-based search DB in tmp_path with migrations applied, closed after test."""
    db = Database(tmp_path / "search-index.sqlite")
    conn = db.connect()
    run_migrations(conn)
    yield conn
    conn.close()
