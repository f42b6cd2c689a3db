"""Workspace path layout.

A workspace is a directory of scripts plus two bookkeeping folders:

  <root>/.omaken/        extension flavors; environments live in .omaken/envs/
  <root>/.history/       one JSON record per run, the search index, the log file
  <root>/omakure.yaml    optional workspace configuration
"""

from __future__ import annotations

from pathlib import Path

OMAKEN_DIR_NAME = ".omaken"
HISTORY_DIR_NAME = ".history"
ENVS_DIR_NAME = "envs"
CONFIG_FILE_NAME = "omakure.yaml"
SEARCH_DB_NAME = "search-index.sqlite"
LOG_FILE_NAME = "omakure.log"


class Workspace:
    """Resolved paths for one scripts workspace. Nothing is created on init."""

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root).expanduser()
        self.omaken_dir = self.root / OMAKEN_DIR_NAME
        self.envs_dir = self.omaken_dir / ENVS_DIR_NAME
        self.history_dir = self.root / HISTORY_DIR_NAME
        self.config_path = self.root / CONFIG_FILE_NAME

    @property
    def search_db_path(self) -> Path:
        return self.history_dir / SEARCH_DB_NAME

    @property
    def log_path(self) -> Path:
        return self.history_dir / LOG_FILE_NAME

    def relative(self, path: Path) -> Path:
        """Return *path* relative to the root, or unchanged when outside it."""
        try:
            return path.relative_to(self.root)
        except ValueError:
            return path

    def __repr__(self) -> str:
        return f"Workspace({str(self.root)!r})"
