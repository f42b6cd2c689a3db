"""Script catalog: directory listings, recursive discovery, schema reads.

Only files whose extension maps to a known interpreter are scripts.
Bookkeeping folders are never listed:
  - .git and .history anywhere in the tree
  - envs directly under .omaken (environment files, not scripts)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from omakure.schema.models import Schema
from omakure.schema.parser import SchemaError, extract_block, parse_schema
from omakure.workspace import ENVS_DIR_NAME, HISTORY_DIR_NAME, OMAKEN_DIR_NAME

_SKIPPED_DIR_NAMES = frozenset([".git", HISTORY_DIR_NAME])


class ScriptKind(Enum):
    BASH = "bash"
    POWERSHELL = "powershell"
    PYTHON = "python"


_EXTENSION_KINDS: dict[str, ScriptKind] = {
    "bash": ScriptKind.BASH,
    "sh": ScriptKind.BASH,
    "ps1": ScriptKind.POWERSHELL,
    "py": ScriptKind.PYTHON,
}

# Line-comment markers accepted inside a schema block, per interpreter.
COMMENT_PREFIXES: dict[ScriptKind, tuple[str, ...]] = {
    ScriptKind.BASH: ("#",),
    ScriptKind.POWERSHELL: ("#",),
    ScriptKind.PYTHON: ("#",),
}


class EntryKind(Enum):
    DIRECTORY = "directory"
    SCRIPT = "script"


@dataclass(frozen=True)
class ScriptEntry:
    path: Path
    kind: EntryKind

    @property
    def name(self) -> str:
        return self.path.name


def script_kind(path: Path) -> ScriptKind | None:
    """Return the interpreter kind for *path*, or None if it is not a script."""
    return _EXTENSION_KINDS.get(path.suffix.lstrip(".").lower())


def script_extensions() -> tuple[str, ...]:
    return tuple(_EXTENSION_KINDS)


def should_skip_dir(path: Path) -> bool:
    if path.name in _SKIPPED_DIR_NAMES:
        return True
    return path.name == ENVS_DIR_NAME and path.parent.name == OMAKEN_DIR_NAME


def _sort_key(entry: ScriptEntry) -> tuple[int, str]:
    return (0 if entry.kind is EntryKind.DIRECTORY else 1, entry.name.lower())


class Catalog:
    """Filesystem-backed script catalog rooted at a workspace directory."""

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)

    def list_entries(self, directory: Path) -> list[ScriptEntry]:
        """List scripts and sub-folders of *directory* (non-recursive).

        Directories come first, then scripts, each group sorted by
        case-insensitive name. A missing directory yields an empty list;
        other OSErrors propagate.
        """
        try:
            children = list(directory.iterdir())
        except FileNotFoundError:
            return []

        entries: list[ScriptEntry] = []
        for path in children:
            if path.is_dir():
                if not should_skip_dir(path):
                    entries.append(ScriptEntry(path, EntryKind.DIRECTORY))
            elif path.is_file() and script_kind(path) is not None:
                entries.append(ScriptEntry(path, EntryKind.SCRIPT))

        entries.sort(key=_sort_key)
        return entries

    def list_scripts_recursive(self) -> list[Path]:
        """Return every script under the root, depth-first, skip rules applied."""
        scripts: list[Path] = []
        self._collect(self.root, scripts)
        return scripts

    def _collect(self, directory: Path, scripts: list[Path]) -> None:
        try:
            children = sorted(directory.iterdir())
        except FileNotFoundError:
            return
        for path in children:
            if path.is_dir():
                if not should_skip_dir(path):
                    self._collect(path, scripts)
            elif path.is_file() and script_kind(path) is not None:
                scripts.append(path)

    def read_schema(self, script: Path) -> Schema:
        """Statically extract and parse the schema block of *script*.

        Raises:
            SchemaError: Unsupported file type, unreadable file, or a missing
                or malformed schema block.
        """
        kind = script_kind(script)
        if kind is None:
            raise SchemaError(f"Unsupported script type: {script.name}")
        try:
            contents = script.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise SchemaError(f"Failed to read {script}: {e}") from e
        block = extract_block(contents, COMMENT_PREFIXES[kind])
        return parse_schema(block)
