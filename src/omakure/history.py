"""Execution history: one JSON record per run under <root>/.history/.

File names are ``{timestamp}-{pid}-{slug}.json`` so a plain directory listing
sorts chronologically and two processes writing in the same millisecond do not
collide.
"""

from __future__ import annotations

import json
import logging
import os
import re
import time
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from omakure.runner import RunOutput
from omakure.workspace import Workspace

logger = logging.getLogger(__name__)

_SLUG_LIMIT = 64
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")

_MS_PER_DAY = 86_400_000


@dataclass(frozen=True)
class HistoryEntry:
    timestamp: int  # epoch milliseconds
    script: str  # workspace-relative path
    args: list[str] = field(default_factory=list)
    success: bool = False
    exit_code: int | None = None
    stdout: str = ""
    stderr: str = ""
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HistoryEntry:
        """Build an entry from a record dict.

        Raises:
            ValueError: Missing keys or wrong value types.
        """
        try:
            timestamp = data["timestamp"]
            script = data["script"]
            args = data.get("args", [])
            success = data["success"]
        except (KeyError, TypeError) as e:
            raise ValueError(f"invalid history record: {e}") from e

        exit_code = data.get("exit_code")
        if (
            isinstance(timestamp, bool)
            or not isinstance(timestamp, int)
            or not isinstance(script, str)
            or not isinstance(args, list)
            or not all(isinstance(a, str) for a in args)
            or not isinstance(success, bool)
            or (exit_code is not None and (isinstance(exit_code, bool) or not isinstance(exit_code, int)))
        ):
            raise ValueError("invalid history record: wrong value types")

        return cls(
            timestamp=timestamp,
            script=script,
            args=list(args),
            success=success,
            exit_code=exit_code,
            stdout=str(data.get("stdout") or ""),
            stderr=str(data.get("stderr") or ""),
            error=data.get("error"),
        )


# ---------------------------------------------------------------------------
# Building entries
# ---------------------------------------------------------------------------


def timestamp_ms() -> int:
    return int(time.time() * 1000)


def _script_path(workspace: Workspace, script: Path) -> str:
    return workspace.relative(script).as_posix()


def success_entry(
    workspace: Workspace, script: Path, args: list[str], output: RunOutput
) -> HistoryEntry:
    """Record a run that launched; ``success`` mirrors the exit status."""
    return HistoryEntry(
        timestamp=timestamp_ms(),
        script=_script_path(workspace, script),
        args=list(args),
        success=output.success,
        exit_code=output.exit_code,
        stdout=output.stdout,
        stderr=output.stderr,
    )


def error_entry(
    workspace: Workspace, script: Path, args: list[str], message: str
) -> HistoryEntry:
    """Record a run that could not be launched."""
    return HistoryEntry(
        timestamp=timestamp_ms(),
        script=_script_path(workspace, script),
        args=list(args),
        success=False,
        error=message,
    )


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


def safe_slug(text: str) -> str:
    """Lowercase, collapse non-alphanumeric runs to ``_``, trim, cap, default "run"."""
    slug = _NON_ALNUM_RE.sub("_", text.lower()).strip("_")
    return slug[:_SLUG_LIMIT] or "run"


def history_file_name(entry: HistoryEntry) -> str:
    return f"{entry.timestamp}-{os.getpid()}-{safe_slug(entry.script)}.json"


def record_entry(workspace: Workspace, entry: HistoryEntry) -> Path:
    """Write *entry* to its own file and return the path.

    Raises:
        OSError: The history directory or file cannot be written.
    """
    workspace.history_dir.mkdir(parents=True, exist_ok=True)
    path = workspace.history_dir / history_file_name(entry)
    path.write_text(json.dumps(entry.to_dict(), indent=2), encoding="utf-8")
    return path


def load_entries(workspace: Workspace) -> list[HistoryEntry]:
    """Return every readable record, newest first.

    Unreadable or malformed files are skipped so one bad record cannot hide
    the rest. A missing history directory yields an empty list.
    """
    try:
        paths = [p for p in workspace.history_dir.iterdir() if p.suffix == ".json"]
    except FileNotFoundError:
        return []

    entries: list[HistoryEntry] = []
    for path in paths:
        if not path.is_file():
            continue
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            entries.append(HistoryEntry.from_dict(data))
        except (OSError, UnicodeDecodeError, ValueError) as e:
            # json.JSONDecodeError is a ValueError
            logger.debug("Skipping history record %s: %s", path.name, e)

    entries.sort(key=lambda e: e.timestamp, reverse=True)
    return entries


# ---------------------------------------------------------------------------
# Display helpers
# ---------------------------------------------------------------------------


def format_output(entry: HistoryEntry) -> str:
    if entry.error is not None:
        return entry.error.strip()
    parts = []
    if entry.stdout.strip():
        parts.append(f"STDOUT:\n{entry.stdout.rstrip()}")
    if entry.stderr.strip():
        parts.append(f"STDERR:\n{entry.stderr.rstrip()}")
    return "\n\n".join(parts)


def format_timestamp(timestamp: int) -> str:
    """Render epoch milliseconds as ``YYYY-MM-DD HH:MM`` (UTC).

    Negative input clamps to the epoch.
    """
    ms = max(timestamp, 0)
    days, ms_of_day = divmod(ms, _MS_PER_DAY)
    seconds_of_day = ms_of_day // 1000
    hour, rem = divmod(seconds_of_day, 3_600)
    minute = rem // 60
    year, month, day = civil_from_days(days)
    return f"{year:04d}-{month:02d}-{day:02d} {hour:02d}:{minute:02d}"


def civil_from_days(days: int) -> tuple[int, int, int]:
    """Convert days since 1970-01-01 to a proleptic Gregorian (year, month, day).

    Works in 400-year eras of 146097 days, with the year starting on March 1st
    so the leap day is the last day of the year.
    """
    z = days + 719_468
    era = z // 146_097
    doe = z - era * 146_097  # [0, 146096]
    yoe = (doe - doe // 1_460 + doe // 36_524 - doe // 146_096) // 365  # [0, 399]
    doy = doe - (365 * yoe + yoe // 4 - yoe // 100)  # [0, 365]
    mp = (5 * doy + 2) // 153  # [0, 11], March-based
    day = doy - (153 * mp + 2) // 5 + 1
    month = mp + 3 if mp < 10 else mp - 9
    year = yoe + era * 400 + (1 if month <= 2 else 0)
    return year, month, day
