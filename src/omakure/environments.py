"""Environment files: named sets of default form values.

Layout (under <root>/.omaken/envs/):
  dev          KEY=VALUE lines
  prod
  active       single line naming the selected file

Line format: ``KEY=VALUE`` or ``export KEY=VALUE``; ``#`` and ``;`` start
full-line comments; values may be wrapped in single or double quotes.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path

from omakure.exceptions import OmakureError

logger = logging.getLogger(__name__)

ACTIVE_FILE_NAME = "active"
MASK = "***"

# Preview masks any key containing one of these (case-insensitive).
_SENSITIVE_TOKENS: tuple[str, ...] = (
    "password",
    "secret",
    "token",
    "key",
    "api",
    "private",
    "cred",
)


class EnvironmentFileError(OmakureError):
    """Raised when an environment file or the active pointer cannot be used."""


@dataclass
class EnvFile:
    name: str


@dataclass
class EnvironmentConfig:
    envs_dir: Path
    active: str | None = None
    defaults: dict[str, str] = field(default_factory=dict)

    def default_for(self, field_name: str) -> str:
        return self.defaults.get(field_name.lower(), "")


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def _is_comment(line: str) -> bool:
    return not line or line.startswith(("#", ";"))


def _strip_quotes(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def _iter_pairs(path: Path) -> Iterator[tuple[str, str]]:
    """Yield (key, value) pairs in file order, original key casing."""
    try:
        contents = path.read_text(encoding="utf-8")
    except OSError as e:
        raise EnvironmentFileError(f"Failed to read environment file {path}: {e}") from e

    for line in contents.splitlines():
        line = line.strip()
        if _is_comment(line):
            continue
        if line.startswith("export "):
            line = line[len("export "):].strip()
        key, _, raw_value = line.partition("=")
        key = key.strip()
        if not key:
            continue
        yield key, _strip_quotes(raw_value).strip()


def is_sensitive_key(key: str) -> bool:
    lower = key.lower()
    return any(token in lower for token in _SENSITIVE_TOKENS)


def load_env_defaults(path: Path) -> dict[str, str]:
    """Return lowercase-key defaults from *path*; empty values are skipped."""
    return {key.lower(): value for key, value in _iter_pairs(path) if value}


def load_env_preview(path: Path) -> list[tuple[str, str]]:
    """Return (key, value) pairs for display, masking sensitive values."""
    entries = []
    for key, value in _iter_pairs(path):
        if value and is_sensitive_key(key):
            value = MASK
        entries.append((key, value))
    return entries


# ---------------------------------------------------------------------------
# Directory + active pointer
# ---------------------------------------------------------------------------


def list_env_files(envs_dir: Path) -> list[EnvFile]:
    """Return environment files sorted by name (the pointer file excluded)."""
    try:
        children = list(envs_dir.iterdir())
    except FileNotFoundError:
        return []
    except OSError as e:
        raise EnvironmentFileError(f"Failed to read environments dir {envs_dir}: {e}") from e

    names = sorted(p.name for p in children if p.is_file() and p.name != ACTIVE_FILE_NAME)
    return [EnvFile(name=n) for n in names]


def load_active_env_name(envs_dir: Path) -> str | None:
    active_path = envs_dir / ACTIVE_FILE_NAME
    try:
        contents = active_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except OSError as e:
        raise EnvironmentFileError(
            f"Failed to read active environment {active_path}: {e}"
        ) from e

    for line in contents.splitlines():
        line = line.strip()
        if not _is_comment(line):
            return line
    return None


def load_environment_config(envs_dir: Path) -> EnvironmentConfig:
    """Resolve the active pointer and load its defaults.

    Raises:
        EnvironmentFileError: The pointer names a file that does not exist,
            or a file cannot be read.
    """
    active = load_active_env_name(envs_dir)
    defaults: dict[str, str] = {}
    if active is not None:
        path = envs_dir / active
        if not path.is_file():
            raise EnvironmentFileError(f"Active environment not found: {path}")
        defaults = load_env_defaults(path)
    return EnvironmentConfig(envs_dir=envs_dir, active=active, defaults=defaults)


def set_active_env(envs_dir: Path, name: str | None) -> None:
    """Select environment *name*, or clear the selection when *name* is None.

    Raises:
        EnvironmentFileError: *name* does not exist or the pointer cannot be
            written or removed.
    """
    active_path = envs_dir / ACTIVE_FILE_NAME
    try:
        envs_dir.mkdir(parents=True, exist_ok=True)
        if name is None:
            active_path.unlink(missing_ok=True)
            logger.info("Cleared active environment in %s", envs_dir)
            return

        if name in ("", ".", "..", ACTIVE_FILE_NAME) or "/" in name or "\\" in name:
            raise EnvironmentFileError(f"Invalid environment name: {name!r}")
        candidate = envs_dir / name
        if not candidate.is_file():
            raise EnvironmentFileError(f"Environment file not found: {candidate}")
        active_path.write_text(f"{name}\n", encoding="utf-8")
    except OSError as e:
        raise EnvironmentFileError(
            f"Failed to update active environment {active_path}: {e}"
        ) from e
    logger.info("Activated environment %s", name)
