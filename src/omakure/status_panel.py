"""Per-directory status panel descriptors.

A directory may carry a ``status.yaml`` describing a small side panel:

    title: Azure
    lines:
      - "Subscription: $AZURE_SUBSCRIPTION"
      - "Region: ${AZURE_REGION}"

Nothing is executed. ``$VAR`` references in lines expand from the process
environment; unknown variables are left as written.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from omakure.exceptions import OmakureError

STATUS_FILE_NAME = "status.yaml"


class StatusPanelError(OmakureError):
    """Raised when a status descriptor cannot be read or has the wrong shape."""


@dataclass(frozen=True)
class StatusPanel:
    title: str
    lines: list[str] = field(default_factory=list)


def load_status_panel(directory: Path) -> StatusPanel | None:
    """Return the panel described by ``<directory>/status.yaml``, or None.

    Raises:
        StatusPanelError: The file is unreadable, not YAML, or not a mapping
            of ``title`` (string) and ``lines`` (list of strings).
    """
    path = directory / STATUS_FILE_NAME
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError) as e:
        raise StatusPanelError(f"Failed to read {path}: {e}") from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise StatusPanelError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return None
    if not isinstance(data, dict):
        raise StatusPanelError(f"{path} must be a mapping, got {type(data).__name__}")

    title = data.get("title", directory.name)
    if not isinstance(title, str):
        raise StatusPanelError(f"{path}: 'title' must be a string")

    raw_lines = data.get("lines") or []
    if not isinstance(raw_lines, list) or not all(isinstance(x, str) for x in raw_lines):
        raise StatusPanelError(f"{path}: 'lines' must be a list of strings")

    return StatusPanel(title=title, lines=[os.path.expandvars(line) for line in raw_lines])
