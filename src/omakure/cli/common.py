"""State shared by every omakure command: resolved workspace, config, logging."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from omakure.catalog import script_extensions, script_kind
from omakure.config import OmakureConfig
from omakure.workspace import Workspace

console = Console()
err_console = Console(stderr=True)

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass
class AppState:
    workspace: Workspace
    cfg: OmakureConfig
    scripts_dir_flag: Path | None = None
    verbose: bool = False


def get_state(ctx: typer.Context) -> AppState:
    state = ctx.find_root().obj
    if not isinstance(state, AppState):
        raise RuntimeError("omakure command invoked without the root callback")
    return state


def configure_logging(verbose: bool = False, log_file: Path | None = None) -> None:
    """Route the ``omakure`` logger to stderr through rich, or to *log_file*.

    The interactive session logs to a file so records never tear the live
    display.
    """
    logger = logging.getLogger("omakure")
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()

    handler: logging.Handler
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    else:
        handler = RichHandler(console=err_console, show_path=False, markup=False)

    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO if log_file else logging.WARNING)
    logger.propagate = False


def resolve_script(root: Path, name: str) -> Path | None:
    """Find the script *name* refers to.

    Accepts an absolute path, a path relative to *root*, or a path without
    extension, trying each known script extension in turn.
    """
    candidate = Path(name).expanduser()
    if not candidate.is_absolute():
        candidate = root / candidate
    if candidate.is_file() and script_kind(candidate) is not None:
        return candidate
    for ext in script_extensions():
        probe = candidate.with_name(f"{candidate.name}.{ext}")
        if probe.is_file():
            return probe
    return None
