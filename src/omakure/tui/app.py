"""Interactive session loop: draw, wait for a key (bounded), dispatch, tick."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.live import Live

from omakure.config import OmakureConfig
from omakure.runner import ScriptRunner
from omakure.search.index import SearchIndex
from omakure.session.events import handle_key
from omakure.session.state import Screen, Session
from omakure.tui.keys import KeyReader
from omakure.tui.render import render
from omakure.workspace import Workspace

logger = logging.getLogger(__name__)

# Rows taken by the header, panel borders and the help line.
_CHROME_ROWS = 6


def build_session(workspace: Workspace, cfg: OmakureConfig) -> Session:
    search_index = None
    if cfg.search.enabled:
        search_index = SearchIndex(workspace.search_db_path, cfg.search.busy_timeout_ms)
    return Session(workspace, search_index=search_index, history_enabled=cfg.history.enabled)


def run_tui(
    workspace: Workspace,
    cfg: OmakureConfig,
    runner: ScriptRunner,
    console: Console | None = None,
) -> None:
    """Run the interactive session until the user quits."""
    console = console or Console()
    session = build_session(workspace, cfg)
    session.start()
    timeout = cfg.ui.tick_ms / 1000
    logger.info("Session started in %s", workspace.root)

    def frame():
        return render(session, height=max(console.height - _CHROME_ROWS, 3))

    with KeyReader() as reader, Live(
        frame(), console=console, screen=True, auto_refresh=False
    ) as live:
        while True:
            live.update(frame(), refresh=True)

            for key in reader.read(timeout):
                handle_key(session, key)
                if session.should_quit or session.pending_run is not None:
                    break
            if session.should_quit:
                break

            session.tick()

            if session.pending_run is not None:
                session.screen = Screen.RUNNING
                live.update(frame(), refresh=True)
                session.run_pending(runner)

    logger.info("Session ended")
