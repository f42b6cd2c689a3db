"""Terminal adapter: key input and rich rendering for the session."""

from omakure.tui.app import run_tui

__all__ = ["run_tui"]
