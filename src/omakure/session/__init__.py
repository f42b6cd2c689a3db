"""Screen-based interactive session: state plus key dispatch."""

from omakure.session.events import Key, KeyCode, handle_key
from omakure.session.state import HistoryFocus, RunRequest, Screen, Session

__all__ = [
    "HistoryFocus",
    "Key",
    "KeyCode",
    "RunRequest",
    "Screen",
    "Session",
    "handle_key",
]
