"""Base exception shared by every recoverable Omakure failure."""

from __future__ import annotations


class OmakureError(Exception):
    """Raised for failures the session can display and recover from."""
