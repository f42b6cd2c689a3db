"""POSIX keyboard input for the interactive session.

KeyReader puts the terminal in cbreak mode and waits for input with a
timeout, so the session loop keeps ticking while no key is pressed.
decode_keys() turns raw terminal input into Key events and is pure.
"""

from __future__ import annotations

import os
import select
import sys
import termios
import tty

from omakure.session.events import Key, KeyCode

_ESC = "\x1b"

# CSI / SS3 sequences without the leading ESC.
_SEQUENCES: dict[str, KeyCode] = {
    "[A": KeyCode.UP,
    "[B": KeyCode.DOWN,
    "[C": KeyCode.RIGHT,
    "[D": KeyCode.LEFT,
    "OA": KeyCode.UP,
    "OB": KeyCode.DOWN,
    "OC": KeyCode.RIGHT,
    "OD": KeyCode.LEFT,
    "[H": KeyCode.HOME,
    "[F": KeyCode.END,
    "OH": KeyCode.HOME,
    "OF": KeyCode.END,
    "[1~": KeyCode.HOME,
    "[4~": KeyCode.END,
    "[7~": KeyCode.HOME,
    "[8~": KeyCode.END,
    "[5~": KeyCode.PAGE_UP,
    "[6~": KeyCode.PAGE_DOWN,
    "[Z": KeyCode.BACKTAB,
    "[15~": KeyCode.F5,
    "[17~": KeyCode.F6,
}

_MAX_SEQUENCE = max(len(s) for s in _SEQUENCES)

_SINGLE: dict[str, KeyCode] = {
    "\r": KeyCode.ENTER,
    "\n": KeyCode.ENTER,
    "\t": KeyCode.TAB,
    "\x7f": KeyCode.BACKSPACE,
    "\x08": KeyCode.BACKSPACE,
}


def decode_keys(data: bytes) -> list[Key]:
    """Decode one read's worth of terminal input into key events.

    Unknown escape sequences are dropped. A lone ESC is the Esc key; ESC
    followed by a printable character is that character with Alt held.
    """
    text = data.decode("utf-8", errors="replace")
    keys: list[Key] = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == _ESC:
            key, consumed = _decode_escape(text, i + 1)
            if key is not None:
                keys.append(key)
            i += 1 + consumed
            continue
        if ch in _SINGLE:
            keys.append(Key(_SINGLE[ch]))
        elif ord(ch) < 0x20:
            # Ctrl-A .. Ctrl-Z arrive as 0x01 .. 0x1a
            keys.append(Key.of(chr(ord(ch) + 0x60), ctrl=True))
        else:
            keys.append(Key.of(ch))
        i += 1
    return keys


def _decode_escape(text: str, start: int) -> tuple[Key | None, int]:
    """Decode what follows an ESC at *start*; return (key, chars consumed)."""
    rest = text[start:]
    if not rest or rest[0] == _ESC:
        return Key(KeyCode.ESC), 0

    if rest[0] in "[O":
        for length in range(2, min(_MAX_SEQUENCE, len(rest)) + 1):
            code = _SEQUENCES.get(rest[:length])
            if code is not None:
                return Key(code), length
        # Skip an unknown CSI sequence up to its final byte.
        for j in range(1, len(rest)):
            if "@" <= rest[j] <= "~":
                return None, j + 1
        return None, len(rest)

    if rest[0].isprintable():
        return Key.of(rest[0], alt=True), 1
    return Key(KeyCode.ESC), 0


class KeyReader:
    """Cbreak-mode key reader for a TTY file descriptor.

    Usage:
        with KeyReader() as reader:
            for key in reader.read(timeout=0.2):
                ...
    """

    def __init__(self, fd: int | None = None) -> None:
        self.fd = sys.stdin.fileno() if fd is None else fd
        self._saved: list | None = None

    def __enter__(self) -> KeyReader:
        self._saved = termios.tcgetattr(self.fd)
        tty.setcbreak(self.fd)
        attrs = termios.tcgetattr(self.fd)
        # Free Ctrl-S / Ctrl-Q from flow control so Ctrl-S reaches the session.
        attrs[0] &= ~termios.IXON
        termios.tcsetattr(self.fd, termios.TCSADRAIN, attrs)
        return self

    def __exit__(self, *args: object) -> None:
        if self._saved is not None:
            termios.tcsetattr(self.fd, termios.TCSADRAIN, self._saved)
            self._saved = None

    def read(self, timeout: float) -> list[Key]:
        """Wait up to *timeout* seconds for input; return the decoded keys."""
        ready, _, _ = select.select([self.fd], [], [], timeout)
        if not ready:
            return []
        return decode_keys(os.read(self.fd, 1024))
