"""Tests for raw terminal input decoding."""

from __future__ import annotations

import pytest

from omakure.session.events import Key, KeyCode
from omakure.tui.keys import decode_keys


@pytest.mark.parametrize(
    "data,code",
    [
        (b"\x1b[A", KeyCode.UP),
        (b"\x1b[B", KeyCode.DOWN),
        (b"\x1bOC", KeyCode.RIGHT),
        (b"\x1b[D", KeyCode.LEFT),
        (b"\x1b[H", KeyCode.HOME),
        (b"\x1b[4~", KeyCode.END),
        (b"\x1b[5~", KeyCode.PAGE_UP),
        (b"\x1b[6~", KeyCode.PAGE_DOWN),
        (b"\x1b[Z", KeyCode.BACKTAB),
        (b"\x1b[15~", KeyCode.F5),
        (b"\x1b[17~", KeyCode.F6),
        (b"\r", KeyCode.ENTER),
        (b"\t", KeyCode.TAB),
        (b"\x7f", KeyCode.BACKSPACE),
    ],
)
def test_special_keys(data: bytes, code: KeyCode) -> None:
    assert decode_keys(data) == [Key(code)]


def test_plain_text() -> None:
    assert decode_keys("ab é".encode()) == [Key.of("a"), Key.of("b"), Key.of(" "), Key.of("é")]


def test_control_characters() -> None:
    assert decode_keys(b"\x13\x02") == [Key.of("s", ctrl=True), Key.of("b", ctrl=True)]


def test_lone_escape() -> None:
    assert decode_keys(b"\x1b") == [Key(KeyCode.ESC)]
    assert decode_keys(b"\x1b\x1b") == [Key(KeyCode.ESC), Key(KeyCode.ESC)]


def test_alt_character() -> None:
    assert decode_keys(b"\x1bx") == [Key.of("x", alt=True)]


def test_unknown_sequence_is_skipped() -> None:
    assert decode_keys(b"\x1b[99;5Xq") == [Key.of("q")]


def test_mixed_batch() -> None:
    assert decode_keys(b"j\x1b[Bk\r") == [
        Key.of("j"),
        Key(KeyCode.DOWN),
        Key.of("k"),
        Key(KeyCode.ENTER),
    ]
