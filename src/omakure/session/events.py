"""Key events and their dispatch onto Session transitions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from omakure.session.state import PAGE_SIZE, HistoryFocus, Screen, Session


class KeyCode(Enum):
    CHAR = "char"
    ENTER = "enter"
    ESC = "esc"
    BACKSPACE = "backspace"
    TAB = "tab"
    BACKTAB = "backtab"
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    PAGE_UP = "pageup"
    PAGE_DOWN = "pagedown"
    HOME = "home"
    END = "end"
    F5 = "f5"
    F6 = "f6"


@dataclass(frozen=True)
class Key:
    code: KeyCode
    char: str = ""
    ctrl: bool = False
    alt: bool = False

    @classmethod
    def of(cls, char: str, *, ctrl: bool = False, alt: bool = False) -> Key:
        return cls(KeyCode.CHAR, char, ctrl=ctrl, alt=alt)

    def is_char(self, *chars: str) -> bool:
        return self.code is KeyCode.CHAR and not self.ctrl and self.char in chars

    def is_ctrl(self, char: str) -> bool:
        return self.code is KeyCode.CHAR and self.ctrl and self.char.lower() == char

    @property
    def printable(self) -> bool:
        return self.code is KeyCode.CHAR and not self.ctrl and not self.alt


def handle_key(session: Session, key: Key) -> None:
    """Apply one key press to *session*. Keys with no meaning are ignored."""
    handler = _HANDLERS.get(session.screen)
    if handler is not None:
        handler(session, key)


def _down(key: Key) -> bool:
    return key.code is KeyCode.DOWN or key.is_char("j")


def _up(key: Key) -> bool:
    return key.code is KeyCode.UP or key.is_char("k")


def _handle_list(session: Session, key: Key) -> None:
    if key.is_ctrl("s") or key.is_char("/"):
        session.enter_search()
    elif key.is_char("q"):
        session.should_quit = True
    elif key.code is KeyCode.ESC:
        if session.at_root():
            session.should_quit = True
        else:
            session.navigate_up()
    elif key.is_char("r", "R") or key.code is KeyCode.F5:
        session.refresh_entries()
    elif key.is_char("i", "I") or key.code is KeyCode.F6:
        session.refresh_status()
    elif key.is_char("h", "H"):
        session.enter_history()
    elif key.is_char("e", "E"):
        session.enter_envs()
    elif key.code in (KeyCode.BACKSPACE, KeyCode.LEFT):
        session.navigate_up()
    elif not session.entries:
        return
    elif _down(key):
        session.move_selection(1)
    elif _up(key):
        session.move_selection(-1)
    elif key.code in (KeyCode.ENTER, KeyCode.RIGHT):
        session.enter_selected()


def _handle_search(session: Session, key: Key) -> None:
    if key.code is KeyCode.ESC:
        session.screen = Screen.SCRIPT_SELECT
    elif key.code is KeyCode.DOWN:
        session.move_search_selection(1)
    elif key.code is KeyCode.UP:
        session.move_search_selection(-1)
    elif key.code is KeyCode.ENTER:
        session.open_selected_search()
    elif key.code is KeyCode.BACKSPACE:
        session.pop_search_char()
    elif key.printable:
        session.append_search_char(key.char)


def _handle_envs(session: Session, key: Key) -> None:
    if key.code is KeyCode.ESC or key.is_char("q", "e"):
        session.exit_envs()
    elif _down(key):
        session.move_env_selection(1)
    elif _up(key):
        session.move_env_selection(-1)
    elif key.code is KeyCode.ENTER:
        session.activate_selected_env()
    elif key.is_char("d", "D"):
        session.deactivate_env()
    elif key.code is KeyCode.PAGE_DOWN:
        session.scroll_env_preview(PAGE_SIZE)
    elif key.code is KeyCode.PAGE_UP:
        session.scroll_env_preview(-PAGE_SIZE)


def _handle_input(session: Session, key: Key) -> None:
    if key.code is KeyCode.ESC or key.is_ctrl("b"):
        session.back_to_script_select()
    elif key.code is KeyCode.ENTER:
        session.submit_form()
    elif key.code in (KeyCode.TAB, KeyCode.DOWN):
        session.move_field_selection(1)
    elif key.code in (KeyCode.BACKTAB, KeyCode.UP):
        session.move_field_selection(-1)
    elif key.code is KeyCode.BACKSPACE:
        session.pop_field_char()
    elif key.printable:
        session.append_field_char(key.char)


def _scroll_output(session: Session, key: Key) -> bool:
    if _down(key):
        session.scroll_run_output(1)
    elif _up(key):
        session.scroll_run_output(-1)
    elif key.code is KeyCode.PAGE_DOWN:
        session.scroll_run_output(PAGE_SIZE)
    elif key.code is KeyCode.PAGE_UP:
        session.scroll_run_output(-PAGE_SIZE)
    elif key.code is KeyCode.HOME:
        session.run_output_scroll = 0
    elif key.code is KeyCode.END:
        session.scroll_run_output_to_end()
    else:
        return False
    return True


def _handle_history(session: Session, key: Key) -> None:
    if session.history_focus is HistoryFocus.LIST:
        if key.code is KeyCode.ESC or key.is_char("q"):
            session.screen = Screen.SCRIPT_SELECT
        elif _down(key):
            session.move_history_selection(1)
        elif _up(key):
            session.move_history_selection(-1)
        elif key.code in (KeyCode.ENTER, KeyCode.RIGHT):
            session.history_focus = HistoryFocus.OUTPUT
            session.run_output_scroll = 0
        return

    if key.is_char("q"):
        session.screen = Screen.SCRIPT_SELECT
    elif key.code in (KeyCode.ESC, KeyCode.LEFT, KeyCode.BACKSPACE):
        session.history_focus = HistoryFocus.LIST
    else:
        _scroll_output(session, key)


def _handle_run_result(session: Session, key: Key) -> None:
    if key.code in (KeyCode.ESC, KeyCode.ENTER) or key.is_char("q"):
        session.screen = Screen.SCRIPT_SELECT
    elif key.is_char("h", "H"):
        session.enter_history()
    else:
        _scroll_output(session, key)


def _handle_error(session: Session, key: Key) -> None:
    if key.code is KeyCode.ESC or key.is_char("q"):
        session.should_quit = True
    elif key.code is KeyCode.ENTER:
        session.error = None
        session.screen = Screen.SCRIPT_SELECT


_HANDLERS = {
    Screen.SCRIPT_SELECT: _handle_list,
    Screen.SEARCH: _handle_search,
    Screen.ENVIRONMENTS: _handle_envs,
    Screen.FIELD_INPUT: _handle_input,
    Screen.HISTORY: _handle_history,
    Screen.RUN_RESULT: _handle_run_result,
    Screen.ERROR: _handle_error,
}
