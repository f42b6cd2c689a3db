"""Tests for key dispatch onto Session transitions."""

from __future__ import annotations

import pytest

from omakure.runner import RunOutput
from omakure.session.events import Key, KeyCode, handle_key
from omakure.session.state import HistoryFocus, RunRequest, Screen, Session

_FORM = {
    "Name": "greet",
    "Fields": [{"Name": "Who", "Type": "string", "Order": 0, "Required": True}],
}


class _Runner:
    def run(self, script, args):
        return RunOutput(stdout="\n".join(str(i) for i in range(40)), stderr="", exit_code=0, success=True)


def _press(session: Session, *keys: Key) -> None:
    for key in keys:
        handle_key(session, key)


def _type(session: Session, text: str) -> None:
    _press(session, *(Key.of(ch) for ch in text))


@pytest.fixture
def session(workspace, make_script) -> Session:
    make_script("tools/ping.sh", {"Name": "ping", "Fields": []})
    make_script("greet.sh", _FORM)
    s = Session(workspace, status_loader=lambda directory: None)
    s.start()
    return s


# ---------------------------------------------------------------------------
# Key helpers
# ---------------------------------------------------------------------------


def test_key_predicates() -> None:
    assert Key.of("q").is_char("q", "Q")
    assert not Key.of("q", ctrl=True).is_char("q")
    assert Key.of("S", ctrl=True).is_ctrl("s")
    assert Key.of("x").printable
    assert not Key.of("x", alt=True).printable
    assert not Key(KeyCode.ENTER).printable


# ---------------------------------------------------------------------------
# Script list
# ---------------------------------------------------------------------------


def test_list_navigation(session: Session, workspace) -> None:
    assert [e.name for e in session.entries] == ["tools", "greet.sh"]
    _press(session, Key(KeyCode.ENTER))
    assert session.current_dir == workspace.root / "tools"
    _press(session, Key(KeyCode.ESC))
    assert session.at_root()
    assert not session.should_quit
    _press(session, Key.of("j"))
    assert session.selection == 1
    _press(session, Key(KeyCode.UP))
    assert session.selection == 0


def test_esc_at_root_quits(session: Session) -> None:
    _press(session, Key(KeyCode.ESC))
    assert session.should_quit


def test_q_quits(session: Session) -> None:
    _press(session, Key.of("q"))
    assert session.should_quit


def test_left_goes_up(session: Session) -> None:
    _press(session, Key(KeyCode.RIGHT), Key(KeyCode.LEFT))
    assert session.at_root()


@pytest.mark.parametrize(
    "key,screen",
    [
        (Key.of("s", ctrl=True), Screen.SEARCH),
        (Key.of("/"), Screen.SEARCH),
        (Key.of("h"), Screen.HISTORY),
        (Key.of("e"), Screen.ENVIRONMENTS),
    ],
)
def test_list_screen_switches(session: Session, key: Key, screen: Screen) -> None:
    _press(session, key)
    assert session.screen is screen


def test_refresh_picks_up_new_scripts(session: Session, make_script) -> None:
    make_script("added.sh")
    _press(session, Key(KeyCode.F5))
    assert "added.sh" in [e.name for e in session.entries]


def test_refresh_status_restarts_load(session: Session) -> None:
    session.status_loading = False
    _press(session, Key.of("i"))
    assert session.status_loading


# ---------------------------------------------------------------------------
# Form
# ---------------------------------------------------------------------------


def _open_form(session: Session) -> None:
    _press(session, Key.of("j"), Key(KeyCode.ENTER))
    assert session.screen is Screen.FIELD_INPUT


def test_form_typing_and_submit(session: Session, workspace) -> None:
    _open_form(session)
    _type(session, "worldx")
    _press(session, Key(KeyCode.BACKSPACE), Key(KeyCode.ENTER))
    assert session.pending_run == RunRequest(workspace.root / "greet.sh", ["--who", "world"])


def test_form_letters_are_text_not_commands(session: Session) -> None:
    _open_form(session)
    _type(session, "qhej")
    assert session.field_inputs == ["qhej"]
    assert session.screen is Screen.FIELD_INPUT
    assert not session.should_quit


def test_form_validation_error(session: Session) -> None:
    _open_form(session)
    _press(session, Key(KeyCode.ENTER))
    assert session.error == "Who: Value required"
    assert session.pending_run is None


@pytest.mark.parametrize("key", [Key(KeyCode.ESC), Key.of("b", ctrl=True)])
def test_form_back(session: Session, key: Key) -> None:
    _open_form(session)
    _press(session, key)
    assert session.screen is Screen.SCRIPT_SELECT
    assert session.fields == []


# ---------------------------------------------------------------------------
# Run result + history
# ---------------------------------------------------------------------------


def _run_ping(session: Session) -> None:
    _press(session, Key(KeyCode.ENTER), Key(KeyCode.ENTER))
    session.run_pending(_Runner())
    assert session.screen is Screen.RUN_RESULT


def test_run_result_scroll_and_back(session: Session) -> None:
    _run_ping(session)
    _press(session, Key(KeyCode.PAGE_DOWN), Key.of("j"))
    assert session.run_output_scroll == 11
    _press(session, Key(KeyCode.HOME))
    assert session.run_output_scroll == 0
    _press(session, Key(KeyCode.END))
    assert session.run_output_scroll == 40
    _press(session, Key(KeyCode.ENTER))
    assert session.screen is Screen.SCRIPT_SELECT


def test_run_result_to_history(session: Session) -> None:
    _run_ping(session)
    _press(session, Key.of("h"))
    assert session.screen is Screen.HISTORY
    assert session.history_focus is HistoryFocus.LIST


def test_history_focus_switching(session: Session) -> None:
    _run_ping(session)
    _press(session, Key.of("h"), Key(KeyCode.ENTER))
    assert session.history_focus is HistoryFocus.OUTPUT
    _press(session, Key.of("j"), Key.of("j"))
    assert session.run_output_scroll == 2
    _press(session, Key(KeyCode.ESC))
    assert session.history_focus is HistoryFocus.LIST
    assert session.screen is Screen.HISTORY
    _press(session, Key.of("q"))
    assert session.screen is Screen.SCRIPT_SELECT


# ---------------------------------------------------------------------------
# Environments
# ---------------------------------------------------------------------------


def test_environment_keys(session: Session, workspace) -> None:
    workspace.envs_dir.mkdir(parents=True)
    (workspace.envs_dir / "dev").write_text("WHO=dev-user\n", encoding="utf-8")
    (workspace.envs_dir / "prod").write_text("WHO=prod-user\n", encoding="utf-8")

    _press(session, Key.of("e"), Key.of("j"), Key(KeyCode.ENTER))
    assert session.active_env_name() == "prod"
    _press(session, Key.of("d"))
    assert session.active_env_name() is None
    _press(session, Key.of("k"), Key(KeyCode.ENTER), Key.of("q"))
    assert session.screen is Screen.SCRIPT_SELECT

    _open_form(session)
    assert session.field_inputs == ["dev-user"]


# ---------------------------------------------------------------------------
# Error screen
# ---------------------------------------------------------------------------


def test_error_screen_enter_returns(session: Session) -> None:
    session.error = "boom"
    session.screen = Screen.ERROR
    _press(session, Key(KeyCode.ENTER))
    assert session.screen is Screen.SCRIPT_SELECT
    assert session.error is None


def test_error_screen_esc_quits(session: Session) -> None:
    session.screen = Screen.ERROR
    _press(session, Key(KeyCode.ESC))
    assert session.should_quit
