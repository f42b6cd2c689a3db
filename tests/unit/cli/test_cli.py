"""Tests for the omakure command line."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner

from omakure.cli.main import app
from omakure.config import SCRIPTS_DIR_ENV_VARS
from omakure.history import load_entries
from omakure.workspace import Workspace

runner = CliRunner()

_HELLO = "import sys\nprint('hello', *sys.argv[1:])\n"
_FAIL = "import sys\nprint('bad news', file=sys.stderr)\nsys.exit(3)\n"


@pytest.fixture(autouse=True)
def _isolate(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("OMAKURE_TICK_MS", raising=False)
    for var in SCRIPTS_DIR_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr("omakure.config._GLOBAL_CONFIG_PATH", tmp_path / "no-global.yaml")


@pytest.fixture
def root(workspace: Workspace, make_script) -> Path:
    """Workspace whose python runner is the interpreter running the tests."""
    (workspace.root / "omakure.yaml").write_text(
        yaml.dump({"runner": {"python": sys.executable}}), encoding="utf-8"
    )
    (workspace.root / "hello.py").write_text(_HELLO, encoding="utf-8")
    (workspace.root / "tools").mkdir()
    (workspace.root / "tools" / "fail.py").write_text(_FAIL, encoding="utf-8")
    make_script("azure/rg-list.sh", {"Name": "rg-list", "Tags": ["azure"], "Fields": []})
    return workspace.root


def _invoke(root: Path, *args: str):
    return runner.invoke(app, ["--scripts-dir", str(root), *args])


# ---------------------------------------------------------------------------
# version
# ---------------------------------------------------------------------------


def test_version_flag() -> None:
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert result.output.startswith("omakure ")


def test_version_command(root: Path) -> None:
    result = _invoke(root, "version")
    assert result.exit_code == 0
    assert "omakure" in result.output


# ---------------------------------------------------------------------------
# scripts
# ---------------------------------------------------------------------------


def test_scripts_lists_relative_paths(root: Path) -> None:
    result = _invoke(root, "scripts")
    assert result.exit_code == 0
    assert result.output.splitlines() == ["azure/rg-list.sh", "hello.py", "tools/fail.py"]


def test_scripts_empty_workspace(workspace: Workspace) -> None:
    result = _invoke(workspace.root, "scripts")
    assert result.exit_code == 0
    assert "No scripts found" in result.output


def test_scripts_missing_root(tmp_path: Path) -> None:
    result = _invoke(tmp_path / "nowhere", "scripts")
    assert result.exit_code == 1
    assert "No scripts directory" in result.output


# ---------------------------------------------------------------------------
# run
# ---------------------------------------------------------------------------


def test_run_without_extension_passes_args(root: Path) -> None:
    result = _invoke(root, "run", "hello", "--name", "world")
    assert result.exit_code == 0
    assert "hello --name world" in result.output

    [entry] = load_entries(Workspace(root))
    assert entry.script == "hello.py"
    assert entry.args == ["--name", "world"]
    assert entry.success


def test_run_propagates_exit_code(root: Path) -> None:
    result = _invoke(root, "run", "tools/fail.py")
    assert result.exit_code == 3
    assert "bad news" in result.output
    [entry] = load_entries(Workspace(root))
    assert entry.exit_code == 3
    assert not entry.success


def test_run_unknown_script(root: Path) -> None:
    result = _invoke(root, "run", "nope")
    assert result.exit_code == 1
    assert "not found" in result.output


def test_run_missing_interpreter_is_recorded(root: Path) -> None:
    (root / "omakure.yaml").write_text(
        yaml.dump({"runner": {"python": "definitely-not-a-python-binary"}}), encoding="utf-8"
    )
    result = _invoke(root, "run", "hello.py")
    assert result.exit_code == 1
    assert "Could not launch" in result.output
    [entry] = load_entries(Workspace(root))
    assert entry.error is not None


def test_run_history_disabled(root: Path) -> None:
    (root / "omakure.yaml").write_text(
        yaml.dump({"runner": {"python": sys.executable}, "history": {"enabled": False}}),
        encoding="utf-8",
    )
    assert _invoke(root, "run", "hello.py").exit_code == 0
    assert load_entries(Workspace(root)) == []


# ---------------------------------------------------------------------------
# history
# ---------------------------------------------------------------------------


def test_history_empty(root: Path) -> None:
    result = _invoke(root, "history")
    assert result.exit_code == 0
    assert "No runs recorded yet." in result.output


def test_history_table_and_show(root: Path) -> None:
    _invoke(root, "run", "hello.py", "x")
    result = _invoke(root, "history")
    assert result.exit_code == 0
    assert "hello.py" in result.output
    assert "ok" in result.output

    shown = _invoke(root, "history", "--show", "1")
    assert shown.exit_code == 0
    assert "hello x" in shown.output


def test_history_show_out_of_range(root: Path) -> None:
    _invoke(root, "run", "hello.py")
    result = _invoke(root, "history", "--show", "5")
    assert result.exit_code == 1
    assert "No run #5" in result.output


# ---------------------------------------------------------------------------
# search
# ---------------------------------------------------------------------------


def test_search_builds_index_and_filters(root: Path) -> None:
    result = _invoke(root, "search", "azure")
    assert result.exit_code == 0
    assert "Indexed 3 scripts." in result.output
    assert "rg-list" in result.output
    assert "hello.py" not in result.output


def test_search_no_matches(root: Path) -> None:
    result = _invoke(root, "search", "zzzz")
    assert result.exit_code == 0
    assert "No matching scripts." in result.output


def test_search_disabled(root: Path) -> None:
    (root / "omakure.yaml").write_text(yaml.dump({"search": {"enabled": False}}), encoding="utf-8")
    result = _invoke(root, "search")
    assert result.exit_code == 1
    assert "Search is disabled" in result.output


# ---------------------------------------------------------------------------
# env
# ---------------------------------------------------------------------------


def test_env_flow(root: Path) -> None:
    envs = Workspace(root).envs_dir
    envs.mkdir(parents=True)
    (envs / "dev").write_text("REGION=eastus\nPASSWORD=hunter2\n", encoding="utf-8")
    (envs / "prod").write_text("REGION=westeu\n", encoding="utf-8")

    listed = _invoke(root, "env", "list")
    assert listed.exit_code == 0
    assert "dev" in listed.output and "prod" in listed.output

    used = _invoke(root, "env", "use", "prod")
    assert used.exit_code == 0
    assert (envs / "active").read_text(encoding="utf-8").strip() == "prod"

    shown = _invoke(root, "env", "show", "dev")
    assert "REGION = eastus" in shown.output
    assert "hunter2" not in shown.output

    cleared = _invoke(root, "env", "clear")
    assert cleared.exit_code == 0
    assert not (envs / "active").exists()


def test_env_use_unknown(root: Path) -> None:
    result = _invoke(root, "env", "use", "staging")
    assert result.exit_code == 1
    assert "not found" in result.output


def test_env_show_rejects_paths(root: Path) -> None:
    result = _invoke(root, "env", "show", "../omakure.yaml")
    assert result.exit_code == 1


def test_env_list_empty(root: Path) -> None:
    result = _invoke(root, "env", "list")
    assert result.exit_code == 0
    assert "No environments found" in result.output


# ---------------------------------------------------------------------------
# config + interactive entry
# ---------------------------------------------------------------------------


def test_config_shows_settings(root: Path) -> None:
    result = _invoke(root, "config")
    assert result.exit_code == 0
    assert "Workspace" in result.output
    assert "ui.tick_ms" in result.output
    assert "--scripts-dir" in result.output


def test_invalid_config_exits(root: Path) -> None:
    (root / "omakure.yaml").write_text("ui: {tick_ms: 0}\n", encoding="utf-8")
    result = _invoke(root, "scripts")
    assert result.exit_code == 1
    assert "Invalid configuration" in result.output


def test_unknown_config_key_warns(root: Path) -> None:
    (root / "omakure.yaml").write_text("colour: blue\n", encoding="utf-8")
    result = _invoke(root, "scripts")
    assert result.exit_code == 0
    assert "Unknown config key 'colour'" in result.output


def test_interactive_needs_terminal(root: Path) -> None:
    result = _invoke(root)
    assert result.exit_code == 1
    assert "needs a terminal" in result.output


def test_interactive_missing_root(tmp_path: Path) -> None:
    result = _invoke(tmp_path / "nowhere")
    assert result.exit_code == 1
    assert "No scripts directory" in result.output
