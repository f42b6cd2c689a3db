"""Tests for the subprocess script runner."""

from __future__ import annotations

import shutil
import sys
from pathlib import Path

import pytest

from omakure.config import RunnerCfg
from omakure.runner import ScriptLaunchError, SubprocessRunner


@pytest.fixture
def fake_which(monkeypatch: pytest.MonkeyPatch):
    installed = {"bash": "/bin/bash", "pwsh": "/usr/bin/pwsh", "python3": "/usr/bin/python3"}
    monkeypatch.setattr(shutil, "which", lambda name: installed.get(name))
    return installed


def test_command_for_each_kind(fake_which) -> None:
    runner = SubprocessRunner(RunnerCfg(bash="bash", powershell="pwsh", python="python3"))
    assert runner.command_for(Path("/w/a.sh")) == ["/bin/bash", "/w/a.sh"]
    assert runner.command_for(Path("/w/a.ps1")) == ["/usr/bin/pwsh", "-NoProfile", "-File", "/w/a.ps1"]
    assert runner.command_for(Path("/w/a.py")) == ["/usr/bin/python3", "/w/a.py"]


def test_missing_interpreter(fake_which) -> None:
    runner = SubprocessRunner(RunnerCfg(bash="zsh-not-here"))
    with pytest.raises(ScriptLaunchError, match="zsh-not-here"):
        runner.command_for(Path("/w/a.sh"))


def test_unsupported_kind(fake_which) -> None:
    with pytest.raises(ScriptLaunchError, match="Unsupported"):
        SubprocessRunner(RunnerCfg()).command_for(Path("/w/a.rb"))


def test_run_python_script_captures_output(tmp_path: Path) -> None:
    script = tmp_path / "echo.py"
    script.write_text(
        "import sys\nprint(' '.join(sys.argv[1:]))\nprint('warn', file=sys.stderr)\nsys.exit(3)\n",
        encoding="utf-8",
    )
    runner = SubprocessRunner(RunnerCfg(python=sys.executable))
    output = runner.run(script, ["--force", "true"])
    assert output.stdout.strip() == "--force true"
    assert output.stderr.strip() == "warn"
    assert output.exit_code == 3
    assert output.success is False
