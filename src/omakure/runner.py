"""Script runner: launches a script under its interpreter and captures output."""

from __future__ import annotations

import logging
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from omakure.catalog import ScriptKind, script_kind
from omakure.config import RunnerCfg
from omakure.exceptions import OmakureError

logger = logging.getLogger(__name__)


class ScriptLaunchError(OmakureError):
    """Raised when a script cannot be started (unsupported type, missing interpreter)."""


@dataclass(frozen=True)
class RunOutput:
    stdout: str
    stderr: str
    exit_code: int | None
    success: bool


class ScriptRunner(Protocol):
    def run(self, script: Path, args: list[str]) -> RunOutput: ...


class SubprocessRunner:
    """Run scripts with the interpreters named in the ``runner:`` config section."""

    def __init__(self, runner_cfg: RunnerCfg) -> None:
        self._cfg = runner_cfg

    def command_for(self, script: Path) -> list[str]:
        kind = script_kind(script)
        if kind is ScriptKind.BASH:
            return [self._require(self._cfg.bash), str(script)]
        if kind is ScriptKind.POWERSHELL:
            return [self._require(self._cfg.powershell), "-NoProfile", "-File", str(script)]
        if kind is ScriptKind.PYTHON:
            return [self._require(self._cfg.python), str(script)]
        raise ScriptLaunchError(f"Unsupported script type: {script.name}")

    @staticmethod
    def _require(program: str) -> str:
        resolved = shutil.which(program)
        if resolved is None:
            raise ScriptLaunchError(f"{program} is not installed or not on PATH")
        return resolved

    def run(self, script: Path, args: list[str]) -> RunOutput:
        command = self.command_for(script) + list(args)
        logger.info("Running %s %s", script, " ".join(args))
        try:
            completed = subprocess.run(
                command,
                capture_output=True,
                text=True,
                errors="replace",
                cwd=script.parent,
            )
        except OSError as e:
            raise ScriptLaunchError(f"Failed to launch {script.name}: {e}") from e

        logger.debug("%s exited with %s", script.name, completed.returncode)
        return RunOutput(
            stdout=completed.stdout,
            stderr=completed.stderr,
            exit_code=completed.returncode,
            success=completed.returncode == 0,
        )
