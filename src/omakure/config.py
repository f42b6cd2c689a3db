"""Omakure configuration loader.

Priority (high → low):
  1. CLI flags           (handled at the call site, not in this module)
  2. Environment variables  (OMAKURE_SCRIPTS_DIR, OMAKURE_TICK_MS)
  3. Workspace omakure.yaml  (at the workspace root)
  4. Global ~/.omakure/config.yaml
  5. Hardcoded defaults

All YAML reads use yaml.safe_load(), never yaml.load().
"""

from __future__ import annotations

import os
import sys
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from omakure.exceptions import OmakureError
from omakure.workspace import CONFIG_FILE_NAME

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".omakure"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_DEFAULT_WORKSPACE_NAME: str = "omakure-scripts"

# Checked in order; the first one set wins. The last two are legacy names.
SCRIPTS_DIR_ENV_VARS: tuple[str, ...] = (
    "OMAKURE_SCRIPTS_DIR",
    "OVERTURE_SCRIPTS_DIR",
    "CLOUD_MGMT_SCRIPTS_DIR",
)

# Known top-level sections; unknown keys produce a warning
_KNOWN_SECTIONS: frozenset[str] = frozenset(["workspace", "ui", "search", "runner", "history"])


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(OmakureError, ValueError):
    """Raised when a config file contains an invalid value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class WorkspaceCfg:
    """Workspace metadata (omakure.yaml: workspace:)."""

    version: int = 1


@dataclass
class UiCfg:
    """Interactive session settings (omakure.yaml: ui:).

    Attributes:
        tick_ms: Upper bound on how long one loop iteration waits for a key.
            Background results are polled once per tick.
    """

    tick_ms: int = 200


@dataclass
class SearchCfg:
    """Search index settings (omakure.yaml: search:)."""

    enabled: bool = True
    busy_timeout_ms: int = 500


@dataclass
class RunnerCfg:
    """Interpreter program names (omakure.yaml: runner:)."""

    bash: str = "bash"
    powershell: str = field(
        default_factory=lambda: "powershell" if sys.platform == "win32" else "pwsh"
    )
    python: str = field(
        default_factory=lambda: "python" if sys.platform == "win32" else "python3"
    )


@dataclass
class HistoryCfg:
    """Execution history settings (omakure.yaml: history:)."""

    enabled: bool = True


@dataclass
class OmakureConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    workspace: WorkspaceCfg = field(default_factory=WorkspaceCfg)
    ui: UiCfg = field(default_factory=UiCfg)
    search: SearchCfg = field(default_factory=SearchCfg)
    runner: RunnerCfg = field(default_factory=RunnerCfg)
    history: HistoryCfg = field(default_factory=HistoryCfg)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    """Emit a UserWarning for unrecognised top-level keys."""
    for key in data:
        if key not in _KNOWN_SECTIONS:
            warnings.warn(
                f"Unknown config key '{key}' in '{source}'; ignored.",
                UserWarning,
                stacklevel=4,
            )


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in '{path}': {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"Config file '{path}' must contain a YAML mapping.")
    return raw


def _positive_int(value: Any, key: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{key} must be an integer, got: {value!r}") from e
    if number < 1:
        raise ConfigError(f"{key} must be >= 1, got: {number}")
    return number


# ---------------------------------------------------------------------------
# Merge + build
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict that is *base* deep-merged with *override*."""
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    value = data.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"Config section '{name}' must be a mapping.")
    return value


def _cfg_from_dict(data: dict[str, Any]) -> OmakureConfig:
    """Build an *OmakureConfig* from a merged raw YAML dict."""
    cfg = OmakureConfig()

    if "workspace" in data:
        w = _section(data, "workspace")
        cfg.workspace = WorkspaceCfg(
            version=_positive_int(w.get("version", cfg.workspace.version), "workspace.version"),
        )

    if "ui" in data:
        u = _section(data, "ui")
        cfg.ui = UiCfg(tick_ms=_positive_int(u.get("tick_ms", cfg.ui.tick_ms), "ui.tick_ms"))

    if "search" in data:
        s = _section(data, "search")
        cfg.search = SearchCfg(
            enabled=bool(s.get("enabled", cfg.search.enabled)),
            busy_timeout_ms=_positive_int(
                s.get("busy_timeout_ms", cfg.search.busy_timeout_ms), "search.busy_timeout_ms"
            ),
        )

    if "runner" in data:
        r = _section(data, "runner")
        cfg.runner = RunnerCfg(
            bash=str(r.get("bash", cfg.runner.bash)),
            powershell=str(r.get("powershell", cfg.runner.powershell)),
            python=str(r.get("python", cfg.runner.python)),
        )

    if "history" in data:
        h = _section(data, "history")
        cfg.history = HistoryCfg(enabled=bool(h.get("enabled", cfg.history.enabled)))

    return cfg


def _apply_env_overrides(cfg: OmakureConfig) -> OmakureConfig:
    """Apply OMAKURE_* environment variable overrides (layer 2)."""
    if tick := os.environ.get("OMAKURE_TICK_MS"):
        cfg.ui.tick_ms = _positive_int(tick, "OMAKURE_TICK_MS")
    return cfg


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def default_scripts_dir() -> Path:
    """Return ``~/Documents/omakure-scripts``."""
    return Path.home() / "Documents" / _DEFAULT_WORKSPACE_NAME


def resolve_scripts_dir(override: Path | None = None) -> Path:
    """Return the workspace root.

    Order: explicit *override* (CLI flag), the first set variable in
    ``SCRIPTS_DIR_ENV_VARS``, then :func:`default_scripts_dir`.
    """
    if override is not None:
        return override.expanduser()
    for var in SCRIPTS_DIR_ENV_VARS:
        if value := os.environ.get(var):
            return Path(value).expanduser()
    return default_scripts_dir()


def load_config(
    workspace_root: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> OmakureConfig:
    """Load and return a merged *OmakureConfig*.

    Applies layers in order: global → workspace → env vars.
    CLI flag overrides must be applied by the caller after this function.

    Args:
        workspace_root: Directory holding *omakure.yaml*. Defaults to CWD.
        global_config_path: Override the global config path (for testing).

    Returns:
        Fully merged *OmakureConfig* with env var overrides applied.

    Raises:
        ConfigError: If a config file is not a mapping or holds invalid values.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    search_dir = workspace_root if workspace_root is not None else Path.cwd()

    merged: dict[str, Any] = {}

    # Layer 1: global config
    if global_path.exists():
        raw_global = _read_yaml(global_path)
        _warn_unknown_keys(raw_global, global_path)
        merged = _deep_merge(merged, raw_global)

    # Layer 2: workspace config
    workspace_cfg_path = search_dir / CONFIG_FILE_NAME
    if workspace_cfg_path.exists():
        raw_workspace = _read_yaml(workspace_cfg_path)
        _warn_unknown_keys(raw_workspace, workspace_cfg_path)
        merged = _deep_merge(merged, raw_workspace)

    cfg = _cfg_from_dict(merged)

    # Layer 3: env var overrides
    return _apply_env_overrides(cfg)
