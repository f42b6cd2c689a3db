"""omakure scripts / omakure run: non-interactive catalog listing and execution.

Usage:
  omakure scripts
  omakure run azure/rg-list
  omakure run cleanup.sh --force true
"""

from __future__ import annotations

import logging
from typing import Annotated

import typer

from omakure.catalog import Catalog
from omakure.cli.common import AppState, console, get_state, resolve_script
from omakure.cli.errors import err_launch_failed, err_script_not_found, err_workspace_missing
from omakure.history import HistoryEntry, error_entry, record_entry, success_entry
from omakure.runner import ScriptLaunchError, SubprocessRunner

logger = logging.getLogger(__name__)


def scripts_cmd(ctx: typer.Context) -> None:
    """List every script in the workspace, one relative path per line."""
    state = get_state(ctx)
    root = state.workspace.root
    if not root.is_dir():
        console.print(err_workspace_missing(root))
        raise typer.Exit(1)

    scripts = Catalog(root).list_scripts_recursive()
    if not scripts:
        console.print(f"[yellow]No scripts found under {root}.[/]")
        raise typer.Exit(0)

    for script in sorted(state.workspace.relative(s).as_posix() for s in scripts):
        typer.echo(script)


def run_cmd(
    ctx: typer.Context,
    script: Annotated[str, typer.Argument(help="Script path, relative to the scripts dir; extension optional.")],
    args: Annotated[
        list[str] | None,
        typer.Argument(help="Arguments passed to the script unchanged."),
    ] = None,
) -> None:
    """Run one script, print its output, and record it in history."""
    state = get_state(ctx)
    workspace = state.workspace
    if not workspace.root.is_dir():
        console.print(err_workspace_missing(workspace.root))
        raise typer.Exit(1)

    path = resolve_script(workspace.root, script)
    if path is None:
        console.print(err_script_not_found(script, workspace.root))
        raise typer.Exit(1)

    args = list(args or [])
    runner = SubprocessRunner(state.cfg.runner)
    try:
        output = runner.run(path, args)
    except ScriptLaunchError as e:
        _record(state, error_entry(workspace, path, args, str(e)))
        console.print(err_launch_failed(workspace.relative(path).as_posix(), str(e)))
        raise typer.Exit(1) from e

    _record(state, success_entry(workspace, path, args, output))
    if output.stdout:
        typer.echo(output.stdout, nl=False)
    if output.stderr:
        typer.echo(output.stderr, nl=False, err=True)

    if output.exit_code is None:
        raise typer.Exit(1)
    raise typer.Exit(output.exit_code)


def _record(state: AppState, entry: HistoryEntry) -> None:
    if not state.cfg.history.enabled:
        return
    try:
        record_entry(state.workspace, entry)
    except OSError as e:
        logger.warning("Failed to record history for %s: %s", entry.script, e)
