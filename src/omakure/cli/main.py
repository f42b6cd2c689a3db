"""Omakure CLI entry point.

`omakure` with no command opens the interactive session; the subcommands
cover the same workspace non-interactively.
"""

from __future__ import annotations

import importlib.metadata
import os
import shutil
import sys
import warnings
from pathlib import Path
from typing import Annotated

import typer
from rich.panel import Panel

from omakure import __version__
from omakure.cli.common import AppState, configure_logging, console, get_state
from omakure.cli.env import env_app
from omakure.cli.errors import err_config, err_not_a_terminal, err_workspace_missing
from omakure.cli.history import history_cmd
from omakure.cli.run import run_cmd, scripts_cmd
from omakure.cli.search import search_cmd
from omakure.config import SCRIPTS_DIR_ENV_VARS, ConfigError, load_config, resolve_scripts_dir
from omakure.runner import SubprocessRunner
from omakure.workspace import Workspace


def _installed_version() -> str:
    try:
        return importlib.metadata.version("omakure")
    except importlib.metadata.PackageNotFoundError:
        return __version__


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"omakure {_installed_version()}")
        raise typer.Exit()


app = typer.Typer(
    name="omakure",
    help=(
        "Omakure: browse, fill in and run the scripts of a workspace.\n\n"
        "  omakure            Interactive session.\n"
        "  omakure run X      Run one script directly."
    ),
    add_completion=False,
    invoke_without_command=True,
)


@app.callback()
def main_callback(
    ctx: typer.Context,
    scripts_dir: Annotated[
        Path | None,
        typer.Option(
            "--scripts-dir",
            "-d",
            help="Workspace root. Defaults to $OMAKURE_SCRIPTS_DIR or ~/Documents/omakure-scripts.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log debug details to stderr."),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
) -> None:
    """Omakure: browse, fill in and run the scripts of a workspace."""
    configure_logging(verbose)
    workspace = Workspace(resolve_scripts_dir(scripts_dir))
    try:
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            cfg = load_config(workspace.root)
    except ConfigError as e:
        console.print(err_config(str(e)))
        raise typer.Exit(1) from e
    for w in caught:
        console.print(f"[yellow]Warning:[/] {w.message}")

    ctx.obj = AppState(workspace=workspace, cfg=cfg, scripts_dir_flag=scripts_dir, verbose=verbose)

    if ctx.invoked_subcommand is None:
        _interactive(ctx.obj)


def _interactive(state: AppState) -> None:
    from omakure.tui.app import run_tui

    if not state.workspace.root.is_dir():
        console.print(err_workspace_missing(state.workspace.root))
        raise typer.Exit(1)
    if not (sys.stdin.isatty() and sys.stdout.isatty()):
        console.print(err_not_a_terminal())
        raise typer.Exit(1)

    configure_logging(state.verbose, log_file=state.workspace.log_path)
    try:
        run_tui(state.workspace, state.cfg, SubprocessRunner(state.cfg.runner))
    except KeyboardInterrupt:
        pass


app.command("scripts")(scripts_cmd)
app.command(
    "run",
    context_settings={"allow_extra_args": True, "ignore_unknown_options": True},
)(run_cmd)
app.command("search")(search_cmd)
app.command("history")(history_cmd)
app.add_typer(env_app, name="env")


@app.command("config")
def config_cmd(ctx: typer.Context) -> None:
    """Show the resolved workspace paths and settings."""
    state = get_state(ctx)
    ws, cfg = state.workspace, state.cfg

    if state.scripts_dir_flag is not None:
        source = "--scripts-dir"
    else:
        source = next((f"${v}" for v in SCRIPTS_DIR_ENV_VARS if os.environ.get(v)), "default")

    def mark(path: Path) -> str:
        return "[green]✓[/]" if path.exists() else "[dim]✗ missing[/]"

    def program(name: str) -> str:
        found = shutil.which(name)
        return f"{name} [dim]({found})[/]" if found else f"{name} [yellow]✗ not on PATH[/]"

    lines = [
        f"Scripts dir:  [bold]{ws.root}[/] [dim]({source})[/] {mark(ws.root)}",
        f"Config file:  {ws.config_path} {mark(ws.config_path)}",
        f"Envs dir:     {ws.envs_dir} {mark(ws.envs_dir)}",
        f"History dir:  {ws.history_dir} {mark(ws.history_dir)}",
        f"Search index: {ws.search_db_path} {mark(ws.search_db_path)}",
        f"Log file:     {ws.log_path}",
    ]
    console.print(Panel("\n".join(lines), title="[bold]Workspace[/]", expand=False))

    settings = [
        f"ui.tick_ms:              {cfg.ui.tick_ms}",
        f"search.enabled:          {cfg.search.enabled}",
        f"search.busy_timeout_ms:  {cfg.search.busy_timeout_ms}",
        f"history.enabled:         {cfg.history.enabled}",
        f"runner.bash:             {program(cfg.runner.bash)}",
        f"runner.powershell:       {program(cfg.runner.powershell)}",
        f"runner.python:           {program(cfg.runner.python)}",
    ]
    console.print(Panel("\n".join(settings), title="[bold]Settings[/]", expand=False))


@app.command("version")
def version_cmd() -> None:
    """Show the installed omakure version."""
    typer.echo(f"omakure {_installed_version()}")


if __name__ == "__main__":
    app()
