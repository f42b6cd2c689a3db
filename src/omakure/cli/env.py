"""omakure env commands.

Commands:
  omakure env list          show environment files, marking the active one
  omakure env use <name>    make <name> the active environment
  omakure env clear         deactivate the current environment
  omakure env show <name>   print an environment with sensitive values masked
"""

from __future__ import annotations

from typing import Annotated

import typer
from rich.table import Table
from rich.text import Text

from omakure.cli.common import console, get_state
from omakure.cli.errors import err_environment
from omakure.environments import (
    EnvironmentFileError,
    list_env_files,
    load_active_env_name,
    load_env_preview,
    set_active_env,
)

env_app = typer.Typer(
    name="env",
    help="Manage environments (default form values).",
    add_completion=False,
)


@env_app.command("list")
def env_list_cmd(ctx: typer.Context) -> None:
    """List environment files and the active one."""
    envs_dir = get_state(ctx).workspace.envs_dir
    try:
        files = list_env_files(envs_dir)
        active = load_active_env_name(envs_dir)
    except EnvironmentFileError as e:
        console.print(err_environment(str(e)))
        raise typer.Exit(1) from e

    if not files:
        console.print(
            f"[yellow]No environments found in {envs_dir}.[/]\n"
            "  Create one as KEY=VALUE lines, e.g.  .omaken/envs/dev"
        )
        raise typer.Exit(0)

    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column("Active", width=1)
    table.add_column("Name")
    for env_file in files:
        if env_file.name == active:
            table.add_row("[green]*[/]", Text(env_file.name, style="bold green"))
        else:
            table.add_row("", Text(env_file.name))
    console.print(table)


@env_app.command("use")
def env_use_cmd(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Environment file name.")],
) -> None:
    """Activate environment NAME."""
    envs_dir = get_state(ctx).workspace.envs_dir
    try:
        set_active_env(envs_dir, name)
    except EnvironmentFileError as e:
        console.print(err_environment(str(e)))
        raise typer.Exit(1) from e
    console.print(f"[green]✓[/] Active environment: [bold]{name}[/]")


@env_app.command("clear")
def env_clear_cmd(ctx: typer.Context) -> None:
    """Deactivate the active environment."""
    envs_dir = get_state(ctx).workspace.envs_dir
    try:
        set_active_env(envs_dir, None)
    except EnvironmentFileError as e:
        console.print(err_environment(str(e)))
        raise typer.Exit(1) from e
    console.print("[green]✓[/] No active environment.")


@env_app.command("show")
def env_show_cmd(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Environment file name.")],
) -> None:
    """Print environment NAME with secrets masked."""
    envs_dir = get_state(ctx).workspace.envs_dir
    path = envs_dir / name
    if "/" in name or "\\" in name or not path.is_file():
        console.print(err_environment(f"Environment file not found: {path}"))
        raise typer.Exit(1)
    try:
        entries = load_env_preview(path)
    except EnvironmentFileError as e:
        console.print(err_environment(str(e)))
        raise typer.Exit(1) from e

    if not entries:
        console.print("[dim]No entries found.[/]")
        return
    for key, value in entries:
        console.print(Text.assemble((key, "bold yellow"), (" = ", "dim"), value))
