"""Omakure rich error messages.

Every error shown to the user contains:
  1. What went wrong
  2. The command or change that fixes it

Usage:
    from omakure.cli.errors import err_script_not_found
    console.print(err_script_not_found("deploy", root))
    raise typer.Exit(1)
"""

from __future__ import annotations

from pathlib import Path

from rich.markup import escape


def err_workspace_missing(root: Path) -> str:
    """Scripts directory does not exist."""
    return (
        f"[red]Error:[/] No scripts directory at '{escape(str(root))}'.\n"
        "  Create it, pass --scripts-dir, or set:  export OMAKURE_SCRIPTS_DIR=<path>"
    )


def err_script_not_found(name: str, root: Path) -> str:
    """SCRIPT argument of `omakure run` does not resolve to a script."""
    return (
        f"[red]Error:[/] Script '{escape(name)}' not found under '{escape(str(root))}'.\n"
        "  Run:  omakure scripts  to list available scripts."
    )


def err_launch_failed(script: str, message: str) -> str:
    """The interpreter for a script could not be started."""
    return (
        f"[red]Error:[/] Could not launch '{escape(script)}': {escape(message)}\n"
        "  Install the interpreter or set it in omakure.yaml under runner:\n"
        "  Run:  omakure config  to see the configured programs."
    )


def err_search_failed(message: str) -> str:
    """Search store could not be opened, queried or rebuilt."""
    return (
        f"[red]Error:[/] Search failed: {escape(message)}\n"
        "  Run:  omakure search --rebuild"
    )


def err_search_disabled(config_path: Path) -> str:
    """search.enabled is false."""
    return (
        "[yellow]Search is disabled.[/]\n"
        f"  Set  search: {{enabled: true}}  in {escape(str(config_path))}"
    )


def err_history_index(index: int, count: int) -> str:
    """--show INDEX outside the recorded runs."""
    return (
        f"[red]Error:[/] No run #{index} (history holds {count}).\n"
        "  Run:  omakure history  to see run numbers."
    )


def err_environment(message: str) -> str:
    """Environment file or active pointer problem."""
    return (
        f"[red]Error:[/] {escape(message)}\n"
        "  Run:  omakure env list  to see available environments."
    )


def err_config(message: str) -> str:
    """Configuration file is malformed."""
    return (
        f"[red]Error:[/] Invalid configuration: {escape(message)}\n"
        "  Fix the file or remove the offending key."
    )


def err_not_a_terminal() -> str:
    """Interactive mode started without a TTY."""
    return (
        "[red]Error:[/] The interactive session needs a terminal.\n"
        "  Run a script directly:  omakure run <script> [ARGS]..."
    )
