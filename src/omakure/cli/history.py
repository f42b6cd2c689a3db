"""omakure history: recent runs, or the output of one run.

Usage:
  omakure history
  omakure history --limit 5
  omakure history --show 1      # newest run
"""

from __future__ import annotations

from typing import Annotated

import typer
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from omakure.cli.common import console, get_state
from omakure.cli.errors import err_history_index
from omakure.history import HistoryEntry, format_output, format_timestamp, load_entries


def history_cmd(
    ctx: typer.Context,
    limit: Annotated[
        int,
        typer.Option("--limit", "-n", min=1, help="Show at most N runs."),
    ] = 20,
    show: Annotated[
        int | None,
        typer.Option("--show", min=1, help="Print the output of run #INDEX (1 = newest)."),
    ] = None,
) -> None:
    """Show recorded script runs, newest first."""
    entries = load_entries(get_state(ctx).workspace)
    if not entries:
        console.print("[yellow]No runs recorded yet.[/]\n  Run a script:  omakure run <script>")
        raise typer.Exit(0)

    if show is not None:
        if show > len(entries):
            console.print(err_history_index(show, len(entries)))
            raise typer.Exit(1)
        _show_entry(show, entries[show - 1])
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("#", justify="right", style="dim")
    table.add_column("When (UTC)")
    table.add_column("Script", style="bold")
    table.add_column("Args")
    table.add_column("Result")
    for i, entry in enumerate(entries[:limit], start=1):
        table.add_row(
            str(i),
            format_timestamp(entry.timestamp),
            Text(entry.script),
            Text(" ".join(entry.args)),
            _result(entry),
        )
    console.print(table)


def _result(entry: HistoryEntry) -> Text:
    if entry.error is not None:
        return Text("launch error", style="red")
    if entry.success:
        return Text("✓ ok", style="green")
    return Text(f"✗ exit {entry.exit_code}", style="red")


def _show_entry(index: int, entry: HistoryEntry) -> None:
    title = Text.assemble(f"#{index} ", (entry.script, "bold"), " ", " ".join(entry.args))
    header = Text.assemble(format_timestamp(entry.timestamp), "  ", _result(entry))
    output = format_output(entry) or "(no output)"
    console.print(
        Panel(
            Text.assemble(header, "\n\n", output),
            title=title,
            border_style="green" if entry.success else "red",
            expand=False,
        )
    )
