"""omakure search: query the script index from the command line.

Usage:
  omakure search                   # every indexed script
  omakure search azure list        # scripts matching both words
  omakure search --rebuild deploy  # re-index first
"""

from __future__ import annotations

from typing import Annotated

import typer
from rich.table import Table
from rich.text import Text

from omakure.cli.common import console, get_state
from omakure.cli.errors import err_search_disabled, err_search_failed, err_workspace_missing
from omakure.search.index import SearchIndex, SearchIndexError


def search_cmd(
    ctx: typer.Context,
    query: Annotated[
        list[str] | None,
        typer.Argument(help="Words that must all appear in a script's metadata."),
    ] = None,
    rebuild: Annotated[
        bool,
        typer.Option("--rebuild", help="Re-index the workspace before searching."),
    ] = False,
) -> None:
    """Search scripts by path, name, description, tags and fields."""
    state = get_state(ctx)
    workspace = state.workspace
    if not state.cfg.search.enabled:
        console.print(err_search_disabled(workspace.config_path))
        raise typer.Exit(1)
    if not workspace.root.is_dir():
        console.print(err_workspace_missing(workspace.root))
        raise typer.Exit(1)

    index = SearchIndex(workspace.search_db_path, state.cfg.search.busy_timeout_ms)
    try:
        if rebuild or not workspace.search_db_path.exists():
            with console.status("Indexing scripts…"):
                count = index.rebuild(workspace.root)
            console.print(f"[dim]Indexed {count} scripts.[/]")
        results = index.query(" ".join(query or []))
    except SearchIndexError as e:
        console.print(err_search_failed(str(e)))
        raise typer.Exit(1) from e

    if not results:
        console.print("[yellow]No matching scripts.[/]")
        raise typer.Exit(0)

    table = Table(show_header=True, header_style="bold")
    table.add_column("Name", style="bold")
    table.add_column("Path")
    table.add_column("Tags", style="cyan")
    table.add_column("Notes")
    for r in results:
        notes = Text(r.schema_error, style="red") if r.schema_error else Text(r.description or "", style="dim")
        table.add_row(Text(r.display_name), Text(r.script_path), Text(", ".join(r.tags)), notes)
    console.print(table)
