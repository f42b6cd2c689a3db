"""Rich renderables for every session screen.

Display only: nothing here changes session state. User-provided text (file
names, schema strings, script output) always goes through Text so it is never
parsed as markup.
"""

from __future__ import annotations

from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from omakure.catalog import EntryKind
from omakure.history import HistoryEntry, format_output, format_timestamp
from omakure.schema.models import Schema
from omakure.search.index import StatusKind
from omakure.session.state import HistoryFocus, Screen, Session

DEFAULT_HEIGHT = 20

_HELP = {
    Screen.SCRIPT_SELECT: "enter open · ←/backspace up · / search · e envs · h history · r refresh · i status · q quit",
    Screen.SEARCH: "type to filter · ↑/↓ move · enter open · esc back",
    Screen.ENVIRONMENTS: "↑/↓ move · enter activate · d deactivate · pgup/pgdn scroll · esc back",
    Screen.FIELD_INPUT: "tab/↓ next · shift-tab/↑ prev · enter run · esc back",
    Screen.HISTORY: "↑/↓ move · enter output · pgup/pgdn scroll · esc back",
    Screen.RUNNING: "running…",
    Screen.RUN_RESULT: "↑/↓ scroll · h history · enter/esc back",
    Screen.ERROR: "enter back · q quit",
}


def render(session: Session, height: int = DEFAULT_HEIGHT) -> RenderableType:
    """Return the full frame for the session's current screen."""
    body = _SCREENS[session.screen](session, height)
    return Group(_header(session), body, Text(_HELP[session.screen], style="dim"))


# ---------------------------------------------------------------------------
# Shared pieces
# ---------------------------------------------------------------------------


def _header(session: Session) -> Text:
    header = Text()
    header.append("omakure ", style="bold magenta")
    location = "/" if session.at_root() else "/" + session.display_path(session.current_dir)
    header.append(location, style="bold")
    env = session.active_env_name()
    header.append("  env: ", style="dim")
    header.append(env or "none", style="green" if env else "dim")
    if session.search_index is not None:
        header.append("  index: ", style="dim")
        status = session.search_status
        style = {StatusKind.READY: "green", StatusKind.ERROR: "red"}.get(status.kind, "yellow")
        header.append(status.describe(), style=style)
    return header


def _window(length: int, selected: int, height: int) -> range:
    """Indices of a *height*-row window that keeps *selected* visible."""
    if length <= height:
        return range(length)
    start = max(0, min(selected - height // 2, length - height))
    return range(start, start + height)


def _list_table(rows: list[Text], selected: int, height: int) -> Table:
    table = Table.grid(padding=(0, 1))
    table.add_column(width=1)
    table.add_column()
    for i in _window(len(rows), selected, height):
        marker = Text("›", style="bold cyan") if i == selected else Text(" ")
        row = rows[i].copy()
        if i == selected:
            row.stylize("reverse")
        table.add_row(marker, row)
    return table


def _scrolled(text: str, offset: int, height: int) -> Text:
    lines = text.splitlines() or [""]
    return Text("\n".join(lines[offset : offset + height]))


def _schema_panel(schema: Schema | None, error: str | None) -> Panel:
    if error is not None:
        return Panel(Text(error, style="red"), title="Schema", border_style="red")
    if schema is None:
        return Panel(Text("Select a script to preview its schema.", style="dim"), title="Schema")

    parts: list[RenderableType] = [Text(schema.name, style="bold")]
    if schema.description:
        parts.append(Text(schema.description))
    if schema.tags:
        parts.append(Text("tags: " + ", ".join(schema.tags), style="cyan"))

    if schema.fields:
        fields = Table(show_header=True, box=None, padding=(0, 1))
        fields.add_column("Field", style="bold")
        fields.add_column("Type", style="dim")
        fields.add_column("Arg", style="dim")
        fields.add_column("")
        for f in schema.sorted_fields():
            notes = []
            if f.required:
                notes.append("required")
            if f.default is not None:
                notes.append(f"default={f.default}")
            if f.choices:
                notes.append("choices=" + "|".join(f.choices))
            fields.add_row(Text(f.label), Text(f.kind), Text(f.arg_name), Text(" ".join(notes)))
        parts.append(fields)
    else:
        parts.append(Text("No inputs; runs immediately.", style="dim"))

    if schema.outputs:
        parts.append(
            Text("outputs: " + ", ".join(f"{o.name} ({o.kind})" for o in schema.outputs), style="dim")
        )
    if schema.queue is not None:
        queue_parts = []
        if schema.queue.matrix:
            queue_parts.append("matrix " + " × ".join(m.name for m in schema.queue.matrix))
        if schema.queue.cases:
            queue_parts.append(f"{len(schema.queue.cases)} cases")
        parts.append(Text("queue: " + (", ".join(queue_parts) or "empty"), style="dim"))

    return Panel(Group(*parts), title="Schema")


def _status_panel(session: Session) -> Panel | None:
    if session.status_loading:
        return Panel(Text("Loading…", style="dim"), title="Status")
    if session.status_error is not None:
        return Panel(Text(session.status_error, style="red"), title="Status", border_style="red")
    panel = session.status_panel
    if panel is None:
        return None
    return Panel(Text("\n".join(panel.lines)), title=Text(panel.title))


def _two_columns(left: RenderableType, right: RenderableType) -> Table:
    grid = Table.grid(expand=True, padding=(0, 1))
    grid.add_column(ratio=2)
    grid.add_column(ratio=3)
    grid.add_row(left, right)
    return grid


def _entry_label(entry: HistoryEntry) -> Text:
    if entry.error is not None:
        status = Text("launch error", style="red")
    elif entry.success:
        status = Text("ok", style="green")
    else:
        status = Text(f"exit {entry.exit_code}", style="red")
    return Text.assemble((format_timestamp(entry.timestamp), "dim"), "  ", entry.script, "  ", status)


# ---------------------------------------------------------------------------
# Screens
# ---------------------------------------------------------------------------


def _script_select(session: Session, height: int) -> RenderableType:
    rows = [
        Text(e.name + "/", style="bold blue") if e.kind is EntryKind.DIRECTORY else Text(e.name)
        for e in session.entries
    ]
    listing: RenderableType = (
        _list_table(rows, session.selection, height) if rows else Text("No scripts here.", style="dim")
    )
    right: list[RenderableType] = [_schema_panel(session.schema_preview, session.schema_preview_error)]
    status = _status_panel(session)
    if status is not None:
        right.append(status)
    return _two_columns(Panel(listing, title="Scripts"), Group(*right))


def _search(session: Session, height: int) -> RenderableType:
    query = Panel(Text(session.search_query + "▏"), title="Search")
    rows = [Text.assemble((r.display_name, "bold"), "  ", (r.script_path, "dim")) for r in session.search_results]
    results: RenderableType = (
        _list_table(rows, session.search_selection, height) if rows else Text("No matches.", style="dim")
    )

    details: list[RenderableType] = []
    if session.search_error is not None:
        details.append(Text(session.search_error, style="red"))
    d = session.search_details
    if d is not None:
        if d.schema_error:
            details.append(Text(d.schema_error, style="red"))
        details.append(Text(d.display_name, style="bold"))
        if d.description:
            details.append(Text(d.description))
        if d.tags:
            details.append(Text("tags: " + ", ".join(d.tags), style="cyan"))
        for f in d.fields:
            line = Text.assemble((f.name, "bold"), " ", (f.kind, "dim"))
            if f.prompt:
                line.append(f"  {f.prompt}")
            if f.required:
                line.append("  required", style="yellow")
            details.append(line)
    body = Group(*details) if details else Text("")
    return Group(query, _two_columns(Panel(results, title="Results"), Panel(body, title="Details")))


def _environments(session: Session, height: int) -> RenderableType:
    active = session.active_env_name()
    rows = [
        Text(e.name + ("  (active)" if e.name == active else ""), style="green" if e.name == active else "")
        for e in session.env_entries
    ]
    listing: RenderableType = (
        _list_table(rows, session.env_selection, height)
        if rows
        else Text(f"No environment files in {session.display_path(session.workspace.envs_dir)}.", style="dim")
    )
    if session.env_error is not None:
        listing = Group(Text(session.env_error, style="red"), listing)

    if session.env_preview_error is not None:
        preview: RenderableType = Text(session.env_preview_error, style="red")
    elif session.env_preview:
        lines = Text()
        visible = session.env_preview[session.env_preview_scroll : session.env_preview_scroll + height]
        for i, (key, value) in enumerate(visible):
            if i:
                lines.append("\n")
            lines.append(key, style="bold yellow")
            lines.append(" = ", style="dim")
            lines.append(value)
        preview = lines
    else:
        preview = Text("No entries found.", style="dim")
    return _two_columns(Panel(listing, title="Environments"), Panel(preview, title="Preview"))


def _field_input(session: Session, height: int) -> RenderableType:
    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column(width=1)
    table.add_column(style="bold")
    table.add_column()
    table.add_column(style="dim")
    for i, (f, value) in enumerate(zip(session.fields, session.field_inputs)):
        current = i == session.field_index
        shown = Text(value + ("▏" if current else ""), style="reverse" if current else "")
        hint = f.kind + (" required" if f.required else "")
        if f.choices:
            hint += " [" + "|".join(f.choices) + "]"
        elif f.default is not None and not value:
            hint += f" default={f.default}"
        table.add_row("›" if current else " ", Text(f.label), shown, Text(hint))

    title = session.schema.name if session.schema is not None else "Inputs"
    parts: list[RenderableType] = [table]
    if session.error is not None:
        parts.append(Text(session.error, style="bold red"))
    return Panel(Group(*parts), title=Text(title))


def _history(session: Session, height: int) -> RenderableType:
    if not session.history:
        return Panel(Text("No runs recorded yet.", style="dim"), title="History")
    rows = [_entry_label(e) for e in session.history]
    listing = Panel(_list_table(rows, session.history_selection, height), title="History")
    entry = session.current_history_entry()
    output = format_output(entry) if entry is not None else ""
    border = "cyan" if session.history_focus is HistoryFocus.OUTPUT else "white"
    detail = Panel(
        _scrolled(output or "(no output)", session.run_output_scroll, height),
        title=Text(" ".join([entry.script, *entry.args]) if entry else "Output"),
        border_style=border,
    )
    return _two_columns(listing, detail)


def _running(session: Session, height: int) -> RenderableType:
    request = session.pending_run
    name = session.display_path(request.script) if request is not None else "script"
    return Panel(Text(f"Running {name}…", style="bold yellow"), title="Running")


def _run_result(session: Session, height: int) -> RenderableType:
    entry = session.current_history_entry()
    if entry is None:
        return Panel(Text("Nothing has run yet.", style="dim"), title="Result")
    output = format_output(entry) or "(no output)"
    border = "green" if entry.success else "red"
    return Panel(
        Group(_entry_label(entry), Text(""), _scrolled(output, session.run_output_scroll, height)),
        title=Text(" ".join([entry.script, *entry.args])),
        border_style=border,
    )


def _error(session: Session, height: int) -> RenderableType:
    return Panel(Text(session.error or "Unknown error", style="red"), title="Error", border_style="red")


_SCREENS = {
    Screen.SCRIPT_SELECT: _script_select,
    Screen.SEARCH: _search,
    Screen.ENVIRONMENTS: _environments,
    Screen.FIELD_INPUT: _field_input,
    Screen.HISTORY: _history,
    Screen.RUNNING: _running,
    Screen.RUN_RESULT: _run_result,
    Screen.ERROR: _error,
}
