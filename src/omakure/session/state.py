"""Interactive session state.

Session owns everything the terminal adapter renders and every transition a
key press can cause. Nothing here draws or reads the terminal, and nothing
blocks except run_pending(), which calls the runner synchronously.

Background work:
  - the search index rebuild, whose status is polled in tick()
  - the status panel load for the current directory, restarted on every
    navigation and delivered through a OneShot polled in tick()
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from omakure.catalog import Catalog, EntryKind, ScriptEntry
from omakure.db.models import SearchDetails, SearchResult
from omakure.environments import (
    EnvFile,
    EnvironmentConfig,
    EnvironmentFileError,
    list_env_files,
    load_env_preview,
    load_environment_config,
    set_active_env,
)
from omakure.history import (
    HistoryEntry,
    error_entry,
    format_output,
    load_entries,
    record_entry,
    success_entry,
)
from omakure.jobs import PENDING, ChannelClosed, OneShot, spawn_one_shot
from omakure.runner import ScriptLaunchError, ScriptRunner
from omakure.schema.models import Field, Schema
from omakure.schema.parser import FieldValidationError, SchemaError, build_args
from omakure.search.index import SearchIndex, SearchIndexError, SearchStatus
from omakure.status_panel import StatusPanel, StatusPanelError, load_status_panel
from omakure.workspace import Workspace

logger = logging.getLogger(__name__)

PAGE_SIZE = 10


class Screen(Enum):
    SCRIPT_SELECT = "script_select"
    SEARCH = "search"
    ENVIRONMENTS = "environments"
    FIELD_INPUT = "field_input"
    HISTORY = "history"
    RUNNING = "running"
    RUN_RESULT = "run_result"
    ERROR = "error"


class HistoryFocus(Enum):
    LIST = "list"
    OUTPUT = "output"


@dataclass(frozen=True)
class RunRequest:
    script: Path
    args: list[str]


# (panel, error message) as produced on the loader thread
StatusLoad = tuple[StatusPanel | None, str | None]


def _load_status(loader: Callable[[Path], StatusPanel | None], directory: Path) -> StatusLoad:
    try:
        return loader(directory), None
    except StatusPanelError as e:
        return None, str(e)


def _clamp(index: int, length: int) -> int:
    if length <= 0:
        return 0
    return max(0, min(index, length - 1))


class Session:
    """State of one interactive session over a workspace.

    Args:
        workspace: Workspace whose root bounds navigation.
        catalog: Script catalog; defaults to one rooted at the workspace.
        search_index: Search store, or None when search is disabled.
        history_enabled: When False runs are not written to disk.
        status_loader: Loads the status panel of a directory on a worker
            thread. Injected by tests.
    """

    def __init__(
        self,
        workspace: Workspace,
        *,
        catalog: Catalog | None = None,
        search_index: SearchIndex | None = None,
        history_enabled: bool = True,
        status_loader: Callable[[Path], StatusPanel | None] = load_status_panel,
    ) -> None:
        self.workspace = workspace
        self.catalog = catalog or Catalog(workspace.root)
        self.search_index = search_index
        self.history_enabled = history_enabled
        self._status_loader = status_loader

        self.screen = Screen.SCRIPT_SELECT
        self.should_quit = False
        self.error: str | None = None

        # Catalog listing
        self.current_dir = workspace.root
        self.entries: list[ScriptEntry] = []
        self.selection = 0

        # Schema cache and preview of the highlighted script
        self._schema_cache: tuple[Path, Schema] | None = None
        self._preview_script: Path | None = None
        self.schema_preview: Schema | None = None
        self.schema_preview_error: str | None = None

        # Form
        self.selected_script: Path | None = None
        self.schema: Schema | None = None
        self.fields: list[Field] = []
        self.field_inputs: list[str] = []
        self.field_index = 0
        self.pending_run: RunRequest | None = None

        # Environments
        self.env_config: EnvironmentConfig | None = None
        self.env_error: str | None = None
        self.env_entries: list[EnvFile] = []
        self.env_selection = 0
        self.env_preview: list[tuple[str, str]] = []
        self.env_preview_error: str | None = None
        self.env_preview_scroll = 0
        self._env_return: Screen | None = None

        # Search
        self.search_status = SearchStatus.idle()
        self.search_query = ""
        self.search_results: list[SearchResult] = []
        self.search_selection = 0
        self.search_details: SearchDetails | None = None
        self.search_error: str | None = None

        # History and run output
        self.history: list[HistoryEntry] = []
        self.history_selection = 0
        self.history_focus = HistoryFocus.LIST
        self.run_output_scroll = 0

        # Status panel
        self.status_panel: StatusPanel | None = None
        self.status_error: str | None = None
        self.status_loading = False
        self._status_channel: OneShot[StatusLoad] | None = None

    def start(self) -> None:
        """Load the root listing, history and environments; start background jobs."""
        self.history = load_entries(self.workspace)
        self._load_env_config()
        if self.search_index is not None:
            self.search_index.start_background_rebuild(self.workspace.root)
        self.refresh_entries()

    def tick(self) -> None:
        """Poll background jobs. Called once per loop iteration; never blocks."""
        self.poll_status_load()
        self.refresh_search_status()

    # ------------------------------------------------------------------
    # Catalog navigation
    # ------------------------------------------------------------------

    def selected_entry(self) -> ScriptEntry | None:
        if 0 <= self.selection < len(self.entries):
            return self.entries[self.selection]
        return None

    def at_root(self) -> bool:
        return self.current_dir == self.workspace.root

    def move_selection(self, delta: int) -> None:
        if not self.entries:
            return
        self.selection = _clamp(self.selection + delta, len(self.entries))
        self.update_schema_preview()

    def enter_selected(self) -> None:
        entry = self.selected_entry()
        if entry is None:
            return
        if entry.kind is EntryKind.DIRECTORY:
            self.current_dir = entry.path
            self.refresh_entries()
        else:
            self.load_schema(entry.path)

    def navigate_up(self) -> None:
        if self.at_root():
            return
        self.current_dir = self.current_dir.parent
        self.refresh_entries()

    def refresh_entries(self) -> None:
        try:
            self.entries = self.catalog.list_entries(self.current_dir)
        except OSError as e:
            self.error = f"Failed to list {self.display_path(self.current_dir)}: {e}"
            self.screen = Screen.ERROR
            return
        self.selection = 0
        self.error = None
        self.start_status_load()
        self.update_schema_preview()

    def refresh_status(self) -> None:
        self.start_status_load()
        self._load_env_config()
        self._preview_script = None
        self.update_schema_preview()

    def display_path(self, path: Path) -> str:
        return self.workspace.relative(path).as_posix()

    def update_schema_preview(self) -> None:
        entry = self.selected_entry()
        if entry is None or entry.kind is not EntryKind.SCRIPT:
            self.schema_preview = None
            self.schema_preview_error = None
            self._preview_script = None
            return
        if self._preview_script == entry.path:
            return

        self._preview_script = entry.path
        try:
            schema = self.catalog.read_schema(entry.path)
        except SchemaError as e:
            self.schema_preview = None
            self.schema_preview_error = str(e)
            return
        self.schema_preview = schema
        self.schema_preview_error = None
        self._schema_cache = (entry.path, schema)

    # ------------------------------------------------------------------
    # Status panel
    # ------------------------------------------------------------------

    def start_status_load(self) -> None:
        """Load the current directory's panel in the background.

        Replacing the channel drops any load still in flight, so a result
        for a directory the user already left is never shown.
        """
        directory = self.current_dir
        loader = self._status_loader
        self.status_loading = True
        self.status_panel = None
        self.status_error = None
        self._status_channel = spawn_one_shot(
            lambda: _load_status(loader, directory), name="omakure-status"
        )

    def poll_status_load(self) -> None:
        if self._status_channel is None:
            return
        try:
            result = self._status_channel.try_receive()
        except ChannelClosed:
            self.status_loading = False
            self.status_error = "Status panel load failed"
            self._status_channel = None
            return
        if result is PENDING:
            return
        self.status_panel, self.status_error = result
        self.status_loading = False
        self._status_channel = None

    # ------------------------------------------------------------------
    # Schema and form
    # ------------------------------------------------------------------

    def load_schema(self, script: Path) -> None:
        """Open *script*: queue a run when it has no fields, else show its form."""
        if self._schema_cache is not None and self._schema_cache[0] == script:
            schema = self._schema_cache[1]
        else:
            try:
                schema = self.catalog.read_schema(script)
            except SchemaError as e:
                self.error = str(e)
                self.screen = Screen.ERROR
                return
            self._schema_cache = (script, schema)

        self._load_env_config()
        self.selected_script = script
        self.schema = schema
        self.fields = schema.sorted_fields()
        self.field_index = 0
        self.field_inputs = self._build_field_inputs()
        self.error = None

        if not self.fields:
            self.pending_run = RunRequest(script, [])
        else:
            self.screen = Screen.FIELD_INPUT

    def _build_field_inputs(self) -> list[str]:
        if self.env_config is None:
            return ["" for _ in self.fields]
        return [self.env_config.default_for(f.name) for f in self.fields]

    def move_field_selection(self, delta: int) -> None:
        if not self.fields:
            return
        self.field_index = (self.field_index + delta) % len(self.fields)
        self.error = None

    def append_field_char(self, ch: str) -> None:
        if 0 <= self.field_index < len(self.field_inputs):
            self.field_inputs[self.field_index] += ch
            self.error = None

    def pop_field_char(self) -> None:
        if 0 <= self.field_index < len(self.field_inputs):
            self.field_inputs[self.field_index] = self.field_inputs[self.field_index][:-1]
            self.error = None

    def submit_form(self) -> None:
        """Validate every field; queue the run or point at the first failure."""
        if self.selected_script is None:
            return
        try:
            args = build_args(self.fields, self.field_inputs)
        except FieldValidationError as e:
            self.error = str(e)
            if e.field_index is not None:
                self.field_index = e.field_index
            return
        self.error = None
        self.pending_run = RunRequest(self.selected_script, args)

    def back_to_script_select(self) -> None:
        self.screen = Screen.SCRIPT_SELECT
        self.schema = None
        self.fields = []
        self.field_inputs = []
        self.field_index = 0
        self.error = None
        self.selected_script = None
        self.pending_run = None

    # ------------------------------------------------------------------
    # Running
    # ------------------------------------------------------------------

    def run_pending(self, runner: ScriptRunner) -> HistoryEntry | None:
        """Run the queued request, record it, and show the result.

        Returns the new history entry, or None when nothing was queued.
        """
        request = self.pending_run
        if request is None:
            return None
        self.pending_run = None
        self.screen = Screen.RUNNING

        try:
            output = runner.run(request.script, request.args)
        except ScriptLaunchError as e:
            entry = error_entry(self.workspace, request.script, request.args, str(e))
        else:
            entry = success_entry(self.workspace, request.script, request.args, output)

        if self.history_enabled:
            try:
                record_entry(self.workspace, entry)
            except OSError as e:
                logger.warning("Failed to record history for %s: %s", entry.script, e)

        self.add_history_entry(entry)
        self.back_to_script_select()
        self.run_output_scroll = 0
        self.screen = Screen.RUN_RESULT
        return entry

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def enter_history(self) -> None:
        self.screen = Screen.HISTORY
        self.history_focus = HistoryFocus.LIST
        self.run_output_scroll = 0

    def move_history_selection(self, delta: int) -> None:
        if not self.history:
            return
        self.history_selection = _clamp(self.history_selection + delta, len(self.history))
        self.run_output_scroll = 0

    def add_history_entry(self, entry: HistoryEntry) -> None:
        self.history.insert(0, entry)
        self.history_selection = 0

    def current_history_entry(self) -> HistoryEntry | None:
        if 0 <= self.history_selection < len(self.history):
            return self.history[self.history_selection]
        return None

    def scroll_run_output(self, delta: int) -> None:
        entry = self.current_history_entry()
        line_count = len(format_output(entry).splitlines()) if entry else 0
        self.run_output_scroll = _clamp(self.run_output_scroll + delta, line_count)

    def scroll_run_output_to_end(self) -> None:
        self.scroll_run_output(1 << 30)

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def enter_search(self) -> None:
        if self.search_index is not None:
            self.search_status = self.search_index.status()
        self.screen = Screen.SEARCH
        self.refresh_search_results()

    def refresh_search_status(self) -> None:
        """Re-query only when the index status changed while searching."""
        if self.search_index is None:
            return
        status = self.search_index.status()
        if status != self.search_status:
            self.search_status = status
            if self.screen is Screen.SEARCH:
                self.refresh_search_results()

    def append_search_char(self, ch: str) -> None:
        self.search_query += ch
        self.refresh_search_results()

    def pop_search_char(self) -> None:
        self.search_query = self.search_query[:-1]
        self.refresh_search_results()

    def move_search_selection(self, delta: int) -> None:
        if not self.search_results:
            return
        self.search_selection = _clamp(self.search_selection + delta, len(self.search_results))
        self.update_search_details()

    def open_selected_search(self) -> None:
        if not 0 <= self.search_selection < len(self.search_results):
            return
        result = self.search_results[self.search_selection]
        self.load_schema(self.workspace.root / result.script_path)

    def refresh_search_results(self) -> None:
        if self.search_index is None:
            self.search_error = "Search is disabled"
            return
        try:
            self.search_results = self.search_index.query(self.search_query)
        except SearchIndexError as e:
            # keep showing the previous results
            self.search_error = str(e)
            return
        self.search_error = None
        self.search_selection = 0
        self.update_search_details()

    def update_search_details(self) -> None:
        self.search_details = None
        if self.search_index is None:
            return
        if not 0 <= self.search_selection < len(self.search_results):
            return
        result = self.search_results[self.search_selection]
        try:
            self.search_details = self.search_index.load_details(result.script_path)
        except SearchIndexError as e:
            self.search_error = str(e)

    # ------------------------------------------------------------------
    # Environments
    # ------------------------------------------------------------------

    def enter_envs(self) -> None:
        self._env_return = self.screen
        self._load_env_config()
        self.screen = Screen.ENVIRONMENTS

    def exit_envs(self) -> None:
        self.screen = self._env_return or Screen.SCRIPT_SELECT
        self._env_return = None

    def move_env_selection(self, delta: int) -> None:
        if not self.env_entries:
            return
        self.env_selection = _clamp(self.env_selection + delta, len(self.env_entries))
        self.update_env_preview()

    def scroll_env_preview(self, delta: int) -> None:
        self.env_preview_scroll = _clamp(self.env_preview_scroll + delta, len(self.env_preview))

    def activate_selected_env(self) -> None:
        if not self.env_entries:
            return
        name = self.env_entries[self.env_selection].name
        try:
            set_active_env(self.workspace.envs_dir, name)
        except EnvironmentFileError as e:
            self.env_error = str(e)
            return
        self._load_env_config()

    def deactivate_env(self) -> None:
        try:
            set_active_env(self.workspace.envs_dir, None)
        except EnvironmentFileError as e:
            self.env_error = str(e)
            return
        self._load_env_config()

    def active_env_name(self) -> str | None:
        return self.env_config.active if self.env_config is not None else None

    def _load_env_config(self) -> None:
        envs_dir = self.workspace.envs_dir
        env_error: str | None = None

        try:
            self.env_config = load_environment_config(envs_dir)
        except EnvironmentFileError as e:
            self.env_config = None
            env_error = str(e)

        try:
            entries = list_env_files(envs_dir)
        except EnvironmentFileError as e:
            entries = []
            env_error = env_error or str(e)

        active = self.active_env_name()
        names = [entry.name for entry in entries]
        if active in names:
            self.env_selection = names.index(active)
        else:
            self.env_selection = _clamp(self.env_selection, len(entries))

        self.env_entries = entries
        self.env_error = env_error
        self.update_env_preview()

    def update_env_preview(self) -> None:
        self.env_preview_scroll = 0
        self.env_preview_error = None
        if not 0 <= self.env_selection < len(self.env_entries):
            self.env_preview = []
            return
        path = self.workspace.envs_dir / self.env_entries[self.env_selection].name
        try:
            self.env_preview = load_env_preview(path)
        except EnvironmentFileError as e:
            self.env_preview = []
            self.env_preview_error = str(e)
