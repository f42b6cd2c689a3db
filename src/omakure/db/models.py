"""Row models for the search index."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class SearchField:
    name: str
    kind: str
    prompt: str | None = None
    required: bool = False


@dataclass
class SearchRecord:
    script_path: str  # workspace-relative, primary key
    display_name: str
    search_blob: str
    description: str | None = None
    tags: list[str] = field(default_factory=list)
    schema_error: str | None = None
    indexed_at: int = 0
    fields: list[SearchField] = field(default_factory=list)  # written to script_fields


@dataclass
class SearchResult:
    script_path: str
    display_name: str
    description: str | None = None
    tags: list[str] = field(default_factory=list)
    schema_error: str | None = None


@dataclass
class SearchDetails:
    display_name: str
    description: str | None = None
    tags: list[str] = field(default_factory=list)
    fields: list[SearchField] = field(default_factory=list)
    schema_error: str | None = None
