"""Background-rebuildable search over the script catalog."""

from omakure.search.index import (
    SearchIndex,
    SearchIndexError,
    SearchStatus,
    StatusKind,
    build_search_blob,
)

__all__ = [
    "SearchIndex",
    "SearchIndexError",
    "SearchStatus",
    "StatusKind",
    "build_search_blob",
]
