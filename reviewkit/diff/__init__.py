"""Unified diff model, parser and line mapping."""

from .mapping import (
    DiffStats,
    hunk_for_line,
    hunk_index_for_line,
    line_in_diff,
    new_to_old,
    old_to_new,
    should_restrict_to_hunks,
    side_for_line,
    total_stats,
)
from .models import (
    ADD,
    ADDED,
    CONTEXT,
    DELETE,
    DELETED,
    LEFT,
    MODIFIED,
    RENAMED,
    RIGHT,
    DiffLine,
    File,
    Hunk,
)
from .parser import parse, parse_hunk

__all__ = [
    "ADD",
    "ADDED",
    "CONTEXT",
    "DELETE",
    "DELETED",
    "DiffLine",
    "DiffStats",
    "File",
    "Hunk",
    "LEFT",
    "MODIFIED",
    "RENAMED",
    "RIGHT",
    "hunk_for_line",
    "hunk_index_for_line",
    "line_in_diff",
    "new_to_old",
    "old_to_new",
    "parse",
    "parse_hunk",
    "should_restrict_to_hunks",
    "side_for_line",
    "total_stats",
]
