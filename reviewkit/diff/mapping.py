"""Line-number queries over parsed hunks.

All lookups are linear scans over a hunk's lines; hunks are small and the
first match wins.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from .models import DELETE, LEFT, RIGHT, File, Hunk, Side

RESTRICTED_PROVENANCE = {"pushed", "both"}


@dataclass(frozen=True)
class DiffStats:
    additions: int = 0
    deletions: int = 0


def hunk_index_for_line(hunks: Sequence[Hunk], new_line: int) -> int | None:
    """Index of the first hunk whose new-file range covers `new_line`."""
    for idx, hunk in enumerate(hunks):
        if hunk.new_start <= new_line <= hunk.new_end:
            return idx
    return None


def hunk_for_line(hunks: Sequence[Hunk], new_line: int) -> Hunk | None:
    """First hunk whose `[new_start, new_start + new_count - 1]` covers `new_line`."""
    idx = hunk_index_for_line(hunks, new_line)
    if idx is None:
        return None
    return hunks[idx]


def new_to_old(hunk: Hunk, new_line: int) -> int | None:
    """Old-file line for a new-file line; None for added lines or no match."""
    for line in hunk.lines:
        if line.new_line == new_line:
            return line.old_line
    return None


def old_to_new(hunk: Hunk, old_line: int) -> int | None:
    """New-file line for an old-file line; None for deleted lines or no match."""
    for line in hunk.lines:
        if line.old_line == old_line:
            return line.new_line
    return None


def side_for_line(hunk: Hunk, new_line: int) -> Side:
    """Which half of a split view a new-file line belongs to.

    Only deleted lines live on the LEFT, and those carry no new-file number,
    so lookups by new line resolve to RIGHT unless a match says otherwise.
    """
    for line in hunk.lines:
        if line.new_line == new_line:
            if line.kind == DELETE:
                return LEFT
            return RIGHT
    return RIGHT


def line_in_diff(file: File, new_line: int) -> bool:
    """True when `new_line` falls inside one of the file's hunks."""
    return hunk_index_for_line(file.hunks, new_line) is not None


def total_stats(files: Iterable[File]) -> DiffStats:
    additions = 0
    deletions = 0
    for file in files:
        additions += file.additions
        deletions += file.deletions
    return DiffStats(additions=additions, deletions=deletions)


def should_restrict_to_hunks(mode: str, file: File | None) -> bool:
    """Whether comments on `file` must stay inside its hunks.

    Comments that will be submitted to a code host can only target diff lines:
    always in `pr` mode, and in `hybrid` mode for files that were pushed.
    """
    if mode == "pr":
        return True
    if mode == "hybrid":
        return file is not None and file.provenance in RESTRICTED_PROVENANCE
    return False
