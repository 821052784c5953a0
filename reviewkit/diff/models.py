"""Structured model of a parsed unified diff: files, hunks and lines."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

LineKind = Literal["context", "add", "delete"]
FileStatus = Literal["added", "modified", "deleted", "renamed"]
Side = Literal["LEFT", "RIGHT"]

CONTEXT = "context"
ADD = "add"
DELETE = "delete"

ADDED = "added"
MODIFIED = "modified"
DELETED = "deleted"
RENAMED = "renamed"

LEFT = "LEFT"
RIGHT = "RIGHT"


@dataclass(frozen=True)
class DiffLine:
    """One line of a hunk with its diff marker stripped.

    `old_line` is set for context and delete lines, `new_line` for context and
    add lines.
    """

    kind: LineKind
    content: str
    old_line: int | None = None
    new_line: int | None = None


@dataclass(frozen=True)
class Hunk:
    """A contiguous `@@ -O,oc +N,nc @@` block."""

    old_start: int
    old_count: int
    new_start: int
    new_count: int
    header: str
    lines: tuple[DiffLine, ...] = ()

    @property
    def old_end(self) -> int:
        """Last old-file line covered (old_start - 1 when the hunk has no old lines)."""
        return self.old_start + self.old_count - 1

    @property
    def new_end(self) -> int:
        """Last new-file line covered (new_start - 1 when the hunk has no new lines)."""
        return self.new_start + self.new_count - 1

    @property
    def additions(self) -> int:
        return sum(1 for line in self.lines if line.kind == ADD)

    @property
    def deletions(self) -> int:
        return sum(1 for line in self.lines if line.kind == DELETE)


@dataclass
class File:
    """One file entry of a diff.

    Hunks are fixed once parsed; `comment_count` and `reviewed` are owned by
    the review session.
    """

    path: str
    status: FileStatus = MODIFIED
    additions: int = 0
    deletions: int = 0
    old_path: str | None = None
    hunks: list[Hunk] = field(default_factory=list)
    comment_count: int = 0
    reviewed: bool = False
    provenance: str | None = None
