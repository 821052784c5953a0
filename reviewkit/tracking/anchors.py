"""Anchors that keep review comments attached to lines of a live buffer.

Each buffer gets an anchor table mapping anchor id to its current line (and
optional end line). Every line-wise edit the host reports is applied to the
whole table at once:

- the first `min(deleted, inserted)` lines of an edit are rewritten in place,
  anchors on them stay put;
- extra deleted lines tombstone the anchors on them and pull later anchors up;
- extra inserted lines push anchors at or below the insertion point down
  (right gravity: an anchor follows the text after an insertion).

A tombstoned anchor never comes back, even if an identical line is
re-inserted. Range anchors apply the rule to each boundary independently: a
deleted end line collapses the range onto its surviving start, a deleted
start line tombstones the whole anchor.

Nothing here raises for stale lines or closed buffers; absence is reported as
`None` (or `False` / `0`).
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, Protocol

from .buffer import BufferEdit, BufferHost


class TrackedRecord(Protocol):
    id: str
    line: int | None
    start_line: int | None
    end_line: int | None
    anchor_id: int | None


@dataclass(frozen=True)
class Anchor:
    """Current state of one anchor. `line is None` means tombstoned."""

    anchor_id: int
    line: int | None
    original_line: int
    end_line: int | None = None
    is_range: bool = False
    comment_id: str | None = None

    @property
    def tombstoned(self) -> bool:
        return self.line is None

    @property
    def end_tombstoned(self) -> bool:
        return self.is_range and self.end_line is None

    def shifted(self, edit: BufferEdit) -> "Anchor":
        line = shift_line(self.line, edit)
        end_line = shift_line(self.end_line, edit) if self.is_range else None
        if line == self.line and end_line == self.end_line:
            return self
        return replace(self, line=line, end_line=end_line)


def shift_line(line: int | None, edit: BufferEdit) -> int | None:
    """Where `line` ends up after `edit`; None if the line was deleted."""
    if line is None:
        return None

    rewritten = min(edit.deleted, edit.inserted)
    if line < edit.start + rewritten:
        return line

    if edit.deleted > edit.inserted:
        last_removed = edit.start + edit.deleted - 1
        if line <= last_removed:
            return None
        return line - (edit.deleted - edit.inserted)

    return line + (edit.inserted - edit.deleted)


class AnchorTracker:
    """Anchor tables for every buffer of one host."""

    def __init__(self, host: BufferHost, *, clamp_stale_lines: bool = True) -> None:
        self._host = host
        self._clamp_stale_lines = clamp_stale_lines
        self._tables: dict[int, dict[int, Anchor]] = {}
        self._next_id = 1
        host.add_hook("close", self.clear)

    def _fit(self, line: int, line_count: int) -> int | None:
        if 1 <= line <= line_count:
            return line
        if not self._clamp_stale_lines:
            return None
        return min(max(line, 1), line_count)

    def _anchor(self, buf: int, anchor_id: int | None) -> Anchor | None:
        if anchor_id is None or not self._host.is_valid(buf):
            return None
        return self._tables.get(buf, {}).get(anchor_id)

    def _apply_edit(self, buf: int, edit: BufferEdit) -> None:
        table = self._tables.get(buf)
        if not table:
            return
        # Build the shifted table first so readers never see a half-applied edit.
        self._tables[buf] = {anchor_id: anchor.shifted(edit) for anchor_id, anchor in table.items()}

    def create(
        self,
        buf: int,
        line: int | None,
        end_line: int | None = None,
        comment_id: str | None = None,
    ) -> int | None:
        """Place an anchor at `line` (and `end_line` for ranges).

        Lines outside the buffer are clamped to the nearest valid line, since
        comments made against an older diff routinely carry stale numbers.
        """
        if line is None or not self._host.is_valid(buf):
            return None
        line_count = self._host.line_count(buf)
        if line_count < 1:
            return None

        start = self._fit(line, line_count)
        if start is None:
            return None

        end: int | None = None
        if end_line is not None:
            end = self._fit(end_line, line_count)
            if end is None:
                return None
            end = max(end, start)

        anchor_id = self._next_id
        self._next_id += 1
        if buf not in self._tables:
            self._tables[buf] = {}
            self._host.subscribe(buf, self._apply_edit)
        self._tables[buf][anchor_id] = Anchor(
            anchor_id=anchor_id,
            line=start,
            original_line=start,
            end_line=end,
            is_range=end is not None,
            comment_id=comment_id,
        )
        return anchor_id

    def resolve(self, buf: int, anchor_id: int | None) -> int | None:
        """Current line of the anchor, or None once its line was deleted."""
        anchor = self._anchor(buf, anchor_id)
        if anchor is None:
            return None
        return anchor.line

    def resolve_range(self, buf: int, anchor_id: int | None) -> tuple[int, int | None] | None:
        """Current `(line, end_line)`.

        `end_line` is None for single-line anchors and for ranges whose end
        line was deleted. None once the start line was deleted.
        """
        anchor = self._anchor(buf, anchor_id)
        if anchor is None or anchor.line is None:
            return None
        return anchor.line, anchor.end_line

    def is_tombstoned(self, buf: int, anchor_id: int | None) -> bool:
        anchor = self._anchor(buf, anchor_id)
        return anchor is not None and anchor.tombstoned

    def has_moved(self, buf: int, anchor_id: int | None) -> tuple[bool, int | None]:
        """Whether the anchor drifted from where it was created, and by how much."""
        anchor = self._anchor(buf, anchor_id)
        if anchor is None or anchor.line is None:
            return False, None
        delta = anchor.line - anchor.original_line
        return delta != 0, delta

    def retarget_all(self, buf: int, comments: Iterable[TrackedRecord]) -> int:
        """Write live anchor positions back into the comments they belong to.

        A tombstoned start leaves the stored range untouched so the comment
        can still be shown at its last known place. A tombstoned end collapses
        the stored range onto the live start. The written range never has its
        end before its start. Returns how many comments were updated.
        """
        if not self._host.is_valid(buf):
            return 0
        table = self._tables.get(buf)
        if not table:
            return 0

        updated = 0
        for comment in comments:
            anchor = table.get(comment.anchor_id) if comment.anchor_id is not None else None
            if anchor is None:
                continue
            if anchor.comment_id is not None and anchor.comment_id != comment.id:
                continue

            if anchor.line is None:
                continue

            end_line = comment.end_line
            if anchor.is_range:
                end_line = anchor.line if anchor.end_tombstoned else anchor.end_line
            if comment.line == anchor.line and comment.end_line == end_line:
                continue

            if comment.start_line is not None and comment.start_line == comment.line:
                comment.start_line = anchor.line
            comment.line = anchor.line
            comment.end_line = end_line
            updated += 1
        return updated

    def track(self, buf: int, comment: TrackedRecord) -> int | None:
        """Anchor a comment at its stored line and remember the anchor on it."""
        anchor_id = self.create(buf, comment.line, comment.end_line, comment_id=comment.id)
        if anchor_id is not None:
            comment.anchor_id = anchor_id
        return anchor_id

    def track_all(self, buf: int, comments: Iterable[TrackedRecord]) -> list[int]:
        """Drop every anchor of `buf` and re-anchor `comments` from their stored lines."""
        if not self._host.is_valid(buf):
            return []
        self.clear(buf)
        anchor_ids: list[int] = []
        for comment in comments:
            anchor_id = self.track(buf, comment)
            if anchor_id is not None:
                anchor_ids.append(anchor_id)
        return anchor_ids

    def untrack(self, buf: int, comment_id: str) -> bool:
        for anchor in self.tracked(buf):
            if anchor.comment_id == comment_id:
                return self.drop(buf, anchor.anchor_id)
        return False

    def drop(self, buf: int, anchor_id: int) -> bool:
        table = self._tables.get(buf)
        if not table or anchor_id not in table:
            return False
        del table[anchor_id]
        return True

    def clear(self, buf: int) -> None:
        if self._tables.pop(buf, None) is not None:
            self._host.unsubscribe(buf, self._apply_edit)

    def close(self) -> None:
        """Release every buffer and detach from the host."""
        for buf in list(self._tables):
            self.clear(buf)
        self._host.remove_hook("close", self.clear)

    def tracked(self, buf: int) -> list[Anchor]:
        return sorted(self._tables.get(buf, {}).values(), key=lambda anchor: anchor.anchor_id)

    @property
    def buffers(self) -> list[int]:
        return sorted(self._tables)
