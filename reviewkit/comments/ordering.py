"""Ordering and wrap-around traversal over review comments.

Comments are ordered by `(file, resolved line)`. Traversal starts from a
position, the open file plus the cursor line, rather than from an index into
a previously sorted list, so it stays correct when comments move or get added
between two jumps.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable

from .models import Comment
from .session import ReviewSession

ALL = "all"
UNRESOLVED = "unresolved"
PENDING = "pending"
CURRENT_FILE = "file"
SUBSETS = (ALL, UNRESOLVED, PENDING, CURRENT_FILE)

SortKey = tuple[str, int]


@dataclass(frozen=True)
class CommentCounts:
    total: int = 0
    current: int = 0
    unresolved: int = 0
    pending: int = 0


class CommentNavigator:
    """Next/previous comment lookups over a review session."""

    def __init__(self, session: ReviewSession) -> None:
        self._session = session

    def _key(self, comment: Comment) -> SortKey | None:
        if comment.file is None:
            return None
        line = self._session.resolved_line(comment)
        if line is None:
            return None
        return comment.file, line

    def _candidates(self, subset: str) -> list[Comment]:
        session = self._session
        if subset == ALL:
            return list(session.comments)
        if subset == UNRESOLVED:
            return session.unresolved_comments()
        if subset == PENDING:
            return session.pending_comments()
        if subset == CURRENT_FILE:
            if session.current_file is None:
                return []
            return session.comments_for_file(session.current_file)
        raise ValueError(f"subset must be one of {list(SUBSETS)}")

    def ordered(self, subset: str = ALL) -> list[tuple[SortKey, Comment]]:
        """Navigable comments of `subset` with their keys, in order."""
        keyed: list[tuple[SortKey, Comment]] = []
        for comment in self._candidates(subset):
            key = self._key(comment)
            if key is not None:
                keyed.append((key, comment))
        keyed.sort(key=lambda item: item[0])
        return keyed

    def sorted_comments(self, subset: str = ALL) -> list[Comment]:
        return [comment for _key, comment in self.ordered(subset)]

    def _position(self, cursor_line: int | None, default_line: float) -> tuple[str | None, float]:
        line: float = default_line if cursor_line is None else cursor_line
        return self._session.current_file, line

    def _pick(
        self,
        subset: str,
        cursor_line: int | None,
        forward: bool,
    ) -> Comment | None:
        ordered = self.ordered(subset)
        if not ordered:
            return None

        current_file, line = self._position(cursor_line, 0 if forward else float("inf"))

        def is_after(key: SortKey) -> bool:
            if current_file is None:
                return True
            return key[0] > current_file or (key[0] == current_file and key[1] > line)

        def is_before(key: SortKey) -> bool:
            if current_file is None:
                return False
            return key[0] < current_file or (key[0] == current_file and key[1] < line)

        chosen: Comment | None = None
        if forward:
            chosen = next((comment for key, comment in ordered if is_after(key)), None)
            if chosen is None:
                chosen = ordered[0][1]
        else:
            chosen = next((comment for key, comment in reversed(ordered) if is_before(key)), None)
            if chosen is None:
                chosen = ordered[-1][1]

        self._session.current_comment_id = chosen.id
        return chosen

    def next_comment(self, cursor_line: int | None = None) -> Comment | None:
        return self._pick(ALL, cursor_line, forward=True)

    def prev_comment(self, cursor_line: int | None = None) -> Comment | None:
        return self._pick(ALL, cursor_line, forward=False)

    def next_unresolved(self, cursor_line: int | None = None) -> Comment | None:
        return self._pick(UNRESOLVED, cursor_line, forward=True)

    def prev_unresolved(self, cursor_line: int | None = None) -> Comment | None:
        return self._pick(UNRESOLVED, cursor_line, forward=False)

    def next_pending(self, cursor_line: int | None = None) -> Comment | None:
        return self._pick(PENDING, cursor_line, forward=True)

    def prev_pending(self, cursor_line: int | None = None) -> Comment | None:
        return self._pick(PENDING, cursor_line, forward=False)

    def next_in_file(self, cursor_line: int | None = None) -> Comment | None:
        return self._pick(CURRENT_FILE, cursor_line, forward=True)

    def prev_in_file(self, cursor_line: int | None = None) -> Comment | None:
        return self._pick(CURRENT_FILE, cursor_line, forward=False)

    def comments_at_line(self, path: str, line: int) -> list[Comment]:
        """Comments of `path` on `line`, including ranges that span it."""
        found: list[Comment] = []
        for comment in self._session.comments_for_file(path):
            span = self._session.resolved_range(comment)
            if span is not None and span[0] <= line <= span[1]:
                found.append(comment)
        return found

    def comment_at_cursor(self, cursor_line: int | None) -> Comment | None:
        if self._session.current_file is None or cursor_line is None:
            return None
        found = self.comments_at_line(self._session.current_file, cursor_line)
        return found[0] if found else None

    def comment_counts(self) -> CommentCounts:
        ordered = self.sorted_comments(ALL)
        current = 0
        for idx, comment in enumerate(ordered, start=1):
            if comment.id == self._session.current_comment_id:
                current = idx
                break
        return CommentCounts(
            total=len(ordered),
            current=current,
            unresolved=len(self._session.unresolved_comments()),
            pending=len(self._session.pending_comments()),
        )


def sort_comments(comments: Iterable[Comment], line_of: Callable[[Comment], int | None] | None = None) -> list[Comment]:
    """Sort comments by `(file, line)`; missing files sort first, missing lines as 0."""
    resolve = line_of or (lambda comment: comment.line)
    return sorted(comments, key=lambda c: (c.file or "", resolve(c) or 0))
