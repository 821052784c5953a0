"""Review session state: files, comments, the open file and its buffers.

A session owns the anchor tracker for its lifetime. Comments are anchored as
soon as the buffer of their file is attached, and their positions are written
back whenever the host saves that buffer.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from ..config import REVIEW_MODES, ReviewConfig
from ..diff import File, should_restrict_to_hunks
from ..tracking import AnchorTracker, BufferHost, MemoryBufferHost
from .models import Comment


@dataclass(frozen=True)
class SessionStats:
    total_files: int = 0
    total_comments: int = 0
    pending_comments: int = 0
    unresolved_comments: int = 0
    reviewed_files: int = 0


class ReviewSession:
    """One review session; use as a context manager to tie teardown to its scope."""

    def __init__(
        self,
        host: BufferHost | None = None,
        *,
        mode: str | None = None,
        base: str = "HEAD",
        config: ReviewConfig | None = None,
    ) -> None:
        self.config = config or ReviewConfig()
        self.mode = mode or self.config.mode
        if self.mode not in REVIEW_MODES:
            raise ValueError(f"mode must be one of {list(REVIEW_MODES)}")
        self.base = base
        self.host: BufferHost = host if host is not None else MemoryBufferHost()
        self.tracker = AnchorTracker(
            self.host, clamp_stale_lines=self.config.tracking.clamp_stale_lines
        )
        self.files: list[File] = []
        self.comments: list[Comment] = []
        self.current_file: str | None = None
        self.current_comment_id: str | None = None
        self.active = True
        self._buffers: dict[str, int] = {}

        self.host.add_hook("save", self._on_save)
        self.host.add_hook("enter", self._on_enter)
        self.host.add_hook("close", self._on_close)

    def __enter__(self) -> "ReviewSession":
        return self

    def __exit__(self, *_args: object) -> None:
        self.close()

    def close(self) -> None:
        """Release buffers and host hooks; safe to call more than once."""
        self.host.remove_hook("save", self._on_save)
        self.host.remove_hook("enter", self._on_enter)
        self.host.remove_hook("close", self._on_close)
        self.tracker.close()
        self._buffers.clear()
        self.files = []
        self.comments = []
        self.current_file = None
        self.current_comment_id = None
        self.active = False

    # Files

    def set_files(self, files: Iterable[File]) -> None:
        self.files = list(files)
        self.update_file_comment_counts()

    def add_file(self, file: File) -> None:
        self.files.append(file)
        self.update_file_comment_counts()

    def find_file(self, path: str) -> File | None:
        for file in self.files:
            if file.path == path:
                return file
        return None

    def set_current_file(self, path: str | None) -> None:
        self.current_file = path

    def set_file_reviewed(self, path: str, reviewed: bool) -> bool:
        file = self.find_file(path)
        if file is None:
            return False
        file.reviewed = reviewed
        return True

    def toggle_file_reviewed(self, path: str) -> bool | None:
        """Flip the reviewed flag; returns the new value, or None for unknown paths."""
        file = self.find_file(path)
        if file is None:
            return None
        file.reviewed = not file.reviewed
        return file.reviewed

    def restrict_to_hunks(self, path: str) -> bool:
        return should_restrict_to_hunks(self.mode, self.find_file(path))

    # Comments

    def set_comments(self, comments: Iterable[Comment]) -> None:
        for buf in self._buffers.values():
            self.tracker.clear(buf)
        self.comments = list(comments)
        self._link_replies()
        for path, buf in self._buffers.items():
            self.tracker.track_all(buf, self.comments_for_file(path))
        self.update_file_comment_counts()

    def add_comment(self, comment: Comment) -> None:
        self.comments.append(comment)
        if comment.file is not None:
            buf = self._buffers.get(comment.file)
            if buf is not None:
                self.tracker.track(buf, comment)
        self.update_file_comment_counts()

    def find_comment(self, comment_id: str) -> Comment | None:
        for comment in self.comments:
            if comment.id == comment_id:
                return comment
        return None

    def remove_comment(self, comment_id: str) -> bool:
        comment = self.find_comment(comment_id)
        if comment is None:
            return False
        self.comments.remove(comment)
        if comment.file is not None and comment.file in self._buffers:
            self.tracker.untrack(self._buffers[comment.file], comment.id)
        comment.anchor_id = None
        if comment.in_reply_to_id is not None:
            parent = self.find_comment(comment.in_reply_to_id)
            if parent is not None and comment in parent.replies:
                parent.replies.remove(comment)
        if self.current_comment_id == comment_id:
            self.current_comment_id = None
        self.update_file_comment_counts()
        return True

    def update_file_comment_counts(self) -> None:
        counts: dict[str, int] = {}
        for comment in self.comments:
            if comment.file is not None:
                counts[comment.file] = counts.get(comment.file, 0) + 1
        for file in self.files:
            file.comment_count = counts.get(file.path, 0)

    def comments_for_file(self, path: str) -> list[Comment]:
        return [comment for comment in self.comments if comment.file == path]

    def unresolved_comments(self) -> list[Comment]:
        return [c for c in self.comments if c.resolved is False and c.file is not None]

    def pending_comments(self) -> list[Comment]:
        return [c for c in self.comments if c.is_pending]

    def file_comment_info(self, path: str) -> tuple[int, bool]:
        """Comment count for `path` and whether any of them is still pending."""
        comments = self.comments_for_file(path)
        return len(comments), any(c.is_pending for c in comments)

    def stats(self) -> SessionStats:
        return SessionStats(
            total_files=len(self.files),
            total_comments=len(self.comments),
            pending_comments=len(self.pending_comments()),
            unresolved_comments=len(self.unresolved_comments()),
            reviewed_files=sum(1 for file in self.files if file.reviewed),
        )

    def _link_replies(self) -> None:
        by_id = {comment.id: comment for comment in self.comments}
        for comment in self.comments:
            comment.replies = []
        for comment in self.comments:
            if comment.in_reply_to_id is None:
                continue
            parent = by_id.get(comment.in_reply_to_id)
            if parent is not None and parent is not comment:
                parent.replies.append(comment)

    # Buffers and positions

    def attach_buffer(self, path: str, buf: int) -> list[int]:
        """Bind `path` to a host buffer and anchor the file's comments in it."""
        previous = self._buffers.get(path)
        if previous is not None and previous != buf:
            self.tracker.clear(previous)
        self._buffers[path] = buf
        return self.tracker.track_all(buf, self.comments_for_file(path))

    def detach_buffer(self, path: str) -> None:
        buf = self._buffers.get(path)
        if buf is None:
            return
        self.sync_buffer(buf)
        self.tracker.clear(buf)
        del self._buffers[path]

    def buffer_for(self, path: str) -> int | None:
        return self._buffers.get(path)

    def path_for_buffer(self, buf: int) -> str | None:
        for path, attached in self._buffers.items():
            if attached == buf:
                return path
        return None

    def sync_buffer(self, buf: int) -> int:
        """Persist anchor drift of one buffer into its comments."""
        path = self.path_for_buffer(buf)
        if path is None:
            return 0
        return self.tracker.retarget_all(buf, self.comments_for_file(path))

    def sync_all(self) -> int:
        return sum(self.sync_buffer(buf) for buf in list(self._buffers.values()))

    def resolved_line(self, comment: Comment) -> int | None:
        """Live line of a comment; the stored line when it is not (or no longer) anchored."""
        if comment.file is None:
            return None
        buf = self._buffers.get(comment.file)
        if buf is not None and comment.anchor_id is not None:
            live = self.tracker.resolve(buf, comment.anchor_id)
            if live is not None:
                return live
        return comment.line

    def resolved_range(self, comment: Comment) -> tuple[int, int] | None:
        """Live `(start, end)` of a comment; single-line comments give `(line, line)`."""
        if comment.file is None:
            return None
        buf = self._buffers.get(comment.file)
        if buf is not None and comment.anchor_id is not None:
            live = self.tracker.resolve_range(buf, comment.anchor_id)
            if live is not None:
                start, end = live
                return start, end if end is not None else start
        start = comment.start_line if comment.start_line is not None else comment.line
        if start is None:
            return None
        return start, comment.end_line if comment.end_line is not None else start

    def is_stale(self, comment: Comment) -> bool:
        """True when the line a comment was anchored to has been deleted."""
        if comment.file is None or comment.anchor_id is None:
            return False
        buf = self._buffers.get(comment.file)
        if buf is None:
            return False
        return self.tracker.is_tombstoned(buf, comment.anchor_id)

    def _on_save(self, buf: int) -> None:
        if self.active:
            self.sync_buffer(buf)

    def _on_enter(self, buf: int) -> None:
        if not self.active:
            return
        path = self.path_for_buffer(buf)
        if path is None:
            return
        anchored = {anchor.comment_id for anchor in self.tracker.tracked(buf)}
        for comment in self.comments_for_file(path):
            if comment.id not in anchored:
                self.tracker.track(buf, comment)

    def _on_close(self, buf: int) -> None:
        path = self.path_for_buffer(buf)
        if path is not None:
            del self._buffers[path]
