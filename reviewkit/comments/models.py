"""Review comment records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

LOCAL = "local"
REVIEW = "review"
CONVERSATION = "conversation"
REVIEW_SUMMARY = "review_summary"
COMMENT_KINDS = {CONVERSATION, REVIEW, REVIEW_SUMMARY, LOCAL}

PENDING = "pending"
SUBMITTED = "submitted"

COMMENT_TYPES = ("issue", "suggestion", "note", "praise")
DEFAULT_COMMENT_TYPE = "note"


def _as_int(value: object) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None


def _as_str(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _as_bool(value: object) -> bool | None:
    if isinstance(value, bool):
        return value
    return None


@dataclass
class Comment:
    """One review comment.

    `line` is in new-file coordinates unless `side == "LEFT"`. Once the
    comment is anchored, `anchor_id` points into the session's tracker and
    `line` is only the last persisted position.
    """

    id: str
    kind: str = LOCAL
    body: str = ""
    author: str = "you"
    created_at: str = ""
    updated_at: str | None = None
    file: str | None = None
    line: int | None = None
    start_line: int | None = None
    end_line: int | None = None
    side: str | None = None
    anchor_id: int | None = None
    resolved: bool | None = None
    status: str | None = None
    comment_type: str | None = None
    in_reply_to_id: str | None = None
    replies: list["Comment"] = field(default_factory=list, repr=False)
    commit_id: str | None = None
    github_id: int | None = None

    @property
    def is_pending(self) -> bool:
        return self.kind == LOCAL and self.status == PENDING

    @property
    def is_multiline(self) -> bool:
        return self.start_line is not None and self.end_line is not None

    def covers(self, line: int) -> bool:
        """True when `line` is this comment's line, or inside its range."""
        if self.start_line is not None and self.end_line is not None:
            return self.start_line <= line <= self.end_line
        return self.line == line

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready dict. Anchors and reply links are session state and are not kept."""
        data: dict[str, Any] = {
            "id": self.id,
            "kind": self.kind,
            "body": self.body,
            "author": self.author,
            "created_at": self.created_at,
        }
        optional = {
            "updated_at": self.updated_at,
            "file": self.file,
            "line": self.line,
            "start_line": self.start_line,
            "end_line": self.end_line,
            "side": self.side,
            "resolved": self.resolved,
            "status": self.status,
            "type": self.comment_type,
            "in_reply_to_id": self.in_reply_to_id,
            "commit_id": self.commit_id,
            "github_id": self.github_id,
        }
        data.update({key: value for key, value in optional.items() if value is not None})
        return data

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "Comment | None":
        """Build a comment from stored JSON; None when it has no usable id."""
        if not isinstance(raw, dict):
            return None
        comment_id = _as_str(raw.get("id"))
        if comment_id is None:
            return None

        kind = _as_str(raw.get("kind")) or LOCAL
        if kind not in COMMENT_KINDS:
            kind = LOCAL

        return cls(
            id=comment_id,
            kind=kind,
            body=str(raw.get("body") or ""),
            author=_as_str(raw.get("author")) or "unknown",
            created_at=_as_str(raw.get("created_at")) or "",
            updated_at=_as_str(raw.get("updated_at")),
            file=_as_str(raw.get("file")),
            line=_as_int(raw.get("line")),
            start_line=_as_int(raw.get("start_line")),
            end_line=_as_int(raw.get("end_line")),
            side=_as_str(raw.get("side")),
            resolved=_as_bool(raw.get("resolved")),
            status=_as_str(raw.get("status")),
            comment_type=_as_str(raw.get("type", raw.get("comment_type"))),
            in_reply_to_id=_as_str(raw.get("in_reply_to_id")),
            commit_id=_as_str(raw.get("commit_id")),
            github_id=_as_int(raw.get("github_id")),
        )
