"""Comment create/edit/delete operations on a review session.

Local comments are editable while pending; review comments from the code host
can only be resolved or unresolved.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from .models import DEFAULT_COMMENT_TYPE, LOCAL, PENDING, REVIEW, SUBMITTED, Comment
from .session import ReviewSession


def generate_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def utc_now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def add_comment(
    session: ReviewSession,
    file: str,
    line: int,
    body: str,
    comment_type: str | None = None,
    *,
    side: str | None = None,
) -> Comment:
    comment = Comment(
        id=generate_id("local"),
        kind=LOCAL,
        file=file,
        line=line,
        body=body,
        side=side,
        comment_type=comment_type or DEFAULT_COMMENT_TYPE,
        status=PENDING,
        author="you",
        created_at=utc_now(),
    )
    session.add_comment(comment)
    return comment


def add_multiline_comment(
    session: ReviewSession,
    file: str,
    start_line: int,
    end_line: int,
    body: str,
    comment_type: str | None = None,
) -> Comment:
    if end_line < start_line:
        start_line, end_line = end_line, start_line
    comment = Comment(
        id=generate_id("local"),
        kind=LOCAL,
        file=file,
        line=start_line,
        start_line=start_line,
        end_line=end_line,
        body=body,
        comment_type=comment_type or DEFAULT_COMMENT_TYPE,
        status=PENDING,
        author="you",
        created_at=utc_now(),
    )
    session.add_comment(comment)
    return comment


def is_editable(session: ReviewSession, comment_id: str) -> bool:
    comment = session.find_comment(comment_id)
    return comment is not None and comment.is_pending


def is_deletable(session: ReviewSession, comment_id: str) -> bool:
    return is_editable(session, comment_id)


def edit_comment(session: ReviewSession, comment_id: str, body: str) -> bool:
    comment = session.find_comment(comment_id)
    if comment is None or comment.kind != LOCAL:
        return False
    comment.body = body
    comment.updated_at = utc_now()
    return True


def delete_comment(session: ReviewSession, comment_id: str) -> bool:
    if not is_deletable(session, comment_id):
        return False
    return session.remove_comment(comment_id)


def reply_to(session: ReviewSession, parent_id: str, body: str) -> Comment | None:
    parent = session.find_comment(parent_id)
    if parent is None:
        return None

    reply = Comment(
        id=generate_id("reply"),
        kind=LOCAL,
        body=body,
        author="you",
        created_at=utc_now(),
        in_reply_to_id=parent_id,
        file=parent.file,
        line=parent.line,
        status=PENDING,
    )
    parent.replies.append(reply)
    session.add_comment(reply)
    return reply


def set_resolved(session: ReviewSession, comment_id: str, resolved: bool) -> bool:
    comment = session.find_comment(comment_id)
    if comment is None or comment.kind != REVIEW:
        return False
    comment.resolved = resolved
    return True


def set_comment_type(session: ReviewSession, comment_id: str, comment_type: str) -> bool:
    comment = session.find_comment(comment_id)
    if comment is None or comment.kind != LOCAL:
        return False
    comment.comment_type = comment_type
    comment.updated_at = utc_now()
    return True


def mark_submitted(session: ReviewSession, comment_id: str, github_id: int | None = None) -> bool:
    comment = session.find_comment(comment_id)
    if comment is None or comment.kind != LOCAL:
        return False
    comment.status = SUBMITTED
    if github_id is not None:
        comment.github_id = github_id
    return True


def thread_root(session: ReviewSession, comment_id: str) -> Comment | None:
    """Walk `in_reply_to_id` links up to the first comment of the thread."""
    current = session.find_comment(comment_id)
    seen: set[str] = set()
    while current is not None and current.in_reply_to_id is not None and current.id not in seen:
        seen.add(current.id)
        parent = session.find_comment(current.in_reply_to_id)
        if parent is None:
            break
        current = parent
    return current


def count_replies(session: ReviewSession, root_id: str) -> int:
    root = session.find_comment(root_id)
    if root is None:
        return 0
    return len(root.replies)
