"""Tests for reviewkit.comments.store: comment lifecycle operations."""

import pytest

from reviewkit.comments import Comment, ReviewSession
from reviewkit.comments import store
from reviewkit.comments.models import LOCAL, PENDING, REVIEW, SUBMITTED


@pytest.fixture
def session(host):
    with ReviewSession(host) as s:
        yield s


def test_generate_id_is_prefixed_and_unique() -> None:
    first = store.generate_id("local")
    second = store.generate_id("local")

    assert first.startswith("local-")
    assert len(first) == len("local-") + 12
    assert first != second


def test_add_comment_defaults(session) -> None:
    comment = store.add_comment(session, "a.py", 3, "rename this")

    assert comment.kind == LOCAL
    assert comment.status == PENDING
    assert comment.comment_type == "note"
    assert comment.author == "you"
    assert comment.created_at.endswith("Z")
    assert session.find_comment(comment.id) is comment


def test_add_comment_is_anchored_in_attached_buffer(host, session) -> None:
    buf = host.create([f"line {n}" for n in range(1, 11)])
    session.attach_buffer("a.py", buf)

    comment = store.add_comment(session, "a.py", 4, "check this", "issue")
    host.insert_lines(buf, 1, ["new"])

    assert comment.comment_type == "issue"
    assert session.resolved_line(comment) == 5


def test_add_multiline_comment_orders_range(session) -> None:
    comment = store.add_multiline_comment(session, "a.py", 9, 4, "extract a helper")

    assert (comment.line, comment.start_line, comment.end_line) == (4, 4, 9)
    assert comment.is_multiline
    assert comment.covers(6)
    assert not comment.covers(10)


def test_edit_comment(session) -> None:
    comment = store.add_comment(session, "a.py", 1, "old")

    assert store.edit_comment(session, comment.id, "new")
    assert comment.body == "new"
    assert comment.updated_at is not None
    assert not store.edit_comment(session, "missing", "x")


def test_edit_review_comment_is_refused(session) -> None:
    session.add_comment(Comment(id="gh", kind=REVIEW, file="a.py", line=1, body="remote"))

    assert not store.edit_comment(session, "gh", "changed")
    assert session.find_comment("gh").body == "remote"


def test_delete_only_pending(session) -> None:
    pending = store.add_comment(session, "a.py", 1, "drop me")
    sent = store.add_comment(session, "a.py", 2, "keep me")
    store.mark_submitted(session, sent.id, github_id=42)

    assert store.is_deletable(session, pending.id)
    assert not store.is_editable(session, sent.id)
    assert store.delete_comment(session, pending.id)
    assert not store.delete_comment(session, sent.id)
    assert [c.id for c in session.comments] == [sent.id]
    assert sent.status == SUBMITTED
    assert sent.github_id == 42


def test_reply_to_builds_thread(session) -> None:
    root = store.add_comment(session, "a.py", 7, "question")
    reply = store.reply_to(session, root.id, "answer")
    nested = store.reply_to(session, reply.id, "follow-up")

    assert reply.in_reply_to_id == root.id
    assert (reply.file, reply.line) == ("a.py", 7)
    assert root.replies == [reply]
    assert store.count_replies(session, root.id) == 1
    assert store.thread_root(session, nested.id) is root
    assert store.reply_to(session, "missing", "x") is None


def test_thread_root_survives_cycles(session) -> None:
    session.comments.extend(
        [
            Comment(id="x", in_reply_to_id="y"),
            Comment(id="y", in_reply_to_id="x"),
        ]
    )

    assert store.thread_root(session, "x") is not None
    assert store.thread_root(session, "missing") is None


def test_set_resolved_only_for_review_comments(session) -> None:
    session.add_comment(Comment(id="gh", kind=REVIEW, file="a.py", line=1, resolved=False))
    mine = store.add_comment(session, "a.py", 2, "local")

    assert store.set_resolved(session, "gh", True)
    assert session.find_comment("gh").resolved is True
    assert not store.set_resolved(session, mine.id, True)


def test_set_comment_type(session) -> None:
    comment = store.add_comment(session, "a.py", 1, "nice")

    assert store.set_comment_type(session, comment.id, "praise")
    assert comment.comment_type == "praise"
    assert not store.set_comment_type(session, "missing", "issue")
