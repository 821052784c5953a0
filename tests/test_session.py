"""Tests for reviewkit.comments.session: session state and buffer hooks."""

import pytest

from reviewkit.comments import Comment, CommentNavigator, ReviewSession
from reviewkit.comments.models import PENDING, REVIEW
from reviewkit.config import ReviewConfig, TrackingConfig
from reviewkit.diff import File


def make_buffer(host, count=20):
    return host.create([f"line {n}" for n in range(1, count + 1)])


@pytest.fixture
def session(host):
    with ReviewSession(host) as s:
        yield s


class TestConstruction:
    def test_defaults(self) -> None:
        s = ReviewSession()

        assert s.mode == "local"
        assert s.base == "HEAD"
        assert s.active
        assert s.comments == []

    def test_mode_from_config(self) -> None:
        s = ReviewSession(config=ReviewConfig(mode="hybrid"))

        assert s.mode == "hybrid"

    def test_invalid_mode(self) -> None:
        with pytest.raises(ValueError, match="mode must be one of"):
            ReviewSession(mode="draft")

    def test_context_manager_tears_down(self, host) -> None:
        buf = make_buffer(host)
        with ReviewSession(host) as s:
            s.set_comments([Comment(id="a", file="a.py", line=2)])
            s.attach_buffer("a.py", buf)
            s.set_current_file("a.py")

        assert not s.active
        assert s.comments == []
        assert s.current_file is None
        assert s.tracker.buffers == []

    def test_close_removes_host_hooks(self, host) -> None:
        before = {event: host.hook_count(event) for event in ("save", "enter", "close")}
        s = ReviewSession(host)
        buf = make_buffer(host)
        s.attach_buffer("a.py", buf)

        s.close()
        s.close()

        assert {event: host.hook_count(event) for event in before} == before

    def test_closed_session_ignores_later_buffers(self, host) -> None:
        first = ReviewSession(host)
        first.close()
        second = ReviewSession(host)
        buf = make_buffer(host)
        comment = Comment(id="a", file="a.py", line=4)
        second.set_comments([comment])
        second.attach_buffer("a.py", buf)

        host.insert_lines(buf, 1, ["x"])
        host.save(buf)
        host.close(buf)

        assert comment.line == 5
        assert first.tracker.buffers == []
        assert second.buffer_for("a.py") is None


class TestFiles:
    def test_comment_counts_follow_comments(self, session) -> None:
        session.set_files([File(path="a.py"), File(path="b.py")])
        session.set_comments([Comment(id="1", file="a.py", line=1), Comment(id="2", file="a.py", line=3)])

        assert [f.comment_count for f in session.files] == [2, 0]

        session.remove_comment("1")
        assert session.find_file("a.py").comment_count == 1

    def test_reviewed_flag(self, session) -> None:
        session.add_file(File(path="a.py"))

        assert session.toggle_file_reviewed("a.py") is True
        assert session.toggle_file_reviewed("a.py") is False
        assert session.toggle_file_reviewed("missing.py") is None
        assert session.set_file_reviewed("a.py", True)
        assert not session.set_file_reviewed("missing.py", True)
        assert session.stats().reviewed_files == 1

    def test_restrict_to_hunks_uses_mode(self) -> None:
        s = ReviewSession(mode="hybrid")
        s.set_files([File(path="pushed.py", provenance="pushed"), File(path="local.py", provenance="local")])

        assert s.restrict_to_hunks("pushed.py")
        assert not s.restrict_to_hunks("local.py")


class TestComments:
    def test_set_comments_links_replies(self, session) -> None:
        session.set_comments(
            [
                Comment(id="root", kind=REVIEW, file="a.py", line=1),
                Comment(id="r1", kind=REVIEW, in_reply_to_id="root"),
                Comment(id="r2", kind=REVIEW, in_reply_to_id="root"),
            ]
        )

        assert [c.id for c in session.find_comment("root").replies] == ["r1", "r2"]

    def test_remove_reply_unlinks_parent(self, session) -> None:
        session.set_comments(
            [
                Comment(id="root", file="a.py", line=1),
                Comment(id="child", in_reply_to_id="root"),
            ]
        )
        session.current_comment_id = "child"

        assert session.remove_comment("child")
        assert session.find_comment("root").replies == []
        assert session.current_comment_id is None
        assert not session.remove_comment("child")

    def test_stats(self, session) -> None:
        session.set_files([File(path="a.py")])
        session.set_comments(
            [
                Comment(id="1", file="a.py", line=1, status=PENDING),
                Comment(id="2", kind=REVIEW, file="a.py", line=2, resolved=False),
            ]
        )

        stats = session.stats()

        assert stats.total_files == 1
        assert stats.total_comments == 2
        assert stats.pending_comments == 1
        assert stats.unresolved_comments == 1
        assert session.file_comment_info("a.py") == (2, True)
        assert session.file_comment_info("b.py") == (0, False)


class TestBuffers:
    def test_attach_tracks_file_comments(self, host, session) -> None:
        buf = make_buffer(host)
        session.set_comments([Comment(id="a", file="a.py", line=5), Comment(id="b", file="b.py", line=5)])

        anchors = session.attach_buffer("a.py", buf)

        assert len(anchors) == 1
        assert session.find_comment("a").anchor_id == anchors[0]
        assert session.find_comment("b").anchor_id is None
        assert session.buffer_for("a.py") == buf
        assert session.path_for_buffer(buf) == "a.py"

    def test_added_comment_is_tracked(self, host, session) -> None:
        buf = make_buffer(host)
        session.attach_buffer("a.py", buf)
        comment = Comment(id="a", file="a.py", line=5)

        session.add_comment(comment)
        host.insert_lines(buf, 1, ["x", "y"])

        assert session.resolved_line(comment) == 7
        assert comment.line == 5

    def test_save_hook_persists_drift(self, host, session) -> None:
        buf = make_buffer(host)
        comment = Comment(id="a", file="a.py", line=8, start_line=8, end_line=10)
        session.set_comments([comment])
        session.attach_buffer("a.py", buf)

        host.delete_lines(buf, 1, 3)
        host.save(buf)

        assert (comment.line, comment.start_line, comment.end_line) == (5, 5, 7)

    def test_stale_comment_keeps_last_line(self, host, session) -> None:
        buf = make_buffer(host)
        comment = Comment(id="a", file="a.py", line=8)
        session.set_comments([comment])
        session.attach_buffer("a.py", buf)

        host.delete_lines(buf, 8)
        host.save(buf)

        assert session.is_stale(comment)
        assert session.resolved_line(comment) == 8
        assert session.resolved_range(comment) == (8, 8)

    def test_range_with_deleted_end_collapses_onto_start(self, host, session) -> None:
        buf = make_buffer(host)
        comment = Comment(id="a", file="a.py", line=3, start_line=3, end_line=5)
        session.set_comments([comment])
        session.attach_buffer("a.py", buf)
        session.set_current_file("a.py")

        host.delete_lines(buf, 5)
        host.insert_lines(buf, 1, ["x", "y", "z"])

        assert not session.is_stale(comment)
        assert session.resolved_line(comment) == 6
        assert session.resolved_range(comment) == (6, 6)
        assert CommentNavigator(session).comment_at_cursor(6) is comment

        assert session.sync_all() == 1
        assert (comment.line, comment.start_line, comment.end_line) == (6, 6, 6)
        assert comment.start_line <= comment.end_line

    def test_enter_hook_does_not_revive_tombstones(self, host, session) -> None:
        buf = make_buffer(host)
        stale = Comment(id="stale", file="a.py", line=3)
        session.set_comments([stale])
        session.attach_buffer("a.py", buf)
        host.delete_lines(buf, 3)
        late = Comment(id="late", file="a.py", line=6)
        session.comments.append(late)

        host.enter(buf)

        assert session.is_stale(stale)
        assert late.anchor_id is not None
        assert session.resolved_line(late) == 6

    def test_close_hook_forgets_buffer(self, host, session) -> None:
        buf = make_buffer(host)
        comment = Comment(id="a", file="a.py", line=4)
        session.set_comments([comment])
        session.attach_buffer("a.py", buf)

        host.close(buf)

        assert session.buffer_for("a.py") is None
        assert session.resolved_line(comment) == 4

    def test_detach_syncs_first(self, host, session) -> None:
        buf = make_buffer(host)
        comment = Comment(id="a", file="a.py", line=4)
        session.set_comments([comment])
        session.attach_buffer("a.py", buf)
        host.insert_lines(buf, 1, ["x"])

        session.detach_buffer("a.py")

        assert comment.line == 5
        assert session.buffer_for("a.py") is None
        assert session.tracker.tracked(buf) == []

    def test_sync_all(self, host, session) -> None:
        first = make_buffer(host)
        second = make_buffer(host)
        a = Comment(id="a", file="a.py", line=2)
        b = Comment(id="b", file="b.py", line=2)
        session.set_comments([a, b])
        session.attach_buffer("a.py", first)
        session.attach_buffer("b.py", second)
        host.insert_lines(first, 1, ["x"])
        host.insert_lines(second, 1, ["x", "y"])

        assert session.sync_all() == 2
        assert (a.line, b.line) == (3, 4)

    def test_unclamped_tracking_skips_stale_lines(self, host) -> None:
        config = ReviewConfig(tracking=TrackingConfig(clamp_stale_lines=False))
        s = ReviewSession(host, config=config)
        buf = make_buffer(host, count=5)
        comment = Comment(id="a", file="a.py", line=40)
        s.set_comments([comment])

        assert s.attach_buffer("a.py", buf) == []
        assert s.resolved_line(comment) == 40
