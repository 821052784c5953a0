"""Review comments: records, session state, navigation, persistence and export."""

from .models import Comment
from .ordering import ALL, CURRENT_FILE, PENDING, UNRESOLVED, CommentCounts, CommentNavigator, sort_comments
from .session import ReviewSession, SessionStats

__all__ = [
    "ALL",
    "CURRENT_FILE",
    "Comment",
    "CommentCounts",
    "CommentNavigator",
    "PENDING",
    "ReviewSession",
    "SessionStats",
    "UNRESOLVED",
    "sort_comments",
]
