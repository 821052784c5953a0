"""Buffer-attached anchors for review comments."""

from .anchors import Anchor, AnchorTracker, TrackedRecord, shift_line
from .buffer import BUFFER_EVENTS, BufferEdit, BufferHost, MemoryBufferHost

__all__ = [
    "Anchor",
    "AnchorTracker",
    "BUFFER_EVENTS",
    "BufferEdit",
    "BufferHost",
    "MemoryBufferHost",
    "TrackedRecord",
    "shift_line",
]
