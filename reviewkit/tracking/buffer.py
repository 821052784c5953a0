"""Host text-buffer collaborator.

The tracker only needs a handful of things from the editing surface: whether
a buffer still exists, its line count, line-wise edit notifications and the
save/enter/close lifecycle hooks. `BufferHost` names that surface;
`MemoryBufferHost` is an in-process implementation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, Protocol

BUFFER_EVENTS = {"save", "enter", "close"}


@dataclass(frozen=True)
class BufferEdit:
    """A line-wise edit: `deleted` lines starting at `start` replaced by `inserted` lines.

    `start` is 1-based. A pure insertion has `deleted == 0` and puts the new
    lines before the old line `start`; a pure deletion has `inserted == 0`.
    """

    start: int
    deleted: int = 0
    inserted: int = 0

    def __post_init__(self) -> None:
        if self.start < 1:
            raise ValueError("start must be greater than zero")
        if self.deleted < 0:
            raise ValueError("deleted must not be negative")
        if self.inserted < 0:
            raise ValueError("inserted must not be negative")


EditListener = Callable[[int, BufferEdit], None]
BufferHook = Callable[[int], None]


class BufferHost(Protocol):
    def is_valid(self, buf: int) -> bool:
        ...

    def line_count(self, buf: int) -> int:
        ...

    def subscribe(self, buf: int, listener: EditListener) -> None:
        ...

    def unsubscribe(self, buf: int, listener: EditListener) -> None:
        ...

    def add_hook(self, event: str, callback: BufferHook) -> None:
        ...

    def remove_hook(self, event: str, callback: BufferHook) -> None:
        ...


class MemoryBufferHost:
    """Buffers held as lists of strings, with edit notifications."""

    def __init__(self) -> None:
        self._buffers: dict[int, list[str]] = {}
        self._names: dict[int, str | None] = {}
        self._listeners: dict[int, list[EditListener]] = {}
        self._hooks: dict[str, list[BufferHook]] = {event: [] for event in BUFFER_EVENTS}
        self._next_handle = 1

    def create(self, lines: Iterable[str] = (), name: str | None = None) -> int:
        buf = self._next_handle
        self._next_handle += 1
        self._buffers[buf] = list(lines)
        self._names[buf] = name
        return buf

    def is_valid(self, buf: int) -> bool:
        return buf in self._buffers

    def line_count(self, buf: int) -> int:
        return len(self._buffers.get(buf, ()))

    def name(self, buf: int) -> str | None:
        return self._names.get(buf)

    def lines(self, buf: int) -> list[str]:
        return list(self._buffers.get(buf, ()))

    def subscribe(self, buf: int, listener: EditListener) -> None:
        listeners = self._listeners.setdefault(buf, [])
        if listener not in listeners:
            listeners.append(listener)

    def unsubscribe(self, buf: int, listener: EditListener) -> None:
        listeners = self._listeners.get(buf)
        if listeners and listener in listeners:
            listeners.remove(listener)

    def add_hook(self, event: str, callback: BufferHook) -> None:
        if event not in BUFFER_EVENTS:
            raise ValueError(f"event must be one of {sorted(BUFFER_EVENTS)}")
        if callback not in self._hooks[event]:
            self._hooks[event].append(callback)

    def remove_hook(self, event: str, callback: BufferHook) -> None:
        hooks = self._hooks.get(event)
        if hooks and callback in hooks:
            hooks.remove(callback)

    def hook_count(self, event: str) -> int:
        return len(self._hooks.get(event, ()))

    def replace_lines(self, buf: int, start: int, end: int, new_lines: Iterable[str]) -> bool:
        """Replace lines `start..end` (inclusive, 1-based) with `new_lines`.

        `end == start - 1` inserts before `start` without deleting anything.
        """
        content = self._buffers.get(buf)
        if content is None:
            return False
        replacement = list(new_lines)
        start = min(max(start, 1), len(content) + 1)
        end = min(max(end, start - 1), len(content))
        deleted = end - start + 1
        if deleted == 0 and not replacement:
            return True

        content[start - 1:end] = replacement
        self._notify(buf, BufferEdit(start=start, deleted=deleted, inserted=len(replacement)))
        return True

    def insert_lines(self, buf: int, at: int, new_lines: Iterable[str]) -> bool:
        """Insert before line `at`; `at == line_count + 1` appends."""
        return self.replace_lines(buf, at, at - 1, new_lines)

    def delete_lines(self, buf: int, start: int, end: int | None = None) -> bool:
        return self.replace_lines(buf, start, start if end is None else end, ())

    def set_line(self, buf: int, lnum: int, text: str) -> bool:
        if not 1 <= lnum <= self.line_count(buf):
            return False
        return self.replace_lines(buf, lnum, lnum, [text])

    def set_lines(self, buf: int, new_lines: Iterable[str]) -> bool:
        """Replace the whole buffer content."""
        return self.replace_lines(buf, 1, self.line_count(buf), new_lines)

    def save(self, buf: int) -> None:
        if self.is_valid(buf):
            self._fire("save", buf)

    def enter(self, buf: int) -> None:
        if self.is_valid(buf):
            self._fire("enter", buf)

    def close(self, buf: int) -> None:
        if self._buffers.pop(buf, None) is None:
            return
        self._names.pop(buf, None)
        self._listeners.pop(buf, None)
        self._fire("close", buf)

    def _notify(self, buf: int, edit: BufferEdit) -> None:
        for listener in list(self._listeners.get(buf, ())):
            listener(buf, edit)

    def _fire(self, event: str, buf: int) -> None:
        for callback in list(self._hooks[event]):
            callback(buf)
