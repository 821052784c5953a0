"""Unified diff parser.

Turns `git diff` output into `File` entries with their hunks and lines. The
parser is a single left-to-right scan and never raises: anything it does not
recognize is skipped.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from .models import ADD, ADDED, CONTEXT, DELETE, DELETED, RENAMED, DiffLine, File, Hunk

_QUOTED_PATH = r'"(?:[^"\\]|\\.)*"'
_FILE_HEADER_RE = re.compile(
    rf"^diff --git (?P<old_path>{_QUOTED_PATH}|a/.*?) (?P<new_path>{_QUOTED_PATH}|b/.*)$"
)
_DIFF_GIT = "diff --git "
_ESCAPE_RE = re.compile(rb"\\([0-7]{1,3}|.)")
_ESCAPES = {b"a": 7, b"b": 8, b"t": 9, b"n": 10, b"v": 11, b"f": 12, b"r": 13}
_HUNK_RE = re.compile(
    r"^@@ -(?P<old_start>\d+)(?:,(?P<old_count>\d*))? \+(?P<new_start>\d+)(?:,(?P<new_count>\d*))? @@"
)
_RENAME_FROM = "rename from "
_RENAME_TO = "rename to "


@dataclass
class _OpenHunk:
    old_start: int
    old_count: int
    new_start: int
    new_count: int
    header: str
    old_line: int
    new_line: int
    lines: list[DiffLine] = field(default_factory=list)

    @classmethod
    def from_header(cls, header: str) -> "_OpenHunk | None":
        m = _HUNK_RE.match(header)
        if not m:
            return None
        old_start = int(m.group("old_start"))
        new_start = int(m.group("new_start"))
        return cls(
            old_start=old_start,
            old_count=_count(m.group("old_count")),
            new_start=new_start,
            new_count=_count(m.group("new_count")),
            header=header,
            old_line=old_start,
            new_line=new_start,
        )

    def has_room(self) -> bool:
        return (
            self.old_line < self.old_start + self.old_count
            or self.new_line < self.new_start + self.new_count
        )

    def has_room_on_both_sides(self) -> bool:
        return (
            self.old_line < self.old_start + self.old_count
            and self.new_line < self.new_start + self.new_count
        )

    def feed(self, raw: str) -> DiffLine | None:
        """Consume one body line; returns the DiffLine it produced, if any."""
        if not raw:
            # Some tools strip the single space off blank context lines.
            if not self.has_room_on_both_sides():
                return None
            return self._context("")

        if not self.has_room():
            return None

        prefix = raw[0]
        content = raw[1:]
        if prefix == "+":
            line = DiffLine(kind=ADD, content=content, new_line=self.new_line)
            self.new_line += 1
        elif prefix == "-":
            line = DiffLine(kind=DELETE, content=content, old_line=self.old_line)
            self.old_line += 1
        elif prefix == " ":
            return self._context(content)
        else:
            # "\ No newline at end of file" and anything unrecognized.
            return None

        self.lines.append(line)
        return line

    def _context(self, content: str) -> DiffLine:
        line = DiffLine(
            kind=CONTEXT,
            content=content,
            old_line=self.old_line,
            new_line=self.new_line,
        )
        self.old_line += 1
        self.new_line += 1
        self.lines.append(line)
        return line

    def freeze(self) -> Hunk:
        return Hunk(
            old_start=self.old_start,
            old_count=self.old_count,
            new_start=self.new_start,
            new_count=self.new_count,
            header=self.header,
            lines=tuple(self.lines),
        )


def _count(raw: str | None) -> int:
    # An omitted count means a single line.
    if not raw:
        return 1
    return int(raw)


def _physical_lines(text: str | None) -> list[str]:
    """Split on `\\n` only; form feeds and Unicode separators are line content."""
    lines = (text or "").split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def _unquote(path: str) -> str:
    """Undo git's C-style quoting (`"t\\303\\251st"`) of unusual paths."""
    if len(path) < 2 or not (path.startswith('"') and path.endswith('"')):
        return path

    def unescape(m: re.Match[bytes]) -> bytes:
        code = m.group(1)
        if code.isdigit():
            return bytes([int(code, 8) & 0xFF])
        return bytes([_ESCAPES[code]]) if code in _ESCAPES else code

    raw = _ESCAPE_RE.sub(unescape, path[1:-1].encode("utf-8"))
    return raw.decode("utf-8", errors="replace")


def _header_path(token: str, prefix: str) -> str:
    path = _unquote(token)
    return path[len(prefix):] if path.startswith(prefix) else path


def parse(text: str | None) -> list[File]:
    """Parse unified diff text into files, in the order they appear."""
    files: list[File] = []
    current_file: File | None = None
    current_hunk: _OpenHunk | None = None

    def flush_hunk() -> None:
        nonlocal current_hunk
        if current_hunk is not None and current_file is not None:
            current_file.hunks.append(current_hunk.freeze())
        current_hunk = None

    def flush_file() -> None:
        nonlocal current_file
        flush_hunk()
        if current_file is not None:
            files.append(current_file)
        current_file = None

    for raw in _physical_lines(text):
        if raw.startswith(_DIFF_GIT):
            flush_file()
            m = _FILE_HEADER_RE.match(raw)
            # An unreadable header still ends the previous file; its hunks are dropped.
            if m:
                current_file = File(path=_header_path(m.group("new_path"), "b/"))
            continue

        if raw.startswith("@@"):
            opened = _OpenHunk.from_header(raw)
            if opened is not None:
                flush_hunk()
                current_hunk = opened
                continue

        if current_hunk is not None:
            line = current_hunk.feed(raw)
            if line is not None and current_file is not None:
                if line.kind == ADD:
                    current_file.additions += 1
                elif line.kind == DELETE:
                    current_file.deletions += 1
            continue

        if current_file is None:
            continue

        if raw.startswith("new file mode"):
            current_file.status = ADDED
        elif raw.startswith("deleted file mode"):
            current_file.status = DELETED
        elif raw.startswith(_RENAME_FROM):
            current_file.status = RENAMED
            current_file.old_path = _unquote(raw[len(_RENAME_FROM):])
        elif raw.startswith(_RENAME_TO):
            current_file.path = _unquote(raw[len(_RENAME_TO):])

    flush_file()
    return files


def parse_hunk(text: str | None) -> Hunk | None:
    """Parse a standalone hunk whose first line is its `@@` header."""
    lines = _physical_lines(text)
    if not lines:
        return None

    opened = _OpenHunk.from_header(lines[0])
    if opened is None:
        return None

    for raw in lines[1:]:
        opened.feed(raw)
    return opened.freeze()
