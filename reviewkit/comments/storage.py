"""JSON sidecar persistence for local review comments.

One file per repository and branch (or per pull request) under the data
directory. Only local comments are written; comments fetched from the code
host are re-fetched, not stored.
"""

from __future__ import annotations

import json
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable

from ..diagnostics import warn
from .models import LOCAL, Comment

STORAGE_VERSION = 1
_COMPONENT = "review-storage"
_PR_SUFFIX_RE = re.compile(r"-pr-(?P<number>\d+)$")


def _hash(text: str) -> str:
    h = 0
    for ch in text.encode("utf-8"):
        h = (h * 31 + ch) % 2147483647
    return f"{h:x}"


def _sanitize(name: str) -> str:
    return re.sub(r"[^A-Za-z0-9_-]", "_", name)


def storage_path(data_dir: Path, repo_root: str, branch: str) -> Path:
    return Path(data_dir) / f"{_hash(repo_root)}-{_sanitize(branch)}.json"


def pr_storage_path(data_dir: Path, repo_root: str, pr_number: int) -> Path:
    return Path(data_dir) / f"{_hash(repo_root)}-pr-{int(pr_number)}.json"


def save_comments(comments: Iterable[Comment], path: Path) -> bool:
    """Write local comments to `path`; removes the file when there are none."""
    path = Path(path)
    local_comments = [comment.to_dict() for comment in comments if comment.kind == LOCAL]

    if not local_comments:
        path.unlink(missing_ok=True)
        return True

    payload = {
        "comments": local_comments,
        "metadata": {
            "saved_at": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
            "version": STORAGE_VERSION,
        },
    }
    try:
        encoded = json.dumps(payload, indent=2)
    except (TypeError, ValueError) as exc:
        warn(_COMPONENT, f"failed to encode comments: {exc}")
        return False

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(encoded + "\n", encoding="utf-8")
    except OSError as exc:
        warn(_COMPONENT, f"failed to write {path}: {exc}")
        return False
    return True


def load_comments(path: Path) -> list[Comment]:
    """Read comments saved by `save_comments`; unreadable files give an empty list."""
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return []
    except OSError as exc:
        warn(_COMPONENT, f"ignoring unreadable {path}: {exc}")
        return []

    if not content.strip():
        return []

    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        warn(_COMPONENT, f"ignoring invalid JSON in {path}: {exc}")
        return []

    # Older files hold a bare list of comments.
    if isinstance(data, dict):
        data = data.get("comments")
    if not isinstance(data, list):
        return []

    comments: list[Comment] = []
    for item in data:
        comment = Comment.from_dict(item) if isinstance(item, dict) else None
        if comment is not None:
            comments.append(comment)
    return comments


def clear_stored(path: Path) -> bool:
    Path(path).unlink(missing_ok=True)
    return True


def has_stored(path: Path) -> bool:
    return Path(path).is_file()


def list_stored(data_dir: Path) -> list[dict[str, object]]:
    """Describe every stored review file: its path and the branch or PR it belongs to."""
    directory = Path(data_dir)
    if not directory.is_dir():
        return []

    stored: list[dict[str, object]] = []
    for file in sorted(directory.glob("*.json")):
        entry: dict[str, object] = {"path": str(file)}
        m = _PR_SUFFIX_RE.search(file.stem)
        if m:
            entry["pr"] = int(m.group("number"))
        else:
            _project, _sep, branch = file.stem.partition("-")
            if branch:
                entry["branch"] = branch
        stored.append(entry)
    return stored
