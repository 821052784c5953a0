"""Review export: markdown for humans and AI assistants, plain text and JSON.

Keep surface area small: location labels, comment lines and an optional diff
block.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import datetime, timezone

from ..config import EXPORT_FORMATS, ExportConfig
from .models import COMMENT_TYPES, DEFAULT_COMMENT_TYPE, LOCAL, Comment
from .ordering import sort_comments
from .session import ReviewSession

INSTRUCTIONS = "I reviewed your code and have the following comments. Please address them."
TYPE_LEGEND = (
    "Comment types: **ISSUE** (problems to fix), **SUGGESTION** (improvements), "
    "**NOTE** (observations), **PRAISE** (positive feedback)"
)


@dataclass(frozen=True)
class PullRequest:
    """PR metadata shown in the export header."""
    number: int
    title: str
    author: str = ""
    branch: str = ""
    base: str = ""
    description: str = ""
    additions: int = 0
    deletions: int = 0
    changed_files: int = 0


@dataclass(frozen=True)
class ExportOptions:
    format: str = "markdown"
    include_diff: bool = True
    include_comments: bool = True
    include_pr_info: bool = True
    include_instructions: bool = True
    only_pending: bool = False
    comment_types: tuple[str, ...] | None = None

    def __post_init__(self) -> None:
        if self.format not in EXPORT_FORMATS:
            raise ValueError(f"format must be one of {list(EXPORT_FORMATS)}")

    @classmethod
    def from_config(cls, config: ExportConfig) -> "ExportOptions":
        return cls(
            format=config.format,
            include_diff=config.include_diff,
            include_comments=config.include_comments,
            include_instructions=config.include_instructions,
            only_pending=config.only_pending,
            comment_types=config.comment_types,
        )


def type_label(comment: Comment) -> str:
    if comment.comment_type:
        return comment.comment_type.upper()
    if comment.kind == LOCAL:
        return "NOTE"
    return "COMMENT"


def _location_label(comment: Comment, line: int | None) -> str:
    path = (comment.file or "").strip()
    if not path:
        return ""
    if line is not None and line > 0:
        return f"{path}:{line}"
    return path


def select_comments(session: ReviewSession, options: ExportOptions) -> list[Comment]:
    """Comments to export, filtered by options and sorted by (file, line)."""
    comments = list(session.comments)
    if options.only_pending:
        comments = [c for c in comments if c.is_pending]
    if options.comment_types is not None:
        allowed = set(options.comment_types)
        comments = [c for c in comments if (c.comment_type or DEFAULT_COMMENT_TYPE) in allowed]
    return sort_comments(comments, session.resolved_line)


def _pr_header(pr: PullRequest) -> list[str]:
    lines = [
        f"# PR #{pr.number}: {pr.title}",
        "",
        f"**Author:** @{pr.author}",
        f"**Branch:** {pr.branch} -> {pr.base}",
        f"**Changes:** +{pr.additions} -{pr.deletions} ({pr.changed_files} files)",
    ]
    if pr.description:
        lines.extend(["", "## Description", "", pr.description])
    lines.append("")
    return lines


def generate_markdown(
    session: ReviewSession,
    options: ExportOptions | None = None,
    *,
    diff_text: str | None = None,
    pr: PullRequest | None = None,
) -> str:
    opts = options or ExportOptions()
    lines: list[str] = []

    if session.mode == "pr" and pr is not None and opts.include_pr_info:
        lines.extend(_pr_header(pr))
    else:
        lines.extend(["# Code Review", ""])

    if opts.include_instructions:
        lines.extend(["---", "", INSTRUCTIONS, "", TYPE_LEGEND, ""])

    if opts.include_comments:
        comments = select_comments(session, opts)
        if comments:
            lines.extend(["## Review Comments", ""])
            for idx, comment in enumerate(comments, start=1):
                location = _location_label(comment, session.resolved_line(comment))
                if location:
                    lines.append(f"{idx}. **[{type_label(comment)}]** `{location}` - {comment.body}")
                else:
                    lines.append(f"{idx}. **[{type_label(comment)}]** {comment.body}")
            lines.append("")
        else:
            lines.extend(["No comments yet.", ""])

    if opts.include_diff and diff_text:
        lines.extend(["## Diff", "", "```diff", diff_text.rstrip("\n"), "```", ""])

    return "\n".join(lines)


def generate_plain(session: ReviewSession, options: ExportOptions | None = None) -> str:
    opts = options or ExportOptions(format="plain")
    lines: list[str] = []
    for idx, comment in enumerate(select_comments(session, opts), start=1):
        location = _location_label(comment, session.resolved_line(comment))
        if location:
            lines.append(f"{idx}. [{type_label(comment)}] {location} - {comment.body}")
        else:
            lines.append(f"{idx}. [{type_label(comment)}] {comment.body}")
    return "\n".join(lines)


def generate_json(
    session: ReviewSession,
    options: ExportOptions | None = None,
    *,
    pr: PullRequest | None = None,
) -> str:
    opts = options or ExportOptions(format="json")
    comments = select_comments(session, opts)
    data = {
        "mode": session.mode,
        "pr": asdict(pr) if pr is not None else None,
        "files": [
            {
                "path": file.path,
                "status": file.status,
                "additions": file.additions,
                "deletions": file.deletions,
                "old_path": file.old_path,
                "comment_count": file.comment_count,
                "reviewed": file.reviewed,
            }
            for file in session.files
        ],
        "comments": [
            {**comment.to_dict(), "line": session.resolved_line(comment)}
            if comment.file is not None
            else comment.to_dict()
            for comment in comments
        ],
        "exported_at": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
    }
    return json.dumps(data, indent=2)


def generate(
    session: ReviewSession,
    options: ExportOptions | None = None,
    *,
    diff_text: str | None = None,
    pr: PullRequest | None = None,
) -> str:
    opts = options or ExportOptions.from_config(session.config.export)
    if opts.format == "json":
        return generate_json(session, opts, pr=pr)
    if opts.format == "plain":
        return generate_plain(session, opts)
    return generate_markdown(session, opts, diff_text=diff_text, pr=pr)


def comment_summary(session: ReviewSession) -> dict[str, int]:
    """Count local comments per type; unknown types land in `other`."""
    summary = {name: 0 for name in COMMENT_TYPES}
    summary["other"] = 0
    summary["total"] = 0
    for comment in session.comments:
        if comment.kind != LOCAL:
            continue
        name = comment.comment_type or DEFAULT_COMMENT_TYPE
        if name in COMMENT_TYPES:
            summary[name] += 1
        else:
            summary["other"] += 1
        summary["total"] += 1
    return summary
