"""Best-effort diagnostics written to stderr."""

from __future__ import annotations

import sys


def warn(component: str, message: str) -> None:
    """Print a `component: message` warning to stderr."""
    print(f"{component}: {message}", file=sys.stderr)
