"""Shared fixtures; puts the repo root on sys.path for uninstalled runs."""
import sys
from pathlib import Path

import pytest

ROOT_DIR = Path(__file__).parent.parent

if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from reviewkit.tracking import MemoryBufferHost  # noqa: E402


@pytest.fixture
def host() -> MemoryBufferHost:
    return MemoryBufferHost()
