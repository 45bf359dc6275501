"""Pytest configuration for test isolation.

The service writes rotating log files under ``BANKDASH_LOG_DIR`` (default
``./logs``). ``bankdash.app`` builds an app at import time, so the variable is
pointed at a throwaway directory before any test module is imported, and
again per test so nothing lands in the working tree.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

import pytest

os.environ.setdefault("BANKDASH_LOG_DIR", tempfile.mkdtemp(prefix="bankdash-logs-"))
os.environ.setdefault("BANKDASH_API_URL", "http://bankdash.test/api")


@pytest.fixture(autouse=True)
def _isolate_log_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    log_dir = tmp_path / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    monkeypatch.setenv("BANKDASH_LOG_DIR", os.fspath(log_dir))
