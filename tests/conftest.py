"""Shared pytest fixtures for folder browser tests.

Provides a temporary directory tree, a scan channel, and a running scan
worker that is shut down and joined after each test.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from foldersearch.worker import ScanChannel, ScanWorker


@pytest.fixture
def tmp_tree(tmp_path: Path) -> Path:
    """Create a small directory tree to browse.

    Structure:
        root/
          foo/
            inner/
          bar/
          .github/            (skipped: .git prefix)
          node_modules/       (skipped: default ignore list)
          node_modules_old/   (kept: ignore is exact-name)
          README.txt          (file, never listed)
    """
    root = tmp_path / "root"
    root.mkdir()
    (root / "foo" / "inner").mkdir(parents=True)
    (root / "bar").mkdir()
    (root / ".github").mkdir()
    (root / "node_modules").mkdir()
    (root / "node_modules_old").mkdir()
    (root / "README.txt").write_text("not a directory")
    return root


@pytest.fixture
def channel() -> ScanChannel:
    """A fresh scan channel, shut down afterwards if the test left it open."""
    ch = ScanChannel()
    yield ch
    if not ch.closed:
        ch.shutdown()


@pytest.fixture
def worker(channel: ScanChannel) -> ScanWorker:
    """A started scan worker on ``channel``."""
    w = ScanWorker(channel)
    w.start()
    yield w
    if not channel.closed:
        channel.shutdown()
    w.join(2.0)
