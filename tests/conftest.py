"""Pytest configuration.

The suite builds QImages and item views, so a single `QApplication` is
created for the whole session as early as possible (before collection
imports Qt modules) and shut down cleanly at the end. Qt runs offscreen.
"""

from __future__ import annotations

import hashlib
import os
from pathlib import Path
from typing import Any

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

_APP: Any | None = None


def pytest_configure(config) -> None:  # noqa: ARG001
    """Ensure a QApplication exists before collecting/running tests."""

    # Import lazily so non-Qt environments can still import this conftest.
    try:
        from PySide6.QtWidgets import QApplication
    except ImportError:
        return

    global _APP

    app = QApplication.instance()
    if app is None:
        # Keep a strong ref so it isn't GC'd mid-session.
        _APP = QApplication([])
    else:
        _APP = app


def pytest_sessionfinish(session, exitstatus) -> None:  # noqa: ARG001
    """Attempt a clean Qt shutdown to avoid lingering threads at interpreter exit."""

    try:
        from PySide6.QtWidgets import QApplication
    except ImportError:
        return

    app = QApplication.instance()
    if app is None:
        return

    app.quit()
    app.processEvents()


def png_bytes(width: int, height: int, color: str = "red") -> bytes:
    from PySide6.QtCore import QBuffer, QIODevice
    from PySide6.QtGui import QColor, QImage

    image = QImage(width, height, QImage.Format.Format_RGB32)
    image.fill(QColor(color))
    buf = QBuffer()
    buf.open(QIODevice.OpenModeFlag.WriteOnly)
    image.save(buf, "PNG")
    return bytes(buf.data().data())


def sha1(data: bytes) -> bytes:
    return hashlib.sha1(data).digest()


@pytest.fixture
def make_picture_file(tmp_path: Path):
    """Write a PNG of the given size and return its path."""

    def _make(name: str = "a.png", width: int = 40, height: int = 20, color: str = "red") -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(png_bytes(width, height, color))
        return path

    return _make


@pytest.fixture
def registry():
    from dive_pictures.image_engine.hash_registry import HashRegistry

    return HashRegistry()


@pytest.fixture(autouse=True)
def _reset_metrics():
    from dive_pictures.image_engine.metrics import metrics

    metrics.reset()
    yield
    metrics.reset()


class FakeFetcher:
    """Records background requests instead of running them."""

    def __init__(self) -> None:
        self.downloads: list[str] = []
        self.hash_updates: list[str] = []

    def download(self, picture):
        self.downloads.append(picture.filename)

    def update_hash(self, picture):
        self.hash_updates.append(picture.filename)


@pytest.fixture
def fake_fetcher() -> FakeFetcher:
    return FakeFetcher()
