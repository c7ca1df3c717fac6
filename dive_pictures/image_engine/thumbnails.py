"""Thumbnail scaling with a per-filename image cache."""

from __future__ import annotations

import threading

from PySide6.QtCore import Qt
from PySide6.QtGui import QImage

from dive_pictures.dive import Picture
from dive_pictures.image_engine.downloader import PictureFetcher
from dive_pictures.image_engine.hash_registry import HashRegistry
from dive_pictures.image_engine.hashed_image import load_hashed_image
from dive_pictures.image_engine.metrics import metrics
from dive_pictures.logger import get_logger

_logger = get_logger("thumbnails")


class ThumbnailScaler:
    """Scales dive pictures to square icon bounds, keeping the aspect ratio.

    ``scale_image`` runs on pool threads during a model refresh; QImage is
    safe to load and scale off the GUI thread.
    """

    def __init__(self, size: int, registry: HashRegistry, fetcher: PictureFetcher | None = None) -> None:
        self.size = int(size)
        self._registry = registry
        self._fetcher = fetcher
        self._cache: dict[str, QImage] = {}
        self._lock = threading.Lock()

    def cached(self, filename: str) -> QImage | None:
        with self._lock:
            image = self._cache.get(filename)
        if image is None or image.isNull():
            return None
        return image

    def scale_image(self, picture: Picture) -> tuple[Picture, QImage]:
        image = self.cached(picture.filename)
        if image is not None:
            metrics.inc("thumbnails.cache_hit")
            return picture, image

        metrics.inc("thumbnails.cache_miss")
        image = load_hashed_image(picture, self._registry, self._fetcher)
        if image.isNull():
            # Not cached: the next refresh tries again (e.g. after a download).
            return picture, image

        image = image.scaled(
            self.size,
            self.size,
            Qt.AspectRatioMode.KeepAspectRatio,
            Qt.TransformationMode.SmoothTransformation,
        )
        with self._lock:
            self._cache[picture.filename] = image
        _logger.debug("scaled %s to %dx%d", picture.filename, image.width(), image.height())
        return picture, image

    def invalidate(self, filename: str) -> None:
        with self._lock:
            self._cache.pop(filename, None)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)
