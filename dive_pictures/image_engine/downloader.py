"""Background download of remote dive pictures into the content-hash cache.

A picture whose file is neither local nor known to the hash registry is
fetched once, stored under ``<cache_dir>/<sha1 hex>`` and registered, so the
next model refresh finds it through the hash lookup.
"""

from __future__ import annotations

import hashlib
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path

import httpx
from PySide6.QtCore import QObject, Signal
from PySide6.QtGui import QImage

from dive_pictures.dive import Picture
from dive_pictures.image_engine.hash_registry import HashRegistry
from dive_pictures.image_engine.metrics import metrics
from dive_pictures.logger import get_logger
from dive_pictures.path_utils import is_downloadable, user_url

_logger = get_logger("downloader")


class DownloadError(Exception):
    def __init__(self, filename: str, reason: str) -> None:
        super().__init__(f"{filename}: {reason}")
        self.filename = filename
        self.reason = reason


class ImageDownloader:
    """Fetch one picture and store it in the cache directory.

    ``client`` is shared by the caller when given; otherwise a short-lived
    client is opened for the single request.
    """

    def __init__(
        self,
        picture: Picture,
        registry: HashRegistry,
        cache_dir: Path,
        client: httpx.Client | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.picture = picture
        self._registry = registry
        self._cache_dir = Path(cache_dir)
        self._client = client
        self._timeout = timeout

    def load(self) -> Path | None:
        filename = self.picture.filename
        if not is_downloadable(filename):
            _logger.debug("load skip(not downloadable): %s", filename)
            return None

        url = user_url(filename).toString()
        _logger.debug("download start: %s", url)
        try:
            if self._client is not None:
                response = self._client.get(url, timeout=self._timeout)
            else:
                with httpx.Client(timeout=self._timeout, follow_redirects=True) as client:
                    response = client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise DownloadError(filename, str(e)) from e

        return self.save_image(response.content)

    def save_image(self, data: bytes) -> Path:
        if QImage.fromData(data).isNull():
            raise DownloadError(self.picture.filename, f"not an image ({len(data)} bytes)")

        digest = hashlib.sha1(data).digest()
        path = self._cache_dir / digest.hex()
        try:
            self._cache_dir.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            raise DownloadError(self.picture.filename, f"cannot write {path}: {e}") from e

        self._registry.add_hash(str(path), digest)
        self._registry.learn_hash(self.picture, digest)
        _logger.debug("download saved: %s -> %s (%d bytes)", self.picture.filename, path, len(data))
        return path


class PictureFetcher(QObject):
    """Runs downloads and hash updates on a small worker pool.

    Signals are emitted from worker threads; receivers living on the GUI
    thread get them queued.
    """

    picture_downloaded = Signal(str)  # original filename
    download_failed = Signal(str, str)  # original filename, error
    hash_updated = Signal(str)

    def __init__(
        self,
        registry: HashRegistry,
        cache_dir: Path,
        timeout: float = 30.0,
        max_workers: int = 4,
        client: httpx.Client | None = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._registry = registry
        self._cache_dir = Path(cache_dir)
        self._timeout = timeout
        self._owns_client = client is None
        self._client = client if client is not None else httpx.Client(timeout=timeout, follow_redirects=True)
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="picture-fetch")
        self._pending: set[str] = set()
        # Filenames whose download failed; not requested again in this session.
        self._failed: set[str] = set()
        self._lock = threading.Lock()
        self._closed = False
        _logger.debug("PictureFetcher init: cache_dir=%s workers=%s", self._cache_dir, max_workers)

    @property
    def cache_dir(self) -> Path:
        return self._cache_dir

    @property
    def registry(self) -> HashRegistry:
        return self._registry

    def is_pending(self, filename: str) -> bool:
        with self._lock:
            return filename in self._pending

    def has_failed(self, filename: str) -> bool:
        with self._lock:
            return filename in self._failed

    def download(self, picture: Picture) -> Future | None:
        filename = picture.filename
        with self._lock:
            if self._closed:
                return None
            if filename in self._pending:
                _logger.debug("download dedupe(pending): %s", filename)
                return None
            if filename in self._failed:
                _logger.debug("download skip(failed before): %s", filename)
                return None
            self._pending.add(filename)
        return self._pool.submit(self._download, picture)

    def update_hash(self, picture: Picture) -> Future | None:
        with self._lock:
            if self._closed:
                return None
        return self._pool.submit(self._update_hash, picture)

    def _download(self, picture: Picture) -> Path | None:
        filename = picture.filename
        downloader = ImageDownloader(picture, self._registry, self._cache_dir, self._client, self._timeout)
        try:
            path = downloader.load()
        except DownloadError as e:
            metrics.inc("downloads.failed")
            self._mark_failed(filename)
            _logger.warning("download failed: %s", e)
            self.download_failed.emit(filename, e.reason)
            return None
        except Exception as e:
            metrics.inc("downloads.failed")
            self._mark_failed(filename)
            _logger.exception("download crashed: %s", filename)
            self.download_failed.emit(filename, str(e))
            return None
        finally:
            with self._lock:
                self._pending.discard(filename)

        if path is None:
            self._mark_failed(filename)
            return None
        metrics.inc("downloads.saved")
        self.picture_downloaded.emit(filename)
        return path

    def _mark_failed(self, filename: str) -> None:
        with self._lock:
            self._failed.add(filename)

    def _update_hash(self, picture: Picture) -> bytes:
        try:
            digest = self._registry.update_hash(picture)
        except Exception:
            _logger.exception("update_hash failed: %s", picture.filename)
            return b""
        if digest:
            self.hash_updated.emit(picture.filename)
        return digest

    def shutdown(self, wait: bool = False) -> None:
        with self._lock:
            self._closed = True
        self._pool.shutdown(wait=wait, cancel_futures=True)
        if self._owns_client:
            self._client.close()
