from __future__ import annotations

from PySide6.QtGui import QImage

from dive_pictures.dive import Picture
from dive_pictures.image_engine.downloader import PictureFetcher
from dive_pictures.image_engine.hash_registry import HashRegistry
from dive_pictures.logger import get_logger
from dive_pictures.path_utils import local_file

_logger = get_logger("hashed_image")


def load_hashed_image(picture: Picture, registry: HashRegistry, fetcher: PictureFetcher | None = None) -> QImage:
    """Load the image behind ``picture``, falling back to the content-hash cache.

    A local original is loaded and hashed right away. Otherwise the cached
    copy registered for ``picture.hash`` is used and re-hashed in the
    background; with no cached copy a background download is started and a
    null image is returned until it lands.
    """
    image = QImage()
    path = local_file(picture.filename)
    if path:
        image.load(path)

    if not image.isNull():
        digest = registry.hash_file(path)
        if digest:
            registry.learn_hash(picture, digest)
        return image

    cached = registry.file_from_hash(picture.hash)
    if cached:
        image.load(cached)

    if not image.isNull():
        _logger.debug("loaded from hash cache: %s -> %s", picture.filename, cached)
        if fetcher is not None:
            fetcher.update_hash(picture)
    elif fetcher is not None:
        _logger.debug("not available locally, downloading: %s", picture.filename)
        fetcher.download(picture)
    return image
