"""Image Engine - picture loading behind the dive picture model.

This package provides:
- Content-hash lookup and registration (hash_registry)
- Background download into the hash cache (downloader)
- Local/cached/remote picture loading (hashed_image)
- Thumbnail scaling and caching (thumbnails)

Usage:
    from dive_pictures.image_engine import HashRegistry, PictureFetcher, ThumbnailScaler

    registry = HashRegistry()
    fetcher = PictureFetcher(registry, cache_dir)
    scaler = ThumbnailScaler(128, registry, fetcher)
    picture, image = scaler.scale_image(picture)
"""

from .downloader import DownloadError, ImageDownloader, PictureFetcher
from .hash_registry import HashRegistry, default_registry
from .hashed_image import load_hashed_image
from .thumbnails import ThumbnailScaler

__all__ = [
    "DownloadError",
    "HashRegistry",
    "ImageDownloader",
    "PictureFetcher",
    "ThumbnailScaler",
    "default_registry",
    "load_hashed_image",
]
