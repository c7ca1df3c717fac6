"""Path and URL helpers for picture filenames.

A picture filename is whatever the user attached to the dive: a local path,
a ``file://`` URL or a remote URL. Qt's ``QUrl.fromUserInput`` decides which
one it is, the same way the rest of the application interprets user input.
"""

from __future__ import annotations

from pathlib import Path, PurePosixPath

from PySide6.QtCore import QStandardPaths, QUrl

_DOWNLOAD_SCHEMES = ("http", "https")


def user_url(filename: str) -> QUrl:
    return QUrl.fromUserInput(str(filename or ""))


def local_file(filename: str) -> str | None:
    """Local filesystem path for ``filename``, or None when it names a remote resource."""
    url = user_url(filename)
    if url.isLocalFile():
        return url.toLocalFile()
    return None


def is_downloadable(filename: str) -> bool:
    url = user_url(filename)
    return url.isValid() and url.scheme().lower() in _DOWNLOAD_SCHEMES


def file_name(filename: str) -> str:
    """Last path component of a local path or URL."""
    if is_downloadable(filename):
        name = PurePosixPath(user_url(filename).path()).name
        if name:
            return name
    return Path(str(filename).replace("\\", "/")).name


def cache_location() -> Path:
    """Directory that receives downloaded pictures, named by their content hash."""
    locations = QStandardPaths.standardLocations(QStandardPaths.StandardLocation.CacheLocation)
    if locations:
        return Path(locations[0])
    return Path.home() / ".cache" / "dive_pictures"


def app_data_location() -> Path:
    location = QStandardPaths.writableLocation(QStandardPaths.StandardLocation.AppDataLocation)
    if location:
        return Path(location)
    return Path.home() / ".local" / "share" / "dive_pictures"
