"""Content-hash registry for dive pictures.

Pictures are identified by the SHA-1 of their bytes. The registry remembers
two things:

- which digest an original filename (local path or URL) has, and
- where a local copy of the content with a given digest lives.

Together they let a picture whose original location is gone (a camera card,
a web album) be served from the download cache. Both maps are shared between
the GUI thread and background hash/download tasks, so every access goes
through one lock.
"""

from __future__ import annotations

import hashlib
import json
import threading
from pathlib import Path

from dive_pictures.dive import Picture
from dive_pictures.logger import get_logger

_logger = get_logger("hash_registry")

_CHUNK = 1 << 16


def _from_hex(hex_hash: str | None) -> bytes | None:
    if not hex_hash:
        return None
    try:
        return bytes.fromhex(hex_hash)
    except (TypeError, ValueError):
        return None


class HashRegistry:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._hash_of: dict[str, bytes] = {}
        self._local_filename_of: dict[bytes, str] = {}

    def hash_file(self, path: str | Path) -> bytes:
        """SHA-1 of the file content; the file is registered as the local copy of that digest."""
        sha = hashlib.sha1()
        try:
            with open(path, "rb") as f:
                for chunk in iter(lambda: f.read(_CHUNK), b""):
                    sha.update(chunk)
        except OSError as e:
            _logger.warning("hash_file failed for %s: %s", path, e)
            return b""
        digest = sha.digest()
        self.add_hash(str(path), digest)
        return digest

    def add_hash(self, filename: str, digest: bytes) -> None:
        with self._lock:
            self._hash_of[filename] = digest
            self._local_filename_of[digest] = filename

    def learn_hash(self, picture: Picture, digest: bytes) -> None:
        with self._lock:
            self._hash_of[picture.filename] = digest
            picture.hash = digest.hex()

    def hash_of(self, filename: str) -> bytes | None:
        with self._lock:
            return self._hash_of.get(filename)

    def file_from_hash(self, hex_hash: str | None) -> str:
        digest = _from_hex(hex_hash)
        if digest is None:
            return ""
        with self._lock:
            return self._local_filename_of.get(digest, "")

    def update_hash(self, picture: Picture) -> bytes:
        """Re-hash the local copy of ``picture`` and learn the result."""
        local = self.file_from_hash(picture.hash)
        if not local:
            _logger.debug("update_hash: no local copy for %s", picture.filename)
            return b""
        digest = self.hash_file(local)
        if digest:
            self.learn_hash(picture, digest)
        return digest

    def local_file_path(self, original: str) -> str:
        with self._lock:
            digest = self._hash_of.get(original)
            if digest is not None and digest in self._local_filename_of:
                return self._local_filename_of[digest]
        return original

    def clear(self) -> None:
        with self._lock:
            self._hash_of.clear()
            self._local_filename_of.clear()

    # ---- persistence ---------------------------------------------------
    def save(self, path: str | Path) -> None:
        path = Path(path)
        with self._lock:
            data = {
                "hashes": {name: digest.hex() for name, digest in self._hash_of.items()},
                "local_files": {digest.hex(): name for digest, name in self._local_filename_of.items()},
            }
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            _logger.debug("hashes saved: %s (%d entries)", path, len(data["hashes"]))
        except OSError as e:
            _logger.error("hashes save failed: %s", e)

    def load(self, path: str | Path) -> None:
        path = Path(path)
        if not path.exists():
            return
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            _logger.warning("hashes load failed: %s", e)
            return
        if not isinstance(data, dict):
            _logger.warning("hashes file malformed: %s", path)
            return

        raw_hashes = data.get("hashes") or {}
        raw_local_files = data.get("local_files") or {}
        if not isinstance(raw_hashes, dict) or not isinstance(raw_local_files, dict):
            _logger.warning("hashes file malformed: %s", path)
            return

        hashes: dict[str, bytes] = {}
        local_files: dict[bytes, str] = {}
        for name, hex_hash in raw_hashes.items():
            digest = _from_hex(hex_hash)
            if digest is not None:
                hashes[str(name)] = digest
        for hex_hash, name in raw_local_files.items():
            digest = _from_hex(hex_hash)
            if digest is not None:
                local_files[digest] = str(name)
        with self._lock:
            self._hash_of.update(hashes)
            self._local_filename_of.update(local_files)
        _logger.debug("hashes loaded: %s (%d entries)", path, len(hashes))


_default_registry: HashRegistry | None = None


def default_registry() -> HashRegistry:
    global _default_registry
    if _default_registry is None:
        _default_registry = HashRegistry()
    return _default_registry
