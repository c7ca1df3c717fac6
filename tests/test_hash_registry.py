from __future__ import annotations

import json
from pathlib import Path

from conftest import sha1

from dive_pictures.dive import Picture
from dive_pictures.image_engine.hash_registry import HashRegistry, default_registry


def test_hash_file_registers_local_copy(tmp_path: Path, registry: HashRegistry) -> None:
    path = tmp_path / "a.jpg"
    path.write_bytes(b"dive photo")

    digest = registry.hash_file(path)

    assert digest == sha1(b"dive photo")
    assert registry.file_from_hash(digest.hex()) == str(path)
    assert registry.hash_of(str(path)) == digest


def test_hash_file_missing_returns_empty_and_registers_nothing(tmp_path: Path, registry: HashRegistry) -> None:
    missing = tmp_path / "gone.jpg"

    assert registry.hash_file(missing) == b""
    assert registry.hash_of(str(missing)) is None


def test_file_from_hash_unknown_or_invalid(registry: HashRegistry) -> None:
    assert registry.file_from_hash(None) == ""
    assert registry.file_from_hash("") == ""
    assert registry.file_from_hash("not-hex") == ""
    assert registry.file_from_hash("00" * 20) == ""


def test_learn_hash_sets_picture_hash_and_local_file_path(tmp_path: Path, registry: HashRegistry) -> None:
    cached = tmp_path / "cache" / "copy.jpg"
    cached.parent.mkdir()
    cached.write_bytes(b"bytes")
    digest = registry.hash_file(cached)

    picture = Picture("http://example.com/a.jpg")
    registry.learn_hash(picture, digest)

    assert picture.hash == digest.hex()
    assert registry.local_file_path("http://example.com/a.jpg") == str(cached)
    assert registry.local_file_path("http://example.com/other.jpg") == "http://example.com/other.jpg"


def test_update_hash_rehashes_local_copy(tmp_path: Path, registry: HashRegistry) -> None:
    cached = tmp_path / "copy.jpg"
    cached.write_bytes(b"old")
    old = registry.hash_file(cached)
    picture = Picture("/card/a.jpg", hash=old.hex())

    cached.write_bytes(b"new")
    new = registry.update_hash(picture)

    assert new == sha1(b"new")
    assert picture.hash == new.hex()
    assert registry.hash_of("/card/a.jpg") == new


def test_update_hash_without_local_copy_is_noop(registry: HashRegistry) -> None:
    picture = Picture("/card/a.jpg", hash=None)
    assert registry.update_hash(picture) == b""
    assert picture.hash is None


def test_save_and_load_roundtrip(tmp_path: Path, registry: HashRegistry) -> None:
    cached = tmp_path / "copy.jpg"
    cached.write_bytes(b"content")
    digest = registry.hash_file(cached)
    registry.learn_hash(Picture("http://example.com/a.jpg"), digest)

    hashes_file = tmp_path / "state" / "hashes.json"
    registry.save(hashes_file)

    data = json.loads(hashes_file.read_text(encoding="utf-8"))
    assert data["hashes"]["http://example.com/a.jpg"] == digest.hex()

    restored = HashRegistry()
    restored.load(hashes_file)
    assert restored.local_file_path("http://example.com/a.jpg") == str(cached)


def test_load_missing_or_malformed_file_keeps_registry_empty(tmp_path: Path) -> None:
    reg = HashRegistry()
    reg.load(tmp_path / "nope.json")

    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    reg.load(broken)

    wrong_shape = tmp_path / "list.json"
    wrong_shape.write_text("[1, 2]", encoding="utf-8")
    reg.load(wrong_shape)

    assert reg.local_file_path("x") == "x"


def test_default_registry_is_shared() -> None:
    assert default_registry() is default_registry()


def test_load_file_with_wrong_nested_shape_keeps_registry_empty(tmp_path: Path) -> None:
    nested = tmp_path / "nested.json"
    nested.write_text(json.dumps({"hashes": [1, 2], "local_files": "x"}), encoding="utf-8")
    reg = HashRegistry()

    reg.load(nested)

    assert reg.hash_of("1") is None
    assert reg.local_file_path("x") == "x"

    partial = tmp_path / "partial.json"
    partial.write_text(json.dumps({"hashes": {"a.jpg": "00" * 20}, "local_files": [["00", "b"]]}), encoding="utf-8")
    reg.load(partial)

    assert reg.hash_of("a.jpg") is None
