from __future__ import annotations

from pathlib import Path

from conftest import sha1

from dive_pictures.dive import Picture
from dive_pictures.image_engine.hashed_image import load_hashed_image


def test_local_picture_is_loaded_and_hashed(make_picture_file, registry, fake_fetcher) -> None:
    path = make_picture_file("a.png", 40, 20)
    picture = Picture(str(path))

    image = load_hashed_image(picture, registry, fake_fetcher)

    assert not image.isNull()
    assert (image.width(), image.height()) == (40, 20)
    assert picture.hash == sha1(path.read_bytes()).hex()
    assert registry.file_from_hash(picture.hash) == str(path)
    assert fake_fetcher.downloads == []
    assert fake_fetcher.hash_updates == []


def test_missing_original_falls_back_to_hash_cache(make_picture_file, registry, fake_fetcher) -> None:
    cached = make_picture_file("cache/copy.png", 10, 10)
    digest = registry.hash_file(cached)
    picture = Picture("/card/DCIM/a.png", hash=digest.hex())

    image = load_hashed_image(picture, registry, fake_fetcher)

    assert not image.isNull()
    assert fake_fetcher.hash_updates == ["/card/DCIM/a.png"]
    assert fake_fetcher.downloads == []


def test_unknown_picture_starts_download_and_returns_null(registry, fake_fetcher) -> None:
    picture = Picture("http://example.com/pics/a.png")

    image = load_hashed_image(picture, registry, fake_fetcher)

    assert image.isNull()
    assert fake_fetcher.downloads == ["http://example.com/pics/a.png"]


def test_unreadable_local_file_is_silently_null(tmp_path: Path, registry) -> None:
    bogus = tmp_path / "bogus.png"
    bogus.write_bytes(b"not an image")
    picture = Picture(str(bogus))

    image = load_hashed_image(picture, registry, None)

    assert image.isNull()
    assert picture.hash is None
