"""Tests for the raw-page cache backends."""

from __future__ import annotations

import gzip
from unittest.mock import MagicMock

import pytest
from minio.error import S3Error

from readthrough.config.settings import Settings
from readthrough.core.exceptions import CacheError
from readthrough.scraper.cache import (
    DiskCache,
    MemoryCache,
    NullCache,
    ObjectStorageCache,
    build_cache,
    cache_key,
)

URL = "https://site.example/a?b=1"
PAGE = "<html><body>Não há paywall aqui</body></html>".encode("utf-8")


def _s3_error(code: str) -> S3Error:
    return S3Error(
        code=code,
        message=f"{code} message",
        resource="resource",
        request_id="request-id",
        host_id="host-id",
        response=MagicMock(),
    )


def test_cache_key_is_stable_hex_digest() -> None:
    assert cache_key(URL) == cache_key(URL)
    assert len(cache_key(URL)) == 64
    assert cache_key(URL) != cache_key(URL + "&c=2")


class TestMemoryCache:
    def test_set_then_get(self) -> None:
        cache = MemoryCache()
        assert not cache.exists(URL)
        cache.set(URL, PAGE)
        assert cache.exists(URL)
        assert cache.get(URL) == PAGE

    def test_missing_entry_raises(self) -> None:
        with pytest.raises(CacheError):
            MemoryCache().get(URL)


class TestNullCache:
    def test_never_holds_anything(self) -> None:
        cache = NullCache()
        cache.set(URL, PAGE)
        assert not cache.exists(URL)
        with pytest.raises(CacheError):
            cache.get(URL)


class TestDiskCache:
    def test_round_trip_creates_directory(self, tmp_path) -> None:
        cache = DiskCache(tmp_path / "nested" / "cache")
        cache.set(URL, PAGE)
        assert cache.exists(URL)
        assert cache.get(URL) == PAGE

    def test_entries_are_gzip_files_named_by_key(self, tmp_path) -> None:
        DiskCache(tmp_path).set(URL, PAGE)
        path = tmp_path / f"{cache_key(URL)}.gz"
        assert gzip.decompress(path.read_bytes()) == PAGE
        assert not list(tmp_path.glob("*.tmp"))

    def test_overwrite_replaces_entry(self, tmp_path) -> None:
        cache = DiskCache(tmp_path)
        cache.set(URL, b"old")
        cache.set(URL, b"new")
        assert cache.get(URL) == b"new"

    def test_corrupt_entry_raises_cache_error(self, tmp_path) -> None:
        (tmp_path / f"{cache_key(URL)}.gz").write_bytes(b"not gzip")
        with pytest.raises(CacheError):
            DiskCache(tmp_path).get(URL)


class TestObjectStorageCache:
    def test_set_creates_bucket_once_and_uploads_gzip(self) -> None:
        client = MagicMock()
        client.bucket_exists.return_value = False
        cache = ObjectStorageCache(client, "pages", "cache/")

        cache.set(URL, PAGE)
        cache.set(URL, PAGE)

        client.make_bucket.assert_called_once_with("pages")
        bucket, name, data = client.put_object.call_args.args
        assert bucket == "pages"
        assert name == f"cache/{cache_key(URL)}.gz"
        assert gzip.decompress(data.getvalue()) == PAGE

    def test_get_decompresses_and_releases_connection(self) -> None:
        response = MagicMock()
        response.read.return_value = gzip.compress(PAGE)
        client = MagicMock()
        client.get_object.return_value = response

        assert ObjectStorageCache(client, "pages").get(URL) == PAGE
        response.close.assert_called_once()
        response.release_conn.assert_called_once()

    def test_missing_object_does_not_exist(self) -> None:
        client = MagicMock()
        client.stat_object.side_effect = _s3_error("NoSuchKey")
        assert not ObjectStorageCache(client, "pages").exists(URL)

    def test_other_storage_errors_raise(self) -> None:
        client = MagicMock()
        client.stat_object.side_effect = _s3_error("AccessDenied")
        with pytest.raises(CacheError):
            ObjectStorageCache(client, "pages").exists(URL)


class TestBuildCache:
    def test_backend_selection(self, tmp_path) -> None:
        assert isinstance(build_cache(Settings(cache_backend="none")), NullCache)
        assert isinstance(build_cache(Settings(cache_backend="disk", cache_dir=tmp_path)), DiskCache)
        assert isinstance(build_cache(Settings(cache_backend="s3")), ObjectStorageCache)
