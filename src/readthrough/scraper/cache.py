"""Raw-page cache backends.

The cache maps a requested URL to the raw HTML a fetcher returned for it.
Processed output is never cached: every hit is re-processed with the rules
in force at that moment.

Backends:

- :class:`DiskCache`: gzip files under a local directory.
- :class:`ObjectStorageCache`: gzip objects in a MinIO / S3-compatible bucket.
- :class:`MemoryCache`: process-local dict, for tests and embedding.
- :class:`NullCache`: caching disabled.

All backends derive the storage key from the SHA-256 of the URL, so keys
are safe as file and object names whatever the URL contains.
"""

from __future__ import annotations

import gzip
import hashlib
import io
import logging
import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from minio import Minio
from minio.error import S3Error

from readthrough.core.exceptions import CacheError

if TYPE_CHECKING:
    from readthrough.config.settings import Settings

logger = logging.getLogger(__name__)


def cache_key(url: str) -> str:
    """Return the storage key for *url*."""
    return hashlib.sha256(url.encode("utf-8")).hexdigest()


class Cache(Protocol):
    """Key-value store of raw HTML keyed by URL."""

    def exists(self, url: str) -> bool:
        ...

    def get(self, url: str) -> bytes:
        ...

    def set(self, url: str, content: bytes) -> None:
        ...


# ---------------------------------------------------------------------------
# In-process backends
# ---------------------------------------------------------------------------


class NullCache:
    """A cache that never holds anything."""

    def exists(self, url: str) -> bool:  # noqa: ARG002
        return False

    def get(self, url: str) -> bytes:
        raise CacheError("caching is disabled", key=cache_key(url))

    def set(self, url: str, content: bytes) -> None:  # noqa: ARG002
        return None


class MemoryCache:
    """Dict-backed cache."""

    def __init__(self) -> None:
        self._entries: dict[str, bytes] = {}

    def exists(self, url: str) -> bool:
        return cache_key(url) in self._entries

    def get(self, url: str) -> bytes:
        try:
            return self._entries[cache_key(url)]
        except KeyError:
            raise CacheError(f"no cache entry for {url}", key=cache_key(url)) from None

    def set(self, url: str, content: bytes) -> None:
        self._entries[cache_key(url)] = content


# ---------------------------------------------------------------------------
# Disk backend
# ---------------------------------------------------------------------------


class DiskCache:
    """Gzip-compressed files named ``<sha256>.gz`` under *directory*.

    Writes go to a temporary file in the same directory followed by an
    atomic rename, so concurrent readers never see a partial entry.
    """

    def __init__(self, directory: Path | str) -> None:
        self._directory = Path(directory)

    def _path(self, url: str) -> Path:
        return self._directory / f"{cache_key(url)}.gz"

    def exists(self, url: str) -> bool:
        return self._path(url).is_file()

    def get(self, url: str) -> bytes:
        path = self._path(url)
        try:
            return gzip.decompress(path.read_bytes())
        except (OSError, EOFError) as exc:
            raise CacheError(f"cannot read cache entry {path.name}: {exc}", key=path.stem) from exc

    def set(self, url: str, content: bytes) -> None:
        path = self._path(url)
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self._directory, suffix=".tmp")
            with os.fdopen(fd, "wb") as handle:
                handle.write(gzip.compress(content))
            os.replace(tmp_name, path)
        except OSError as exc:
            raise CacheError(f"cannot write cache entry {path.name}: {exc}", key=path.stem) from exc
        logger.debug("cache: stored %s (%d bytes)", path.name, len(content))


# ---------------------------------------------------------------------------
# Object storage backend
# ---------------------------------------------------------------------------


class ObjectStorageCache:
    """Gzip objects named ``<prefix><sha256>.gz`` in a MinIO bucket.

    The bucket is created on first write if it does not exist.

    Args:
        client: Configured :class:`minio.Minio` client.
        bucket: Bucket name.
        prefix: Object key prefix.
    """

    def __init__(self, client: Minio, bucket: str, prefix: str = "cache/") -> None:
        self._client = client
        self._bucket = bucket
        self._prefix = prefix
        self._bucket_checked = False

    @classmethod
    def from_settings(cls, settings: Settings) -> ObjectStorageCache:
        client = Minio(
            settings.minio_endpoint,
            access_key=settings.minio_root_user,
            secret_key=settings.minio_root_password,
            secure=settings.minio_secure,
        )
        return cls(client, settings.minio_bucket, settings.minio_prefix)

    def _object_name(self, url: str) -> str:
        return f"{self._prefix}{cache_key(url)}.gz"

    def exists(self, url: str) -> bool:
        try:
            self._client.stat_object(self._bucket, self._object_name(url))
        except S3Error as exc:
            if exc.code in ("NoSuchKey", "NoSuchBucket", "NoSuchObject"):
                return False
            raise CacheError(f"cannot stat cache object: {exc}", key=self._object_name(url)) from exc
        return True

    def get(self, url: str) -> bytes:
        name = self._object_name(url)
        response = None
        try:
            response = self._client.get_object(self._bucket, name)
            return gzip.decompress(response.read())
        except (S3Error, OSError, EOFError) as exc:
            raise CacheError(f"cannot read cache object: {exc}", key=name) from exc
        finally:
            if response is not None:
                response.close()
                response.release_conn()

    def set(self, url: str, content: bytes) -> None:
        name = self._object_name(url)
        body = gzip.compress(content)
        try:
            if not self._bucket_checked:
                if not self._client.bucket_exists(self._bucket):
                    self._client.make_bucket(self._bucket)
                self._bucket_checked = True
            self._client.put_object(
                self._bucket,
                name,
                io.BytesIO(body),
                length=len(body),
                content_type="application/gzip",
            )
        except S3Error as exc:
            raise CacheError(f"cannot write cache object: {exc}", key=name) from exc
        logger.debug("cache: stored object %s (%d bytes)", name, len(content))


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def build_cache(settings: Settings) -> Cache:
    """Return the cache backend selected by ``settings.cache_backend``."""
    if settings.cache_backend == "none":
        return NullCache()
    if settings.cache_backend == "s3":
        return ObjectStorageCache.from_settings(settings)
    return DiskCache(settings.cache_dir)
