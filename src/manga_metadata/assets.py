"""Cover art cache -- remote image URLs to locally owned files.

Files are named <md5-of-url><ext> so the same URL always lands on the same
path, while different URLs are stored separately even when they serve
identical bytes. Nothing is evicted. A forced refresh re-downloads and
overwrites, which is only used for manual re-association.

Storage goes through the AssetStore protocol so tests can swap the
directory for an in-memory store.
"""

from __future__ import annotations

import hashlib
import os
import tempfile
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, Protocol
from urllib.parse import urlparse

from loguru import logger

from .errors import FetchError
from .models import IMAGE_EXTENSIONS

if TYPE_CHECKING:
    from .api.http import HttpFetcher

log = logger.bind(stage="assets")

DEFAULT_EXTENSION = ".jpg"


class AssetStore(Protocol):
    def exists(self, key: str) -> bool: ...

    def write(self, key: str, data: bytes) -> Path: ...

    def read(self, key: str) -> bytes: ...

    def path_for(self, key: str) -> Path: ...


class DirectoryAssetStore:
    """AssetStore backed by a flat directory, created on first write."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def path_for(self, key: str) -> Path:
        return self.root / key

    def exists(self, key: str) -> bool:
        return self.path_for(key).is_file()

    def read(self, key: str) -> bytes:
        return self.path_for(key).read_bytes()

    def write(self, key: str, data: bytes) -> Path:
        """Write via a temp file in the same directory, then atomically replace."""
        self.root.mkdir(parents=True, exist_ok=True)
        dest = self.path_for(key)
        fd, tmp_name = tempfile.mkstemp(dir=self.root, prefix=f".{key}.", suffix=".tmp")
        tmp = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
            tmp.replace(dest)
        except OSError:
            tmp.unlink(missing_ok=True)
            raise
        return dest


def is_remote(value) -> bool:
    """True for http(s) URL strings -- the values that must never be stored as covers."""
    return isinstance(value, str) and value.lower().startswith(("http://", "https://"))


def asset_key(url: str) -> str:
    """Cache filename for url: md5 hex digest plus the URL's image extension."""
    digest = hashlib.md5(url.encode("utf-8")).hexdigest()
    suffix = PurePosixPath(urlparse(url).path).suffix.lower()
    if suffix not in IMAGE_EXTENSIONS:
        suffix = DEFAULT_EXTENSION
    return f"{digest}{suffix}"


def public_path(path: Path, prefix: str = "/covers") -> str:
    """Map a cached file to the URL the route layer serves it under."""
    return f"{prefix.rstrip('/')}/{Path(path).name}"


class AssetCache:
    """Download-once cache for cover images."""

    def __init__(self, store: AssetStore, fetcher: HttpFetcher) -> None:
        self.store = store
        self._fetcher = fetcher

    def materialize(
        self,
        remote_url: str,
        label: str = "",
        force: bool = False,
        referer: str | None = None,
    ) -> Path | None:
        """Return a local path for remote_url, downloading if needed.

        Never raises: download or write failures return None.
        """
        key = asset_key(remote_url)
        label = label or remote_url

        if not force and self.store.exists(key):
            log.debug(f"Cover cached for {label!r}: {key}")
            return self.store.path_for(key)

        headers = {"Referer": referer} if referer else None
        log.debug(f"Downloading cover for {label!r}: {remote_url} (force={force})")

        try:
            data = self._fetcher.get_bytes(remote_url, headers=headers)
            path = self.store.write(key, data)
        except FetchError as e:
            log.warning(f"Cover download failed for {label!r}: {e.reason}")
            return None
        except OSError as e:
            log.warning(f"Cover write failed for {label!r}: {e}")
            return None

        log.info(f"Cover cached for {label!r}: {key} ({len(data)} bytes)")
        return path
