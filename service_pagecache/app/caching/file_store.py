"""
Filesystem page store.

Each entry is one file named after its key inside ``<cache_dir>/<namespace>``.
The first line holds the expiry as a unix timestamp, the rest is the value.
"""

import asyncio
import os
import re
import tempfile
import time
from pathlib import Path
from typing import Optional, Union
import sys

# Add shared directory to path
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..', '..'))

from shared.logging import get_logger
from shared.errors import CacheStoreError
from .base import CacheStore


_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")
_SUFFIX = ".page"


class FileCacheStore(CacheStore):
    """Page store writing one file per key.

    Writes go to a temporary file followed by ``os.replace``, so readers never
    see a partial entry. ``clean`` removes the files present when it lists the
    directory; a write that completes after the listing survives.
    """

    driver_name = "files"

    def __init__(self, directory: Union[str, Path], namespace: str = "pagecache"):
        self.directory = Path(directory) / namespace
        self.logger = get_logger("pagecache.store.files")

    def _path_for(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise CacheStoreError(self.driver_name, f"unsafe cache key {key!r}")
        return self.directory / f"{key}{_SUFFIX}"

    async def get(self, key: str) -> Optional[bytes]:
        path = self._path_for(key)
        try:
            return await asyncio.to_thread(self._read, path)
        except OSError as e:
            raise CacheStoreError(self.driver_name, f"get failed: {e}") from e

    async def set(self, key: str, value: bytes, ttl_seconds: int) -> None:
        path = self._path_for(key)
        try:
            await asyncio.to_thread(self._write, path, value, time.time() + ttl_seconds)
        except OSError as e:
            raise CacheStoreError(self.driver_name, f"set failed: {e}") from e

    async def clean(self) -> None:
        try:
            removed = await asyncio.to_thread(self._remove_all)
        except OSError as e:
            raise CacheStoreError(self.driver_name, f"clean failed: {e}") from e
        self.logger.info("Cleared page cache directory", directory=str(self.directory), files_count=removed)

    async def ping(self) -> bool:
        return self.directory.is_dir() or not self.directory.exists()

    def _read(self, path: Path) -> Optional[bytes]:
        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            return None

        header, sep, value = raw.partition(b"\n")
        if not sep:
            return None
        try:
            expires_at = float(header)
        except ValueError:
            self.logger.warning("Discarding corrupt cache file", path=str(path))
            self._unlink(path)
            return None

        if expires_at <= time.time():
            self._unlink(path)
            return None
        return value

    def _write(self, path: Path, value: bytes, expires_at: float) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=".tmp-")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(f"{expires_at:.3f}\n".encode("ascii"))
                handle.write(value)
            os.replace(tmp_name, path)
        except BaseException:
            self._unlink(Path(tmp_name))
            raise

    def _remove_all(self) -> int:
        if not self.directory.exists():
            return 0
        removed = 0
        for path in self.directory.iterdir():
            if path.is_file() and path.suffix == _SUFFIX:
                self._unlink(path)
                removed += 1
        return removed

    @staticmethod
    def _unlink(path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            pass
