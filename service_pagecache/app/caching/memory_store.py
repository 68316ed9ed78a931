"""
In-process page store.
"""

import time
from typing import Dict, Optional, Tuple

from .base import CacheStore


class MemoryCacheStore(CacheStore):
    """Dictionary-backed store for single-process deployments and tests.

    All operations run on the event loop thread without awaiting, so a
    ``clean`` and a ``set`` never interleave.
    """

    driver_name = "memory"

    def __init__(self, max_entries: Optional[int] = None):
        self.max_entries = max_entries
        self._entries: Dict[str, Tuple[bytes, float]] = {}

    async def get(self, key: str) -> Optional[bytes]:
        entry = self._entries.get(key)
        if entry is None:
            return None

        value, expires_at = entry
        if expires_at <= time.monotonic():
            self._entries.pop(key, None)
            return None
        return value

    async def set(self, key: str, value: bytes, ttl_seconds: int) -> None:
        if self.max_entries is not None and key not in self._entries and len(self._entries) >= self.max_entries:
            self._evict_expired()
            if len(self._entries) >= self.max_entries:
                # Oldest insertion goes first
                self._entries.pop(next(iter(self._entries)))
        self._entries[key] = (value, time.monotonic() + ttl_seconds)

    async def clean(self) -> None:
        self._entries.clear()

    def _evict_expired(self) -> None:
        now = time.monotonic()
        for key in [k for k, (_, expires_at) in self._entries.items() if expires_at <= now]:
            del self._entries[key]

    def __len__(self) -> int:
        return len(self._entries)
