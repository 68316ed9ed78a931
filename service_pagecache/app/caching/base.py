"""
Storage contract for rendered pages.
"""

from abc import ABC, abstractmethod
from typing import Optional


class CacheStore(ABC):
    """Key/value store with per-entry TTL and bulk clear.

    Implementations may raise ``CacheStoreError`` (or any other exception);
    callers in the request path treat every failure as a miss or a no-op.
    """

    driver_name: str = "abstract"

    @abstractmethod
    async def get(self, key: str) -> Optional[bytes]:
        """Return the stored value, or None when absent or expired."""

    @abstractmethod
    async def set(self, key: str, value: bytes, ttl_seconds: int) -> None:
        """Store ``value`` under ``key`` for ``ttl_seconds``."""

    @abstractmethod
    async def clean(self) -> None:
        """Remove every entry owned by this store."""

    async def ping(self) -> bool:
        """Return True when the backend is reachable."""
        return True

    async def close(self) -> None:
        """Release backend resources."""
        return None
