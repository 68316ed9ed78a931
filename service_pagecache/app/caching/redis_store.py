"""
Redis-backed page store.
"""

from typing import Optional
import redis.asyncio as redis
import sys
import os

# Add shared directory to path
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..', '..'))

from shared.logging import get_logger
from shared.errors import CacheStoreError
from .base import CacheStore


class RedisCacheStore(CacheStore):
    """Page store keeping every entry under a namespace prefix.

    ``clean`` walks the namespace with SCAN and deletes in batches. A SETEX
    that lands after the scan has passed its slot survives the purge.
    """

    driver_name = "redis"

    def __init__(self, redis_url: str, namespace: str = "pagecache", scan_count: int = 500):
        self.redis_url = redis_url
        self.namespace = namespace
        self.scan_count = scan_count
        self.logger = get_logger("pagecache.store.redis")
        self._redis: Optional[redis.Redis] = None

    async def _get_redis(self) -> redis.Redis:
        """Get Redis connection."""
        if self._redis is None:
            self._redis = redis.from_url(self.redis_url)
        return self._redis

    def _make_key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    async def get(self, key: str) -> Optional[bytes]:
        try:
            redis_client = await self._get_redis()
            cached = await redis_client.get(self._make_key(key))
        except Exception as e:
            raise CacheStoreError(self.driver_name, f"get failed: {e}") from e

        if cached is None:
            return None
        if isinstance(cached, str):
            return cached.encode("utf-8")
        return cached

    async def set(self, key: str, value: bytes, ttl_seconds: int) -> None:
        try:
            redis_client = await self._get_redis()
            await redis_client.setex(self._make_key(key), ttl_seconds, value)
        except Exception as e:
            raise CacheStoreError(self.driver_name, f"set failed: {e}") from e

        self.logger.debug("Cached page", key=key, ttl=ttl_seconds)

    async def clean(self) -> None:
        pattern = f"{self.namespace}:*"
        deleted = 0
        try:
            redis_client = await self._get_redis()
            batch = []
            async for redis_key in redis_client.scan_iter(match=pattern, count=self.scan_count):
                batch.append(redis_key)
                if len(batch) >= self.scan_count:
                    deleted += await redis_client.delete(*batch)
                    batch = []
            if batch:
                deleted += await redis_client.delete(*batch)
        except Exception as e:
            raise CacheStoreError(self.driver_name, f"clean failed: {e}") from e

        self.logger.info("Cleared page cache namespace", pattern=pattern, keys_count=deleted)

    async def ping(self) -> bool:
        try:
            redis_client = await self._get_redis()
            return bool(await redis_client.ping())
        except Exception as e:
            self.logger.warning("Redis ping failed", error=str(e))
            return False

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
