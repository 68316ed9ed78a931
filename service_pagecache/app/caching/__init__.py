"""Page store backends."""

from .base import CacheStore
from .factory import create_cache_store, SUPPORTED_DRIVERS
from .file_store import FileCacheStore
from .memory_store import MemoryCacheStore
from .redis_store import RedisCacheStore

__all__ = [
    "CacheStore",
    "FileCacheStore",
    "MemoryCacheStore",
    "RedisCacheStore",
    "SUPPORTED_DRIVERS",
    "create_cache_store",
]
