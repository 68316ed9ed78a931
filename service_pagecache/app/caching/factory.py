"""
Select the page store backend from configuration.
"""

import sys
import os

# Add shared directory to path
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..', '..'))

from shared.config import BaseConfig
from shared.errors import ConfigurationError
from .base import CacheStore
from .file_store import FileCacheStore
from .memory_store import MemoryCacheStore
from .redis_store import RedisCacheStore


SUPPORTED_DRIVERS = ("files", "redis", "memory")


def create_cache_store(config: BaseConfig) -> CacheStore:
    """Build the store named by ``config.cache_driver``."""
    driver = config.cache_driver.lower()

    if driver == "files":
        return FileCacheStore(config.cache_dir, namespace=config.cache_namespace)
    if driver == "redis":
        return RedisCacheStore(config.redis_url, namespace=config.cache_namespace)
    if driver == "memory":
        return MemoryCacheStore()

    raise ConfigurationError(
        f"Unsupported cache driver '{config.cache_driver}'",
        details={"supported": list(SUPPORTED_DRIVERS)},
    )
