"""
Coarse page cache invalidation on content changes.
"""

from enum import Enum
from typing import Optional, TYPE_CHECKING
import sys
import os

# Add shared directory to path
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..', '..'))

from shared.logging import get_logger
from ..caching.base import CacheStore

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


class ContentEvent(str, Enum):
    """Normalized host events the listener reacts to."""

    CONTENT_MUTATED = "content_mutated"
    CACHE_CLEAR_REQUESTED = "cache_clear_requested"


class InvalidationListener:
    """Purge the whole store on any content change.

    No per-key tracking: every event empties the store. A ``set`` racing with
    the purge may survive it, depending on the backend's ordering.
    """

    def __init__(self, store: CacheStore, *, metrics: Optional["MetricsCollector"] = None):
        self.store = store
        self.metrics = metrics
        self.logger = get_logger("pagecache.invalidation")
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def activate(self) -> None:
        self._active = True
        self.logger.info("Page cache listener activated", driver=self.store.driver_name)

    async def deactivate(self) -> bool:
        """Purge the store, then stop listening."""
        purged = await self._purge("deactivate")
        self._active = False
        self.logger.info("Page cache listener deactivated", purged=purged)
        return purged

    async def on_content_mutation_event(self, event: ContentEvent) -> bool:
        if not self._active:
            self.logger.debug("Ignoring event while inactive", content_event=event.value)
            return False
        return await self._purge(event.value)

    async def clear(self, reason: str = "explicit") -> bool:
        """Purge the store on request, whether or not the listener is active."""
        return await self._purge(reason)

    async def _purge(self, reason: str) -> bool:
        try:
            await self.store.clean()
        except Exception as exc:
            self.logger.error("Page cache purge failed", reason=reason, driver=self.store.driver_name, error=str(exc))
            if self.metrics:
                self.metrics.increment_counter("page_cache_errors_total", operation="clean")
            return False

        self.logger.info("Page cache purged", reason=reason, driver=self.store.driver_name)
        if self.metrics:
            self.metrics.increment_counter("page_cache_purges_total", reason=reason)
        return True
