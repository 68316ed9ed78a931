"""
Page cache composition root with install/uninstall lifecycle.
"""

from typing import Any, Dict, Optional, TYPE_CHECKING
import sys
import os

from fastapi import FastAPI

# Add shared directory to path
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from shared.config import BaseConfig
from shared.logging import get_logger
from .adapters.events import HostEventMapper
from .adapters.request_context import MaintenanceStatusProvider, RequestContextBuilder
from .caching.base import CacheStore
from .caching.factory import create_cache_store
from .domain.eligibility import EligibilityEvaluator
from .domain.gate import CacheGate
from .domain.invalidation import ContentEvent, InvalidationListener
from .domain.keys import CacheKeyDeriver
from .domain.page_cache_middleware import PageCacheMiddleware

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


class PageCache:
    """Wire the store, gate and listener together for one host application."""

    def __init__(
        self,
        config: BaseConfig,
        store: Optional[CacheStore] = None,
        *,
        metrics: Optional["MetricsCollector"] = None,
        maintenance_provider: Optional[MaintenanceStatusProvider] = None,
    ):
        self.config = config
        self.logger = get_logger("pagecache.module")
        self.store = store or create_cache_store(config)
        self.evaluator = EligibilityEvaluator(config)
        self.deriver = CacheKeyDeriver(config)
        self.gate = CacheGate(self.store, self.evaluator, self.deriver, config, metrics=metrics)
        self.listener = InvalidationListener(self.store, metrics=metrics)
        self.event_mapper = HostEventMapper(config)
        self.context_builder = RequestContextBuilder(config, maintenance_provider)
        self._installed = False

    @property
    def active(self) -> bool:
        return self.listener.active

    def install(self, app: FastAPI) -> None:
        """Attach the middleware to ``app`` and start serving."""
        if not self._installed:
            app.add_middleware(PageCacheMiddleware, page_cache=self)
            self._installed = True
        self.listener.activate()
        self.logger.info(
            "Page cache installed",
            driver=self.store.driver_name,
            ttl=self.config.cache_ttl,
            events=self.event_mapper.registered_events(),
        )

    async def uninstall(self) -> bool:
        """Stop serving and purge every stored page."""
        return await self.listener.deactivate()

    def activate(self) -> None:
        self.listener.activate()

    async def dispatch_event(self, event_name: str) -> Dict[str, Any]:
        """Forward a host event; unknown names are ignored."""
        event = self.event_mapper.normalize(event_name)
        if event is None:
            self.logger.debug("Ignoring host event", event_name=event_name)
            return {"event": event_name, "normalized": None, "purged": False}

        purged = await self.listener.on_content_mutation_event(event)
        return {"event": event_name, "normalized": event.value, "purged": purged}

    async def purge(self) -> bool:
        """Explicit full clear, regardless of event mapping or activation."""
        return await self.listener.clear(ContentEvent.CACHE_CLEAR_REQUESTED.value)

    def status(self) -> Dict[str, Any]:
        return {
            "active": self.active,
            "driver": self.store.driver_name,
            "ttl_seconds": self.config.cache_ttl,
            "separate_mobile_and_desktop": self.config.separate_mobile_and_desktop,
            "check_for_maintenance": self.config.check_for_maintenance,
            "excluded_controllers": list(self.config.excluded_controllers),
            "registered_events": self.event_mapper.registered_events(),
        }

    async def close(self) -> None:
        await self.store.close()
