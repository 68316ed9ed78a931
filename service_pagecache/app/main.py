"""
Page Cache service.
"""

import sys
import os
from typing import Dict, Optional

# Add shared directory to path
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from fastapi import HTTPException

from shared.base_service import BaseService
from shared.config import ServiceConfig
from service_pagecache.app.adapters.request_context import MaintenanceStatusProvider
from service_pagecache.app.caching.base import CacheStore
from service_pagecache.app.module import PageCache


ADMIN_PREFIX = "/api/v1/page-cache"


class PageCacheService(BaseService):
    """Service hosting the page cache in front of storefront routes.

    Storefront routes are registered on ``self.app`` by the host; the
    middleware wraps all of them.
    """

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        *,
        store: Optional[CacheStore] = None,
        maintenance_provider: Optional[MaintenanceStatusProvider] = None,
    ):
        self._store = store
        self._maintenance_provider = maintenance_provider
        super().__init__("pagecache", 8000, config=config)

        @self.app.on_event("shutdown")
        async def _shutdown():
            await self.page_cache.close()

        self._setup_page_cache_routes()

        # Expose service instance via app state for introspection/testing
        self.app.state.page_cache_service = self

    def _setup_service_middleware(self):
        """Install the page cache inside request timing so hits are logged and counted."""
        self.page_cache = PageCache(
            self.config,
            self._store,
            metrics=self.metrics,
            maintenance_provider=self._maintenance_provider,
        )
        self.page_cache.install(self.app)

    def _setup_page_cache_routes(self):
        """Set up page cache administration routes."""

        @self.app.get(f"{ADMIN_PREFIX}/status", tags=["admin"])
        async def page_cache_status():
            """Current page cache configuration and state."""
            return self.page_cache.status()

        @self.app.post(f"{ADMIN_PREFIX}/events/{{event_name}}", tags=["admin"])
        async def page_cache_event(event_name: str):
            """Forward a host content event."""
            if not event_name.strip():
                raise HTTPException(status_code=400, detail="Event name is required")
            return await self.page_cache.dispatch_event(event_name)

        @self.app.post(f"{ADMIN_PREFIX}/purge", tags=["admin"])
        async def page_cache_purge():
            """Remove every stored page."""
            purged = await self.page_cache.purge()
            if not purged:
                raise HTTPException(status_code=503, detail="Page cache purge failed")
            return {"purged": purged, "active": self.page_cache.active}

        @self.app.post(f"{ADMIN_PREFIX}/activate", tags=["admin"])
        async def page_cache_activate():
            """Resume serving and storing pages."""
            self.page_cache.activate()
            return {"active": True}

        @self.app.post(f"{ADMIN_PREFIX}/deactivate", tags=["admin"])
        async def page_cache_deactivate():
            """Purge the store and stop serving pages."""
            purged = await self.page_cache.uninstall()
            return {"active": False, "purged": purged}

    async def _check_dependencies(self) -> Dict[str, str]:
        store = self.page_cache.store
        reachable = await store.ping()
        return {f"cache_{store.driver_name}": "ok" if reachable else "error"}


def create_app(config: Optional[ServiceConfig] = None, **kwargs):
    """Create the FastAPI application."""
    service = PageCacheService(config, **kwargs)
    return service.app


if __name__ == "__main__":
    service = PageCacheService()
    service.run()
