"""
Unit tests for page cache invalidation and host event mapping.
"""

import pytest
from unittest.mock import AsyncMock, patch

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from shared.config import get_config
from shared.errors import CacheStoreError
from service_pagecache.app.adapters.events import HostEventMapper
from service_pagecache.app.caching.memory_store import MemoryCacheStore
from service_pagecache.app.domain.context import RequestContext
from service_pagecache.app.domain.invalidation import ContentEvent, InvalidationListener
from service_pagecache.app.module import PageCache


class TestInvalidationListener:
    """Test cases for InvalidationListener."""

    @pytest.fixture
    def store(self):
        return MemoryCacheStore()

    @pytest.fixture
    def listener(self, store):
        listener = InvalidationListener(store)
        listener.activate()
        return listener

    @pytest.mark.asyncio
    @pytest.mark.parametrize("event", list(ContentEvent))
    async def test_event_purges_store(self, store, listener, event):
        """Test both normalized events clear every entry."""
        await store.set("a", b"1", 60)
        await store.set("b", b"2", 60)

        assert await listener.on_content_mutation_event(event) is True
        assert await store.get("a") is None
        assert await store.get("b") is None

    @pytest.mark.asyncio
    async def test_inactive_listener_ignores_events(self, store):
        """Test events before activation leave the store untouched."""
        listener = InvalidationListener(store)
        await store.set("a", b"1", 60)

        assert listener.active is False
        assert await listener.on_content_mutation_event(ContentEvent.CONTENT_MUTATED) is False
        assert await store.get("a") == b"1"

    @pytest.mark.asyncio
    async def test_explicit_clear_ignores_activation(self, store):
        """Test an explicit clear empties the store even before activation."""
        listener = InvalidationListener(store)
        await store.set("a", b"1", 60)

        assert await listener.clear() is True
        assert await store.get("a") is None

    @pytest.mark.asyncio
    async def test_deactivate_purges_then_stops(self, store, listener):
        """Test deactivation empties the store before going inactive."""
        await store.set("a", b"1", 60)

        assert await listener.deactivate() is True
        assert listener.active is False
        assert await store.get("a") is None

    @pytest.mark.asyncio
    async def test_purge_failure_is_reported(self, store, listener):
        """Test a failing clean returns False instead of raising."""
        with patch.object(store, "clean", new_callable=AsyncMock) as mock_clean:
            mock_clean.side_effect = CacheStoreError("memory", "boom")

            assert await listener.on_content_mutation_event(ContentEvent.CACHE_CLEAR_REQUESTED) is False


class TestHostEventMapper:
    """Test cases for HostEventMapper."""

    @pytest.fixture
    def mapper(self):
        return HostEventMapper(get_config("pagecache", 8000))

    @pytest.mark.parametrize("name", [
        "category.add",
        "category.update",
        "category.delete",
        "product.add",
        "product.update",
        "product.delete",
        "product.save",
        "Product.Price.Changed",
    ])
    def test_content_events(self, mapper, name):
        """Test category and product events map to content mutations."""
        assert mapper.normalize(name) is ContentEvent.CONTENT_MUTATED

    @pytest.mark.parametrize("name", ["cache.clear", "templates.clear", " TEMPLATES.CLEAR "])
    def test_clear_events(self, mapper, name):
        """Test explicit clear signals."""
        assert mapper.normalize(name) is ContentEvent.CACHE_CLEAR_REQUESTED

    @pytest.mark.parametrize("name", ["", "customer.login", "cart.update", "productx"])
    def test_unrelated_events_ignored(self, mapper, name):
        """Test events outside the taxonomy map to None."""
        assert mapper.normalize(name) is None

    def test_registered_events(self, mapper):
        """Test the default forwarded events."""
        events = mapper.registered_events()

        assert "product.save" in events
        assert "templates.clear" in events
        assert len(events) == 8

    def test_custom_prefixes(self):
        """Test prefixes come from configuration."""
        mapper = HostEventMapper(get_config("pagecache", 8000, mutation_event_prefixes=["action"]))

        assert mapper.normalize("actionCategoryUpdate") is ContentEvent.CONTENT_MUTATED
        assert mapper.normalize("product.update") is None


class TestPurgeSemantics:
    """End-to-end purge behaviour through the PageCache module."""

    @pytest.fixture
    def page_cache(self):
        config = get_config("pagecache", 8000, cache_driver="memory")
        page_cache = PageCache(config)
        page_cache.activate()
        return page_cache

    @pytest.mark.asyncio
    async def test_no_hit_after_event_until_repopulated(self, page_cache):
        """Test a mutation event removes cached pages until the next write."""
        ctx = RequestContext(method="GET", path="/shoes", locale_id="en", store_id="1")
        gate = page_cache.gate

        await gate.on_request_complete(ctx, "<html>v1</html>")
        assert await gate.on_request_start(ctx) is not None

        result = await page_cache.dispatch_event("product.update")
        assert result == {"event": "product.update", "normalized": "content_mutated", "purged": True}
        assert await gate.on_request_start(ctx) is None

        await gate.on_request_complete(ctx, "<html>v2</html>")
        cached = await gate.on_request_start(ctx)
        assert cached.body.endswith(b"<html>v2</html>")

    @pytest.mark.asyncio
    async def test_unknown_event_keeps_pages(self, page_cache):
        """Test ignored events do not purge."""
        ctx = RequestContext(method="GET", path="/shoes")
        await page_cache.gate.on_request_complete(ctx, "<html/>")

        result = await page_cache.dispatch_event("customer.login")

        assert result["purged"] is False
        assert await page_cache.gate.on_request_start(ctx) is not None

    @pytest.mark.asyncio
    async def test_uninstall_purges(self, page_cache):
        """Test uninstall clears the store and deactivates the module."""
        ctx = RequestContext(method="GET", path="/shoes")
        await page_cache.gate.on_request_complete(ctx, "<html/>")

        assert await page_cache.uninstall() is True
        assert page_cache.active is False
        assert await page_cache.store.get(page_cache.deriver.derive_key(ctx)) is None

    @pytest.mark.asyncio
    async def test_purge_while_deactivated(self, page_cache):
        """Test an explicit purge still clears the store after deactivation."""
        await page_cache.uninstall()
        await page_cache.store.set("leftover", b"<html/>", 60)

        assert await page_cache.purge() is True
        assert await page_cache.store.get("leftover") is None
        assert page_cache.active is False
