"""
Integration tests for the Page Cache service.
"""

import pytest
from unittest.mock import patch
from fastapi import Request
from fastapi.responses import HTMLResponse
from fastapi.testclient import TestClient

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from shared.config import get_config
from service_pagecache.app.caching.memory_store import MemoryCacheStore
from service_pagecache.app.main import PageCacheService, create_app


def build_service(**overrides) -> PageCacheService:
    """Service with a memory store and a small storefront mounted on it."""
    config = get_config("pagecache", 8000, cache_driver="memory", **overrides)
    service = PageCacheService(config, store=MemoryCacheStore())
    app = service.app
    renders = {"count": 0}
    service.renders = renders

    @app.middleware("http")
    async def storefront_session(request: Request, call_next):
        request.state.locale_id = request.headers.get("X-Locale", "en")
        request.state.store_id = "1"
        customer = request.cookies.get("customer")
        if customer:
            request.state.customer_id = customer
        return await call_next(request)

    @app.get("/shoes", response_class=HTMLResponse)
    async def category():
        renders["count"] += 1
        return f"<html>shoes render {renders['count']}</html>"

    @app.post("/shoes", response_class=HTMLResponse)
    async def category_filter():
        renders["count"] += 1
        return "<html>filtered</html>"

    @app.get("/add-to-cart", response_class=HTMLResponse)
    async def add_to_cart(request: Request):
        renders["count"] += 1
        request.state.cart = ["sku-1"]
        return "<html>added</html>"

    @app.get("/order", response_class=HTMLResponse)
    async def order():
        renders["count"] += 1
        return "<html>checkout</html>"

    @app.get("/catalog.json")
    async def catalog():
        renders["count"] += 1
        return {"products": []}

    @app.get("/p/{name:path}", response_class=HTMLResponse)
    async def product(name: str):
        renders["count"] += 1
        return f"<html>product {name}</html>"

    return service


class TestPageCacheService:
    """Test cases for PageCacheService."""

    @pytest.fixture
    def service(self):
        return build_service()

    @pytest.fixture
    def client(self, service):
        return TestClient(service.app)

    def test_miss_then_hit(self, service, client):
        """Test the second identical request is served from the store."""
        first = client.get("/shoes")
        assert first.status_code == 200
        assert first.headers["X-Page-Cache"] == "MISS"
        assert first.text == "<html>shoes render 1</html>"

        second = client.get("/shoes")
        assert second.status_code == 200
        assert second.headers["X-Page-Cache"] == "HIT"
        assert second.text.startswith("<!-- ")
        assert second.text.endswith("<html>shoes render 1</html>")
        assert service.renders["count"] == 1

    def test_hit_body_is_stored_bytes(self, service, client):
        """Test the hit response body is exactly the stored value."""
        client.get("/shoes?page=2")
        hit = client.get("/shoes?page=2")

        page_cache = service.page_cache
        stored = page_cache.store._entries
        assert len(stored) == 1
        (value, _), = stored.values()
        assert hit.content == value

    def test_locale_splits_entries(self, service, client):
        """Test a different locale renders its own page."""
        client.get("/shoes")
        response = client.get("/shoes", headers={"X-Locale": "fr"})

        assert response.headers["X-Page-Cache"] == "MISS"
        assert service.renders["count"] == 2

    def test_post_not_cached(self, service, client):
        """Test non-GET requests always render."""
        client.post("/shoes")
        response = client.post("/shoes")

        assert response.headers["X-Page-Cache"] == "MISS"
        assert service.renders["count"] == 2

    def test_logged_in_customer_not_cached(self, service, client):
        """Test authenticated sessions neither read nor write the cache."""
        client.get("/shoes")
        response = client.get("/shoes", headers={"Cookie": "customer=42"})

        assert response.headers["X-Page-Cache"] == "MISS"
        assert response.text == "<html>shoes render 2</html>"

    def test_cart_filled_mid_request_not_stored(self, service, client):
        """Test pages that fill the cart are not stored."""
        client.get("/add-to-cart")
        response = client.get("/add-to-cart")

        assert response.headers["X-Page-Cache"] == "MISS"
        assert service.renders["count"] == 2

    def test_checkout_never_cached(self, service, client):
        """Test the checkout controller renders every time."""
        client.get("/order")
        response = client.get("/order")

        assert response.headers.get("X-Page-Cache") != "HIT"
        assert service.renders["count"] == 2

    def test_json_not_cached(self, service, client):
        """Test non-HTML responses pass through untouched."""
        client.get("/catalog.json")
        response = client.get("/catalog.json")

        assert response.json() == {"products": []}
        assert "X-Page-Cache" not in response.headers
        assert service.renders["count"] == 2

    def test_not_found_not_cached(self, client):
        """Test error responses are not stored."""
        client.get("/missing")
        response = client.get("/missing")

        assert response.status_code == 404
        assert response.headers.get("X-Page-Cache") != "HIT"

    def test_content_event_purges(self, service, client):
        """Test a product event forces the next request to render."""
        client.get("/shoes")
        event = client.post("/api/v1/page-cache/events/product.update")
        assert event.status_code == 200
        assert event.json() == {"event": "product.update", "normalized": "content_mutated", "purged": True}

        response = client.get("/shoes")
        assert response.headers["X-Page-Cache"] == "MISS"
        assert response.text == "<html>shoes render 2</html>"

    def test_unknown_event_ignored(self, client):
        """Test unrelated host events keep pages."""
        client.get("/shoes")
        event = client.post("/api/v1/page-cache/events/customer.login")

        assert event.json()["normalized"] is None
        assert client.get("/shoes").headers["X-Page-Cache"] == "HIT"

    def test_purge_endpoint(self, client):
        """Test the explicit purge route."""
        client.get("/shoes")
        response = client.post("/api/v1/page-cache/purge")

        assert response.json() == {"purged": True, "active": True}
        assert client.get("/shoes").headers["X-Page-Cache"] == "MISS"

    def test_deactivate_and_activate(self, service, client):
        """Test deactivation purges and stops the middleware."""
        client.get("/shoes")
        response = client.post("/api/v1/page-cache/deactivate")
        assert response.json() == {"active": False, "purged": True}

        passthrough = client.get("/shoes")
        assert "X-Page-Cache" not in passthrough.headers
        assert service.renders["count"] == 2

        client.post("/api/v1/page-cache/activate")
        assert client.get("/shoes").headers["X-Page-Cache"] == "MISS"
        assert client.get("/shoes").headers["X-Page-Cache"] == "HIT"

    def test_hit_goes_through_request_timing(self, client):
        """Test hits carry a request id and are counted like rendered pages."""
        miss = client.get("/shoes")
        hit = client.get("/shoes", headers={"X-Request-ID": "req-hit"})

        assert miss.headers["X-Request-ID"]
        assert hit.headers["X-Page-Cache"] == "HIT"
        assert hit.headers["X-Request-ID"] == "req-hit"

        metrics = client.get("/metrics").text
        assert 'http_requests_total{method="GET",endpoint="/shoes",status_code="200"} 2.0' in metrics

    def test_escaped_query_separator_not_served_to_real_query(self, service, client):
        """Test a page stored for an escaped "?" is not served for a real query string."""
        escaped = client.get("/p/a%3Fb=1")
        assert escaped.headers["X-Page-Cache"] == "MISS"
        assert escaped.text == "<html>product a?b=1</html>"

        queried = client.get("/p/a?b=1")
        assert queried.headers["X-Page-Cache"] == "MISS"
        assert queried.text == "<html>product a</html>"
        assert service.renders["count"] == 2

    def test_unstorable_request_is_not_snapshotted_twice(self, service, client):
        """Test a POST skips the completion snapshot and body capture."""
        builder = service.page_cache.context_builder
        with patch.object(builder, "build", wraps=builder.build) as mock_build:
            response = client.post("/shoes")

        assert response.text == "<html>filtered</html>"
        assert response.headers["X-Page-Cache"] == "MISS"
        assert mock_build.call_count == 1

    def test_purge_endpoint_while_deactivated(self, service, client):
        """Test an explicit purge clears the store even when the cache is off."""
        client.post("/api/v1/page-cache/deactivate")
        store = service.page_cache.store
        store._entries["leftover"] = (b"<html/>", float("inf"))

        response = client.post("/api/v1/page-cache/purge")

        assert response.status_code == 200
        assert response.json() == {"purged": True, "active": False}
        assert len(store) == 0

    def test_status_endpoint(self, client):
        """Test the status route reports configuration."""
        response = client.get("/api/v1/page-cache/status")

        assert response.status_code == 200
        data = response.json()
        assert data["active"] is True
        assert data["driver"] == "memory"
        assert data["excluded_controllers"] == ["order", "order_opc"]
        assert "product.update" in data["registered_events"]

    def test_health_endpoint(self, client):
        """Test health reports the store."""
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "pagecache"
        assert data["status"] == "ok"
        assert data["dependencies"] == {"cache_memory": "ok"}

    def test_metrics_endpoint(self, client):
        """Test page cache counters are exported."""
        client.get("/shoes")
        client.get("/shoes")
        response = client.get("/metrics")

        assert response.status_code == 200
        assert 'page_cache_lookups_total{result="hit"} 1.0' in response.text


class TestServiceConfiguration:
    """Configuration-driven behaviour."""

    def test_maintenance_disables_cache(self):
        """Test a disabled storefront is never cached."""
        service = build_service(storefront_enabled=False)
        client = TestClient(service.app)

        client.get("/shoes")
        response = client.get("/shoes")

        assert response.headers["X-Page-Cache"] == "MISS"
        assert service.renders["count"] == 2

    def test_debug_mode_disables_cache(self):
        """Test debug mode renders every request."""
        service = build_service(debug_mode=True)
        client = TestClient(service.app)

        client.get("/shoes")
        client.get("/shoes")

        assert service.renders["count"] == 2

    def test_create_app(self):
        """Test the app factory builds a working service."""
        app = create_app(get_config("pagecache", 8000, cache_driver="memory"))
        client = TestClient(app)

        assert client.get("/api/v1/page-cache/status").json()["driver"] == "memory"
