"""
Build a RequestContext from a Starlette request.

Hosts publish session data on ``request.state`` from their own middleware or
handlers: ``locale_id``, ``store_id``, ``customer_id``, ``cart`` (an item count
or any sized collection) and optionally ``maintenance``.
"""

import re
from abc import ABC, abstractmethod
from typing import Optional, Tuple
import sys
import os

from starlette.requests import Request
from starlette.routing import Match

# Add shared directory to path
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..', '..'))

from shared.config import BaseConfig
from shared.logging import get_logger
from ..domain.context import BACKEND, FRONT, RequestContext


_TABLET_RE = re.compile(r"ipad|tablet|kindle|silk|playbook|(android(?!.*mobile))", re.IGNORECASE)
_MOBILE_RE = re.compile(r"mobi|iphone|ipod|android|blackberry|opera mini|iemobile|windows phone", re.IGNORECASE)
_TRUTHY = {"1", "true", "yes", "on"}
_BACKEND_TAGS = {"backend", "admin"}


class MaintenanceStatusProvider(ABC):
    """Answers whether the storefront is currently in maintenance."""

    @abstractmethod
    def is_maintenance(self, request: Request) -> bool:
        ...


class SettingsMaintenanceProvider(MaintenanceStatusProvider):
    """Maintenance when the storefront is disabled in settings, or the handler flagged it."""

    def __init__(self, config: BaseConfig):
        self.config = config

    def is_maintenance(self, request: Request) -> bool:
        if not self.config.storefront_enabled:
            return True
        return bool(getattr(request.state, "maintenance", False))


def classify_device(user_agent: Optional[str]) -> str:
    """Return ``tablet``, ``mobile`` or ``desktop`` for a User-Agent header."""
    if not user_agent:
        return "desktop"
    if _TABLET_RE.search(user_agent):
        return "tablet"
    if _MOBILE_RE.search(user_agent):
        return "mobile"
    return "desktop"


class RequestContextBuilder:
    """Snapshot the caching-relevant parts of a request."""

    def __init__(self, config: BaseConfig, maintenance_provider: Optional[MaintenanceStatusProvider] = None):
        self.config = config
        self.maintenance_provider = maintenance_provider or SettingsMaintenanceProvider(config)
        self.logger = get_logger("pagecache.context")

    def build(self, request: Request) -> RequestContext:
        state = request.state
        controller, tags = self._resolve_route(request)
        device_class = None
        if self.config.separate_mobile_and_desktop:
            device_class = classify_device(request.headers.get("user-agent"))

        return RequestContext(
            method=request.method,
            path=_raw_path(request),
            query_string=request.url.query,
            is_ajax=self._is_ajax(request),
            locale_id=_optional_str(getattr(state, "locale_id", None)),
            store_id=_optional_str(getattr(state, "store_id", None)),
            device_class=device_class,
            controller=controller,
            controller_type=self._controller_type(request.url.path, tags),
            customer_id=_optional_str(getattr(state, "customer_id", None)),
            cart_items=self._cart_items(getattr(state, "cart", None)),
            maintenance=self._maintenance(request),
            debug=self.config.debug_mode or self.config.profiling,
        )

    def _resolve_route(self, request: Request) -> Tuple[str, Tuple[str, ...]]:
        app = request.scope.get("app")
        router = getattr(app, "router", None)
        for route in getattr(router, "routes", []):
            match, _ = route.matches(request.scope)
            if match == Match.FULL:
                name = getattr(route, "name", None) or ""
                tags = tuple(str(tag) for tag in (getattr(route, "tags", None) or ()))
                return name, tags
        return "", ()

    def _controller_type(self, path: str, tags: Tuple[str, ...]) -> str:
        if _BACKEND_TAGS.intersection(tag.lower() for tag in tags):
            return BACKEND
        for prefix in self.config.backend_path_prefixes:
            if path == prefix or path.startswith(prefix.rstrip("/") + "/"):
                return BACKEND
        return FRONT

    @staticmethod
    def _is_ajax(request: Request) -> bool:
        if request.headers.get("x-requested-with", "").lower() == "xmlhttprequest":
            return True
        return request.query_params.get("ajax", "").lower() in _TRUTHY

    @staticmethod
    def _cart_items(cart) -> Optional[int]:
        if cart is None:
            return None
        if isinstance(cart, bool):
            return int(cart)
        if isinstance(cart, int):
            return cart
        if hasattr(cart, "__len__"):
            return len(cart)
        # Unknown cart object: assume it holds something
        return 1

    def _maintenance(self, request: Request) -> bool:
        try:
            return bool(self.maintenance_provider.is_maintenance(request))
        except Exception as exc:
            self.logger.warning(
                "Maintenance status unavailable, assuming storefront is open",
                provider=type(self.maintenance_provider).__name__,
                error=str(exc),
            )
            return False


def _optional_str(value) -> Optional[str]:
    return None if value is None else str(value)


def _raw_path(request: Request) -> str:
    # Percent-escapes kept as sent: an encoded "?" must not read as a query separator
    raw_path = request.scope.get("raw_path")
    if raw_path:
        return raw_path.split(b"?", 1)[0].decode("latin-1")
    return request.scope["path"]
