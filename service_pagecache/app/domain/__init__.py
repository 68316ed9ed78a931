"""
Page cache decision logic.

Eligibility, key derivation, the request gate, invalidation and the
middleware binding them to the request lifecycle. Nothing here talks to a
concrete backend; stores are injected.
"""

from .context import CachedPage, RequestContext
from .eligibility import EligibilityEvaluator
from .gate import CacheGate
from .invalidation import ContentEvent, InvalidationListener
from .keys import CacheKeyDeriver
from .page_cache_middleware import PageCacheMiddleware

__all__ = [
    "CacheGate",
    "CacheKeyDeriver",
    "CachedPage",
    "ContentEvent",
    "EligibilityEvaluator",
    "InvalidationListener",
    "PageCacheMiddleware",
    "RequestContext",
]
