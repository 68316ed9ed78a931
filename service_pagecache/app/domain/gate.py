"""
Page cache gate: lookup at request start, store at request completion.
"""

import time
from datetime import datetime
from typing import Optional, TYPE_CHECKING
import sys
import os

# Add shared directory to path
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..', '..'))

from shared.config import BaseConfig
from shared.logging import get_logger, set_cache_key
from ..caching.base import CacheStore
from .context import CachedPage, RequestContext
from .eligibility import EligibilityEvaluator
from .keys import CacheKeyDeriver

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


class CacheGate:
    """Bind the eligibility check and key derivation to store reads and writes.

    Store failures never propagate: a failed read is a miss and a failed write
    is skipped, so the request always falls through to normal rendering.
    """

    def __init__(
        self,
        store: CacheStore,
        evaluator: EligibilityEvaluator,
        deriver: CacheKeyDeriver,
        config: BaseConfig,
        *,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.store = store
        self.evaluator = evaluator
        self.deriver = deriver
        self.config = config
        self.metrics = metrics
        self.logger = get_logger("pagecache.gate")

    async def on_request_start(self, ctx: RequestContext) -> Optional[CachedPage]:
        """Return the stored page for this request, if any.

        A returned page is the whole response; the caller must not run the
        downstream application.
        """
        if self.evaluator.is_excluded_controller(ctx):
            self._count("page_cache_lookups_total", result="excluded")
            return None

        reason = self.evaluator.explain(ctx)
        if reason is not None:
            self.logger.debug("Page cache bypassed", path=ctx.path, reason=reason)
            self._count("page_cache_lookups_total", result="bypass")
            return None

        key = self.deriver.derive_key(ctx)
        set_cache_key(key)

        start = time.perf_counter()
        try:
            cached = await self.store.get(key)
        except Exception as exc:
            self.logger.error("Page cache read failed", key=key, driver=self.store.driver_name, error=str(exc))
            self._count("page_cache_errors_total", operation="get")
            self._count("page_cache_lookups_total", result="error")
            return None
        finally:
            self._observe("get", start)

        if cached is None:
            self._count("page_cache_lookups_total", result="miss")
            return None

        self.logger.info("Serving cached page", key=key, path=ctx.path, size=len(cached))
        self._count("page_cache_lookups_total", result="hit")
        return CachedPage(key=key, body=cached)

    async def on_request_complete(self, ctx: RequestContext, rendered_output: str) -> bool:
        """Store the rendered page when the request is still cacheable."""
        if self.evaluator.is_excluded_controller(ctx):
            self._count("page_cache_writes_total", result="excluded")
            return False

        # Never keep a maintenance page, whatever check_for_maintenance says
        if ctx.maintenance:
            self._count("page_cache_writes_total", result="maintenance")
            return False

        reason = self.evaluator.explain(ctx)
        if reason is not None:
            self.logger.debug("Page not stored", path=ctx.path, reason=reason)
            self._count("page_cache_writes_total", result="bypass")
            return False

        key = self.deriver.derive_key(ctx)
        value = (self.provenance_marker(key) + rendered_output).encode("utf-8")

        start = time.perf_counter()
        try:
            await self.store.set(key, value, self.config.cache_ttl)
        except Exception as exc:
            self.logger.error("Page cache write failed", key=key, driver=self.store.driver_name, error=str(exc))
            self._count("page_cache_errors_total", operation="set")
            self._count("page_cache_writes_total", result="error")
            return False
        finally:
            self._observe("set", start)

        self.logger.debug("Stored page", key=key, path=ctx.path, ttl=self.config.cache_ttl)
        self._count("page_cache_writes_total", result="stored")
        return True

    def provenance_marker(self, key: str, now: Optional[datetime] = None) -> str:
        if not self.config.provenance_marker:
            return ""
        stamp = (now or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")
        return f"<!-- {key} from {self.store.driver_name} on {stamp} -->\n"

    def _count(self, metric_name: str, **labels) -> None:
        if self.metrics:
            self.metrics.increment_counter(metric_name, **labels)

    def _observe(self, operation: str, start: float) -> None:
        if self.metrics:
            self.metrics.observe_histogram(
                "page_cache_store_duration_seconds",
                time.perf_counter() - start,
                operation=operation,
            )
