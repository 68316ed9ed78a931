"""
Decide whether a request may be served from or written to the page cache.
"""

from typing import Callable, List, Optional, Tuple
import sys
import os

# Add shared directory to path
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..', '..'))

from shared.config import BaseConfig
from .context import FRONT, RequestContext


CACHEABLE_METHOD = "GET"

# Predicates decided by the request alone; handlers cannot change their outcome
REQUEST_PREDICATES = frozenset({"debug_mode", "backend_controller", "unsafe_request"})


class EligibilityEvaluator:
    """Ordered predicate chain; the first failing predicate wins.

    1. debug and profiling modes are off
    2. the request targets a front-office controller
    3. the request is a plain (non-AJAX) GET
    4. the storefront is not in maintenance, when maintenance checking is on
    5. no customer is logged in
    6. the cart, if one exists, is empty
    """

    def __init__(self, config: BaseConfig):
        self.config = config
        self._predicates: List[Tuple[str, Callable[[RequestContext], bool]]] = [
            ("debug_mode", self._not_debug),
            ("backend_controller", self._is_front),
            ("unsafe_request", self._is_plain_get),
            ("maintenance", self._not_in_maintenance),
            ("authenticated", self._is_anonymous),
            ("cart_not_empty", self._cart_is_empty),
        ]

    def is_eligible(self, ctx: RequestContext) -> bool:
        return self.explain(ctx) is None

    def explain(self, ctx: RequestContext) -> Optional[str]:
        """Return the name of the first failing predicate, or None."""
        for name, predicate in self._predicates:
            if not predicate(ctx):
                return name
        return None

    def is_excluded_controller(self, ctx: RequestContext) -> bool:
        """Checkout controllers are never cached, whatever the request looks like."""
        return ctx.controller in self.config.excluded_controllers

    def may_store(self, ctx: RequestContext) -> bool:
        """False when the request alone already rules out storing its page."""
        if self.is_excluded_controller(ctx):
            return False
        return all(predicate(ctx) for name, predicate in self._predicates if name in REQUEST_PREDICATES)

    @staticmethod
    def _not_debug(ctx: RequestContext) -> bool:
        return not ctx.debug

    @staticmethod
    def _is_front(ctx: RequestContext) -> bool:
        return ctx.controller_type == FRONT

    @staticmethod
    def _is_plain_get(ctx: RequestContext) -> bool:
        return not ctx.is_ajax and ctx.method.upper() == CACHEABLE_METHOD

    def _not_in_maintenance(self, ctx: RequestContext) -> bool:
        if not self.config.check_for_maintenance:
            return True
        return not ctx.maintenance

    @staticmethod
    def _is_anonymous(ctx: RequestContext) -> bool:
        return not ctx.is_authenticated

    @staticmethod
    def _cart_is_empty(ctx: RequestContext) -> bool:
        return not ctx.cart_items
