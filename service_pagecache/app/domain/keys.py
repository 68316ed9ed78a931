"""
Cache key derivation.
"""

import hashlib
import sys
import os

# Add shared directory to path
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..', '..'))

from shared.config import BaseConfig
from .context import RequestContext


class CacheKeyDeriver:
    """Map locale, store, optional device class and URL to an MD5 hex key."""

    def __init__(self, config: BaseConfig):
        self.config = config

    def canonical_string(self, ctx: RequestContext) -> str:
        locale_id = _component(ctx.locale_id)
        store_id = _component(ctx.store_id)
        base = f"lang-{locale_id}-shop-{store_id}-{ctx.url}"
        if self.config.separate_mobile_and_desktop:
            return f"device-{_component(ctx.device_class)}-{base}"
        return base

    def derive_key(self, ctx: RequestContext) -> str:
        return hashlib.md5(self.canonical_string(ctx).encode("utf-8")).hexdigest()


def _component(value) -> str:
    return "" if value is None else str(value)
