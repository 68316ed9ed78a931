"""
Translate host event names into the page cache's content events.
"""

from typing import List, Optional
import sys
import os

# Add shared directory to path
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..', '..'))

from shared.config import BaseConfig
from ..domain.invalidation import ContentEvent


DEFAULT_EVENTS = [
    "category.add",
    "category.update",
    "category.delete",
    "product.add",
    "product.update",
    "product.delete",
    "product.save",
    "templates.clear",
]


class HostEventMapper:
    """Explicit clear signals first, then any name under a mutation prefix."""

    def __init__(self, config: BaseConfig):
        self.clear_events = {name.lower() for name in config.cache_clear_events}
        self.mutation_prefixes = tuple(prefix.lower() for prefix in config.mutation_event_prefixes)

    def normalize(self, event_name: str) -> Optional[ContentEvent]:
        name = event_name.strip().lower()
        if not name:
            return None
        if name in self.clear_events:
            return ContentEvent.CACHE_CLEAR_REQUESTED
        if self.mutation_prefixes and name.startswith(self.mutation_prefixes):
            return ContentEvent.CONTENT_MUTATED
        return None

    def registered_events(self) -> List[str]:
        """Concrete event names a host should forward."""
        return [name for name in DEFAULT_EVENTS if self.normalize(name) is not None]
