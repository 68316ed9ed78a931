"""
Request snapshot consumed by the page cache decision code.
"""

from dataclasses import dataclass
from typing import Optional


FRONT = "front"
BACKEND = "backend"


@dataclass(frozen=True)
class RequestContext:
    """Read-only view of the request fields that affect caching."""

    method: str
    path: str
    query_string: str = ""
    is_ajax: bool = False
    locale_id: Optional[str] = None
    store_id: Optional[str] = None
    device_class: Optional[str] = None
    controller: str = ""
    controller_type: str = FRONT
    customer_id: Optional[str] = None
    cart_items: Optional[int] = None
    maintenance: bool = False
    debug: bool = False

    @property
    def url(self) -> str:
        """Path plus query string, as the client sent it."""
        if self.query_string:
            return f"{self.path}?{self.query_string}"
        return self.path

    @property
    def is_authenticated(self) -> bool:
        """True when a customer identity is attached to the session."""
        if self.customer_id is None:
            return False
        customer_id = str(self.customer_id).strip()
        if not customer_id:
            return False
        try:
            return int(customer_id) > 0
        except ValueError:
            return True


@dataclass(frozen=True)
class CachedPage:
    """A stored page found at request start."""

    key: str
    body: bytes
