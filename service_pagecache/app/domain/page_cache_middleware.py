"""
Page cache middleware for storefront applications.
"""

from typing import TYPE_CHECKING
import sys
import os

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

# Add shared directory to path
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..', '..'))

from shared.logging import get_logger, set_cache_key

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from ..module import PageCache


CACHE_STATUS_HEADER = "X-Page-Cache"


class PageCacheMiddleware(BaseHTTPMiddleware):
    """Serve stored pages before routing and store rendered pages afterwards.

    On a hit nothing below it runs.
    """

    def __init__(self, app, page_cache: "PageCache"):
        super().__init__(app)
        self.page_cache = page_cache
        self.logger = get_logger("pagecache.middleware")

    async def dispatch(self, request: Request, call_next):
        if not self.page_cache.active:
            return await call_next(request)

        set_cache_key(None)
        builder = self.page_cache.context_builder
        gate = self.page_cache.gate

        start_ctx = builder.build(request)
        cached = await gate.on_request_start(start_ctx)
        if cached is not None:
            return Response(
                content=cached.body,
                media_type="text/html",
                headers={CACHE_STATUS_HEADER: "HIT"},
            )

        response = await call_next(request)
        if not self._is_cacheable_response(response):
            return response

        if not gate.evaluator.may_store(start_ctx):
            response.headers[CACHE_STATUS_HEADER] = "MISS"
            return response

        chunks = []
        async for chunk in response.body_iterator:
            chunks.append(chunk if isinstance(chunk, bytes) else chunk.encode("utf-8"))
        body = b"".join(chunks)

        charset = _charset(response.headers.get("content-type", ""))
        try:
            rendered = body.decode(charset)
        except (LookupError, UnicodeDecodeError) as exc:
            self.logger.warning("Rendered page is not decodable, skipping cache", charset=charset, error=str(exc))
            rendered = None

        # Re-snapshot: the handler may have logged a customer in or filled the cart
        if rendered is not None:
            await gate.on_request_complete(builder.build(request), rendered)

        response.body_iterator = _replay(body)
        response.headers[CACHE_STATUS_HEADER] = "MISS"
        return response

    @staticmethod
    def _is_cacheable_response(response) -> bool:
        if response.status_code != 200:
            return False
        return response.headers.get("content-type", "").lower().startswith("text/html")


async def _replay(body: bytes):
    yield body


def _charset(content_type: str) -> str:
    for part in content_type.split(";")[1:]:
        name, _, value = part.strip().partition("=")
        if name.lower() == "charset" and value:
            return value.strip('"')
    return "utf-8"
