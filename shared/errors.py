"""
Shared error handling for the Page Cache service.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = {}


class PageCacheException(Exception):
    """Base exception for Page Cache components."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self, request_id: Optional[str] = None) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=request_id,
            code=self.code,
            message=self.message,
            details=self.details
        )


class ConfigurationError(PageCacheException):
    """Invalid or unsupported configuration."""

    def __init__(self, message: str = "Invalid configuration", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details)


class CacheStoreError(PageCacheException):
    """Cache backend errors."""

    def __init__(self, driver: str, message: str = "Cache store error", details: Optional[Dict[str, Any]] = None):
        super().__init__("CACHE_STORE_ERROR", f"{driver}: {message}", details)
