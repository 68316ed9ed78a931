"""
Shared configuration management for the Page Cache service.
"""

from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="PAGECACHE_",
        case_sensitive=False,
        extra="allow",
        frozen=True,
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Storage backend
    cache_driver: str = Field(default="files", description="files, redis or memory")
    cache_dir: str = Field(default="cache")
    cache_namespace: str = Field(default="pagecache")
    redis_url: str = Field(default="redis://localhost:6379/0")
    cache_ttl: int = Field(default=3600, ge=1)

    # Cache behaviour
    separate_mobile_and_desktop: bool = Field(default=False)
    check_for_maintenance: bool = Field(default=True)
    storefront_enabled: bool = Field(default=True)
    debug_mode: bool = Field(default=False)
    profiling: bool = Field(default=False)
    provenance_marker: bool = Field(default=True)

    # Checkout controllers are never cached
    excluded_controllers: List[str] = Field(default_factory=lambda: ["order", "order_opc"])
    backend_path_prefixes: List[str] = Field(
        default_factory=lambda: ["/admin", "/api", "/health", "/metrics", "/docs", "/redoc", "/openapi.json"]
    )

    # Host events
    mutation_event_prefixes: List[str] = Field(default_factory=lambda: ["category.", "product."])
    cache_clear_events: List[str] = Field(default_factory=lambda: ["cache.clear", "templates.clear"])


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"

    def __init__(self, service_name: str, port: int, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)


def get_config(service_name: str, port: int, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port, **overrides)
