"""
Host integration adapters: request snapshots and event translation.
"""

from .events import HostEventMapper
from .request_context import (
    MaintenanceStatusProvider,
    RequestContextBuilder,
    SettingsMaintenanceProvider,
    classify_device,
)

__all__ = [
    "HostEventMapper",
    "MaintenanceStatusProvider",
    "RequestContextBuilder",
    "SettingsMaintenanceProvider",
    "classify_device",
]
