"""Data collectors - inventory files, telemetry endpoints, and other fleet sources."""

from .base import BaseCollector, CollectorError
from .inventory import InventoryFileCollector
from .telemetry import TelemetryHTTPCollector

__all__ = [
    "BaseCollector",
    "CollectorError",
    "InventoryFileCollector",
    "TelemetryHTTPCollector",
]
