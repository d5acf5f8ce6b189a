"""Server components - configuration, refresh workers, and the JSON API."""

from .config import Config, FeedConfig, RefreshConfig, ServerConfig
from .workers import FleetState, RefreshError, RefreshResult, RefreshWorker

__all__ = [
    "Config",
    "FeedConfig",
    "FleetState",
    "RefreshConfig",
    "RefreshError",
    "RefreshResult",
    "RefreshWorker",
    "ServerConfig",
]
