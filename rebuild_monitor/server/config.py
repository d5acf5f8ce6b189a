"""Configuration management for the rebuild monitor.

Supports YAML-based configuration with per-deployment feed settings.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

FEED_KINDS = ("demo", "file", "http")


@dataclass
class ServerConfig:
    """Server configuration."""

    host: str = "0.0.0.0"
    port: int = 8080
    url_prefix: str = ""


@dataclass
class RefreshConfig:
    """Refresh scheduling configuration."""

    interval_seconds: int = 30
    simulate: Optional[bool] = None  # None = simulate only when no live feed
    seed: Optional[int] = None  # Seed for the simulator and demo fleet

    def should_simulate(self, feed_kind: str) -> bool:
        if self.simulate is not None:
            return self.simulate
        return feed_kind == "demo"


@dataclass
class FeedConfig:
    """Inbound fleet feed configuration."""

    kind: str = "demo"  # 'demo', 'file', 'http'
    path: Optional[str] = None  # Inventory file for kind 'file'
    url: Optional[str] = None  # Telemetry endpoint for kind 'http'
    timeout: int = 20
    verify: bool = True
    ca_bundle: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)


@dataclass
class Config:
    """Main configuration container."""

    deployment_name: str = "Disk Rebuild Monitor"

    server: ServerConfig = field(default_factory=ServerConfig)
    refresh: RefreshConfig = field(default_factory=RefreshConfig)
    feed: FeedConfig = field(default_factory=FeedConfig)

    # Enables the snapshot cache and rebuild history when set
    data_dir: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create config from dictionary.

        Raises:
            ValueError: If the feed kind is not one of 'demo', 'file', 'http'.
        """
        deployment = data.get("deployment", {})

        server_data = data.get("server", {})
        server = ServerConfig(
            host=server_data.get("host", "0.0.0.0"),
            port=server_data.get("port", 8080),
            url_prefix=server_data.get("url_prefix", ""),
        )

        refresh_data = data.get("refresh", {})
        refresh = RefreshConfig(
            interval_seconds=refresh_data.get("interval_seconds", 30),
            simulate=refresh_data.get("simulate"),
            seed=refresh_data.get("seed"),
        )

        feed_data = data.get("feed", {})
        kind = str(feed_data.get("kind", "demo")).lower()
        if kind not in FEED_KINDS:
            raise ValueError(f"Unknown feed kind {kind!r}; expected one of {', '.join(FEED_KINDS)}")
        feed = FeedConfig(
            kind=kind,
            path=feed_data.get("path"),
            url=feed_data.get("url"),
            timeout=feed_data.get("timeout", 20),
            verify=feed_data.get("verify", True),
            ca_bundle=feed_data.get("ca_bundle"),
            headers=feed_data.get("headers", {}) or {},
        )

        return cls(
            deployment_name=deployment.get("name", "Disk Rebuild Monitor"),
            server=server,
            refresh=refresh,
            feed=feed,
            data_dir=data.get("data_dir"),
        )

    @classmethod
    def from_yaml(cls, path: Path) -> "Config":
        """Load config from YAML file."""
        if not path.exists():
            return cls()
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return cls.from_dict(data)

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> "Config":
        """Load config from path or defaults.

        Checks in order:
        1. Provided path
        2. REBUILD_MONITOR_CONFIG env var
        3. ./configs/config.yaml
        4. ./config.yaml
        5. ~/.rebuild_monitor/config.yaml
        6. Default config
        """
        paths_to_try = []

        if config_path:
            paths_to_try.append(Path(config_path))

        if env_path := os.environ.get("REBUILD_MONITOR_CONFIG"):
            paths_to_try.append(Path(env_path))

        paths_to_try.extend([
            Path("./configs/config.yaml"),
            Path("./config.yaml"),
            Path.home() / ".rebuild_monitor" / "config.yaml",
        ])

        for path in paths_to_try:
            if path.exists():
                return cls.from_yaml(path)

        return cls()

    @property
    def simulate(self) -> bool:
        return self.refresh.should_simulate(self.feed.kind)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to the from_dict shape, without feed headers.

        Headers can carry credentials and this dict is served by /api/config,
        so they are left out; a round trip through this dict drops them.
        """
        return {
            "deployment": {
                "name": self.deployment_name,
            },
            "server": {
                "host": self.server.host,
                "port": self.server.port,
                "url_prefix": self.server.url_prefix,
            },
            "refresh": {
                "interval_seconds": self.refresh.interval_seconds,
                "simulate": self.refresh.simulate,
                "seed": self.refresh.seed,
            },
            "feed": {
                "kind": self.feed.kind,
                "path": self.feed.path,
                "url": self.feed.url,
                "timeout": self.feed.timeout,
                "verify": self.feed.verify,
                "ca_bundle": self.feed.ca_bundle,
            },
            "data_dir": self.data_dir,
        }
