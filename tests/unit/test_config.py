"""Tests for configuration management."""

import pytest
import yaml

from rebuild_monitor.server.config import Config, FeedConfig, RefreshConfig, ServerConfig


class TestServerConfig:
    def test_defaults(self):
        config = ServerConfig()
        assert config.host == "0.0.0.0"
        assert config.port == 8080
        assert config.url_prefix == ""


class TestRefreshConfig:
    def test_defaults(self):
        config = RefreshConfig()
        assert config.interval_seconds == 30
        assert config.simulate is None

    def test_should_simulate_follows_feed(self):
        config = RefreshConfig()
        assert config.should_simulate("demo") is True
        assert config.should_simulate("file") is False
        assert config.should_simulate("http") is False

    def test_explicit_simulate_wins(self):
        assert RefreshConfig(simulate=True).should_simulate("http") is True
        assert RefreshConfig(simulate=False).should_simulate("demo") is False


class TestConfig:
    def test_defaults(self):
        config = Config()
        assert config.deployment_name == "Disk Rebuild Monitor"
        assert config.feed.kind == "demo"
        assert config.data_dir is None
        assert config.simulate is True

    def test_from_dict(self):
        data = {
            "deployment": {"name": "Lab Fleet"},
            "server": {"host": "127.0.0.1", "port": 9000, "url_prefix": "/monitor"},
            "refresh": {"interval_seconds": 10, "seed": 42},
            "feed": {
                "kind": "http",
                "url": "https://telemetry.example.com/arrays",
                "timeout": 5,
                "verify": False,
                "headers": {"Authorization": "Bearer token"},
            },
            "data_dir": "/var/lib/rebuild-monitor",
        }

        config = Config.from_dict(data)

        assert config.deployment_name == "Lab Fleet"
        assert config.server.port == 9000
        assert config.server.url_prefix == "/monitor"
        assert config.refresh.interval_seconds == 10
        assert config.refresh.seed == 42
        assert config.feed.kind == "http"
        assert config.feed.verify is False
        assert config.feed.headers == {"Authorization": "Bearer token"}
        assert config.data_dir == "/var/lib/rebuild-monitor"
        assert config.simulate is False

    def test_feed_kind_case_insensitive(self):
        assert Config.from_dict({"feed": {"kind": "FILE", "path": "fleet.yaml"}}).feed.kind == "file"

    def test_unknown_feed_kind(self):
        with pytest.raises(ValueError, match="Unknown feed kind"):
            Config.from_dict({"feed": {"kind": "snmp"}})

    def test_yaml_round_trip(self, tmp_path):
        original = Config(
            deployment_name="Round Trip",
            server=ServerConfig(port=8123, url_prefix="/rb"),
            refresh=RefreshConfig(interval_seconds=15, simulate=True, seed=3),
            feed=FeedConfig(kind="file", path="/etc/fleet.yaml"),
            data_dir=str(tmp_path / "data"),
        )
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump(original.to_dict()), encoding="utf-8")

        loaded = Config.from_yaml(path)

        assert loaded == original

    def test_to_dict_omits_headers(self):
        config = Config(feed=FeedConfig(kind="http", url="https://x", headers={"Authorization": "secret"}))
        assert "headers" not in config.to_dict()["feed"]

    def test_from_yaml_missing_file(self, tmp_path):
        assert Config.from_yaml(tmp_path / "absent.yaml") == Config()

    def test_from_yaml_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert Config.from_yaml(path) == Config()


class TestConfigLoad:
    def test_explicit_path(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        path = tmp_path / "custom.yaml"
        path.write_text("deployment:\n  name: Explicit\n", encoding="utf-8")

        assert Config.load(str(path)).deployment_name == "Explicit"

    def test_env_var(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        path = tmp_path / "env.yaml"
        path.write_text("deployment:\n  name: From Env\n", encoding="utf-8")
        monkeypatch.setenv("REBUILD_MONITOR_CONFIG", str(path))

        assert Config.load().deployment_name == "From Env"

    def test_configs_dir_in_cwd(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("REBUILD_MONITOR_CONFIG", raising=False)
        (tmp_path / "configs").mkdir()
        (tmp_path / "configs" / "config.yaml").write_text("server:\n  port: 9999\n", encoding="utf-8")

        assert Config.load().server.port == 9999

    def test_defaults_when_nothing_found(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("REBUILD_MONITOR_CONFIG", raising=False)
        monkeypatch.setenv("HOME", str(tmp_path))

        assert Config.load() == Config()
