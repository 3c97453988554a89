"""Tests for configuration loading."""

import json
from pathlib import Path

from noticeboard_sync.config import DEFAULT_SERVER_URL, Config


class TestConfig:
    """Tests for Config."""

    def test_defaults(self, tmp_path, monkeypatch):
        monkeypatch.delenv("NOTICEBOARD_SERVER_URL", raising=False)

        config = Config.load(tmp_path / "missing.json")

        assert config.server.url == DEFAULT_SERVER_URL
        assert config.sync.interval_seconds == 30
        assert config.retry.base_delay == 60
        assert config.retry.ceiling == 300
        assert config.retry.max_retries == 5
        assert config.timeouts.probe == 5
        assert config.timeouts.for_kind("notices") == 10
        assert config.timeouts.for_kind("media") == 30

    def test_load_from_file_ignores_unknown_keys(self, tmp_path, monkeypatch):
        monkeypatch.delenv("NOTICEBOARD_SERVER_URL", raising=False)
        config_file = tmp_path / "config.json"
        config_file.write_text(
            json.dumps(
                {
                    "server": {"url": "http://school.test", "legacy": True},
                    "sync": {"interval_seconds": 45, "local_cache_dir": str(tmp_path)},
                    "retry": {"max_retries": 3},
                    "unknown_section": {},
                }
            )
        )

        config = Config.load(config_file)

        assert config.server.url == "http://school.test"
        assert config.sync.interval_seconds == 45
        assert config.retry.max_retries == 3
        assert config.retry.base_delay == 60
        assert config.local_cache_dir == tmp_path

    def test_interval_is_clamped(self, tmp_path, monkeypatch):
        monkeypatch.delenv("NOTICEBOARD_SERVER_URL", raising=False)
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps({"sync": {"interval_seconds": 1}}))

        assert Config.load(config_file).sync.interval_seconds == 5

    def test_corrupt_file_uses_defaults(self, tmp_path, monkeypatch):
        monkeypatch.delenv("NOTICEBOARD_SERVER_URL", raising=False)
        config_file = tmp_path / "config.json"
        config_file.write_text("{oops")

        assert Config.load(config_file).server.url == DEFAULT_SERVER_URL

    def test_env_overrides_server_url(self, tmp_path, monkeypatch):
        monkeypatch.setenv("NOTICEBOARD_SERVER_URL", "https://noticeboard.example")

        assert Config.load(tmp_path / "missing.json").server.url == "https://noticeboard.example"

    def test_save_round_trip(self, tmp_path, monkeypatch):
        monkeypatch.delenv("NOTICEBOARD_SERVER_URL", raising=False)
        config_file = tmp_path / "nested" / "config.json"
        config = Config()
        config.sync.interval_seconds = 60

        config.save(config_file)

        assert Config.load(config_file).sync.interval_seconds == 60

    def test_cache_dir_defaults_to_data_dir(self):
        assert Config().local_cache_dir == Path(Config.get_data_dir())
