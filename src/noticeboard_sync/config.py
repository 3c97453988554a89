"""Configuration management for Noticeboard Sync."""

import json
import logging
import os
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Optional

from platformdirs import user_config_dir, user_data_dir, user_log_dir

__all__ = [
    "Config",
    "ServerSettings",
    "SyncSettings",
    "RetrySettings",
    "TimeoutSettings",
    "setup_logging",
    "DEFAULT_SERVER_URL",
]

logger = logging.getLogger(__name__)

APP_NAME = "Noticeboard Sync"
APP_AUTHOR = "Noticeboard"

SERVER_URL_ENV = "NOTICEBOARD_SERVER_URL"

DEFAULT_SERVER_URL = "http://localhost:3000"

# Poll loop
DEFAULT_CHECK_INTERVAL = 30  # seconds
MIN_CHECK_INTERVAL = 5

# Connectivity backoff
DEFAULT_RETRY_DELAY = 60.0  # seconds
DEFAULT_RETRY_CEILING = 300.0  # 5 minutes
DEFAULT_MAX_RETRIES = 5


@dataclass
class ServerSettings:
    """Remote server connection settings."""

    url: str = DEFAULT_SERVER_URL


@dataclass
class SyncSettings:
    """Poll loop configuration."""

    interval_seconds: int = DEFAULT_CHECK_INTERVAL
    local_cache_dir: Optional[str] = None  # defaults to the platform data dir


@dataclass
class RetrySettings:
    """Backoff configuration for connectivity probes."""

    base_delay: float = DEFAULT_RETRY_DELAY
    ceiling: float = DEFAULT_RETRY_CEILING
    max_retries: int = DEFAULT_MAX_RETRIES


@dataclass
class TimeoutSettings:
    """Per-call network timeouts, in seconds."""

    auth: float = 10.0
    probe: float = 5.0
    notices: float = 10.0
    reports: float = 30.0
    media: float = 30.0

    def for_kind(self, kind_name: str) -> float:
        return float(getattr(self, kind_name, self.reports))


@dataclass
class Config:
    """Main configuration object."""

    server: ServerSettings = field(default_factory=ServerSettings)
    sync: SyncSettings = field(default_factory=SyncSettings)
    retry: RetrySettings = field(default_factory=RetrySettings)
    timeouts: TimeoutSettings = field(default_factory=TimeoutSettings)
    debug_mode: bool = False

    @classmethod
    def get_config_dir(cls) -> Path:
        """Get the configuration directory path."""
        return Path(user_config_dir(APP_NAME, APP_AUTHOR))

    @classmethod
    def get_data_dir(cls) -> Path:
        """Get the data directory path (local snapshots live here)."""
        return Path(user_data_dir(APP_NAME, APP_AUTHOR))

    @classmethod
    def get_log_dir(cls) -> Path:
        """Get the log directory path."""
        return Path(user_log_dir(APP_NAME, APP_AUTHOR))

    @classmethod
    def get_config_file(cls) -> Path:
        """Get the config file path."""
        return cls.get_config_dir() / "config.json"

    @classmethod
    def load(cls, config_file: Optional[Path] = None) -> "Config":
        """Load config from file, or return defaults."""
        config_file = config_file or cls.get_config_file()
        config = cls()
        if config_file.exists():
            try:
                with open(config_file, "r") as f:
                    data = json.load(f)
                config = cls._from_dict(data)
            except Exception as e:
                logger.warning(f"Failed to load config: {e}, using defaults")

        env_url = os.getenv(SERVER_URL_ENV)
        if env_url:
            config.server.url = env_url
        return config

    @classmethod
    def _from_dict(cls, data: dict) -> "Config":
        """Create Config from dictionary, ignoring unknown keys."""

        def build(settings_cls, values):
            if not isinstance(values, dict):
                return settings_cls()
            known = settings_cls.__dataclass_fields__
            return settings_cls(**{k: v for k, v in values.items() if k in known})

        config = cls(
            server=build(ServerSettings, data.get("server", {})),
            sync=build(SyncSettings, data.get("sync", {})),
            retry=build(RetrySettings, data.get("retry", {})),
            timeouts=build(TimeoutSettings, data.get("timeouts", {})),
            debug_mode=bool(data.get("debug_mode", False)),
        )
        config.sync.interval_seconds = max(MIN_CHECK_INTERVAL, int(config.sync.interval_seconds))
        config.retry.max_retries = max(0, int(config.retry.max_retries))
        return config

    @property
    def local_cache_dir(self) -> Path:
        if self.sync.local_cache_dir:
            return Path(self.sync.local_cache_dir)
        return self.get_data_dir()

    def save(self, config_file: Optional[Path] = None) -> None:
        """Save config to file."""
        config_file = config_file or self.get_config_file()
        config_file.parent.mkdir(parents=True, exist_ok=True)

        with open(config_file, "w") as f:
            json.dump(asdict(self), f, indent=2)
        logger.info(f"Config saved to {config_file}")


def setup_logging(debug: bool = False) -> None:
    """Configure logging."""
    log_dir = Config.get_log_dir()
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "noticeboard-sync.log"

    level = logging.DEBUG if debug else logging.INFO
    format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=level,
        format=format_str,
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler(),
        ],
    )

    # Reduce noise from libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)
