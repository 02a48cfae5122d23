"""Configuration loading for homegate.

Loads settings from TOML config file with CLI override support.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import tomli

from homegate.monitor import MonitorOptions

logger = logging.getLogger(__name__)


def get_config_search_paths() -> list[Path]:
    """Get list of paths to search for config file."""
    return [
        Path("homegate.toml"),  # Current directory
        Path.home() / ".config" / "homegate" / "homegate.toml",
        Path("/etc/homegate/homegate.toml"),
    ]


def find_config_file() -> Optional[Path]:
    """Find the first existing config file."""
    for path in get_config_search_paths():
        if path.exists():
            return path
    return None


@dataclass
class Config:
    """Loaded configuration with all sections."""

    # Router
    router_url: str = "http://192.168.2.1"
    username: str = ""
    password: str = ""
    router_timeout: float = 10.0
    verify_tls: bool = True

    # Monitor
    mac: str = ""
    period: str = "day"
    activity_threshold: float = 0.0
    policy: str = ""
    enforce: bool = False
    timezone: str = ""

    # Watch loop
    interval: float = 300.0  # 5 minutes

    def monitor_options(self) -> MonitorOptions:
        return MonitorOptions(
            username=self.username,
            password=self.password,
            mac=self.mac,
            period=self.period,
            activity_threshold=self.activity_threshold,
            policy=self.policy,
            enforce=self.enforce,
            router_url=self.router_url,
            router_timeout=self.router_timeout,
            verify_tls=self.verify_tls,
            timezone=self.timezone,
        )


# TOML section -> {key: config attribute}
SECTION_KEYS: dict[str, dict[str, str]] = {
    "router": {
        "url": "router_url",
        "username": "username",
        "password": "password",
        "timeout": "router_timeout",
        "verify_tls": "verify_tls",
    },
    "monitor": {
        "mac": "mac",
        "period": "period",
        "activity_threshold": "activity_threshold",
        "policy": "policy",
        "enforce": "enforce",
        "timezone": "timezone",
    },
    "watch": {
        "interval": "interval",
    },
}


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from TOML file.

    Args:
        config_path: Explicit path to config file, or None to search

    Returns:
        Config object with loaded values
    """
    config = Config()

    if config_path is None:
        config_path = find_config_file()

    if config_path is None or not config_path.exists():
        logger.debug("No config file found, using defaults")
        return config

    logger.info(f"Loading config from {config_path}")

    try:
        with open(config_path, "rb") as f:
            data = tomli.load(f)
    except (OSError, tomli.TOMLDecodeError) as e:
        logger.warning(f"Failed to load config file: {e}")
        return config

    for section_name, keys in SECTION_KEYS.items():
        section = data.get(section_name)
        if not isinstance(section, dict):
            continue
        for key, attr in keys.items():
            if key in section:
                setattr(config, attr, section[key])

    # Numbers may be written as integers in TOML
    config.activity_threshold = float(config.activity_threshold)
    config.interval = float(config.interval)
    config.router_timeout = float(config.router_timeout)

    return config


def merge_cli_options(config: Config, **cli_options: Any) -> Config:
    """Merge CLI options into config (CLI takes precedence).

    Args:
        config: Base config from file
        **cli_options: CLI option overrides (None values are ignored)

    Returns:
        Config with CLI overrides applied
    """
    mappings = {
        "url": "router_url",
        "username": "username",
        "password": "password",
        "mac": "mac",
        "period": "period",
        "activity_threshold": "activity_threshold",
        "policy": "policy",
        "enforce": "enforce",
        "timezone": "timezone",
        "interval": "interval",
    }

    for cli_name, config_name in mappings.items():
        if cli_name in cli_options:
            value = cli_options[cli_name]
            # Only override if CLI value is meaningful
            if value is not None and value != "":
                setattr(config, config_name, value)

    return config
