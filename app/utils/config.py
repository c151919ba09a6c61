"""Configuration loading: defaults, then config.json, then environment."""

import json
import os
from typing import Dict, Any, Optional


class ConfigError(Exception):
    """Raised when the configuration cannot drive an update run."""


DEFAULTS = {
    "game_version": None,
    "mods_dir": "/data/Mods",
    "manifest_path": "/configs/Mods.json5",
    "stale_hours": 23,
    "fetch_delay": 1.0,
    "download_delay": 5.0,
    "recent_count": 10,
    "prefer_stable": True,
    "moddb_url": "https://mods.vintagestory.at",
    "request_timeout": 30,
    "log_file": None,
    "update_interval_hours": 4,
    "notify_token": None,
    "notify_channels": [],
    "notify_api": "https://discord.com/api/v10",
    "notify_title": "Mod updates",
    "monitor_log_file": "/data/logs/output.log",
    "monitor_port": 8080,
    "monitor_poll_seconds": 1,
}

# env var -> (config key, converter)
ENV_OVERRIDES = {
    "GAME_VERSION": ("game_version", str),
    "MODS_DIR": ("mods_dir", str),
    "MODS_MANIFEST": ("manifest_path", str),
    "STALE_HOURS": ("stale_hours", float),
    "FETCH_DELAY": ("fetch_delay", float),
    "DOWNLOAD_DELAY": ("download_delay", float),
    "RECENT_COUNT": ("recent_count", int),
    "MODDB_URL": ("moddb_url", str),
    "LOG_FILE": ("log_file", str),
    "UPDATE_INTERVAL_HOURS": ("update_interval_hours", float),
    "NOTIFY_TOKEN": ("notify_token", str),
    "NOTIFY_CHANNELS": ("notify_channels", lambda v: [c.strip() for c in v.split(",") if c.strip()]),
    "MONITOR_LOG_FILE": ("monitor_log_file", str),
    "MONITOR_PORT": ("monitor_port", int),
}


def get_home() -> str:
    """Directory holding config.json (VSRUNNER_HOME, else the working directory)."""
    return os.environ.get("VSRUNNER_HOME") or os.getcwd()


def config_path(home: Optional[str] = None) -> str:
    return os.path.join(home or get_home(), "config.json")


def load_cfg(home: Optional[str] = None) -> Dict[str, Any]:
    """Load config.json, returning {} if it does not exist."""
    path = config_path(home)
    if os.path.exists(path):
        with open(path) as f:
            return json.load(f)
    return {}


def save_cfg(config: Dict[str, Any], home: Optional[str] = None) -> None:
    """Save configuration to config.json."""
    with open(config_path(home), "w") as f:
        json.dump(config, f, indent=2)


def get_config(home: Optional[str] = None, environ=None) -> Dict[str, Any]:
    """Get the effective configuration with defaults filled in."""
    environ = os.environ if environ is None else environ

    cfg = dict(DEFAULTS)
    try:
        cfg.update(load_cfg(home))
    except ValueError as e:
        raise ConfigError(f"Invalid {config_path(home)}: {e}") from e

    for env_name, (key, convert) in ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value:
            try:
                cfg[key] = convert(value)
            except ValueError as e:
                raise ConfigError(f"Invalid value for {env_name}: {value!r}") from e

    return cfg


def require_game_version(cfg: Dict[str, Any]) -> str:
    game_version = cfg.get("game_version")
    if not game_version:
        raise ConfigError("GAME_VERSION is not set; cannot check mod compatibility")
    return str(game_version)
