# text_intelligence/config.py
"""Handles loading and accessing the application configuration."""
import copy
import logging
import os
import threading
import time
import tomllib
from typing import Any, Dict

log = logging.getLogger(__name__)

DEFAULT_CONFIG = {
    "deepgram": {
        "base_url": "https://api.deepgram.com",
        "timeout_seconds": 30.0,
    },
    "fetch": {
        "timeout_seconds": 10.0,
        "max_bytes": 2_000_000,
    },
    "guardrails": {
        "max_chars": 150_000,
        "rate_limit": "60/minute",
        "audit_log": True,
    },
    "server": {
        "reload_config_seconds": 10,
        "cors_allow_origins": ["*"],
    },
}

CONFIG_PATH = os.environ.get("CONFIG_PATH", "config.toml")
_config_lock = threading.Lock()
_config: Dict[str, Any] = copy.deepcopy(DEFAULT_CONFIG)


def merge_config(user_cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Merges a user config one level deep over a fresh copy of the defaults."""
    merged = copy.deepcopy(DEFAULT_CONFIG)
    for k, v in user_cfg.items():
        if isinstance(v, dict) and isinstance(merged.get(k), dict):
            merged[k].update(v)
        else:
            merged[k] = v
    return merged


def _load_config(path: str | None = None):
    """Loads configuration from a TOML file and merges it with defaults."""
    global _config
    path = path or CONFIG_PATH
    try:
        if os.path.exists(path):
            with open(path, "rb") as f:
                user_cfg = tomllib.load(f)
            merged = merge_config(user_cfg)
        else:
            merged = copy.deepcopy(DEFAULT_CONFIG)
        with _config_lock:
            _config = merged
    except (OSError, tomllib.TOMLDecodeError) as e:
        log.warning("failed to load config from %s: %s", path, e)


def get_cfg() -> Dict[str, Any]:
    """Thread-safe access to the global configuration."""
    with _config_lock:
        return _config


def set_cfg(cfg: Dict[str, Any]):
    """Replaces the active configuration wholesale."""
    global _config
    with _config_lock:
        _config = cfg


def start_config_reloader() -> threading.Thread | None:
    """Starts a background thread to periodically reload the configuration.

    A non-positive ``server.reload_config_seconds`` disables reloading.
    """
    if float(get_cfg()["server"]["reload_config_seconds"]) <= 0:
        return None

    def loop():
        while True:
            time.sleep(float(get_cfg()["server"]["reload_config_seconds"]) or 1)
            _load_config()
    t = threading.Thread(target=loop, daemon=True, name="config-reloader")
    t.start()
    return t


# Initial load
_load_config()
