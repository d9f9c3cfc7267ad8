"""
User configuration file support.

Reads/writes ``~/.netspeed/config.json``.

Supported keys::

    base_url = "http://127.0.0.1:8080"   # server speaking /ping /download /upload
    ping_count = 5
    ping_delay = 0.1                     # seconds between pings
    penalty_ms = 1000.0                  # RTT recorded for a failed ping
    download_sizes = [102400, ...]       # ascending, bytes
    upload_sizes = [51200, ...]
    download_delay = 0.2
    upload_delay = 0.3
    request_timeout = 5.0                # per request, seconds
    history_file = ""                    # empty = ~/.netspeed/history.json
    history_limit = 10
"""
from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

from .constants import (
    DEFAULT_BASE_URL,
    DEFAULT_PING_COUNT,
    DEFAULT_TIMEOUT,
    DOWNLOAD_DELAY,
    DOWNLOAD_SIZES,
    HISTORY_LIMIT,
    MAX_PING_COUNT,
    MAX_TIMEOUT,
    MIN_PING_COUNT,
    MIN_TIMEOUT,
    PENALTY_MS,
    PING_DELAY,
    UPLOAD_DELAY,
    UPLOAD_SIZES,
)

_CONFIG_DIR = os.path.join(Path.home(), ".netspeed")
_CONFIG_FILE = "config.json"


def _config_path() -> str:
    return os.path.join(_CONFIG_DIR, _CONFIG_FILE)


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULTS: Dict[str, Any] = {
    "base_url": DEFAULT_BASE_URL,
    "ping_count": DEFAULT_PING_COUNT,
    "ping_delay": PING_DELAY,
    "penalty_ms": PENALTY_MS,
    "download_sizes": list(DOWNLOAD_SIZES),
    "upload_sizes": list(UPLOAD_SIZES),
    "download_delay": DOWNLOAD_DELAY,
    "upload_delay": UPLOAD_DELAY,
    "request_timeout": DEFAULT_TIMEOUT,
    "history_file": "",
    "history_limit": HISTORY_LIMIT,
}


# ---------------------------------------------------------------------------
# Read / Write
# ---------------------------------------------------------------------------

def load_config() -> Dict[str, Any]:
    """Load config from disk, returning defaults for missing keys."""
    path = _config_path()
    config = dict(DEFAULTS)

    if not os.path.isfile(path):
        return config

    try:
        with open(path, encoding="utf-8") as fh:
            user = json.load(fh)
        if isinstance(user, dict):
            config.update(user)
    except (json.JSONDecodeError, IOError):
        pass  # corrupt file; use defaults

    return config


def save_config(config: Dict[str, Any]) -> str:
    """Write *config* to disk.  Returns the file path."""
    path = _config_path()
    os.makedirs(os.path.dirname(path), exist_ok=True)

    with open(path, "w", encoding="utf-8") as fh:
        json.dump(config, fh, indent=2, ensure_ascii=False)

    return path


def get_config_value(key: str) -> Any:
    """Get a single config value."""
    return load_config().get(key, DEFAULTS.get(key))


def set_config_value(key: str, value: Any) -> str:
    """Set a single config value and persist.  Returns file path."""
    config = load_config()
    config[key] = value
    return save_config(config)


def config_path() -> str:
    """Return the config file path (for display purposes)."""
    return _config_path()


# ---------------------------------------------------------------------------
# Typed settings consumed by the engine
# ---------------------------------------------------------------------------

@dataclass
class Settings:
    """Validated run parameters."""

    base_url: str = DEFAULT_BASE_URL
    ping_count: int = DEFAULT_PING_COUNT
    ping_delay: float = PING_DELAY
    penalty_ms: float = PENALTY_MS
    download_sizes: List[int] = field(default_factory=lambda: list(DOWNLOAD_SIZES))
    upload_sizes: List[int] = field(default_factory=lambda: list(UPLOAD_SIZES))
    download_delay: float = DOWNLOAD_DELAY
    upload_delay: float = UPLOAD_DELAY
    request_timeout: float = DEFAULT_TIMEOUT
    history_file: str = ""
    history_limit: int = HISTORY_LIMIT

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> Settings:
        merged = {**DEFAULTS, **config}
        settings = cls(
            base_url=str(merged["base_url"]),
            ping_count=int(merged["ping_count"]),
            ping_delay=float(merged["ping_delay"]),
            penalty_ms=float(merged["penalty_ms"]),
            download_sizes=[int(s) for s in merged["download_sizes"]],
            upload_sizes=[int(s) for s in merged["upload_sizes"]],
            download_delay=float(merged["download_delay"]),
            upload_delay=float(merged["upload_delay"]),
            request_timeout=float(merged["request_timeout"]),
            history_file=str(merged["history_file"] or ""),
            history_limit=int(merged["history_limit"]),
        )
        settings.validate()
        return settings

    def validate(self) -> None:
        """Raise ``ValueError`` if any parameter is out of range."""
        if not MIN_PING_COUNT <= self.ping_count <= MAX_PING_COUNT:
            raise ValueError(f"Ping count must be between {MIN_PING_COUNT} and {MAX_PING_COUNT}")
        if not MIN_TIMEOUT <= self.request_timeout <= MAX_TIMEOUT:
            raise ValueError(f"Request timeout must be between {MIN_TIMEOUT} and {MAX_TIMEOUT} s")
        if self.penalty_ms <= 0:
            raise ValueError("Penalty RTT must be positive")
        for name in ("ping_delay", "download_delay", "upload_delay"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative")
        for name in ("download_sizes", "upload_sizes"):
            sizes = getattr(self, name)
            if not sizes or any(s <= 0 for s in sizes) or sizes != sorted(sizes):
                raise ValueError(f"{name} must be a non-empty ascending list of positive sizes")
        if self.history_limit < 1:
            raise ValueError("History limit must be at least 1")
        if not self.base_url.startswith(("http://", "https://")):
            raise ValueError("Base URL must start with http:// or https://")
