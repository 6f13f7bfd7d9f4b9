"""Configuration utilities for profilesync CLI.

This module provides shared configuration functions used across CLI commands.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any

from profilesync.core.config import FetcherConfig, SyncConfig

# Keys accepted by `profilesync config KEY VALUE`, with their value types
CONFIG_KEYS: dict[str, type] = {
    "endpoint": str,
    "batch_size": int,
    "timeout": float,
    "db_path": str,
    "connectivity_interval": float,
}


def get_config_dir() -> Path:
    """Get the configuration directory for profilesync.

    Returns:
        Path to ~/.profilesync or equivalent.
    """
    return Path.home() / ".profilesync"


def get_config_file() -> Path:
    """Get the path to the config file."""
    return get_config_dir() / "config.json"


def load_config() -> dict[str, Any]:
    """Load configuration from config file."""
    config_file = get_config_file()
    if config_file.exists():
        return dict(json.loads(config_file.read_text()))
    return {}


def save_config(config: dict[str, Any]) -> None:
    """Save configuration to config file."""
    config_file = get_config_file()
    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text(json.dumps(config, indent=2))


def parse_config_value(key: str, value: str) -> Any:
    """Convert a raw CLI value to the type expected for key.

    Raises:
        KeyError: If key is not a known setting.
        ValueError: If value cannot be converted.
    """
    return CONFIG_KEYS[key](value)


def get_database_path(config: dict[str, Any] | None = None) -> Path:
    """Get the profile cache path.

    Returns:
        Path to the configured database or ~/.profilesync/profiles.db.
    """
    if config is None:
        config = load_config()
    if config.get("db_path"):
        return Path(config["db_path"]).expanduser().resolve()
    return get_config_dir() / "profiles.db"


def build_sync_config(config: dict[str, Any] | None = None) -> SyncConfig:
    """Build a SyncConfig from the config file values."""
    if config is None:
        config = load_config()

    fetcher_kwargs = {
        key: config[key]
        for key in ("endpoint", "batch_size", "timeout")
        if key in config
    }
    sync_kwargs = {}
    if "connectivity_interval" in config:
        sync_kwargs["connectivity_interval"] = float(config["connectivity_interval"])

    return SyncConfig(
        db_path=get_database_path(config),
        fetcher=FetcherConfig(**fetcher_kwargs),
        **sync_kwargs,
    )


def setup_logging(verbose: bool = False) -> None:
    """Configure the profilesync logger to write to stderr.

    Args:
        verbose: Log INFO and above instead of WARNING and above.
    """
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    root_logger = logging.getLogger("profilesync")
    root_logger.setLevel(logging.INFO if verbose else logging.WARNING)

    # Replace handlers so repeated invocations don't duplicate output
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(logging.Formatter(log_format))
    root_logger.addHandler(stderr_handler)
    root_logger.propagate = False
