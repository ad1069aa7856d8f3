"""Configuration utilities for the wslsync CLI.

This module provides shared configuration functions used across CLI commands.
Settings live in ~/.wslsync/config.json; retry settings under the "retry" key.
"""

from __future__ import annotations

import json
from dataclasses import replace
from pathlib import Path
from typing import Any

from wslsync.core.config import RetryConfig


def get_config_dir() -> Path:
    """Get the configuration directory for wslsync.

    Returns:
        Path to ~/.wslsync or equivalent.
    """
    return Path.home() / ".wslsync"


def get_config_file() -> Path:
    """Get the path to the config file."""
    return get_config_dir() / "config.json"


def get_log_dir() -> Path:
    """Get the directory holding the error log."""
    return get_config_dir() / "logs"


def load_config() -> dict[str, Any]:
    """Load configuration from config file.

    Raises:
        json.JSONDecodeError: If the file is not valid JSON.
        ValueError: If the file does not hold a JSON object.
    """
    config_file = get_config_file()
    if not config_file.exists():
        return {}
    data = json.loads(config_file.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object in {config_file}")
    return data


def save_config(config: dict[str, Any]) -> None:
    """Save configuration to config file."""
    config_file = get_config_file()
    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text(json.dumps(config, indent=2), encoding="utf-8")


def load_retry_config(**overrides: Any) -> RetryConfig:
    """Load retry settings, applying command-line overrides.

    Overrides whose value is None are ignored.

    Raises:
        json.JSONDecodeError, ValueError: If the stored settings are invalid.
        OSError: If the config file cannot be read.
    """
    retry_settings = load_config().get("retry", {})
    if not isinstance(retry_settings, dict):
        raise ValueError("'retry' setting must be a JSON object")
    config = RetryConfig.from_mapping(retry_settings)
    changes = {k: v for k, v in overrides.items() if v is not None}
    return replace(config, **changes) if changes else config
