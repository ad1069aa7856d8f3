"""Settings commands for wslsync CLI.

Commands:
- config show: Show the effective retry settings
- config set: Change a retry setting
"""

from __future__ import annotations

import json
import sys
from dataclasses import fields

import click

from wslsync.cli.config import get_config_file, load_config, load_retry_config, save_config
from wslsync.core.config import RetryConfig

RETRY_KEYS = [f.name for f in fields(RetryConfig)]


@click.group(name="config")
def config_group() -> None:
    """Show or change retry settings."""


@config_group.command()
def show() -> None:
    """Show the effective retry settings."""
    try:
        retry_config = load_retry_config()
    except (OSError, ValueError) as e:
        click.echo(f"Error: invalid configuration in {get_config_file()}: {e}", err=True)
        sys.exit(1)
    for key, value in retry_config.to_dict().items():
        click.echo(f"{key} = {json.dumps(value)}")


@config_group.command(name="set")
@click.argument("key", type=click.Choice(RETRY_KEYS))
@click.argument("value")
def set_value(key: str, value: str) -> None:
    """Set a retry setting (e.g. `wslsync config set max_attempts 3`)."""
    try:
        config = load_config()
    except (OSError, ValueError) as e:
        click.echo(f"Error: invalid configuration in {get_config_file()}: {e}", err=True)
        sys.exit(1)

    retry_settings = dict(config.get("retry") or {})
    retry_settings[key] = value
    try:
        validated = RetryConfig.from_mapping(retry_settings)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    config["retry"] = {k: getattr(validated, k) for k in retry_settings}
    save_config(config)
    click.echo(f"{key} = {json.dumps(getattr(validated, key))}")
