"""Command-line interface for wslsync.

This module provides the main CLI entry point and assembles all commands.

Commands:
- copy: Copy a tree through the recovery engine, print the run summary
- classify: Explain how an error code is classified and recovered
- errors: Inspect (recent, stats) or clear the error log
- config: Show or change retry settings
"""

from __future__ import annotations

import click

from wslsync.cli.classify import classify
from wslsync.cli.config import (
    get_config_dir,
    get_config_file,
    get_log_dir,
    load_config,
    load_retry_config,
    save_config,
)
from wslsync.cli.copy import EXIT_CODES, copy
from wslsync.cli.errors import errors
from wslsync.cli.log import setup_logging
from wslsync.cli.settings import config_group


@click.group()
@click.version_option(package_name="wslsync")
def cli() -> None:
    """wslsync - File sync between WSL and Windows with error recovery."""


cli.add_command(copy)
cli.add_command(classify)
cli.add_command(errors)
cli.add_command(config_group)


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = [
    # Main entry points
    "cli",
    "main",
    "EXIT_CODES",
    "setup_logging",
    # Config utilities
    "get_config_dir",
    "get_config_file",
    "get_log_dir",
    "load_config",
    "load_retry_config",
    "save_config",
]
