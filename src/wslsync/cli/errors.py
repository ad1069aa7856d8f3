"""Error log commands for wslsync CLI.

Commands:
- errors recent: Show the most recent recorded errors
- errors stats: Show error statistics
- errors clear: Delete the error log
"""

from __future__ import annotations

from pathlib import Path

import click

from wslsync.cli.config import get_log_dir
from wslsync.recovery import ErrorLog

_log_dir_option = click.option(
    "--log-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Error log directory (default: ~/.wslsync/logs).",
)


def _open_log(log_dir: Path | None) -> ErrorLog:
    return ErrorLog(log_dir or get_log_dir())


@click.group()
def errors() -> None:
    """Inspect the error log."""


@errors.command()
@click.option("--limit", "-n", type=click.IntRange(min=1), default=10, show_default=True)
@_log_dir_option
def recent(limit: int, log_dir: Path | None) -> None:
    """Show the most recent errors, newest first."""
    entries = _open_log(log_dir).recent(limit)
    if not entries:
        click.echo("No errors logged")
        return
    for entry in entries:
        click.echo(
            f"{entry.get('timestamp', '?')}  {entry.get('category', '?'):<10} "
            f"{entry.get('code', '?'):<12} {entry.get('action', '?')} {entry.get('path', '?')}"
        )
        click.echo(f"    {entry.get('message', '')}")


@errors.command()
@_log_dir_option
def stats(log_dir: Path | None) -> None:
    """Show error counts by category and code."""
    result = _open_log(log_dir).stats()
    if result["total"] == 0:
        click.echo("No errors logged")
        return

    click.echo(f"Total errors: {result['total']}")
    click.echo("By category:")
    for category, count in sorted(result["by_category"].items(), key=lambda kv: -kv[1]):
        click.echo(f"  {category:<12} {count}")
    click.echo("By code:")
    for code, count in sorted(result["by_code"].items(), key=lambda kv: -kv[1]):
        click.echo(f"  {code:<12} {count}")


@errors.command()
@_log_dir_option
@click.confirmation_option(prompt="Delete all error logs?")
def clear(log_dir: Path | None) -> None:
    """Delete the error log and its rotated copies."""
    removed = _open_log(log_dir).clear()
    click.echo(f"Error logs cleared ({removed} file(s) removed)")
