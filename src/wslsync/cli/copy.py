"""Copy command for wslsync CLI.

Commands:
- copy: Copy a directory tree, recovering from failures along the way
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from wslsync.cli.config import get_config_file, get_log_dir, load_retry_config
from wslsync.cli.log import setup_logging
from wslsync.core.types import OperationAction, RunOutcome
from wslsync.recovery import (
    ErrorClassifier,
    ErrorEvent,
    ErrorLog,
    OperationContext,
    RecoveryEngine,
    render_summary,
    user_message,
)
from wslsync.sync import OperationPool, plan_copy

# Exit status per run outcome
EXIT_CODES: dict[RunOutcome, int] = {
    RunOutcome.CLEAN: 0,
    RunOutcome.COMPLETED_WITH_WARNINGS: 1,
    RunOutcome.FAILED: 2,
}

INTERRUPT_GRACE_SECONDS = 30.0


def is_windows_mount(path: Path) -> bool:
    """Check if a path lives on a Windows drive mounted by WSL (/mnt/c/...)."""
    parts = path.resolve().parts
    return len(parts) >= 3 and parts[1] == "mnt" and len(parts[2]) == 1 and parts[2].isalpha()


def _echo_event(event: ErrorEvent) -> None:
    click.echo(
        f"  ! {event.category.value}: {event.action.value} {event.path}: {event.message}",
        err=True,
    )


@click.command()
@click.argument("source", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.argument("destination", type=click.Path(file_okay=False, path_type=Path))
@click.option("--workers", "-j", type=click.IntRange(min=1), default=None, help="Number of concurrent workers.")
@click.option("--max-attempts", type=click.IntRange(min=1), default=None, help="Attempts for network and disk-space failures.")
@click.option("--no-retry", is_flag=True, help="Never retry (dry-run / CI mode).")
@click.option(
    "--case-insensitive/--case-sensitive",
    default=None,
    help="Treat the destination as case-insensitive (default: auto-detect /mnt/<drive>).",
)
@click.option("--log-dir", type=click.Path(file_okay=False, path_type=Path), default=None, help="Error log directory.")
@click.option("--no-log", is_flag=True, help="Do not write the error log.")
@click.option("--verbose", "-v", count=True, help="Increase log verbosity.")
def copy(
    source: Path,
    destination: Path,
    workers: int | None,
    max_attempts: int | None,
    no_retry: bool,
    case_insensitive: bool | None,
    log_dir: Path | None,
    no_log: bool,
    verbose: int,
) -> None:
    """Copy SOURCE into DESTINATION.

    Transient failures (network shares, full disks, locked files) are
    retried; the rest is reported in a summary. Exit status is 0 when
    clean, 1 when some files failed, 2 when the run failed.
    """
    setup_logging(verbose)

    try:
        retry_config = load_retry_config(
            max_attempts=max_attempts,
            retries_disabled=True if no_retry else None,
        )
    except (OSError, ValueError) as e:
        error = ErrorClassifier().classify(
            e, OperationContext(str(get_config_file()), OperationAction.READ_CONFIG)
        )
        click.echo(user_message(error), err=True)
        sys.exit(EXIT_CODES[RunOutcome.FAILED])

    if case_insensitive is None:
        case_insensitive = is_windows_mount(destination)

    engine = RecoveryEngine(retry_config)
    engine.add_listener(_echo_event)
    error_log = None if no_log else ErrorLog(log_dir or get_log_dir())
    if error_log is not None:
        engine.add_listener(error_log.write)

    operations = plan_copy(source, destination, case_insensitive=case_insensitive)
    click.echo(f"Copying {source} -> {destination} ({len(operations)} operations)")

    pool = OperationPool(engine, max_workers=workers)
    pool.start()
    try:
        for op in operations:
            pool.submit(op)
        pool.join()
    except KeyboardInterrupt:
        click.echo("Interrupted, winding down in-flight operations...", err=True)
        pool.cancel()
        pool.join(timeout=INTERRUPT_GRACE_SECONDS)
    finally:
        pool.stop()
        if error_log is not None:
            error_log.close()

    summary = engine.finish()
    click.echo(render_summary(summary, color=True))
    sys.exit(EXIT_CODES[summary.outcome])
