"""Classify command for wslsync CLI.

Commands:
- classify: Show how the engine treats an error code
"""

from __future__ import annotations

import sys

import click

from wslsync.cli.config import get_config_file, load_retry_config
from wslsync.core.types import OperationAction
from wslsync.recovery import (
    ErrorClassifier,
    OperationContext,
    RetryCoordinator,
    recovery_suggestions,
    user_message,
)


@click.command()
@click.argument("code")
@click.option("--message", "-m", default="", help="Error message to classify with the code.")
@click.option("--path", "-p", default="<path>", help="Path of the failed operation.")
@click.option(
    "--action",
    "-a",
    type=click.Choice([a.value for a in OperationAction]),
    default=OperationAction.COPY.value,
    show_default=True,
    help="Failed action.",
)
@click.option("--attempt", type=click.IntRange(min=1), default=1, show_default=True)
def classify(code: str, message: str, path: str, action: str, attempt: int) -> None:
    """Explain how CODE (e.g. EACCES, ENOSPC) is classified and recovered."""
    raw = {"code": code, "message": message or code}
    context = OperationContext(path, OperationAction(action), attempt)
    error = ErrorClassifier().classify(raw, context)
    try:
        retry_config = load_retry_config()
    except (OSError, ValueError) as e:
        click.echo(f"Error: invalid configuration in {get_config_file()}: {e}", err=True)
        sys.exit(1)
    coordinator = RetryCoordinator(retry_config)
    decision = coordinator.evaluate(error)

    click.echo(f"Code:         {error.code}")
    click.echo(f"Category:     {error.category.value}")
    click.echo(f"Severity:     {error.severity.value}")
    click.echo(f"Retryable:    {'yes' if error.retryable else 'no'}")
    click.echo(f"Max attempts: {coordinator.max_attempts_for(error)}")
    click.echo(f"Decision:     {decision} {decision.reason}".rstrip())
    click.echo("")
    click.echo(user_message(error))
    suggestions = recovery_suggestions(error)
    if suggestions:
        click.echo("")
        click.echo("Suggestions:")
        for suggestion in suggestions:
            click.echo(f"  - {suggestion}")
