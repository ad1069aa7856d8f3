"""Terminal rendering of a RunSummary."""

from __future__ import annotations

import click

from wslsync.core.types import RunOutcome, Severity
from wslsync.recovery.aggregator import RunSummary
from wslsync.recovery.suggestions import recovery_suggestions, user_message
from wslsync.recovery.types import SyncError

OUTCOME_LABELS: dict[RunOutcome, tuple[str, str]] = {
    RunOutcome.CLEAN: ("Sync completed without errors", "green"),
    RunOutcome.COMPLETED_WITH_WARNINGS: ("Sync completed with errors", "yellow"),
    RunOutcome.FAILED: ("Sync failed", "red"),
}

SEVERITY_COLORS: dict[Severity, str] = {
    Severity.WARNING: "yellow",
    Severity.ERROR: "red",
    Severity.FATAL: "magenta",
}


def _render_error(error: SyncError, color: bool, max_suggestions: int) -> list[str]:
    op = error.operation
    tag = f"[{error.severity.value}]"
    if color:
        tag = click.style(tag, fg=SEVERITY_COLORS[error.severity], bold=True)
    lines = [
        f"  {tag} {op.action.value} {op.path}",
        f"      {error.code} ({error.category.value}), attempt {op.attempt}",
    ]
    lines.extend(f"      {line}" for line in user_message(error).splitlines())
    if error.cause is not None and not isinstance(error.cause, str):
        lines.append(f"      cause: {type(error.cause).__name__}: {error.cause}")
    for suggestion in recovery_suggestions(error)[:max_suggestions]:
        lines.append(f"      - {suggestion}")
    return lines


def render_summary(
    summary: RunSummary,
    color: bool = False,
    max_suggestions: int = 2,
) -> str:
    """Render a summary for the terminal.

    Args:
        summary: The finalized run summary.
        color: Whether to add ANSI colors.
        max_suggestions: Suggestions shown per unresolved error.

    Returns:
        Multi-line text, without trailing newline.
    """
    label, fg = OUTCOME_LABELS[summary.outcome]
    headline = f"{label} ({summary.outcome.value})"
    if color:
        headline = click.style(headline, fg=fg, bold=True)

    lines = [headline]
    lines.append(
        f"  {summary.total_errors} error(s), {summary.recovered} recovered after retry, "
        f"{summary.duration:.1f}s"
    )

    counts = [(c.value, n) for c, n in summary.category_counts.items() if n]
    if counts:
        lines.append("  By category: " + ", ".join(f"{name}={n}" for name, n in counts))
    severities = [(s.value, n) for s, n in summary.severity_counts.items() if n]
    if severities:
        lines.append("  By severity: " + ", ".join(f"{name}={n}" for name, n in severities))

    if summary.unresolved:
        lines.append("")
        lines.append(f"Unresolved ({len(summary.unresolved)}):")
        for error in summary.unresolved:
            lines.extend(_render_error(error, color, max_suggestions))

    return "\n".join(lines)
