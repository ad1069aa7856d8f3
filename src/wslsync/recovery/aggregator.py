"""Run-level aggregation of classified errors.

This module provides:
- ErrorEvent: Streaming per-error event for live progress display
- RunSummary: Immutable result of one sync run
- RunAggregator: Thread-safe collector, finalized exactly once
- UsageError: Raised on caller bugs (double finalize, ...)
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from wslsync.core.types import ErrorCategory, OperationAction, RunOutcome, Severity
from wslsync.recovery.retry import Decision, DecisionAction
from wslsync.recovery.types import OperationKey, SyncError

logger = logging.getLogger(__name__)

RECORDABLE_ACTIONS = frozenset(
    {DecisionAction.SKIP, DecisionAction.ABORT_RUN, DecisionAction.RECOVERED}
)


class UsageError(RuntimeError):
    """The engine was driven incorrectly (a caller bug, not a sync condition)."""


@dataclass(frozen=True)
class ErrorEvent:
    """A recorded error, as streamed to listeners."""

    category: ErrorCategory
    severity: Severity
    path: str
    action: OperationAction
    message: str
    decision: DecisionAction
    code: str
    attempt: int
    timestamp: float

    @classmethod
    def from_error(cls, error: SyncError, decision: Decision) -> ErrorEvent:
        return cls(
            category=error.category,
            severity=error.severity,
            path=error.operation.path,
            action=error.operation.action,
            message=error.message,
            decision=decision.action,
            code=error.code,
            attempt=error.operation.attempt,
            timestamp=error.timestamp,
        )


ErrorListener = Callable[[ErrorEvent], None]


@dataclass(frozen=True)
class RunSummary:
    """Summary of one sync run.

    Attributes:
        outcome: clean, completed_with_warnings or failed.
        category_counts: Terminal failures per category (all categories present).
        severity_counts: Terminal failures per severity (all severities present).
        unresolved: Most recent failure per path+action, in first-seen order.
        recovered: Operations that succeeded after at least one failure.
        aborted: Whether an ABORT_RUN decision was recorded.
        started_at: Unix timestamp the aggregator was created.
        finished_at: Unix timestamp of finalize().
    """

    outcome: RunOutcome
    category_counts: Mapping[ErrorCategory, int]
    severity_counts: Mapping[Severity, int]
    unresolved: tuple[SyncError, ...]
    recovered: int
    aborted: bool
    started_at: float
    finished_at: float

    @property
    def total_errors(self) -> int:
        """Get number of terminal failures recorded."""
        return sum(self.category_counts.values())

    @property
    def duration(self) -> float:
        return self.finished_at - self.started_at


def derive_outcome(severity_counts: Mapping[Severity, int], aborted: bool) -> RunOutcome:
    """Derive the run outcome from the recorded severities."""
    if aborted or severity_counts.get(Severity.FATAL, 0) > 0:
        return RunOutcome.FAILED
    if sum(severity_counts.values()) == 0:
        return RunOutcome.CLEAN
    return RunOutcome.COMPLETED_WITH_WARNINGS


class RunAggregator:
    """Collects terminal errors across all workers of a sync run.

    Every record() runs under one lock. finalize() must be called after the
    workers have quiesced and can only be called once.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._lock = threading.Lock()
        self._clock = clock
        self._started_at = clock()
        self._category_counts: dict[ErrorCategory, int] = {c: 0 for c in ErrorCategory}
        self._severity_counts: dict[Severity, int] = {s: 0 for s in Severity}
        self._unresolved: OrderedDict[OperationKey, SyncError] = OrderedDict()
        self._seen: set[str] = set()
        self._recovered = 0
        self._aborted = False
        self._summary: RunSummary | None = None
        self._listeners: list[ErrorListener] = []

    @property
    def finalized(self) -> bool:
        with self._lock:
            return self._summary is not None

    @property
    def error_count(self) -> int:
        """Get number of terminal failures recorded so far."""
        with self._lock:
            return sum(self._category_counts.values())

    def add_listener(self, listener: ErrorListener) -> None:
        """Register a callback receiving an ErrorEvent for every record."""
        with self._lock:
            self._listeners.append(listener)

    def record(self, error: SyncError, decision: Decision) -> bool:
        """Record a terminal outcome for an operation.

        Recording the same SyncError twice is a no-op.

        Args:
            error: The failure (the last one, for RECOVERED).
            decision: SKIP, ABORT_RUN or RECOVERED.

        Returns:
            True if recorded, False if this error was already recorded.

        Raises:
            UsageError: If the run is finalized or the decision is RETRY.
        """
        if decision.action not in RECORDABLE_ACTIONS:
            raise UsageError(f"Cannot record a non-terminal decision: {decision}")

        with self._lock:
            if self._summary is not None:
                raise UsageError("Run already finalized")
            if error.error_id in self._seen:
                return False
            self._seen.add(error.error_id)

            if decision.action == DecisionAction.RECOVERED:
                self._recovered += 1
                self._unresolved.pop(error.key, None)
            else:
                self._category_counts[error.category] += 1
                self._severity_counts[error.severity] += 1
                self._unresolved[error.key] = error
                if decision.action == DecisionAction.ABORT_RUN:
                    self._aborted = True
            listeners = list(self._listeners)

        event = ErrorEvent.from_error(error, decision)
        for listener in listeners:
            try:
                listener(event)
            except Exception:
                logger.exception("Error listener failed")
        return True

    def finalize(self) -> RunSummary:
        """Close the run and build its summary.

        Raises:
            UsageError: If called more than once.
        """
        with self._lock:
            if self._summary is not None:
                raise UsageError("finalize() called twice for the same run")
            self._summary = RunSummary(
                outcome=derive_outcome(self._severity_counts, self._aborted),
                category_counts=dict(self._category_counts),
                severity_counts=dict(self._severity_counts),
                unresolved=tuple(self._unresolved.values()),
                recovered=self._recovered,
                aborted=self._aborted,
                started_at=self._started_at,
                finished_at=self._clock(),
            )
            summary = self._summary

        logger.info(
            f"Run finalized: {summary.outcome.value} "
            f"({summary.total_errors} error(s), {summary.recovered} recovered)"
        )
        return summary
