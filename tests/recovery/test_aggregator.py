"""Tests for the run aggregator."""

from __future__ import annotations

import threading

import pytest

from wslsync.core.types import ErrorCategory, OperationAction, RunOutcome, Severity
from wslsync.recovery.aggregator import (
    ErrorEvent,
    RunAggregator,
    UsageError,
    derive_outcome,
)
from wslsync.recovery.retry import Decision, DecisionAction
from wslsync.recovery.types import OperationContext, SyncError


def make_error(
    category: ErrorCategory = ErrorCategory.PERMISSION,
    severity: Severity = Severity.ERROR,
    path: str = "/a/locked.txt",
    action: OperationAction = OperationAction.DELETE,
    attempt: int = 1,
) -> SyncError:
    return SyncError(
        code="EACCES",
        category=category,
        severity=severity,
        retryable=True,
        message="Permission denied",
        operation=OperationContext(path, action, attempt),
    )


class TestDeriveOutcome:
    """Tests for derive_outcome function."""

    def test_clean(self) -> None:
        """No errors means clean."""
        assert derive_outcome({s: 0 for s in Severity}, aborted=False) == RunOutcome.CLEAN

    def test_warnings(self) -> None:
        """Non-fatal errors mean completed_with_warnings."""
        counts = {Severity.WARNING: 1, Severity.ERROR: 2, Severity.FATAL: 0}
        assert derive_outcome(counts, aborted=False) == RunOutcome.COMPLETED_WITH_WARNINGS

    def test_fatal(self) -> None:
        """A fatal error means failed."""
        assert derive_outcome({Severity.FATAL: 1}, aborted=False) == RunOutcome.FAILED

    def test_aborted(self) -> None:
        """An abort means failed."""
        assert derive_outcome({}, aborted=True) == RunOutcome.FAILED


class TestRunAggregator:
    """Tests for RunAggregator class."""

    def test_empty_run_is_clean(self) -> None:
        """A run with no errors should finalize as clean."""
        summary = RunAggregator().finalize()
        assert summary.outcome == RunOutcome.CLEAN
        assert summary.total_errors == 0
        assert summary.unresolved == ()
        assert set(summary.category_counts) == set(ErrorCategory)
        assert set(summary.severity_counts) == set(Severity)

    def test_finalize_twice_fails(self) -> None:
        """A second finalize should raise."""
        aggregator = RunAggregator()
        aggregator.finalize()
        assert aggregator.finalized
        with pytest.raises(UsageError):
            aggregator.finalize()

    def test_record_after_finalize_fails(self) -> None:
        """Recording after finalize should raise."""
        aggregator = RunAggregator()
        aggregator.finalize()
        with pytest.raises(UsageError):
            aggregator.record(make_error(), Decision.skip())

    def test_retry_is_not_recordable(self) -> None:
        """RETRY decisions should be refused."""
        with pytest.raises(UsageError):
            RunAggregator().record(make_error(), Decision.retry(1.0))

    def test_skip_counts_category(self) -> None:
        """A skipped permission error bumps the permission counter by one."""
        aggregator = RunAggregator()
        assert aggregator.record(make_error(), Decision.skip())
        summary = aggregator.finalize()
        assert summary.category_counts[ErrorCategory.PERMISSION] == 1
        assert summary.severity_counts[Severity.ERROR] == 1
        assert summary.outcome == RunOutcome.COMPLETED_WITH_WARNINGS

    def test_record_is_idempotent(self) -> None:
        """The same error should be counted once."""
        aggregator = RunAggregator()
        error = make_error()
        assert aggregator.record(error, Decision.skip()) is True
        assert aggregator.record(error, Decision.skip()) is False
        assert aggregator.error_count == 1

    def test_unresolved_keeps_latest_per_key(self) -> None:
        """Unresolved holds one entry per path+action, the latest one, in first-seen order."""
        aggregator = RunAggregator()
        first = make_error(path="/a")
        other = make_error(path="/b")
        later = make_error(path="/a", attempt=2)
        for error in (first, other, later):
            aggregator.record(error, Decision.skip())
        summary = aggregator.finalize()
        assert summary.unresolved == (later, other)
        assert summary.unresolved[0] is later
        assert summary.total_errors == 3

    def test_fatal_fails_run(self) -> None:
        """An abort should fail the run."""
        aggregator = RunAggregator()
        aggregator.record(make_error(ErrorCategory.SYSTEM, Severity.FATAL), Decision.abort())
        summary = aggregator.finalize()
        assert summary.aborted
        assert summary.outcome == RunOutcome.FAILED

    def test_recovered_does_not_change_outcome(self) -> None:
        """Recovered operations should not count as errors."""
        aggregator = RunAggregator()
        aggregator.record(make_error(), Decision.recovered())
        summary = aggregator.finalize()
        assert summary.recovered == 1
        assert summary.total_errors == 0
        assert summary.outcome == RunOutcome.CLEAN

    def test_recovered_clears_unresolved(self) -> None:
        """Recovery should remove the unresolved entry."""
        aggregator = RunAggregator()
        aggregator.record(make_error(), Decision.skip())
        aggregator.record(make_error(), Decision.recovered())
        summary = aggregator.finalize()
        assert summary.unresolved == ()
        assert summary.total_errors == 1

    def test_duration_uses_clock(self) -> None:
        """Duration should come from the injected clock."""
        ticks = iter([10.0, 12.5])
        summary = RunAggregator(clock=lambda: next(ticks)).finalize()
        assert summary.started_at == 10.0
        assert summary.duration == 2.5

    def test_listeners_receive_events(self) -> None:
        """Listeners should get one event per recorded error."""
        aggregator = RunAggregator()
        events: list[ErrorEvent] = []
        aggregator.add_listener(events.append)
        error = make_error()
        aggregator.record(error, Decision.skip())
        aggregator.record(error, Decision.skip())

        assert len(events) == 1
        event = events[0]
        assert event.category == ErrorCategory.PERMISSION
        assert event.path == "/a/locked.txt"
        assert event.action == OperationAction.DELETE
        assert event.decision == DecisionAction.SKIP
        assert event.timestamp == error.timestamp

    def test_failing_listener_is_isolated(self) -> None:
        """A raising listener should not stop others."""
        aggregator = RunAggregator()
        seen: list[ErrorEvent] = []

        def broken(event: ErrorEvent) -> None:
            raise RuntimeError("display gone")

        aggregator.add_listener(broken)
        aggregator.add_listener(seen.append)
        assert aggregator.record(make_error(), Decision.skip())
        assert len(seen) == 1

    def test_concurrent_records(self) -> None:
        """Counts from many threads should add up exactly."""
        aggregator = RunAggregator()
        barrier = threading.Barrier(8)

        def worker(n: int) -> None:
            barrier.wait()
            for i in range(100):
                aggregator.record(make_error(path=f"/w{n}/{i}"), Decision.skip())

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        summary = aggregator.finalize()
        assert summary.category_counts[ErrorCategory.PERMISSION] == 800
        assert len(summary.unresolved) == 800
