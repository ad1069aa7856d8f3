"""Tests for the operation pool."""

from __future__ import annotations

import errno
import threading
import time
from collections.abc import Callable, Generator

import pytest

from wslsync.core.config import RetryConfig
from wslsync.core.types import ErrorCategory, OperationAction, RunOutcome
from wslsync.recovery.engine import RecoveryEngine
from wslsync.sync.pool import FileOperation, OperationPool, PoolState

FAST_RETRIES = RetryConfig(base_delay=0.01, max_delay=0.05, jitter=0.0)
SLOW_RETRIES = RetryConfig(base_delay=30.0, max_delay=30.0, jitter=0.0)


class Flaky:
    """Callable failing a number of times before succeeding."""

    def __init__(self, failures: int, make_exc: Callable[[], Exception]) -> None:
        self.failures = failures
        self.make_exc = make_exc
        self.calls = 0
        self._lock = threading.Lock()

    def __call__(self) -> None:
        with self._lock:
            self.calls += 1
            calls = self.calls
        if calls <= self.failures:
            raise self.make_exc()


def enospc() -> OSError:
    return OSError(errno.ENOSPC, "No space left on device")


def eacces() -> OSError:
    return PermissionError(errno.EACCES, "Permission denied")


def eio() -> OSError:
    return OSError(errno.EIO, "Input/output error")


def wait_until(predicate: Callable[[], bool], timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


def make_pool(
    config: RetryConfig = FAST_RETRIES, workers: int = 2
) -> tuple[RecoveryEngine, OperationPool]:
    engine = RecoveryEngine(config)
    return engine, OperationPool(engine, max_workers=workers)


@pytest.fixture
def running() -> Generator[tuple[RecoveryEngine, OperationPool], None, None]:
    engine, pool = make_pool()
    pool.start()
    yield engine, pool
    pool.stop()


class TestFileOperation:
    """Tests for FileOperation dataclass."""

    def test_context_and_key(self) -> None:
        """Should derive context and key from the operation."""
        op = FileOperation("a/b.txt", OperationAction.COPY, func=lambda: None, attempt=3)
        assert op.context.attempt == 3
        assert op.key == op.context.key


class TestOperationPool:
    """Tests for OperationPool class."""

    def test_start_stop(self) -> None:
        """Should move between STOPPED and RUNNING."""
        _, pool = make_pool()
        assert pool.state == PoolState.STOPPED
        pool.start()
        assert pool.state == PoolState.RUNNING
        pool.stop()
        assert pool.state == PoolState.STOPPED

    def test_submit_requires_running(self) -> None:
        """Should refuse submissions when not running."""
        _, pool = make_pool()
        op = FileOperation("x", OperationAction.COPY, func=lambda: None)
        assert pool.submit(op) is False

    def test_successful_operations(self, running: tuple[RecoveryEngine, OperationPool]) -> None:
        """Operations that succeed should leave a clean run."""
        engine, pool = running
        for i in range(10):
            pool.submit(FileOperation(f"f{i}", OperationAction.COPY, func=lambda: None))
        assert pool.join(timeout=5)
        assert pool.completed_count == 10
        assert engine.finish().outcome == RunOutcome.CLEAN

    def test_transient_failure_recovers(self, running: tuple[RecoveryEngine, OperationPool]) -> None:
        """An operation failing twice with ENOSPC then succeeding is recovered."""
        engine, pool = running
        func = Flaky(2, enospc)
        pool.submit(FileOperation("big.iso", OperationAction.COPY, func=func))
        assert pool.join(timeout=5)

        assert func.calls == 3
        assert pool.retried_count == 2
        assert pool.completed_count == 1
        summary = engine.finish()
        assert summary.recovered == 1
        assert summary.outcome == RunOutcome.CLEAN

    def test_permanent_permission_failure(self, running: tuple[RecoveryEngine, OperationPool]) -> None:
        """A locked file is retried once then reported."""
        engine, pool = running
        func = Flaky(100, eacces)
        pool.submit(FileOperation("locked.txt", OperationAction.DELETE, func=func))
        assert pool.join(timeout=5)

        assert func.calls == 2
        assert pool.failed_count == 1
        summary = engine.finish()
        assert summary.category_counts[ErrorCategory.PERMISSION] == 1
        assert summary.unresolved[0].operation.attempt == 2
        assert summary.outcome == RunOutcome.COMPLETED_WITH_WARNINGS

    def test_fatal_error_cancels_run(self) -> None:
        """Operations queued behind a fatal error are dropped."""
        engine, pool = make_pool(workers=1)
        pool.start()
        try:
            gate = threading.Event()

            def fatal() -> None:
                gate.wait(timeout=5)
                raise eio()

            pool.submit(FileOperation("bad", OperationAction.COPY, func=fatal))
            others = [Flaky(0, enospc) for _ in range(5)]
            for i, func in enumerate(others):
                pool.submit(FileOperation(f"f{i}", OperationAction.COPY, func=func))
            gate.set()
            assert pool.join(timeout=5)
        finally:
            pool.stop()

        assert engine.cancelling
        assert pool.skipped_count == 5
        assert all(func.calls == 0 for func in others)
        summary = engine.finish()
        assert summary.outcome == RunOutcome.FAILED

    def test_cancel_discards_pending_retries(self) -> None:
        """Cancelling should drop a waiting retry and record its failure."""
        engine, pool = make_pool(SLOW_RETRIES)
        pool.start()
        try:
            pool.submit(FileOperation("big.iso", OperationAction.COPY, func=Flaky(100, enospc)))
            assert wait_until(lambda: pool.retried_count == 1)
            assert pool.cancel() == 1
            assert pool.join(timeout=5)
        finally:
            pool.stop()

        summary = engine.finish()
        assert summary.category_counts[ErrorCategory.DISK_SPACE] == 1
        assert summary.unresolved[0].operation.path == "big.iso"

    def test_stop_records_pending_retries(self) -> None:
        """Stopping with a retry still waiting records its failure."""
        engine, pool = make_pool(SLOW_RETRIES)
        pool.start()
        pool.submit(FileOperation("share/f", OperationAction.COPY, func=Flaky(100, enospc)))
        assert wait_until(lambda: pool.retried_count == 1)
        pool.stop()

        assert pool.outstanding == 0
        assert pool.skipped_count == 1
        assert engine.finish().category_counts[ErrorCategory.DISK_SPACE] == 1

    def test_resubmitted_operation_starts_over(
        self, running: tuple[RecoveryEngine, OperationPool]
    ) -> None:
        """A key that failed earlier gets its full retry budget when submitted again."""
        _, pool = running
        pool.submit(FileOperation("locked.txt", OperationAction.COPY, func=Flaky(100, eacces)))
        assert pool.join(timeout=5)
        assert pool.failed_count == 1

        func = Flaky(1, eacces)
        pool.submit(FileOperation("locked.txt", OperationAction.COPY, func=func))
        assert pool.join(timeout=5)

        assert func.calls == 2
        assert pool.completed_count == 1
        assert pool.failed_count == 1
