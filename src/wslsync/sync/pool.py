"""Worker pool running file operations through the recovery engine.

This module provides:
- FileOperation: One file-level action (copy, delete, mkdir, stat)
- OperationPool: Runs operations concurrently, retries per engine decision
"""

from __future__ import annotations

import logging
import os
import queue
import threading
from collections.abc import Callable
from dataclasses import dataclass, replace
from enum import Enum, auto

from wslsync.core.types import OperationAction
from wslsync.recovery.engine import RecoveryEngine
from wslsync.recovery.retry import DecisionAction
from wslsync.recovery.types import OperationContext, OperationKey, SyncError
from wslsync.sync.scheduler import RetryScheduler

logger = logging.getLogger(__name__)


class PoolState(Enum):
    """State of the operation pool."""

    STOPPED = auto()
    RUNNING = auto()
    STOPPING = auto()


@dataclass(frozen=True)
class FileOperation:
    """A file-level action to run.

    Attributes:
        path: Path the action operates on (used for reporting and keys).
        action: Type of action.
        func: Performs the action; raises on failure.
        attempt: 1-based attempt number.
        last_error: Failure of the previous attempt, for retries.
    """

    path: str
    action: OperationAction
    func: Callable[[], object]
    attempt: int = 1
    last_error: SyncError | None = None

    @property
    def context(self) -> OperationContext:
        return OperationContext(self.path, self.action, self.attempt)

    @property
    def key(self) -> OperationKey:
        return OperationKey(self.path, self.action)


class OperationPool:
    """Pool of worker threads executing FileOperations.

    Failures go to the RecoveryEngine. RETRY decisions are re-queued by the
    RetryScheduler once their delay has elapsed, so a waiting retry never
    holds a worker. ABORT_RUN and cancel() discard every pending retry.

    Usage:
        pool = OperationPool(engine, max_workers=4)
        pool.start()
        for op in operations:
            pool.submit(op)
        pool.join()  # wait until nothing is queued, running or scheduled
        pool.stop()
        summary = engine.finish()
    """

    def __init__(
        self,
        engine: RecoveryEngine,
        max_workers: int | None = None,
        scheduler: RetryScheduler | None = None,
    ) -> None:
        """Initialize the pool.

        Args:
            engine: Recovery engine receiving failures and successes.
            max_workers: Number of worker threads. Defaults to CPU count.
            scheduler: Retry scheduler. A private one is created if omitted.
        """
        self._engine = engine
        self._scheduler = scheduler or RetryScheduler()
        self._max_workers = max_workers or max(os.cpu_count() or 4, 2)

        self._pool_state = PoolState.STOPPED
        self._lock = threading.Lock()
        self._idle = threading.Condition(self._lock)

        self._task_queue: queue.Queue[FileOperation | None] = queue.Queue()
        self._workers: list[threading.Thread] = []

        # Operations submitted and not yet finished (queued, running or scheduled)
        self._outstanding = 0

        # Statistics
        self._completed_count = 0
        self._failed_count = 0
        self._skipped_count = 0
        self._retried_count = 0

    @property
    def state(self) -> PoolState:
        return self._pool_state

    @property
    def max_workers(self) -> int:
        return self._max_workers

    @property
    def queue_size(self) -> int:
        """Get number of queued operations."""
        return self._task_queue.qsize()

    @property
    def outstanding(self) -> int:
        """Get number of operations not yet finished."""
        with self._lock:
            return self._outstanding

    @property
    def completed_count(self) -> int:
        """Get number of operations that succeeded."""
        return self._completed_count

    @property
    def failed_count(self) -> int:
        """Get number of operations that ended in a final failure."""
        return self._failed_count

    @property
    def skipped_count(self) -> int:
        """Get number of operations dropped because the run was cancelled."""
        return self._skipped_count

    @property
    def retried_count(self) -> int:
        """Get number of retries scheduled."""
        return self._retried_count

    def start(self) -> None:
        """Start the worker threads."""
        with self._lock:
            if self._pool_state != PoolState.STOPPED:
                logger.warning("Operation pool already running")
                return

            self._pool_state = PoolState.RUNNING
            for i in range(self._max_workers):
                thread = threading.Thread(
                    target=self._worker_loop,
                    name=f"OperationPool-{i}",
                    daemon=True,
                )
                thread.start()
                self._workers.append(thread)

            logger.info(f"Operation pool started with {self._max_workers} workers")

    def stop(self, timeout: float = 10.0) -> None:
        """Stop the pool. Pending retries and queued operations are dropped.

        Args:
            timeout: Maximum time to wait for workers to finish.
        """
        with self._lock:
            if self._pool_state == PoolState.STOPPED:
                return
            self._pool_state = PoolState.STOPPING
            logger.info("Operation pool stopping...")
            workers = list(self._workers)

        for op in self._scheduler.cancel_all():
            self._drop(op)
            self._done()

        # Send poison pills to stop workers
        for _ in workers:
            self._task_queue.put(None)
        for worker in workers:
            worker.join(timeout=timeout / len(workers))

        # Anything still queued will never run
        while True:
            try:
                op = self._task_queue.get_nowait()
            except queue.Empty:
                break
            if op is not None:
                self._drop(op)
                self._done()

        with self._lock:
            self._pool_state = PoolState.STOPPED
            self._workers.clear()
            logger.info("Operation pool stopped")

    def submit(self, op: FileOperation) -> bool:
        """Queue an operation.

        Returns:
            True if queued, False if the pool is not running.
        """
        with self._lock:
            if self._pool_state != PoolState.RUNNING:
                logger.warning("Cannot submit operation: pool not running")
                return False
            self._outstanding += 1

        if op.attempt == 1:
            # A fresh operation starts over, even after an earlier failure
            self._engine.coordinator.reset(op.key)
        self._task_queue.put(op)
        logger.debug(f"Operation submitted: {op.key}")
        return True

    def cancel(self) -> int:
        """Cancel the run: no more retries, queued work winds down.

        Returns:
            Number of pending retries discarded.
        """
        self._engine.cancel()
        dropped = self._scheduler.cancel_all()
        for op in dropped:
            self._drop(op)
            self._done()
        return len(dropped)

    def join(self, timeout: float | None = None) -> bool:
        """Wait until every submitted operation has finished.

        Returns:
            True if the pool is quiescent, False on timeout.
        """
        with self._idle:
            return self._idle.wait_for(lambda: self._outstanding == 0, timeout=timeout)

    def _done(self) -> None:
        with self._idle:
            self._outstanding -= 1
            if self._outstanding <= 0:
                self._idle.notify_all()

    def _worker_loop(self) -> None:
        """Main loop for worker threads."""
        while self._pool_state == PoolState.RUNNING:
            try:
                op = self._task_queue.get(timeout=0.5)
            except queue.Empty:
                continue

            if op is None:
                # Poison pill - stop worker
                break

            try:
                self._process(op)
            except Exception:
                logger.exception("Unexpected error in worker loop")

    def _process(self, op: FileOperation) -> None:
        """Run one operation and act on the engine's decision."""
        rescheduled = False
        try:
            if self._engine.cancelling:
                self._drop(op)
                return

            try:
                op.func()
            except Exception as e:
                rescheduled = self._handle_failure(op, e)
            else:
                self._engine.handle_success(op.context)
                with self._lock:
                    self._completed_count += 1
        finally:
            if not rescheduled:
                self._done()

    def _handle_failure(self, op: FileOperation, exc: Exception) -> bool:
        """Send a failure to the engine.

        Returns:
            True if a retry was scheduled (the operation is still outstanding).
        """
        outcome = self._engine.handle_failure(exc, op.context)

        if outcome.should_retry:
            retry_op = replace(op, attempt=op.attempt + 1, last_error=outcome.error)
            if self._pool_state == PoolState.RUNNING and self._scheduler.schedule(
                op.key, outcome.decision.delay, self._requeue, retry_op
            ):
                with self._lock:
                    self._retried_count += 1
                return True
            self._drop(retry_op)
            return False

        with self._lock:
            self._failed_count += 1
        logger.error(f"{op.action.value} failed: {op.path}: {outcome.error.message}")

        if outcome.decision.action == DecisionAction.ABORT_RUN:
            self.cancel()
        return False

    def _requeue(self, op: FileOperation) -> None:
        """Scheduler callback: the retry delay has elapsed."""
        if self._pool_state == PoolState.RUNNING:
            logger.info(f"Retrying {op.key} (attempt {op.attempt})")
            self._task_queue.put(op)
            return
        self._drop(op)
        self._done()

    def _drop(self, op: FileOperation) -> None:
        """Account for an operation that will not run (again)."""
        with self._lock:
            self._skipped_count += 1
        if op.last_error is not None:
            self._engine.discard_retry(op.last_error)
        logger.debug(f"Dropped {op.key}")
