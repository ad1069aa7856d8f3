"""Recovery engine facade.

Wires classifier, retry coordinator and run aggregator together so the
file-operation layer has two calls to make: handle_failure() when an
operation raises, handle_success() when it completes.

    failure -> ErrorClassifier -> RetryCoordinator -> (terminal) RunAggregator
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from wslsync.core.config import RetryConfig
from wslsync.recovery.aggregator import ErrorListener, RunAggregator, RunSummary
from wslsync.recovery.classifier import ErrorClassifier
from wslsync.recovery.retry import Decision, DecisionAction, RetryCoordinator
from wslsync.recovery.types import OperationContext, SyncError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FailureOutcome:
    """What handle_failure() decided."""

    error: SyncError
    decision: Decision

    @property
    def should_retry(self) -> bool:
        return self.decision.action == DecisionAction.RETRY


class RecoveryEngine:
    """Single entry point for the file-operation layer.

    Safe to call from any number of worker threads.
    """

    def __init__(
        self,
        config: RetryConfig | None = None,
        classifier: ErrorClassifier | None = None,
        coordinator: RetryCoordinator | None = None,
        aggregator: RunAggregator | None = None,
    ) -> None:
        self.classifier = classifier or ErrorClassifier()
        self.coordinator = coordinator or RetryCoordinator(config)
        self.aggregator = aggregator or RunAggregator()

    @property
    def cancelling(self) -> bool:
        return self.coordinator.cancelling

    def add_listener(self, listener: ErrorListener) -> None:
        """Stream every recorded error to a listener."""
        self.aggregator.add_listener(listener)

    def handle_failure(self, raw_error: object, context: OperationContext) -> FailureOutcome:
        """Classify a failure, decide on recovery and record terminal outcomes.

        An ABORT_RUN decision puts the whole run in cancelling mode.

        Args:
            raw_error: The exception (or other raw error) the operation produced.
            context: Path, action and attempt of the failed operation.

        Returns:
            The classified error and the decision the caller must act on.
        """
        error = self.classifier.classify(raw_error, context)
        decision = self.coordinator.evaluate(error)
        if decision.is_terminal:
            self.aggregator.record(error, decision)
            if decision.action == DecisionAction.ABORT_RUN:
                self.cancel()
        return FailureOutcome(error, decision)

    def discard_retry(self, error: SyncError) -> Decision:
        """Give up on a failure whose scheduled retry will not run.

        Used when a pending retry is dropped (cancellation or pool shutdown):
        the operation is given up and its last failure recorded as SKIP.
        """
        reason = "Run cancelled" if self.cancelling else "Retry discarded"
        decision = self.coordinator.abandon(error.key, reason)
        self.aggregator.record(error, decision)
        return decision

    def handle_success(self, context: OperationContext) -> Decision | None:
        """Report a successful operation.

        Returns:
            RECOVERED decision if the operation had failed before, else None.
        """
        completed = self.coordinator.complete(context.key)
        if completed is None:
            return None
        last_error, decision = completed
        self.aggregator.record(last_error, decision)
        return decision

    def cancel(self) -> None:
        """Mark the run as cancelling (user interrupt or fatal error)."""
        self.coordinator.mark_cancelling()

    def finish(self) -> RunSummary:
        """Finalize the run. Call once, after all workers have quiesced."""
        return self.aggregator.finalize()
