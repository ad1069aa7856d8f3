"""Retry policy with category-driven exponential backoff.

This module provides:
- Decision / DecisionAction: What the caller must do with a failure
- RetryState: Per-operation retry bookkeeping
- RETRY_RULES: Declarative category -> backoff strategy table
- compute_backoff: Jittered, non-decreasing exponential delay
- RetryCoordinator: Stateful evaluation of failures per operation key

The coordinator never sleeps. It returns RETRY with a delay and leaves the
scheduling to the caller (see wslsync.sync.scheduler).
"""

from __future__ import annotations

import logging
import random
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum, auto

from wslsync.core.config import RetryConfig
from wslsync.core.types import ErrorCategory
from wslsync.recovery.types import OperationKey, SyncError

logger = logging.getLogger(__name__)

# Exponent cap so multiplier ** n cannot overflow a float
MAX_BACKOFF_EXPONENT = 64


class DecisionAction(Enum):
    """Action the caller must take for a failed operation."""

    RETRY = auto()  # Re-run after Decision.delay seconds
    SKIP = auto()  # Give up on this operation, keep the run going
    ABORT_RUN = auto()  # Stop the whole sync run
    RECOVERED = auto()  # Operation succeeded after earlier failures


@dataclass(frozen=True)
class Decision:
    """Outcome of evaluating a failure."""

    action: DecisionAction
    delay: float = 0.0
    reason: str = ""

    @classmethod
    def retry(cls, delay: float, reason: str = "") -> Decision:
        return cls(DecisionAction.RETRY, delay, reason)

    @classmethod
    def skip(cls, reason: str = "") -> Decision:
        return cls(DecisionAction.SKIP, reason=reason)

    @classmethod
    def abort(cls, reason: str = "") -> Decision:
        return cls(DecisionAction.ABORT_RUN, reason=reason)

    @classmethod
    def recovered(cls, reason: str = "") -> Decision:
        return cls(DecisionAction.RECOVERED, reason=reason)

    @property
    def is_terminal(self) -> bool:
        """Check if no further attempt will be made for the operation."""
        return self.action != DecisionAction.RETRY

    def __str__(self) -> str:
        if self.action == DecisionAction.RETRY:
            return f"RETRY({self.delay:.2f}s)"
        return self.action.name


@dataclass
class RetryState:
    """Retry bookkeeping for one logical operation.

    Attributes:
        key: Operation the state belongs to.
        attempts: Number of RETRY decisions granted so far.
        next_eligible_at: Monotonic time before which no retry should run.
        last_error: Most recent failure.
        last_delay: Delay granted by the most recent RETRY.
        history: Every failure evaluated for this operation, oldest first.
    """

    key: OperationKey
    attempts: int = 0
    next_eligible_at: float = 0.0
    last_error: SyncError | None = None
    last_delay: float = 0.0
    history: list[SyncError] = field(default_factory=list)


class BackoffStrategy(Enum):
    """How a category is retried."""

    NEVER = auto()
    ONCE = auto()  # transient lock or rename race
    EXPONENTIAL = auto()


@dataclass(frozen=True)
class RetryRule:
    """A rule in the retry policy table."""

    categories: frozenset[ErrorCategory]
    strategy: BackoffStrategy
    reason: str


# Declarative retry rules
RETRY_RULES: tuple[RetryRule, ...] = (
    RetryRule(
        categories=frozenset({ErrorCategory.NETWORK, ErrorCategory.DISK_SPACE}),
        strategy=BackoffStrategy.EXPONENTIAL,
        reason="Transient condition, may clear with time",
    ),
    RetryRule(
        categories=frozenset({ErrorCategory.PERMISSION, ErrorCategory.PATH}),
        strategy=BackoffStrategy.ONCE,
        reason="Possibly a locked file or a rename race",
    ),
    RetryRule(
        categories=frozenset(
            {ErrorCategory.CONFLICT, ErrorCategory.CONFIG, ErrorCategory.VALIDATION}
        ),
        strategy=BackoffStrategy.NEVER,
        reason="Needs a decision from the user or the configuration",
    ),
    RetryRule(
        categories=frozenset({ErrorCategory.SYSTEM, ErrorCategory.UNKNOWN}),
        strategy=BackoffStrategy.NEVER,
        reason="Not known to be transient",
    ),
)


def compute_backoff(
    retry_number: int,
    config: RetryConfig,
    rng: random.Random | None = None,
    previous: float = 0.0,
) -> float:
    """Compute the delay before a retry.

    The delay grows exponentially, gets a random extra fraction of up to
    config.jitter, is capped at config.max_delay and never drops below the
    previous delay for the same operation.

    Args:
        retry_number: 1 for the first retry, 2 for the second, ...
        config: Backoff settings.
        rng: Random source for the jitter.
        previous: Delay granted by the previous retry of the same operation.

    Returns:
        Delay in seconds, always > 0.
    """
    exponent = min(max(retry_number - 1, 0), MAX_BACKOFF_EXPONENT)
    delay = config.base_delay * config.multiplier**exponent
    if config.jitter > 0:
        delay *= 1 + (rng or random).uniform(0, config.jitter)
    delay = min(delay, config.max_delay)
    return max(delay, previous)


class RetryCoordinator:
    """Decides whether and when a failed operation is retried.

    Retry states live in an arena keyed by OperationKey. The arena is
    locked; a single state is only touched by the worker handling its key.

    Keys that reached a terminal failure are remembered so that repeated
    evaluations keep returning SKIP; reset() or a success forgets them.
    Callers reset a key when they start a new logical operation on it, which
    also keeps the remembered set bounded by the keys still failing.

    Usage:
        coordinator = RetryCoordinator(RetryConfig())
        decision = coordinator.evaluate(sync_error)
        if decision.action == DecisionAction.RETRY:
            schedule(decision.delay)
    """

    def __init__(
        self,
        config: RetryConfig | None = None,
        rules: tuple[RetryRule, ...] = RETRY_RULES,
        clock: Callable[[], float] = time.monotonic,
        rng: random.Random | None = None,
    ) -> None:
        """Initialize the coordinator.

        Args:
            config: Retry settings. Defaults to RetryConfig().
            rules: Category policy table.
            clock: Monotonic clock for next_eligible_at.
            rng: Random source for backoff jitter.
        """
        self._config = config or RetryConfig()
        self._strategies: dict[ErrorCategory, BackoffStrategy] = {}
        for rule in rules:
            for category in rule.categories:
                self._strategies.setdefault(category, rule.strategy)
        self._clock = clock
        self._rng = rng or random.Random()
        self._lock = threading.Lock()
        self._states: dict[OperationKey, RetryState] = {}
        self._exhausted: set[OperationKey] = set()
        self._cancelling = threading.Event()

    @property
    def config(self) -> RetryConfig:
        return self._config

    @property
    def cancelling(self) -> bool:
        """Check if the run is winding down."""
        return self._cancelling.is_set()

    @property
    def active_count(self) -> int:
        """Get number of operations with live retry state."""
        with self._lock:
            return len(self._states)

    def mark_cancelling(self) -> None:
        """Stop granting retries; every later evaluate returns SKIP."""
        if not self._cancelling.is_set():
            self._cancelling.set()
            logger.info("Run cancelling: further retries will be skipped")

    def state_for(self, key: OperationKey) -> RetryState:
        """Get the state for a key, creating it if needed."""
        with self._lock:
            state = self._states.get(key)
            if state is None:
                state = RetryState(key=key)
                self._states[key] = state
            return state

    def get_state(self, key: OperationKey) -> RetryState | None:
        """Get the state for a key without creating it."""
        with self._lock:
            return self._states.get(key)

    def max_attempts_for(self, error: SyncError) -> int:
        """Total attempts (first try included) allowed for an error."""
        if self._config.retries_disabled or not error.retryable:
            return 1
        strategy = self._strategies.get(error.category, BackoffStrategy.NEVER)
        if strategy == BackoffStrategy.EXPONENTIAL:
            return self._config.max_attempts
        if strategy == BackoffStrategy.ONCE:
            return min(self._config.transient_max_attempts, self._config.max_attempts)
        return 1

    def evaluate(self, error: SyncError, state: RetryState | None = None) -> Decision:
        """Evaluate a failure and decide what to do.

        Args:
            error: The classified failure.
            state: Retry state to use. Defaults to the arena entry for the
                error's operation key.

        Returns:
            RETRY with a delay, SKIP, or ABORT_RUN.
        """
        key = error.key
        if state is None:
            state = self.state_for(key)
        state.history.append(error)
        state.last_error = error

        decision = self._decide(error, state)

        if decision.action == DecisionAction.RETRY:
            state.attempts += 1
            state.last_delay = decision.delay
            state.next_eligible_at = self._clock() + decision.delay
            logger.warning(
                f"Attempt {error.operation.attempt} of {key} failed "
                f"({error.code}). Retrying in {decision.delay:.1f}s..."
            )
        else:
            self._finish(key, exhausted=True)
            if decision.action == DecisionAction.ABORT_RUN:
                logger.error(f"Fatal error on {key}: {error.message}")
            else:
                logger.info(f"Giving up on {key}: {decision.reason}")
        return decision

    def _decide(self, error: SyncError, state: RetryState) -> Decision:
        if self.cancelling:
            return Decision.skip("Run is cancelling")

        if error.is_fatal:
            return Decision.abort(f"Fatal {error.category.value} error ({error.code})")

        with self._lock:
            exhausted = error.key in self._exhausted
        if exhausted:
            return Decision.skip("Retries already exhausted")

        limit = self.max_attempts_for(error)
        attempts_made = max(state.attempts + 1, error.operation.attempt)
        if attempts_made >= limit:
            if limit == 1:
                return Decision.skip(f"{error.category.value} errors are not retried")
            return Decision.skip(f"Gave up after {attempts_made} attempts")

        delay = compute_backoff(
            attempts_made, self._config, self._rng, previous=state.last_delay
        )
        return Decision.retry(delay, f"{error.category.value} error, attempt {attempts_made}")

    def complete(self, key: OperationKey) -> tuple[SyncError, Decision] | None:
        """Mark an operation as succeeded and discard its state.

        Returns:
            The last failure and a RECOVERED decision if the operation had
            failed before, else None.
        """
        with self._lock:
            state = self._states.pop(key, None)
            self._exhausted.discard(key)
        if state is None or state.last_error is None:
            return None
        logger.info(f"{key} succeeded after {len(state.history)} failure(s)")
        return state.last_error, Decision.recovered(
            f"Succeeded after {len(state.history)} failure(s)"
        )

    def abandon(self, key: OperationKey, reason: str = "Retry discarded") -> Decision:
        """Give up on a key whose scheduled retry will not run.

        Returns:
            A SKIP decision.
        """
        self._finish(key, exhausted=True)
        logger.info(f"Giving up on {key}: {reason}")
        return Decision.skip(reason)

    def reset(self, key: OperationKey) -> None:
        """Forget everything about a key (a new logical operation starts)."""
        self._finish(key, exhausted=False)

    def _finish(self, key: OperationKey, exhausted: bool) -> None:
        with self._lock:
            self._states.pop(key, None)
            if exhausted:
                self._exhausted.add(key)
            else:
                self._exhausted.discard(key)
