"""Records shared by the recovery engine.

This module provides:
- OperationKey: Stable identifier of a logical file operation
- OperationContext: Path, action and attempt describing one failed action
- SyncError: Immutable classified failure
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field, replace

from wslsync.core.types import ErrorCategory, OperationAction, Severity


@dataclass(frozen=True)
class OperationKey:
    """Identifies a logical operation across retries.

    Two failures of the same action on the same path share a key, so retry
    state accumulates between calls.
    """

    path: str
    action: OperationAction

    def __str__(self) -> str:
        return f"{self.action.value} {self.path}"


@dataclass(frozen=True)
class OperationContext:
    """Context of one file-level action.

    Attributes:
        path: Path the action operated on.
        action: What was being done (copy, delete, mkdir, stat, read_config).
        attempt: 1-based attempt number of the action that failed.
    """

    path: str
    action: OperationAction
    attempt: int = 1

    @property
    def key(self) -> OperationKey:
        """Key of the logical operation this context belongs to."""
        return OperationKey(self.path, self.action)

    def next_attempt(self) -> OperationContext:
        """Return the context for the following attempt."""
        return replace(self, attempt=self.attempt + 1)


@dataclass(frozen=True)
class SyncError:
    """A classified failure.

    Created by the classifier on every operation failure and never mutated:
    a retry produces a new SyncError carrying the incremented attempt.

    Attributes:
        code: Normalized code (errno mnemonic, network failure name or
            "UNKNOWN").
        category: Semantic category.
        severity: warning, error or fatal.
        retryable: Whether default policy permits an automatic re-attempt.
        message: Human-readable message from the raw error.
        operation: Context of the failed action.
        cause: The raw error object as received (may be None).
        timestamp: Unix timestamp of classification.
        error_id: Unique identifier, used to make bookkeeping idempotent.
    """

    code: str
    category: ErrorCategory
    severity: Severity
    retryable: bool
    message: str
    operation: OperationContext
    cause: object = field(default=None, compare=False, repr=False)
    timestamp: float = field(default_factory=time.time, compare=False)
    error_id: str = field(default_factory=lambda: uuid.uuid4().hex, compare=False)

    @property
    def key(self) -> OperationKey:
        """Key of the logical operation that failed."""
        return self.operation.key

    @property
    def is_fatal(self) -> bool:
        """Check if this error must abort the whole run."""
        return self.severity == Severity.FATAL

    def __str__(self) -> str:
        return (
            f"[{self.category.value}/{self.severity.value}] {self.code} "
            f"on {self.operation.action.value} {self.operation.path} "
            f"(attempt {self.operation.attempt}): {self.message}"
        )
