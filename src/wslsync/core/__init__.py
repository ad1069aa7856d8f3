"""Core module - Shared types and configuration."""

from wslsync.core.config import (
    DEFAULT_BASE_DELAY,
    DEFAULT_JITTER,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_MAX_DELAY,
    DEFAULT_MULTIPLIER,
    DEFAULT_TRANSIENT_MAX_ATTEMPTS,
    RetryConfig,
)
from wslsync.core.types import ErrorCategory, OperationAction, RunOutcome, Severity

__all__ = [
    # Config
    "DEFAULT_BASE_DELAY",
    "DEFAULT_JITTER",
    "DEFAULT_MAX_ATTEMPTS",
    "DEFAULT_MAX_DELAY",
    "DEFAULT_MULTIPLIER",
    "DEFAULT_TRANSIENT_MAX_ATTEMPTS",
    "RetryConfig",
    # Types
    "ErrorCategory",
    "OperationAction",
    "RunOutcome",
    "Severity",
]
