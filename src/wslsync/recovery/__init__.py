"""Error classification and recovery engine.

Architecture:
    ErrorClassifier → RetryCoordinator → RunAggregator

Components:
- **ErrorCatalog**: Raw code -> category, severity, retryability
- **HeuristicMatcher**: Ordered fallback rules for unlisted codes
- **ErrorClassifier**: Raw failure + context -> SyncError (never raises)
- **RetryCoordinator**: SyncError -> RETRY(delay) / SKIP / ABORT_RUN
- **RunAggregator**: Terminal errors -> RunSummary (finalized once)
- **RecoveryEngine**: Facade used by the file-operation layer

Reporting:
- render_summary, recovery_suggestions, user_message
- ErrorLog: Rotating JSON-lines log of recorded errors
"""

from wslsync.recovery.aggregator import (
    ErrorEvent,
    ErrorListener,
    RunAggregator,
    RunSummary,
    UsageError,
    derive_outcome,
)
from wslsync.recovery.catalog import (
    DEFAULT_CATALOG,
    DEFAULT_ENTRIES,
    ErrorCatalog,
    ErrorCodeEntry,
)
from wslsync.recovery.classifier import (
    UNKNOWN_CODE,
    ErrorClassifier,
    extract_code,
    extract_message,
)
from wslsync.recovery.engine import FailureOutcome, RecoveryEngine
from wslsync.recovery.errorlog import ErrorLog
from wslsync.recovery.heuristics import (
    HEURISTIC_RULES,
    FailureFacts,
    HeuristicMatcher,
    HeuristicRule,
)
from wslsync.recovery.report import render_summary
from wslsync.recovery.retry import (
    RETRY_RULES,
    BackoffStrategy,
    Decision,
    DecisionAction,
    RetryCoordinator,
    RetryRule,
    RetryState,
    compute_backoff,
)
from wslsync.recovery.suggestions import recovery_suggestions, user_message
from wslsync.recovery.types import OperationContext, OperationKey, SyncError

__all__ = [
    # Types
    "OperationContext",
    "OperationKey",
    "SyncError",
    # Catalog
    "DEFAULT_CATALOG",
    "DEFAULT_ENTRIES",
    "ErrorCatalog",
    "ErrorCodeEntry",
    # Classification
    "ErrorClassifier",
    "FailureFacts",
    "HEURISTIC_RULES",
    "HeuristicMatcher",
    "HeuristicRule",
    "UNKNOWN_CODE",
    "extract_code",
    "extract_message",
    # Retry
    "BackoffStrategy",
    "Decision",
    "DecisionAction",
    "RETRY_RULES",
    "RetryCoordinator",
    "RetryRule",
    "RetryState",
    "compute_backoff",
    # Aggregation
    "ErrorEvent",
    "ErrorListener",
    "RunAggregator",
    "RunSummary",
    "UsageError",
    "derive_outcome",
    # Engine
    "FailureOutcome",
    "RecoveryEngine",
    # Reporting
    "ErrorLog",
    "recovery_suggestions",
    "render_summary",
    "user_message",
]
