"""Shared types for wslsync.

This module defines the enums used across the recovery engine, the
operation pool and the CLI.
"""

from __future__ import annotations

from enum import Enum


class ErrorCategory(str, Enum):
    """Semantic bucket a raw failure is mapped into.

    The set is closed: codes nobody recognizes resolve to UNKNOWN.
    """

    PERMISSION = "permission"
    PATH = "path"
    DISK_SPACE = "disk_space"
    NETWORK = "network"
    CONFLICT = "conflict"
    SYSTEM = "system"
    CONFIG = "config"
    VALIDATION = "validation"
    UNKNOWN = "unknown"


class Severity(str, Enum):
    """Severity of a classified error.

    FATAL forces a run-level abort regardless of category.
    """

    WARNING = "warning"
    ERROR = "error"
    FATAL = "fatal"


class OperationAction(str, Enum):
    """File-level action that failed."""

    COPY = "copy"
    DELETE = "delete"
    MKDIR = "mkdir"
    STAT = "stat"
    READ_CONFIG = "read_config"


class RunOutcome(str, Enum):
    """Run-level outcome of one sync invocation."""

    CLEAN = "clean"
    COMPLETED_WITH_WARNINGS = "completed_with_warnings"
    FAILED = "failed"
