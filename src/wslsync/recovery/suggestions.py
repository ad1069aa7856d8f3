"""Human-facing hints for classified errors."""

from __future__ import annotations

from wslsync.core.types import ErrorCategory
from wslsync.recovery.types import SyncError

RECOVERY_SUGGESTIONS: dict[ErrorCategory, tuple[str, ...]] = {
    ErrorCategory.PERMISSION: (
        "Check file and directory permissions",
        "Run with appropriate user privileges",
        "Ensure the target is not read-only",
        "Check if the file is locked by another process",
    ),
    ErrorCategory.PATH: (
        "Verify the path exists",
        "Check for typos in the path",
        "Ensure parent directories exist",
        "Use absolute paths instead of relative paths",
    ),
    ErrorCategory.DISK_SPACE: (
        "Free up disk space on the target drive",
        "Check disk quota limits",
        "Use a different destination with more space",
        "Clean temporary files",
    ),
    ErrorCategory.NETWORK: (
        "Check network connection",
        "Verify remote path accessibility",
        "Check firewall settings",
        "Try again after network stabilizes",
    ),
    ErrorCategory.CONFLICT: (
        "Review conflict resolution settings",
        "Manually resolve conflicts",
        "Check for names differing only by case (Windows is case-insensitive)",
        "Check file modification times",
    ),
    ErrorCategory.SYSTEM: (
        "Close unnecessary applications",
        "Increase system limits (ulimit)",
        "Restart the application",
        "Check system resources",
    ),
    ErrorCategory.CONFIG: (
        "Verify configuration file syntax",
        "Check configuration file permissions",
        "Use default configuration",
        "Validate configuration values",
    ),
    ErrorCategory.VALIDATION: (
        "Check the path for characters Windows does not allow",
        "Validate command-line arguments",
    ),
}

_MESSAGE_TEMPLATES: dict[ErrorCategory, str] = {
    ErrorCategory.PERMISSION: "Permission denied: {message}\nTry running with appropriate privileges",
    ErrorCategory.PATH: "Path error: {message}\nPlease check that the path exists",
    ErrorCategory.DISK_SPACE: "Insufficient disk space: {message}\nFree up space and try again",
    ErrorCategory.NETWORK: "Network error: {message}\nCheck your connection and try again",
    ErrorCategory.CONFLICT: "File conflict: {message}\nReview your sync settings",
    ErrorCategory.CONFIG: "Configuration error: {message}\nCheck your configuration file",
    ErrorCategory.VALIDATION: "Invalid input: {message}",
    ErrorCategory.SYSTEM: "System error: {message}",
}


def recovery_suggestions(error: SyncError) -> list[str]:
    """Get suggestions for recovering from an error, most specific first."""
    suggestions = list(RECOVERY_SUGGESTIONS.get(error.category, ()))
    if error.code == "EACCES" and error.operation.path:
        suggestions.insert(0, f"Check permissions for: {error.operation.path}")
    if error.code == "ENOSPC":
        suggestions.insert(0, "Sync operation requires additional disk space")
    return suggestions


def user_message(error: SyncError) -> str:
    """Create a user-friendly message for an error."""
    template = _MESSAGE_TEMPLATES.get(error.category, "Error: {message}")
    return template.format(message=error.message)
