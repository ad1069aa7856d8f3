"""Error classifier.

Turns a raw failure (OSError, socket error, Node-style error mapping, bare
code string, or nothing at all) plus its operation context into a SyncError.

Algorithm:
1. Extract a normalized code from the raw error
2. Look it up in the catalog
3. Fall back to the ordered heuristic rules
4. Anything else is UNKNOWN, severity ERROR, not retryable

The classifier never raises.
"""

from __future__ import annotations

import errno
import logging
import re
import socket
from collections.abc import Mapping

from wslsync.core.types import ErrorCategory, Severity
from wslsync.recovery.catalog import DEFAULT_CATALOG, ErrorCatalog
from wslsync.recovery.heuristics import FailureFacts, HeuristicMatcher
from wslsync.recovery.types import OperationContext, SyncError

logger = logging.getLogger(__name__)

UNKNOWN_CODE = "UNKNOWN"

# Windows system error numbers, as found on OSError.winerror
WINERROR_NAMES: dict[int, str] = {
    32: "ERROR_SHARING_VIOLATION",
    33: "ERROR_LOCK_VIOLATION",
    39: "ERROR_HANDLE_DISK_FULL",
    53: "ERROR_BAD_NETPATH",
    64: "ERROR_NETNAME_DELETED",
    112: "ERROR_DISK_FULL",
    121: "ERROR_SEM_TIMEOUT",
}

# Builtin exceptions that commonly arrive without an errno
EXCEPTION_CODES: tuple[tuple[type[BaseException], str], ...] = (
    (ConnectionRefusedError, "ECONNREFUSED"),
    (ConnectionResetError, "ECONNRESET"),
    (ConnectionAbortedError, "ECONNABORTED"),
    (BrokenPipeError, "EPIPE"),
    (TimeoutError, "ETIMEDOUT"),
    (socket.timeout, "ETIMEDOUT"),
    (PermissionError, "EACCES"),
    (FileNotFoundError, "ENOENT"),
    (FileExistsError, "EEXIST"),
    (IsADirectoryError, "EISDIR"),
    (NotADirectoryError, "ENOTDIR"),
    (MemoryError, "ENOMEM"),
)

_MNEMONIC = re.compile(r"^(E[A-Z0-9_]+|ERROR_[A-Z0-9_]+)$")


def _gaierror_code(exc: socket.gaierror) -> str:
    if getattr(socket, "EAI_AGAIN", None) is not None and exc.errno == socket.EAI_AGAIN:
        return "EAI_AGAIN"
    return "ENOTFOUND"


def extract_code(raw: object) -> str | None:
    """Extract a normalized code string from a raw error.

    Args:
        raw: Any raw error object.

    Returns:
        The code mnemonic, or None when nothing recognizable was found.
    """
    if raw is None:
        return None

    if isinstance(raw, str):
        candidate = raw.strip().upper()
        return candidate if _MNEMONIC.match(candidate) else None

    if isinstance(raw, Mapping):
        code = raw.get("code")
        return str(code).upper() if isinstance(code, str) and code else None

    # Node-style errors carry the mnemonic directly
    code_attr = getattr(raw, "code", None)
    if isinstance(code_attr, str) and _MNEMONIC.match(code_attr.upper()):
        return code_attr.upper()

    if isinstance(raw, socket.gaierror):
        return _gaierror_code(raw)

    winerror = getattr(raw, "winerror", None)
    if isinstance(winerror, int) and winerror in WINERROR_NAMES:
        return WINERROR_NAMES[winerror]

    errno_value = getattr(raw, "errno", None)
    if isinstance(errno_value, int) and errno_value in errno.errorcode:
        return errno.errorcode[errno_value]

    for exc_type, code in EXCEPTION_CODES:
        if isinstance(raw, exc_type):
            return code

    return None


def extract_message(raw: object) -> str:
    """Extract a human-readable message from a raw error."""
    if raw is None:
        return "No error information available"
    if isinstance(raw, str):
        return raw
    if isinstance(raw, Mapping):
        message = raw.get("message")
        return str(message) if message else str(dict(raw))
    if isinstance(raw, OSError) and raw.strerror:
        if raw.filename is not None:
            return f"{raw.strerror}: {raw.filename!r}"
        return raw.strerror
    message = str(raw)
    return message or type(raw).__name__


class ErrorClassifier:
    """Classifies raw failures into SyncErrors.

    Usage:
        classifier = ErrorClassifier()  # default catalog and heuristics
        error = classifier.classify(exc, OperationContext(path, OperationAction.COPY))
    """

    def __init__(
        self,
        catalog: ErrorCatalog = DEFAULT_CATALOG,
        heuristics: HeuristicMatcher | None = None,
    ) -> None:
        """Initialize the classifier.

        Args:
            catalog: Code catalog to look codes up in.
            heuristics: Fallback rules for unlisted codes.
        """
        self._catalog = catalog
        self._heuristics = heuristics or HeuristicMatcher()

    @property
    def catalog(self) -> ErrorCatalog:
        return self._catalog

    def classify(self, raw: object, context: OperationContext) -> SyncError:
        """Classify a raw failure.

        Args:
            raw: The raw error (exception, mapping, code string or None).
            context: Path, action and attempt of the failed operation.

        Returns:
            A SyncError. Never raises.
        """
        try:
            return self._classify(raw, context)
        except Exception as e:
            # A raw error whose attributes blow up on access still gets a record
            logger.debug(f"Classification of {type(raw).__name__} failed: {e!r}")
            return self._unknown(raw, context, code=UNKNOWN_CODE, message=_safe_str(raw))

    def _classify(self, raw: object, context: OperationContext) -> SyncError:
        code = extract_code(raw)
        message = extract_message(raw)

        entry = self._catalog.lookup(code)
        if entry is not None:
            logger.debug(f"{context.key}: {code} -> {entry.category.value} (catalog)")
            return SyncError(
                code=entry.code,
                category=entry.category,
                severity=entry.default_severity,
                retryable=entry.default_retryable,
                message=message,
                operation=context,
                cause=raw,
            )

        facts = FailureFacts(raw=raw, message=message, context=context)
        rule = self._heuristics.match(facts)
        if rule is not None:
            logger.debug(f"{context.key}: {code} -> {rule.category.value} ({rule.name})")
            return SyncError(
                code=code or UNKNOWN_CODE,
                category=rule.category,
                severity=rule.severity,
                retryable=False,
                message=message,
                operation=context,
                cause=raw,
            )

        logger.debug(f"{context.key}: {code} -> unknown")
        return self._unknown(raw, context, code=code or UNKNOWN_CODE, message=message)

    def _unknown(
        self, raw: object, context: OperationContext, code: str, message: str
    ) -> SyncError:
        return SyncError(
            code=code,
            category=ErrorCategory.UNKNOWN,
            severity=Severity.ERROR,
            retryable=False,
            message=message,
            operation=context,
            cause=raw,
        )


def _safe_str(raw: object) -> str:
    try:
        return str(raw)
    except Exception:
        return f"<unprintable {type(raw).__name__}>"
