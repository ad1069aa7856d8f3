"""Static catalog of raw error codes.

Maps POSIX errno mnemonics, Windows ERROR_* names and network failure
names to a category, a default severity and default retryability.

The catalog is a value: build it once at start-up and pass it to the
classifier. Tests substitute a smaller one with ErrorCatalog([...]).
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from types import MappingProxyType

from wslsync.core.types import ErrorCategory, Severity


@dataclass(frozen=True)
class ErrorCodeEntry:
    """One catalog row."""

    code: str
    category: ErrorCategory
    default_retryable: bool
    default_severity: Severity = Severity.ERROR


def _entries(
    codes: Iterable[str],
    category: ErrorCategory,
    retryable: bool,
    severity: Severity = Severity.ERROR,
) -> list[ErrorCodeEntry]:
    return [ErrorCodeEntry(code, category, retryable, severity) for code in codes]


DEFAULT_ENTRIES: tuple[ErrorCodeEntry, ...] = (
    # Permission: access denied, or a file locked by another process
    *_entries(("EACCES", "EPERM", "EBUSY", "ETXTBSY"), ErrorCategory.PERMISSION, True),
    *_entries(("EROFS",), ErrorCategory.PERMISSION, False),
    *_entries(
        ("ERROR_SHARING_VIOLATION", "ERROR_LOCK_VIOLATION"),
        ErrorCategory.PERMISSION,
        True,
        Severity.WARNING,
    ),
    # Path: ENOENT is often a rename race, worth one more look
    *_entries(("ENOENT",), ErrorCategory.PATH, True),
    *_entries(
        ("ENOTDIR", "EISDIR", "ENAMETOOLONG", "ELOOP", "EXDEV"),
        ErrorCategory.PATH,
        False,
    ),
    # Disk space
    *_entries(
        ("ENOSPC", "EDQUOT", "ERROR_DISK_FULL", "ERROR_HANDLE_DISK_FULL"),
        ErrorCategory.DISK_SPACE,
        True,
    ),
    *_entries(("EFBIG",), ErrorCategory.DISK_SPACE, False),
    # Network, including dropped network shares (ESTALE, Windows ERROR_*)
    *_entries(
        (
            "ETIMEDOUT",
            "ECONNREFUSED",
            "ECONNRESET",
            "ECONNABORTED",
            "ENOTFOUND",
            "EAI_AGAIN",
            "EHOSTUNREACH",
            "ENETUNREACH",
            "ENETDOWN",
            "EPIPE",
            "ESTALE",
            "ERROR_BAD_NETPATH",
            "ERROR_NETNAME_DELETED",
            "ERROR_SEM_TIMEOUT",
        ),
        ErrorCategory.NETWORK,
        True,
    ),
    # Conflict: needs a decision from the user or the configuration
    *_entries(("EEXIST", "ENOTEMPTY"), ErrorCategory.CONFLICT, False, Severity.WARNING),
    # System resources
    *_entries(("EMFILE", "ENFILE"), ErrorCategory.SYSTEM, False),
    *_entries(("ENOMEM", "EIO"), ErrorCategory.SYSTEM, False, Severity.FATAL),
    # Validation
    *_entries(("EINVAL",), ErrorCategory.VALIDATION, False),
)


class ErrorCatalog:
    """Read-only mapping from raw code to ErrorCodeEntry.

    Lookups are plain dict reads and need no locking.
    """

    def __init__(self, entries: Iterable[ErrorCodeEntry] = DEFAULT_ENTRIES) -> None:
        """Build the catalog.

        Args:
            entries: Catalog rows. Codes must be unique.

        Raises:
            ValueError: If two entries share a code.
        """
        table: dict[str, ErrorCodeEntry] = {}
        for entry in entries:
            if entry.code in table:
                raise ValueError(f"Duplicate catalog code: {entry.code}")
            table[entry.code] = entry
        self._entries = MappingProxyType(table)

    def lookup(self, code: str | None) -> ErrorCodeEntry | None:
        """Return the entry for a code, or None when the code is not listed."""
        if code is None:
            return None
        return self._entries.get(code)

    def __contains__(self, code: object) -> bool:
        return code in self._entries

    def __iter__(self) -> Iterator[ErrorCodeEntry]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)


DEFAULT_CATALOG = ErrorCatalog()
