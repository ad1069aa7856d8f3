"""Tests for the error catalog."""

from __future__ import annotations

import pytest

from wslsync.core.types import ErrorCategory, Severity
from wslsync.recovery.catalog import (
    DEFAULT_CATALOG,
    DEFAULT_ENTRIES,
    ErrorCatalog,
    ErrorCodeEntry,
)


class TestDefaultCatalog:
    """Tests for the default catalog contents."""

    @pytest.mark.parametrize(
        ("code", "category"),
        [
            ("EACCES", ErrorCategory.PERMISSION),
            ("EPERM", ErrorCategory.PERMISSION),
            ("ENOENT", ErrorCategory.PATH),
            ("ENOTDIR", ErrorCategory.PATH),
            ("ENOSPC", ErrorCategory.DISK_SPACE),
            ("ETIMEDOUT", ErrorCategory.NETWORK),
            ("ECONNREFUSED", ErrorCategory.NETWORK),
        ],
    )
    def test_required_codes(self, code: str, category: ErrorCategory) -> None:
        """Required codes should map to their category."""
        entry = DEFAULT_CATALOG.lookup(code)
        assert entry is not None
        assert entry.code == code
        assert entry.category == category

    def test_windows_codes(self) -> None:
        """Windows lock and network-share codes should be listed."""
        assert DEFAULT_CATALOG.lookup("ERROR_SHARING_VIOLATION").category == ErrorCategory.PERMISSION
        assert DEFAULT_CATALOG.lookup("ERROR_NETNAME_DELETED").category == ErrorCategory.NETWORK

    def test_fatal_codes(self) -> None:
        """Resource exhaustion should be fatal."""
        assert DEFAULT_CATALOG.lookup("ENOMEM").default_severity == Severity.FATAL
        assert DEFAULT_CATALOG.lookup("EIO").default_severity == Severity.FATAL

    def test_unlisted_code_is_absent(self) -> None:
        """Unlisted codes should return None, not raise."""
        assert DEFAULT_CATALOG.lookup("EWHATEVER") is None
        assert DEFAULT_CATALOG.lookup(None) is None

    def test_codes_are_unique(self) -> None:
        """Every default entry should have a distinct code."""
        codes = [entry.code for entry in DEFAULT_ENTRIES]
        assert len(codes) == len(set(codes))
        assert len(DEFAULT_CATALOG) == len(codes)


class TestErrorCatalog:
    """Tests for custom catalogs."""

    def test_substitute_catalog(self) -> None:
        """A smaller catalog should only know its own entries."""
        catalog = ErrorCatalog([ErrorCodeEntry("EACCES", ErrorCategory.PERMISSION, False)])
        assert "EACCES" in catalog
        assert catalog.lookup("ENOSPC") is None
        assert [e.code for e in catalog] == ["EACCES"]

    def test_duplicate_code_rejected(self) -> None:
        """Duplicate codes should be refused at construction."""
        with pytest.raises(ValueError, match="EACCES"):
            ErrorCatalog(
                [
                    ErrorCodeEntry("EACCES", ErrorCategory.PERMISSION, True),
                    ErrorCodeEntry("EACCES", ErrorCategory.PATH, False),
                ]
            )

    def test_catalog_is_read_only(self) -> None:
        """The underlying mapping should not be mutable."""
        catalog = ErrorCatalog()
        with pytest.raises(TypeError):
            catalog._entries["ENEW"] = ErrorCodeEntry("ENEW", ErrorCategory.SYSTEM, False)  # type: ignore[index]

    def test_entry_is_immutable(self) -> None:
        """Entries should be frozen."""
        entry = DEFAULT_CATALOG.lookup("EACCES")
        with pytest.raises(AttributeError):
            entry.category = ErrorCategory.PATH  # type: ignore[misc]
