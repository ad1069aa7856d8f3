"""Shared configuration classes for wslsync.

This module defines the retry configuration consumed by the recovery
engine. The engine does not own where the values come from: the CLI loads
them from ~/.wslsync/config.json and command-line overrides.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import asdict, dataclass, fields
from typing import Any

# Default retry configuration
DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_TRANSIENT_MAX_ATTEMPTS = 2  # one retry for lock/race failures
DEFAULT_BASE_DELAY = 0.5  # seconds
DEFAULT_MAX_DELAY = 30.0  # seconds
DEFAULT_MULTIPLIER = 2.0
DEFAULT_JITTER = 0.1  # fraction of the computed delay


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


@dataclass
class RetryConfig:
    """Retry and backoff settings for the recovery engine.

    Attributes:
        max_attempts: Total attempts allowed for network and disk-space
            failures (first try included).
        transient_max_attempts: Total attempts allowed for permission and
            path failures (a locked file or a rename race).
        base_delay: Delay before the first retry, in seconds.
        multiplier: Growth factor applied for each further retry.
        max_delay: Cap on any single delay, in seconds.
        jitter: Random extra fraction added to each delay (0 disables it).
        retries_disabled: Make every failure final (dry-run / CI mode).
    """

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    transient_max_attempts: int = DEFAULT_TRANSIENT_MAX_ATTEMPTS
    base_delay: float = DEFAULT_BASE_DELAY
    multiplier: float = DEFAULT_MULTIPLIER
    max_delay: float = DEFAULT_MAX_DELAY
    jitter: float = DEFAULT_JITTER
    retries_disabled: bool = False

    def __post_init__(self) -> None:
        """Validate values."""
        for name in ("base_delay", "multiplier", "max_delay", "jitter"):
            if not math.isfinite(getattr(self, name)):
                raise ValueError(f"{name} must be a finite number, got {getattr(self, name)}")
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.transient_max_attempts < 1:
            raise ValueError(
                f"transient_max_attempts must be >= 1, got {self.transient_max_attempts}"
            )
        if self.base_delay <= 0:
            raise ValueError(f"base_delay must be > 0, got {self.base_delay}")
        if self.multiplier < 1:
            raise ValueError(f"multiplier must be >= 1, got {self.multiplier}")
        if self.max_delay < self.base_delay:
            raise ValueError(
                f"max_delay ({self.max_delay}) must be >= base_delay ({self.base_delay})"
            )
        if self.jitter < 0:
            raise ValueError(f"jitter must be >= 0, got {self.jitter}")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> RetryConfig:
        """Build a config from a loosely-typed mapping (e.g. parsed JSON).

        Unknown keys are ignored so the same file can hold other settings.

        Raises:
            ValueError: If a value cannot be converted or is out of range.
        """
        kwargs: dict[str, Any] = {}
        for f in fields(cls):
            if f.name not in data:
                continue
            value = data[f.name]
            if f.name == "retries_disabled":
                kwargs[f.name] = _to_bool(value)
                continue
            convert = int if f.name in ("max_attempts", "transient_max_attempts") else float
            try:
                kwargs[f.name] = convert(value)
            except (TypeError, ValueError, OverflowError) as e:
                raise ValueError(f"Invalid value for {f.name}: {value!r}") from e
        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return asdict(self)
