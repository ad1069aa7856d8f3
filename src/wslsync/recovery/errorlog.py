"""Persistent JSON-lines log of recorded errors.

Each recorded error becomes one JSON object per line in error.log. Files
are rotated by a RotatingFileHandler (error.log.1 ... error.log.N), so the
log can be written concurrently from every worker of a run.

Usage:
    error_log = ErrorLog(get_config_dir() / "logs")
    aggregator.add_listener(error_log.write)
    ...
    error_log.stats()
"""

from __future__ import annotations

import json
import logging
import logging.handlers
import os
import platform
import threading
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from wslsync.recovery.aggregator import ErrorEvent

logger = logging.getLogger(__name__)

LOG_FILENAME = "error.log"
DEFAULT_MAX_BYTES = 10 * 1024 * 1024  # 10 MiB
DEFAULT_BACKUP_COUNT = 5
DEFAULT_STATS_WINDOW = 100
DEFAULT_RECENT_LIMIT = 10


def event_to_dict(event: ErrorEvent) -> dict[str, Any]:
    """Convert an event to its JSON-lines representation."""
    return {
        "timestamp": datetime.fromtimestamp(event.timestamp, tz=timezone.utc).isoformat(),
        "code": event.code,
        "category": event.category.value,
        "severity": event.severity.value,
        "message": event.message,
        "path": event.path,
        "action": event.action.value,
        "attempt": event.attempt,
        "decision": event.decision.name,
        "pid": os.getpid(),
        "platform": platform.system().lower(),
    }


class ErrorLog:
    """Rotating JSON-lines error log."""

    def __init__(
        self,
        log_dir: Path,
        max_bytes: int = DEFAULT_MAX_BYTES,
        backup_count: int = DEFAULT_BACKUP_COUNT,
    ) -> None:
        """Initialize the error log.

        Args:
            log_dir: Directory holding error.log and its backups.
            max_bytes: Size at which the log is rotated.
            backup_count: Number of rotated files kept.
        """
        self._log_dir = Path(log_dir)
        self._max_bytes = max_bytes
        self._backup_count = backup_count
        self._lock = threading.Lock()
        self._handler: logging.handlers.RotatingFileHandler | None = None

    @property
    def path(self) -> Path:
        """Path of the current log file."""
        return self._log_dir / LOG_FILENAME

    def _get_handler(self) -> logging.handlers.RotatingFileHandler:
        with self._lock:
            if self._handler is None:
                self._log_dir.mkdir(parents=True, exist_ok=True)
                handler = logging.handlers.RotatingFileHandler(
                    self.path,
                    maxBytes=self._max_bytes,
                    backupCount=self._backup_count,
                    encoding="utf-8",
                    delay=True,
                )
                handler.setFormatter(logging.Formatter("%(message)s"))
                self._handler = handler
            return self._handler

    def write(self, event: ErrorEvent) -> None:
        """Append an event to the log. Suitable as an aggregator listener."""
        record = logging.makeLogRecord(
            {
                "name": __name__,
                "levelno": logging.ERROR,
                "levelname": "ERROR",
                "msg": json.dumps(event_to_dict(event), ensure_ascii=False),
            }
        )
        self._get_handler().handle(record)

    def close(self) -> None:
        """Flush and close the underlying file."""
        with self._lock:
            if self._handler is not None:
                self._handler.close()
                self._handler = None

    def files(self) -> list[Path]:
        """Log files, oldest first."""
        backups = [
            self._log_dir / f"{LOG_FILENAME}.{i}" for i in range(self._backup_count, 0, -1)
        ]
        return [p for p in (*backups, self.path) if p.exists()]

    def entries(self) -> list[dict[str, Any]]:
        """All parseable entries, oldest first. Malformed lines are ignored."""
        if self._handler is not None:
            self._handler.flush()
        result: list[dict[str, Any]] = []
        for log_file in self.files():
            for line in log_file.read_text(encoding="utf-8").splitlines():
                if not line.strip():
                    continue
                try:
                    entry = json.loads(line)
                except json.JSONDecodeError:
                    continue
                if isinstance(entry, dict):
                    result.append(entry)
        return result

    def recent(self, limit: int = DEFAULT_RECENT_LIMIT) -> list[dict[str, Any]]:
        """Most recent entries, newest first."""
        if limit <= 0:
            return []
        return list(reversed(self.entries()[-limit:]))

    def stats(self, window: int = DEFAULT_STATS_WINDOW) -> dict[str, Any]:
        """Statistics over the last `window` entries.

        Returns:
            Dict with total (all entries), by_category and by_code (over the
            window), and recent (up to 10 entries of the window, newest first).
        """
        entries = self.entries()
        windowed = entries[-window:] if window > 0 else []
        by_category = Counter(e["category"] for e in windowed if "category" in e)
        by_code = Counter(e["code"] for e in windowed if e.get("code"))
        return {
            "total": len(entries),
            "by_category": dict(by_category),
            "by_code": dict(by_code),
            "recent": list(reversed(windowed[-DEFAULT_RECENT_LIMIT:])),
        }

    def clear(self) -> int:
        """Delete every log file.

        Returns:
            Number of files removed.
        """
        self.close()
        removed = 0
        if not self._log_dir.exists():
            return 0
        for log_file in self._log_dir.glob(f"{LOG_FILENAME}*"):
            try:
                log_file.unlink()
                removed += 1
            except OSError as e:
                logger.warning(f"Could not remove {log_file}: {e}")
        return removed
