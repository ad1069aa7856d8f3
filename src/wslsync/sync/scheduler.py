"""Timer-based scheduling of retries.

A RETRY decision must not block a worker thread while it waits, so each
retry is armed on a threading.Timer that hands the payload back through a
callback once the delay has elapsed.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any

from wslsync.recovery.types import OperationKey

logger = logging.getLogger(__name__)


class RetryScheduler:
    """Holds at most one pending retry per operation key.

    Usage:
        scheduler = RetryScheduler()
        scheduler.schedule(key, 2.0, queue.put, task)
        ...
        dropped = scheduler.cancel_all()  # on user interrupt
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._timers: dict[OperationKey, tuple[threading.Timer, Any]] = {}
        self._closed = False

    @property
    def pending(self) -> int:
        """Get number of retries waiting for their delay."""
        with self._lock:
            return len(self._timers)

    def schedule(
        self,
        key: OperationKey,
        delay: float,
        callback: Callable[[Any], None],
        payload: Any,
    ) -> bool:
        """Run callback(payload) after delay seconds.

        A retry already pending for the same key is replaced.

        Returns:
            True if scheduled, False if the scheduler is closed.
        """
        with self._lock:
            if self._closed:
                return False
            previous = self._timers.pop(key, None)
            if previous is not None:
                previous[0].cancel()
            timer = threading.Timer(delay, self._fire, args=(key, callback))
            timer.daemon = True
            timer.name = f"Retry-{key.action.value}"
            self._timers[key] = (timer, payload)
            timer.start()

        logger.debug(f"Retry of {key} scheduled in {delay:.2f}s")
        return True

    def _fire(self, key: OperationKey, callback: Callable[[Any], None]) -> None:
        with self._lock:
            entry = self._timers.get(key)
            # Replaced or cancelled while the timer was about to run
            if entry is None or entry[0] is not threading.current_thread():
                return
            del self._timers[key]
        try:
            callback(entry[1])
        except Exception:
            logger.exception(f"Retry callback failed for {key}")

    def cancel(self, key: OperationKey) -> Any | None:
        """Cancel the pending retry for a key.

        Returns:
            The payload of the cancelled retry, or None if nothing was pending.
        """
        with self._lock:
            entry = self._timers.pop(key, None)
        if entry is None:
            return None
        entry[0].cancel()
        return entry[1]

    def cancel_all(self) -> list[Any]:
        """Cancel every pending retry.

        Returns:
            Payloads of the cancelled retries.
        """
        with self._lock:
            entries = list(self._timers.values())
            self._timers.clear()
        for timer, _ in entries:
            timer.cancel()
        if entries:
            logger.info(f"Discarded {len(entries)} pending retr{'y' if len(entries) == 1 else 'ies'}")
        return [payload for _, payload in entries]

    def close(self) -> list[Any]:
        """Refuse new retries and cancel pending ones."""
        with self._lock:
            self._closed = True
        return self.cancel_all()
