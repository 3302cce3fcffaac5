"""Persisted hard-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: uses a lock around shared state.
- The window is not aligned to wall-clock boundaries; it starts at the first
  call that arrives after the previous window expired.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from pathlib import Path
from typing import Callable

from ipweather.adapters.rate_limit.base import AbstractRateLimiter, RateWindow

logger = logging.getLogger(__name__)


class HardWindowRateLimiter(AbstractRateLimiter):
    """Count calls in a fixed-length window that resets on first use after expiry.

    Once the budget is exhausted the window stays closed until it fully
    elapses: denied calls are still counted and never rolled back.
    """

    def __init__(
        self,
        *,
        name: str,
        max_hits: int,
        window_seconds: float,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the limiter with a fresh window.

        Args:
            name: API identity, used in logs.
            max_hits: Maximum number of admitted calls per window.
            window_seconds: Window duration in seconds.
            clock: Time source function returning UNIX time in seconds.

        Raises:
            ValueError: If max_hits or window_seconds are invalid.
        """
        if max_hits < 1:
            raise ValueError("max_hits must be >= 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")

        self.name = name
        self._max_hits = max_hits
        self._window_ns = int(window_seconds * 1e9)
        self._clock = clock
        self._lock = threading.Lock()
        self._state = self._fresh_window()

    def _fresh_window(self) -> RateWindow:
        return RateWindow(
            hits=0,
            window_start=self._clock(),
            max_hits=self._max_hits,
            window_ns=self._window_ns,
        )

    @property
    def state(self) -> RateWindow:
        """Snapshot of the current window."""
        with self._lock:
            return self._state.model_copy()

    def permit(self) -> bool:
        now = self._clock()
        with self._lock:
            state = self._state
            if now - state.window_start > state.window_seconds:
                # Reset admits unconditionally, even out of a poisoned window
                state.window_start = now
                state.hits = 1
                return True

            state.hits += 1
            hits, max_hits = state.hits, state.max_hits
            allowed = hits <= max_hits

        if not allowed:
            logger.warning(
                "rate_limit.denied",
                extra={"api": self.name, "hits": hits, "max_hits": max_hits},
            )
        return allowed

    def retry_after(self) -> int:
        now = self._clock()
        with self._lock:
            remaining = self._state.window_start + self._state.window_seconds - now
        return max(0, int(math.ceil(remaining)))

    def save(self, path: Path) -> None:
        """Write the four window fields as JSON.

        Raises:
            OSError: If the file cannot be written.
        """
        with self._lock:
            payload = self._state.model_dump_json()
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(payload, encoding="utf-8")
        logger.info("rate_limit.saved", extra={"api": self.name, "path": str(path)})

    def load(self, path: Path) -> None:
        """Replace the window with the persisted one, if it is readable.

        A missing, unreadable or invalid file yields a fresh window; this
        method never raises.
        """
        try:
            raw = Path(path).read_bytes()
            state = RateWindow.model_validate_json(raw)
        except (OSError, ValueError) as exc:
            logger.info(
                "rate_limit.load_fallback",
                extra={"api": self.name, "path": str(path), "reason": type(exc).__name__},
            )
            state = self._fresh_window()

        with self._lock:
            self._state = state
