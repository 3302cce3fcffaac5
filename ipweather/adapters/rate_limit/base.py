"""Rate limiter interfaces.

Callers depend on this abstraction so the persisted single-node limiter can
be swapped for another store without touching the services.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from pydantic import BaseModel, Field


class RateWindow(BaseModel):
    """Accounting state of one protected upstream API.

    Attributes:
        hits: Calls counted since window_start (keeps climbing once denied).
        window_start: UNIX time in seconds when the current window began.
        max_hits: Maximum admitted calls per window.
        window_ns: Window duration in nanoseconds.
    """

    hits: int = Field(0, ge=0)
    window_start: float
    max_hits: int = Field(..., gt=0)
    window_ns: int = Field(..., gt=0)

    @property
    def window_seconds(self) -> float:
        return self.window_ns / 1e9


class AbstractRateLimiter(ABC):
    """Interface for per-API rate limiters."""

    @abstractmethod
    def permit(self) -> bool:
        """Record an upstream call and report whether it may proceed.

        Returns:
            True if the call is within budget, False otherwise. A False result
            is final for this request and must not be retried.
        """
        raise NotImplementedError

    @abstractmethod
    def retry_after(self) -> int:
        """Return whole seconds until the current window ends."""
        raise NotImplementedError

    @abstractmethod
    def save(self, path: Path) -> None:
        """Persist the window state to path."""
        raise NotImplementedError

    @abstractmethod
    def load(self, path: Path) -> None:
        """Restore the window state from path, falling back to a fresh window."""
        raise NotImplementedError
