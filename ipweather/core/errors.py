"""Domain errors raised by adapters and services.

Only MalformedRequestError, NotFoundAppError, BudgetExceededError and
UpstreamAppError ever reach a client. LookupFailureError and CacheIOError
are internal signals: the first selects the degraded geolocation path, the
second is logged and treated as a cache miss (read) or ignored (write).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Optional context attached to an error and echoed to the client."""

    api: str
    retry_after: int
    http_status: int
    path: str
    segments: int
    cache_key: str
    context: dict[str, Any]


@dataclass
class AppError(Exception):
    """Base class for every error the service raises on purpose.

    Attributes:
        code: Stable snake_case identifier, e.g. "weather_budget_exceeded".
        message: Text safe to show to a client.
        details: Extra structured context.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Bad input or bad configuration."""


class MalformedRequestError(ValidationAppError):
    """A place request that is not exactly /country/city."""


class BudgetExceededError(AppError):
    """A rate limiter denied the upstream call; nothing was sent."""

    @property
    def retry_after(self) -> int | None:
        return (self.details or {}).get("retry_after")


class UpstreamAppError(AppError):
    """The weather provider (or place lookup) failed or returned garbage."""


class LookupFailureError(AppError):
    """A geolocation or geocoding provider could not produce coordinates."""


class CacheIOError(AppError):
    """A cache file could not be read, decoded or written."""


class NotFoundAppError(AppError):
    """A path that names no resource (crawler noise, a missing favicon)."""
