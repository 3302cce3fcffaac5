"""Process-wide registry of upstream rate limiters.

Each rate-limited upstream API owns one independent limiter with its own
budget and its own state file. APIs without a registered limiter (IP
geolocation) are unlimited.

The registry is an explicit object built by the app factory and handed to
the services that need it; nothing here is module-global.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ipweather.adapters.rate_limit.base import AbstractRateLimiter
from ipweather.adapters.rate_limit.hard_window import HardWindowRateLimiter
from ipweather.core.config import Settings

logger = logging.getLogger(__name__)

WEATHER_API = "wunderground"
MAPS_API = "maps"
IPINFO_API = "ipinfo"


class RateLimiterRegistry:
    """Map API ids to limiters and persist them as ts-<api>.json files."""

    def __init__(self, state_dir: Path, limiters: dict[str, AbstractRateLimiter]) -> None:
        self._state_dir = Path(state_dir)
        self._limiters = dict(limiters)

    def __contains__(self, api_id: str) -> bool:
        return api_id in self._limiters

    def get(self, api_id: str) -> AbstractRateLimiter:
        """Return the limiter for api_id.

        Raises:
            KeyError: If api_id is not rate limited.
        """
        return self._limiters[api_id]

    def permit(self, api_id: str) -> bool:
        """Consume one call from api_id's budget; unlimited APIs always pass."""
        limiter = self._limiters.get(api_id)
        if limiter is None:
            return True
        return limiter.permit()

    def state_path(self, api_id: str) -> Path:
        return self._state_dir / f"ts-{api_id}.json"

    def load_all(self) -> None:
        """Restore every limiter from its state file (never raises)."""
        for api_id, limiter in self._limiters.items():
            limiter.load(self.state_path(api_id))

    def save_all(self) -> None:
        """Persist every limiter; a failed write is logged and skipped."""
        for api_id, limiter in self._limiters.items():
            try:
                limiter.save(self.state_path(api_id))
            except OSError as exc:
                logger.error(
                    "rate_limit.save_failed",
                    extra={"api": api_id, "error_msg": str(exc)},
                )


def build_rate_limiters(cfg: Settings) -> RateLimiterRegistry:
    """Create the weather and geocoding limiters from settings.

    Args:
        cfg: Resolved application settings.

    Returns:
        RateLimiterRegistry with fresh windows (call load_all() to restore).
    """

    limiters: dict[str, AbstractRateLimiter] = {
        WEATHER_API: HardWindowRateLimiter(
            name=WEATHER_API,
            max_hits=cfg.weather.max_hits,
            window_seconds=cfg.weather.window_seconds,
        ),
        MAPS_API: HardWindowRateLimiter(
            name=MAPS_API,
            max_hits=cfg.geo.maps_max_hits,
            window_seconds=cfg.geo.maps_window_seconds,
        ),
    }
    return RateLimiterRegistry(Path(cfg.cache.state_dir), limiters)
