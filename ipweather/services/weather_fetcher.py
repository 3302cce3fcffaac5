"""Weather retrieval pipeline: cache, resolve, rate check, fetch, normalize, store.

Per request:

    CacheCheck -> hit: done
               -> miss/stale: Resolve -> RateCheck -> FetchUpstream
                                      -> Normalize -> StoreCache -> done

The place path has to geocode before it can compute its cache key, so for
it Resolve runs first. Nothing is written to the cache unless the upstream
fetch succeeded and the snapshot was fully normalized.
"""

import logging

from ipweather.adapters.icons import IconMirror
from ipweather.adapters.rate_limit.base import AbstractRateLimiter
from ipweather.adapters.weather.base import AbstractWeatherClient
from ipweather.core.errors import BudgetExceededError, LookupFailureError, UpstreamAppError
from ipweather.schemas.weather import WeatherSnapshot
from ipweather.services.location_resolver import LocationResolver
from ipweather.utils.number_format import format_fixed
from ipweather.utils.snapshot_cache import SnapshotCache, coordinates_key

logger = logging.getLogger(__name__)


class WeatherFetcher:
    """Serve weather snapshots while keeping upstream calls within budget.

    Attributes:
        resolver: Location resolution (IP geolocation and place geocoding).
        weather: Weather provider client.
        weather_limiter: Budget guarding the weather provider.
        cache: On-disk snapshot cache.
        icons: Icon mirror used during normalization.
    """

    def __init__(
        self,
        resolver: LocationResolver,
        weather: AbstractWeatherClient,
        weather_limiter: AbstractRateLimiter,
        cache: SnapshotCache,
        icons: IconMirror,
    ) -> None:
        self.resolver = resolver
        self.weather = weather
        self.weather_limiter = weather_limiter
        self.cache = cache
        self.icons = icons

    def _check_budget(self) -> None:
        if not self.weather_limiter.permit():
            raise BudgetExceededError(
                code="weather_budget_exceeded",
                message="Weather API limit exceeded. Try again later.",
                details={"api": "weather", "retry_after": self.weather_limiter.retry_after()},
            )

    async def normalize(self, snapshot: WeatherSnapshot) -> WeatherSnapshot:
        """Fix geographic fields to two decimals and mirror every icon.

        Args:
            snapshot: Snapshot as returned by the provider.

        Returns:
            A new, normalized snapshot; the input is left untouched.
        """
        result = snapshot.model_copy(deep=True)
        location = result.current.location
        location.latitude = format_fixed(location.latitude)
        location.longitude = format_fixed(location.longitude)
        location.elevation = format_fixed(location.elevation)

        result.current.icon = await self.icons.cache_icon(result.current.icon)
        for day in result.forecast:
            day.icon = await self.icons.cache_icon(day.icon)
        return result

    async def _finish(self, cache_key: str, snapshot: WeatherSnapshot) -> WeatherSnapshot:
        normalized = await self.normalize(snapshot)
        self.cache.store(cache_key, normalized)
        return normalized

    async def by_place(self, country: str, city: str) -> WeatherSnapshot:
        """Return the snapshot for an explicit country/city.

        Raises:
            BudgetExceededError: If the geocoding or weather budget is spent.
            UpstreamAppError: If the place cannot be located or the weather
                provider fails.
        """
        try:
            latitude, longitude = await self.resolver.by_place_name(country, city)
        except LookupFailureError as exc:
            logger.warning(
                "weather.place_not_located",
                extra={"country": country, "city": city, "error_code": exc.code},
            )
            raise UpstreamAppError(
                code="location_not_found",
                message=f"Cannot locate {city}, {country}",
            ) from exc

        cache_key = coordinates_key(latitude, longitude)
        cached = self.cache.lookup(cache_key)
        if cached is not None:
            logger.info("weather.cache_hit", extra={"cache_key": cache_key, "path": "place"})
            return cached

        self._check_budget()
        snapshot = await self.weather.fetch_by_coords(latitude, longitude)
        return await self._finish(cache_key, snapshot)

    async def by_identity(self, identity: str) -> WeatherSnapshot:
        """Return the snapshot for the requester's own location.

        Uses the geolocated coordinates when possible and otherwise lets the
        provider geolocate identity server-side. Either way exactly one
        weather permit is consumed on a cache miss.

        Raises:
            BudgetExceededError: If the weather budget is spent.
            UpstreamAppError: If the weather provider fails.
        """
        cached = self.cache.lookup(identity)
        if cached is not None:
            logger.info("weather.cache_hit", extra={"cache_key": identity, "path": "identity"})
            return cached

        try:
            location = await self.resolver.by_identifier(identity)
        except LookupFailureError as exc:
            logger.info(
                "weather.geoip_fallback",
                extra={"identity": identity, "error_code": exc.code},
            )
            self._check_budget()
            snapshot = await self.weather.fetch_by_identity(identity)
        else:
            self._check_budget()
            snapshot = await self.weather.fetch_by_coords(location.latitude, location.longitude)

        return await self._finish(identity, snapshot)
