"""Location resolution with an explicit fallback contract.

Two ways in:
- by requester identity (IP): one unlimited geolocation call; failure is
  a signal for the caller to fall back, not an error for the client
- by place name: guarded by the geocoding rate limiter, first result wins
"""

import logging

from ipweather.adapters.geo.base import AbstractIdentityGeolocator, AbstractPlaceGeocoder
from ipweather.adapters.rate_limit.base import AbstractRateLimiter
from ipweather.core.errors import BudgetExceededError, LookupFailureError
from ipweather.schemas.weather import ResolvedLocation

logger = logging.getLogger(__name__)


class LocationResolver:
    """Turn a requester identity or a country/city pair into coordinates.

    Attributes:
        geolocator: IP geolocation provider (not rate limited).
        geocoder: Place geocoding provider.
        maps_limiter: Budget guarding the geocoding provider.
    """

    def __init__(
        self,
        geolocator: AbstractIdentityGeolocator,
        geocoder: AbstractPlaceGeocoder,
        maps_limiter: AbstractRateLimiter,
    ) -> None:
        self.geolocator = geolocator
        self.geocoder = geocoder
        self.maps_limiter = maps_limiter

    async def by_identifier(self, client_id: str) -> ResolvedLocation:
        """Locate a requester by identity.

        Raises:
            LookupFailureError: If the provider cannot locate client_id.
        """
        location = await self.geolocator.lookup(client_id)
        logger.info(
            "location.resolved",
            extra={
                "identity": client_id,
                "country_code": location.country_code,
                "city": location.city,
            },
        )
        return location

    async def by_place_name(self, country: str, city: str) -> tuple[float, float]:
        """Geocode country/city to (latitude, longitude).

        Raises:
            BudgetExceededError: If the geocoding budget is spent; no network
                call is made in that case.
            LookupFailureError: If the provider fails or finds nothing.
        """
        if not self.maps_limiter.permit():
            raise BudgetExceededError(
                code="geocode_budget_exceeded",
                message="Geocoding API limit exceeded. Try again later.",
                details={"api": "maps", "retry_after": self.maps_limiter.retry_after()},
            )

        results = await self.geocoder.geocode(city, country)
        if not results:
            raise LookupFailureError(
                code="place_not_found",
                message=f"Cannot locate {city}, {country}",
            )
        return results[0]
