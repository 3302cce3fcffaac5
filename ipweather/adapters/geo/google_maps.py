"""Google Maps geocoding adapter."""

import logging

import httpx

from ipweather.adapters.geo.base import AbstractPlaceGeocoder
from ipweather.core.errors import LookupFailureError

logger = logging.getLogger(__name__)


class GoogleGeocoder(AbstractPlaceGeocoder):
    """Geocode "city,country" with the Google Maps geocoding JSON API."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        url: str = "https://maps.googleapis.com/maps/api/geocode/json",
        api_key: str | None = None,
        timeout_seconds: float = 10.0,
    ) -> None:
        self.client = client
        self.url = url
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds

    async def geocode(self, city: str, country: str) -> list[tuple[float, float]]:
        params = {"address": f"{city},{country}"}
        if self.api_key:
            params["key"] = self.api_key

        try:
            response = await self.client.get(
                self.url, params=params, timeout=self.timeout_seconds
            )
            response.raise_for_status()
            data = response.json()
            results = data.get("results") or []
            coordinates = [
                (
                    float(row["geometry"]["location"]["lat"]),
                    float(row["geometry"]["location"]["lng"]),
                )
                for row in results
            ]
        except (httpx.HTTPError, ValueError, KeyError, TypeError, AttributeError) as exc:
            logger.warning(
                "geocode.failed",
                extra={"country": country, "city": city, "error_type": type(exc).__name__},
            )
            raise LookupFailureError(
                code="geocode_unavailable",
                message=f"Cannot geocode {city}, {country}",
            ) from exc

        logger.info(
            "geocode.done",
            extra={
                "country": country,
                "city": city,
                "status": data.get("status"),
                "results": len(coordinates),
            },
        )
        return coordinates
