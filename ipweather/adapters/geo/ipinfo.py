"""ipinfo.io IP geolocation adapter."""

import logging
from typing import Any

import httpx

from ipweather.adapters.geo.base import AbstractIdentityGeolocator
from ipweather.core.errors import LookupFailureError
from ipweather.schemas.weather import ResolvedLocation

logger = logging.getLogger(__name__)


def parse_loc(loc: Any) -> tuple[float, float]:
    """Parse ipinfo's "lat,lon" string.

    Raises:
        ValueError: If loc is not two comma-separated numbers.
    """
    parts = str(loc).split(",")
    if len(parts) != 2:
        raise ValueError(f"unexpected loc value: {loc!r}")
    return float(parts[0]), float(parts[1])


class IpInfoGeolocator(AbstractIdentityGeolocator):
    """Locate an IP address with the ipinfo.io JSON endpoint.

    Not rate limited: ipinfo is called once per cache miss on the identity
    path and its free tier is generous enough for that.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str = "http://ipinfo.io",
        token: str | None = None,
        timeout_seconds: float = 10.0,
    ) -> None:
        """Initialize the adapter.

        Args:
            client: Shared async HTTP client.
            base_url: ipinfo.io API root.
            token: Optional access token.
            timeout_seconds: Timeout for each lookup.
        """
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout_seconds = timeout_seconds

    async def lookup(self, identity: str) -> ResolvedLocation:
        params = {"token": self.token} if self.token else None
        try:
            response = await self.client.get(
                f"{self.base_url}/{identity}/json",
                params=params,
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.info(
                "geoip.lookup_failed",
                extra={"identity": identity, "error_type": type(exc).__name__},
            )
            raise LookupFailureError(
                code="geoip_unavailable",
                message=f"Cannot geolocate {identity}",
            ) from exc

        # Private and reserved addresses come back as {"ip": ..., "bogon": true}
        try:
            latitude, longitude = parse_loc(data.get("loc", ""))
        except (AttributeError, ValueError) as exc:
            logger.info("geoip.no_location", extra={"identity": identity})
            raise LookupFailureError(
                code="geoip_no_location",
                message=f"No location known for {identity}",
            ) from exc

        return ResolvedLocation(
            country_code=str(data.get("country") or ""),
            city=str(data.get("city") or ""),
            latitude=latitude,
            longitude=longitude,
        )
