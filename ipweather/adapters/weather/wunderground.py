"""Weather Underground conditions + forecast adapter."""

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from ipweather.adapters.weather.base import AbstractWeatherClient
from ipweather.core.errors import UpstreamAppError
from ipweather.schemas.weather import (
    CurrentConditions,
    ForecastDay,
    ObservationLocation,
    WeatherSnapshot,
)

logger = logging.getLogger(__name__)


def _text(value: Any) -> str:
    """Coerce a loosely typed upstream field to a string."""
    if value is None:
        return ""
    return str(value)


def parse_snapshot(data: dict[str, Any]) -> WeatherSnapshot:
    """Map a Weather Underground conditions/forecast payload to a snapshot.

    Raises:
        UpstreamAppError: If the payload reports an error or lacks
            current_observation.
        ValidationError: If a typed field cannot be coerced.
    """
    error = (data.get("response") or {}).get("error")
    if error:
        raise UpstreamAppError(
            code="weather_provider_error",
            message=f"Weather provider error: {error.get('description') or error.get('type')}",
            details={"context": {"type": error.get("type")}},
        )

    cur = data.get("current_observation")
    if not cur:
        raise UpstreamAppError(
            code="weather_missing_observation",
            message="Weather provider returned no current observation",
        )

    display = cur.get("display_location") or {}
    txt_forecast = (data.get("forecast") or {}).get("txt_forecast") or {}

    return WeatherSnapshot(
        current=CurrentConditions(
            temperature_c=cur.get("temp_c"),
            feels_like_c=_text(cur.get("feelslike_c")),
            humidity=_text(cur.get("relative_humidity")),
            wind_kph=cur.get("wind_kph"),
            description=_text(cur.get("weather")),
            observation_time=_text(cur.get("observation_time")),
            icon=_text(cur.get("icon_url")),
            observation_url=_text(cur.get("ob_url")),
            location=ObservationLocation(
                country=_text(display.get("country")),
                name=_text(display.get("full")),
                latitude=_text(display.get("latitude")),
                longitude=_text(display.get("longitude")),
                elevation=_text(display.get("elevation")),
            ),
        ),
        forecast_date=_text(txt_forecast.get("date")),
        forecast=[
            ForecastDay(
                icon=_text(day.get("icon_url")),
                title=_text(day.get("title")),
                text=_text(day.get("fcttext_metric")),
            )
            for day in txt_forecast.get("forecastday") or []
        ],
    )


class WundergroundClient(AbstractWeatherClient):
    """Client for the Weather Underground conditions/forecast endpoint.

    The API key is a path segment of every URL, so URLs are never logged.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str,
        base_url: str = "http://api.wunderground.com/api",
        lang: str = "EN",
        timeout_seconds: float = 10.0,
    ) -> None:
        """Initialize the client.

        Args:
            client: Shared async HTTP client.
            api_key: Weather Underground API key.
            base_url: API root, without the key.
            lang: Language code for descriptions.
            timeout_seconds: Timeout for each request.
        """
        self.client = client
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.lang = lang
        self.timeout_seconds = timeout_seconds

    def _query_url(self, query: str) -> str:
        return f"{self.base_url}/{self.api_key}/conditions/forecast/lang:{self.lang}/q/{query}"

    async def fetch_by_coords(self, latitude: float, longitude: float) -> WeatherSnapshot:
        logger.info(
            "weather.request",
            extra={"mode": "coords", "latitude": latitude, "longitude": longitude},
        )
        return await self._fetch(self._query_url(f"{latitude:.4f},{longitude:.4f}.json"), None)

    async def fetch_by_identity(self, identity: str) -> WeatherSnapshot:
        logger.info("weather.request", extra={"mode": "autoip", "identity": identity})
        return await self._fetch(self._query_url("autoip.json"), {"geo_ip": identity})

    async def _fetch(self, url: str, params: dict[str, str] | None) -> WeatherSnapshot:
        try:
            response = await self.client.get(url, params=params, timeout=self.timeout_seconds)
        except httpx.HTTPError as exc:
            logger.error("weather.network_error", extra={"error_type": type(exc).__name__})
            raise UpstreamAppError(
                code="weather_unreachable",
                message="Weather provider is unreachable",
            ) from exc

        if not response.is_success:
            logger.error("weather.http_error", extra={"status": response.status_code})
            raise UpstreamAppError(
                code="weather_http_error",
                message=f"Weather provider answered HTTP {response.status_code}",
                details={"http_status": response.status_code},
            )

        try:
            data = response.json()
            if not isinstance(data, dict):
                raise ValueError("payload is not a JSON object")
            return parse_snapshot(data)
        except (ValueError, AttributeError, ValidationError) as exc:
            logger.error(
                "weather.decode_error",
                extra={"error_type": type(exc).__name__, "body_preview": response.text[:200]},
            )
            raise UpstreamAppError(
                code="weather_decode_error",
                message="Weather provider returned an unreadable response",
            ) from exc
