"""Factory pattern for creating weather client instances."""

import httpx

from ipweather.adapters.weather.base import AbstractWeatherClient
from ipweather.adapters.weather.wunderground import WundergroundClient
from ipweather.core.config import WeatherSettings
from ipweather.core.errors import ValidationAppError


def create_weather_client(
    weather_settings: WeatherSettings,
    client: httpx.AsyncClient,
) -> AbstractWeatherClient:
    """Instantiate the configured weather client.

    Args:
        weather_settings: WEATHER_* settings.
        client: Shared async HTTP client.

    Returns:
        AbstractWeatherClient: Configured client instance.

    Raises:
        ValidationAppError: If provider-specific requirements are not met.
    """
    provider = weather_settings.provider.lower()

    if provider == "wunderground":
        if not weather_settings.api_key:
            raise ValidationAppError(
                code="weather_missing_api_key",
                message="Weather Underground requires the WEATHER_API_KEY environment variable",
            )
        return WundergroundClient(
            client=client,
            api_key=weather_settings.api_key,
            base_url=weather_settings.base_url,
            lang=weather_settings.lang,
            timeout_seconds=weather_settings.timeout_seconds,
        )

    raise ValidationAppError(
        code="weather_unknown_provider",
        message=f"Unknown weather provider: '{provider}'. Supported providers: wunderground",
    )
