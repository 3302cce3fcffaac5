"""Weather adapter layer - abstracts over weather providers."""

from ipweather.adapters.weather.base import AbstractWeatherClient
from ipweather.adapters.weather.factory import create_weather_client
from ipweather.adapters.weather.wunderground import WundergroundClient

__all__ = [
    "AbstractWeatherClient",
    "WundergroundClient",
    "create_weather_client",
]
