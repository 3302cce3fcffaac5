"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It sets TESTING so no .env file is loaded, and points every on-disk
location at a throwaway directory.
"""

import os
import tempfile

# CRITICAL: Set this before any imports that might load settings
os.environ["TESTING"] = "true"

_scratch = tempfile.mkdtemp(prefix="ipweather-tests-")

os.environ.setdefault("WEATHER_API_KEY", "test-wu-key")
os.environ.setdefault("CACHE_DIRECTORY", os.path.join(_scratch, "resp"))
os.environ.setdefault("CACHE_STATE_DIR", os.path.join(_scratch, "state"))
os.environ.setdefault("CACHE_STATIC_DIR", os.path.join(_scratch, "static"))
os.environ.setdefault("LOG_OUTPUT", "stdout")

import pytest  # noqa: E402

from ipweather.schemas.weather import WeatherSnapshot  # noqa: E402


WU_PAYLOAD = {
    "response": {"version": "0.1"},
    "current_observation": {
        "temp_c": 21.5,
        "feelslike_c": "21",
        "relative_humidity": "65%",
        "wind_kph": 12.9,
        "icon_url": "http://icons.wxug.com/i/c/k/partlycloudy.gif",
        "observation_time": "Last Updated on June 1, 4:53 PM PDT",
        "weather": "Partly Cloudy",
        "ob_url": "http://www.wunderground.com/cgi-bin/findweather/getForecast?query=37.386,-122.084",
        "display_location": {
            "country": "US",
            "latitude": "37.38600159",
            "longitude": "-122.08380127",
            "elevation": "123.4567",
            "full": "Mountain View, CA",
        },
    },
    "forecast": {
        "txt_forecast": {
            "date": "4:00 PM PDT",
            "forecastday": [
                {
                    "icon_url": "http://icons.wxug.com/i/c/k/clear.gif",
                    "title": "Monday",
                    "fcttext_metric": "Sunny. High 24C.",
                },
                {
                    "icon_url": "http://icons.wxug.com/i/c/k/nt_clear.gif",
                    "title": "Monday Night",
                    "fcttext_metric": "Clear. Low 12C.",
                },
            ],
        }
    },
}


@pytest.fixture
def wu_payload() -> dict:
    """A Weather Underground conditions/forecast response body."""
    import copy

    return copy.deepcopy(WU_PAYLOAD)


@pytest.fixture
def sample_snapshot() -> WeatherSnapshot:
    """A normalized snapshot, as it would be stored in the cache."""
    return WeatherSnapshot.model_validate(
        {
            "current": {
                "temperature_c": 18.0,
                "feels_like_c": "17",
                "humidity": "70%",
                "wind_kph": 5.0,
                "description": "Overcast",
                "observation_time": "Last Updated on June 1, 9:00 AM CEST",
                "icon": "/static/cloudy.gif",
                "observation_url": "",
                "location": {
                    "country": "FR",
                    "name": "Paris, France",
                    "latitude": "48.86",
                    "longitude": "2.35",
                    "elevation": "35.00",
                },
            },
            "forecast_date": "9:00 AM CEST",
            "forecast": [{"icon": "/static/rain.gif", "title": "Monday", "text": "Rain."}],
        }
    )
