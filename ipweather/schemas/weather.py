"""Pydantic schemas for resolved locations and weather snapshots."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field


class ResolvedLocation(BaseModel):
    """Approximate location of a requester, as reported by IP geolocation."""

    model_config = ConfigDict(frozen=True)

    country_code: str = Field("", description="ISO country code, e.g. 'US'.")
    city: str = Field("", description="City name.")
    latitude: float
    longitude: float


class ObservationLocation(BaseModel):
    """Where the observing station is, as reported by the provider."""

    country: str = ""
    name: str = Field("", description="Full display name, e.g. 'San Francisco, CA'.")
    latitude: str = Field(
        "", description="Two-decimal latitude string once normalized."
    )
    longitude: str = Field(
        "", description="Two-decimal longitude string once normalized."
    )
    elevation: str = Field(
        "", description="Two-decimal elevation string once normalized."
    )


class CurrentConditions(BaseModel):
    """Current observation at the resolved location."""

    temperature_c: float | None = None
    feels_like_c: str = ""
    humidity: str = Field("", description="Relative humidity, e.g. '65%'.")
    wind_kph: float | None = None
    description: str = Field("", description="Short description, e.g. 'Overcast'.")
    observation_time: str = ""
    icon: str = Field("", description="Icon reference (mirrored local path or remote URL).")
    observation_url: str = ""
    location: ObservationLocation = Field(default_factory=ObservationLocation)


class ForecastDay(BaseModel):
    """One entry of the text forecast."""

    icon: str = ""
    title: str = ""
    text: str = ""


class WeatherSnapshot(BaseModel):
    """Normalized current conditions plus text forecast."""

    current: CurrentConditions
    forecast_date: str = ""
    forecast: List[ForecastDay] = Field(default_factory=list)
