"""Settings for the weather service, one BaseSettings class per concern.

Each class reads its own prefixed environment variables (WEATHER_, GEO_,
CACHE_, LOG_, APP_). APP_ENV selects an optional .env.{environment} file
(development, testing, staging, production) that is loaded into the
environment first.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Load .env file early to populate os.environ before creating nested settings
# This is necessary because Pydantic nested BaseSettings don't inherit env_file
if _env_file and os.getenv("TESTING") != "true":
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


class WeatherSettings(BaseSettings):
    """Weather provider configuration and its call budget."""

    provider: str = Field(
        "wunderground",
        description="Weather provider name",
    )
    api_key: str | None = Field(
        None,
        description="Weather Underground API key, sent as a URL path segment",
    )
    base_url: str = Field(
        "http://api.wunderground.com/api",
        description="Provider API root; the key is appended as a path segment",
    )
    lang: str = Field(
        "EN",
        description="Language code for descriptions and forecast text",
    )
    timeout_seconds: float = Field(
        10.0,
        description="Per-request timeout in seconds",
        gt=0,
    )
    max_hits: int = Field(
        1,
        description="Maximum provider calls per window",
        ge=1,
    )
    window_seconds: float = Field(
        180,
        description="Rate limit window for the provider, in seconds",
        gt=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="WEATHER_",
        case_sensitive=False,
    )


class GeoSettings(BaseSettings):
    """Geolocation (by IP) and geocoding (by place name) providers."""

    ipinfo_url: str = Field(
        "http://ipinfo.io",
        description="ipinfo.io API root",
    )
    ipinfo_token: str | None = Field(
        None,
        description="Optional ipinfo.io access token",
    )
    geocode_url: str = Field(
        "https://maps.googleapis.com/maps/api/geocode/json",
        description="Google Maps geocoding endpoint",
    )
    geocode_api_key: str | None = Field(
        None,
        description="Optional Google Maps API key",
    )
    timeout_seconds: float = Field(
        10.0,
        description="Per-request timeout in seconds",
        gt=0,
    )
    maps_max_hits: int = Field(
        1,
        description="Maximum geocoding calls per window",
        ge=1,
    )
    maps_window_seconds: float = Field(
        60,
        description="Rate limit window for geocoding, in seconds",
        gt=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="GEO_",
        case_sensitive=False,
    )


class CacheSettings(BaseSettings):
    """On-disk snapshot cache, limiter state and mirrored icons."""

    directory: str = Field(
        "resp",
        description="Directory holding one snapshot file per cache key",
    )
    max_age_seconds: float = Field(
        3600,
        description="Snapshots older than this are treated as absent",
        gt=0,
    )
    state_dir: str = Field(
        ".",
        description="Directory holding persisted rate limiter state (ts-*.json)",
    )
    static_dir: str = Field(
        "static",
        description="Directory where mirrored icons are written",
    )
    static_url_prefix: str = Field(
        "/static",
        description="URL prefix under which static_dir is served",
    )
    icon_placeholder: str = Field(
        "/static/empty.png",
        description="Icon reference used when an icon URL cannot be parsed",
    )

    model_config = SettingsConfigDict(
        env_prefix="CACHE_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="json or plain")
    output: str = Field(
        "stdout",
        description="stdout, file, or both",
    )
    file_path: str | None = Field(
        "logs/ipweather.log",
        description="Log file path when output includes file",
    )
    max_bytes: int | None = Field(
        10_000_000,
        description="Rotate the log file past this size (None disables rotation)",
    )
    backup_count: int = Field(5, description="Rotated files to keep")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header carrying the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    host: str = Field("0.0.0.0", description="Bind address")
    port: int = Field(8001, description="Bind port")
    trusted_proxies: str = Field(
        "127.0.0.1",
        description="Comma-separated peers whose real_ip_header is trusted",
    )
    real_ip_header: str = Field(
        "X-Real-IP",
        description="Header set by the reverse proxy with the requesting IP",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """All settings, grouped by concern (settings.weather, settings.cache, ...)."""

    app_env: str = APP_ENV
    weather: WeatherSettings = Field(default_factory=WeatherSettings)
    geo: GeoSettings = Field(default_factory=GeoSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    log: LogSettings = Field(default_factory=LogSettings)
    app: AppSettings = Field(default_factory=AppSettings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
settings = Settings()
