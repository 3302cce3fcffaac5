"""Application factory for FastAPI app.

Centralizes app construction (collaborators, middleware, handlers, routers)
so tests can build isolated apps with their own settings.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

import httpx
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from ipweather.adapters.geo import GoogleGeocoder, IpInfoGeolocator
from ipweather.adapters.icons import IconMirror
from ipweather.adapters.weather import create_weather_client
from ipweather.api.routes import forecast_router, health_router
from ipweather.core.config import Settings, settings as default_settings
from ipweather.core.exception_handlers import setup_exception_handlers
from ipweather.core.logging import configure_logging
from ipweather.core.middleware import request_id_middleware
from ipweather.core.rate_limit import MAPS_API, WEATHER_API, RateLimiterRegistry, build_rate_limiters
from ipweather.services.location_resolver import LocationResolver
from ipweather.services.weather_fetcher import WeatherFetcher
from ipweather.utils.snapshot_cache import SnapshotCache

logger = logging.getLogger(__name__)


def build_weather_fetcher(
    cfg: Settings,
    client: httpx.AsyncClient,
    limiters: RateLimiterRegistry,
) -> WeatherFetcher:
    """Wire adapters, resolver and cache into a WeatherFetcher.

    Args:
        cfg: Resolved settings.
        client: Shared async HTTP client for every upstream.
        limiters: Registry holding the weather and maps limiters.

    Returns:
        WeatherFetcher ready to serve requests.
    """
    resolver = LocationResolver(
        geolocator=IpInfoGeolocator(
            client=client,
            base_url=cfg.geo.ipinfo_url,
            token=cfg.geo.ipinfo_token,
            timeout_seconds=cfg.geo.timeout_seconds,
        ),
        geocoder=GoogleGeocoder(
            client=client,
            url=cfg.geo.geocode_url,
            api_key=cfg.geo.geocode_api_key,
            timeout_seconds=cfg.geo.timeout_seconds,
        ),
        maps_limiter=limiters.get(MAPS_API),
    )
    icons = IconMirror(
        client=client,
        static_dir=cfg.cache.static_dir,
        url_prefix=cfg.cache.static_url_prefix,
        placeholder=cfg.cache.icon_placeholder,
        timeout_seconds=cfg.weather.timeout_seconds,
    )
    return WeatherFetcher(
        resolver=resolver,
        weather=create_weather_client(cfg.weather, client),
        weather_limiter=limiters.get(WEATHER_API),
        cache=SnapshotCache(cfg.cache.directory, max_age_seconds=cfg.cache.max_age_seconds),
        icons=icons,
    )


def create_app(cfg: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Limiter state is restored from disk at startup and written back at
    shutdown; uvicorn turns SIGINT/SIGTERM into that shutdown.

    Args:
        cfg: Settings to use; defaults to the global settings.

    Returns:
        Configured app with middleware, handlers, routers and static files.
    """
    cfg = cfg or default_settings

    # Logging first so subsequent init logs are formatted as desired
    configure_logging(cfg.log)

    client = httpx.AsyncClient(follow_redirects=True)
    limiters = build_rate_limiters(cfg)
    fetcher = build_weather_fetcher(cfg, client, limiters)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        limiters.load_all()
        logger.info("app.started", extra={"app_env": cfg.app_env})
        try:
            yield
        finally:
            limiters.save_all()
            await client.aclose()
            logger.info("app.stopped")

    app = FastAPI(
        title="ipweather",
        description=(
            "Current conditions and forecast for the requester's IP location "
            "or for /{country}/{city}, cached on disk for an hour."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = cfg
    app.state.rate_limiters = limiters
    app.state.weather_fetcher = fetcher

    app.middleware("http")(request_id_middleware)
    setup_exception_handlers(app)

    # Order matters: the place route matches any path, so it goes last
    app.include_router(health_router)
    static_dir = Path(cfg.cache.static_dir)
    static_dir.mkdir(parents=True, exist_ok=True)
    app.mount(cfg.cache.static_url_prefix, StaticFiles(directory=static_dir), name="static")
    app.include_router(forecast_router)

    return app
