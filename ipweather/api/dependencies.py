"""FastAPI dependencies shared by the routes."""

from __future__ import annotations

import logging

from fastapi import Request

from ipweather.core.errors import MalformedRequestError
from ipweather.services.weather_fetcher import WeatherFetcher

logger = logging.getLogger(__name__)


def parse_trusted_proxies(value: str | None) -> set[str]:
    """Parse a comma-separated list of proxy addresses.

    Examples:
        >>> sorted(parse_trusted_proxies("127.0.0.1, ::1"))
        ['127.0.0.1', '::1']
        >>> parse_trusted_proxies("")
        set()
    """
    if not value:
        return set()
    return {item.strip() for item in value.split(",") if item.strip()}


def get_weather_fetcher(request: Request) -> WeatherFetcher:
    """Return the fetcher built by the app factory."""
    return request.app.state.weather_fetcher


def get_client_identity(request: Request) -> str:
    """Identify the requester by IP address.

    Behind a trusted reverse proxy (nginx on localhost) the peer address is
    the proxy's, so the real client IP is read from the configured header.

    Raises:
        MalformedRequestError: If no address can be determined.
    """
    peer = request.client.host if request.client else ""
    app_settings = request.app.state.settings.app
    if peer in parse_trusted_proxies(app_settings.trusted_proxies):
        forwarded = request.headers.get(app_settings.real_ip_header, "").strip()
        if forwarded:
            return forwarded
    if not peer:
        logger.warning("identity.missing", extra={"request_path": request.url.path})
        raise MalformedRequestError(
            code="missing_client_identity",
            message="Could not determine the client address",
        )
    return peer
