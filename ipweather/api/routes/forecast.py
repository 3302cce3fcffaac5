import logging

from fastapi import APIRouter, Depends

from ipweather.api.dependencies import get_client_identity, get_weather_fetcher
from ipweather.core.errors import MalformedRequestError, NotFoundAppError
from ipweather.schemas.weather import WeatherSnapshot
from ipweather.services.weather_fetcher import WeatherFetcher

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Forecast"])

# Paths crawlers request; never a place name
BOT_MARKERS = (".php", "xml", "html")


def reject_bots(path: str) -> None:
    if any(marker in path for marker in BOT_MARKERS):
        raise NotFoundAppError(code="not_found", message="Not Found")


def split_place(path: str) -> tuple[str, str]:
    """Split "country/city" into its two segments.

    Raises:
        MalformedRequestError: If path does not have exactly two segments.
    """
    segments = path.split("/")
    if len(segments) != 2 or not all(segments):
        logger.info("forecast.malformed_request", extra={"request_path": path})
        raise MalformedRequestError(
            code="malformed_request",
            message=f"Malformed request: /{path}",
            details={"path": f"/{path}", "segments": len(segments)},
        )
    return segments[0], segments[1]


@router.get("/", response_model=WeatherSnapshot)
async def forecast_for_requester(
    identity: str = Depends(get_client_identity),
    fetcher: WeatherFetcher = Depends(get_weather_fetcher),
) -> WeatherSnapshot:
    """Weather at the requester's own (IP-derived) location."""
    logger.info("forecast.by_identity", extra={"identity": identity})
    return await fetcher.by_identity(identity)


@router.get("/{place:path}", response_model=WeatherSnapshot)
async def forecast_for_place(
    place: str,
    fetcher: WeatherFetcher = Depends(get_weather_fetcher),
) -> WeatherSnapshot:
    """Weather for an explicit /country/city.

    Returns 400 for any other number of path segments and 503 when the
    location or the weather cannot be obtained within budget.
    """
    reject_bots(place)
    country, city = split_place(place)
    return await fetcher.by_place(country, city)
