from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Request
from fastapi.responses import FileResponse, PlainTextResponse

from ipweather.core.errors import NotFoundAppError


router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness check; never touches an upstream or the cache.

    Returns:
        dict: A dictionary with a single "status" key set to "ok".
    """

    return {"status": "ok"}


@router.get("/robots.txt", response_class=PlainTextResponse)
def robots() -> str:
    """Disallow every path to crawlers."""

    return "User-agent: *\nDisallow: /\n"


@router.get("/favicon.ico", include_in_schema=False)
def favicon(request: Request) -> FileResponse:
    path = Path(request.app.state.settings.cache.static_dir) / "favicon.ico"
    if not path.is_file():
        raise NotFoundAppError(code="not_found", message="Not Found")
    return FileResponse(path)
