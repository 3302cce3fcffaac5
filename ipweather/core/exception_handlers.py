"""Exception handlers turning errors into the service's JSON error body.

Every error response has the shape

    {"error": {"code": ..., "message": ..., "request_id": ..., "details": ...}}

with status codes:
- MalformedRequestError / ValidationAppError -> 400
- NotFoundAppError -> 404
- BudgetExceededError -> 503 with Retry-After
- UpstreamAppError -> 503
- LookupFailureError / CacheIOError that escape the services -> 500
- anything else -> 500 with a generic message
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ipweather.core.errors import (
    AppError,
    BudgetExceededError,
    CacheIOError,
    LookupFailureError,
    NotFoundAppError,
    UpstreamAppError,
)
from ipweather.core.logging import get_request_id

logger = logging.getLogger(__name__)


def status_for(exc: AppError) -> int:
    """Map a domain error to its HTTP status code."""
    if isinstance(exc, (BudgetExceededError, UpstreamAppError)):
        return 503
    if isinstance(exc, (LookupFailureError, CacheIOError)):
        return 500
    if isinstance(exc, NotFoundAppError):
        return 404
    return 400


def _error_body(code: str, message: str, details: dict | None = None) -> dict:
    error = {"code": code, "message": message, "request_id": get_request_id()}
    if details:
        error["details"] = details
    return {"error": error}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render a domain error.

    Budget denials carry details["retry_after"] (seconds until the limiter
    window ends), which is echoed as a Retry-After header.

    Args:
        request: Incoming request.
        exc: AppError raised by a route or service.

    Returns:
        JSONResponse with the mapped status code.
    """
    status_code = status_for(exc)
    log = logger.error if status_code >= 500 else logger.warning
    log(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "status_code": status_code,
            "request_path": request.url.path,
        },
    )

    headers = None
    if isinstance(exc, BudgetExceededError) and exc.retry_after is not None:
        headers = {"Retry-After": str(exc.retry_after)}

    return JSONResponse(
        status_code=status_code,
        content=_error_body(exc.code, exc.message, exc.details),
        headers=headers,
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler; logs the failure and hides it from the client."""
    logger.error(
        "unhandled_exception",
        exc_info=exc,
        extra={
            "error_type": type(exc).__name__,
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )
    return JSONResponse(
        status_code=500,
        content=_error_body(
            "internal_server_error",
            "An unexpected error occurred. Please try again later.",
        ),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(Exception)(general_exception_handler)
