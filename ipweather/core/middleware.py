"""Request correlation and access logging.

The correlation id comes from the configured request header (LOG_REQUEST_ID_HEADER)
or is generated, lives in a contextvar while the request is handled, and is
echoed on the response.
"""

from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request, Response

from ipweather.core.logging import clear_request_id, set_request_id

logger = logging.getLogger(__name__)


async def request_id_middleware(request: Request, call_next) -> Response:
    """Tag the request with a correlation id and log one access line for it.

    Returns:
        Response: The downstream response with the correlation id header and
            X-Request-Duration-ms added.
    """
    header_name = request.app.state.settings.log.request_id_header
    request_id = request.headers.get(header_name) or uuid.uuid4().hex
    set_request_id(request_id)
    started = time.perf_counter()
    try:
        response: Response = await call_next(request)
        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        logger.info(
            "request.completed",
            extra={
                "peer": request.client.host if request.client else None,
                "request_method": request.method,
                "request_path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": elapsed_ms,
            },
        )
    finally:
        clear_request_id()

    response.headers[header_name] = request_id
    response.headers["X-Request-Duration-ms"] = str(elapsed_ms)
    return response
