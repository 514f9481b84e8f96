"""HTTP middleware for request correlation.

Usage:
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request, Response

from taskboard.core.config import settings
from taskboard.core.logging import clear_request_id, set_request_id

logger = logging.getLogger(__name__)

DURATION_HEADER = "X-Request-Duration-ms"


async def request_id_middleware(request: Request, call_next) -> Response:
    """Tag every request/response pair with a correlation id.

    The id comes from the configured header (``X-Request-ID`` by default) or
    is generated as a UUID. It lives in a context variable for the duration
    of the request, so every log line emitted while handling it carries the
    same ``request_id``, and is echoed back in the response together with the
    handling time in ``X-Request-Duration-ms``.
    """
    header_name = settings.log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    set_request_id(request_id)
    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "http.request",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )
    finally:
        clear_request_id()

    response.headers[header_name] = request_id
    response.headers.setdefault(DURATION_HEADER, f"{duration_ms:.2f}")
    return response
