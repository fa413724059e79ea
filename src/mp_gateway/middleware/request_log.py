"""Per-request access log for the marketplace API.

Each request gets an ID on request.state (echoed in the X-Request-ID header
and in error envelopes). Client errors log at WARNING, server errors at ERROR.

    [POST] /api/v1/marketplace/bids sender=stars1abc → 201 (3ms) req_a1b2c3d4e5f6
"""

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("mp.request")


def _level(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = f"req_{uuid.uuid4().hex[:12]}"
        request.state.request_id = request_id

        started = time.perf_counter()
        response = await call_next(request)
        took_ms = (time.perf_counter() - started) * 1000

        response.headers["X-Request-ID"] = request_id
        logger.log(
            _level(response.status_code),
            "[%s] %s sender=%s → %d (%.0fms) %s",
            request.method,
            request.url.path,
            request.headers.get("x-sender", "-"),
            response.status_code,
            took_ms,
            request_id,
        )
        return response
