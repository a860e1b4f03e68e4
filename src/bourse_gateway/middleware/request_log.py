"""Access log for the Bourse API.

One line per request on the "bourse.request" logger. A caller-supplied
x-request-id is kept (so a buyer UI can correlate its optimistic update with
the ledger's answer); otherwise one is generated. The id goes on
request.state for ApiResponse and back out as a response header.

    INFO  POST /api/v1/orders 201 4ms req_a1b2c3d4e5f6
    WARN  POST /api/v1/orders 409 2ms req_...        (4xx business rejections)
    ERROR GET  /api/v1/admin/stats 503 1203ms req_... (5xx)
"""

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("bourse.request")

REQUEST_ID_HEADER = "x-request-id"
_QUIET_PATHS = frozenset({"/health"})


def _level_for(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or f"req_{uuid.uuid4().hex[:12]}"
        request.state.request_id = request_id

        started = time.perf_counter()
        response = await call_next(request)
        took_ms = (time.perf_counter() - started) * 1000
        response.headers[REQUEST_ID_HEADER] = request_id

        path = request.url.path
        level = logging.DEBUG if path in _QUIET_PATHS else _level_for(response.status_code)
        logger.log(
            level, "%s %s %d %.0fms %s",
            request.method, path, response.status_code, took_ms, request_id,
        )
        return response
