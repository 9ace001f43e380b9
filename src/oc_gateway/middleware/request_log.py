"""Request logging middleware.

Assigns each request an id (reusing a well-formed inbound ``X-Request-ID``),
stores it on ``request.state`` for the ApiResponse envelope, echoes it in the
response header and writes one access-log line:

    INFO [PATCH] /api/v1/orders/ord_123/status → 200 (12ms) req_a1b2c3d4e5f6
"""

import logging
import re
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("oc.request")

REQUEST_ID_HEADER = "X-Request-ID"
_INBOUND_ID = re.compile(r"^[A-Za-z0-9_.-]{8,64}$")


def _request_id(request: Request) -> str:
    inbound = request.headers.get(REQUEST_ID_HEADER, "")
    if _INBOUND_ID.match(inbound):
        return inbound
    return f"req_{uuid.uuid4().hex[:12]}"


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = _request_id(request)
        request.state.request_id = request_id

        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "[%s] %s → unhandled error %s", request.method, request.url.path, request_id
            )
            raise
        elapsed_ms = (time.perf_counter() - start) * 1000

        response.headers[REQUEST_ID_HEADER] = request_id
        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "[%s] %s → %d (%.0fms) %s",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            request_id,
        )
        return response
