"""Request logging middleware.

Logs every HTTP request with method, path, status code and latency, tagged
with a short request ID. An incoming X-Request-ID header is reused so chain
followers and oracle feeders can correlate their calls; otherwise one is
generated. The id is injected into request.state for ApiResponse and echoed
back in the X-Request-ID response header.

Log format:
    INFO [POST] /api/v1/markets/3/claim → 200 (12ms) req_a1b2c3d4e5f6
"""

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("pm.request")

_MAX_INCOMING_ID_LEN = 64


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        incoming = request.headers.get("x-request-id")
        if incoming and len(incoming) <= _MAX_INCOMING_ID_LEN:
            request.state.request_id = incoming
        else:
            request.state.request_id = f"req_{uuid.uuid4().hex[:12]}"

        start = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        response.headers["X-Request-ID"] = request.state.request_id
        logger.info(
            "[%s] %s → %d (%.0fms) %s",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            request.state.request_id,
        )
        return response
