"""Request ID and access logging.

Learn: Every request gets an id, either the caller's X-Request-ID (so a
client or proxy can correlate its own logs) or a fresh UUID. The id is
bound to structlog's contextvars, so token and todo events logged while
handling the request carry it, and it is echoed back in the response.
One ``request.completed`` event per request records status and latency;
rejected logins and bare 401s show up there too.
"""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

logger = structlog.get_logger()


class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        started = time.perf_counter()
        try:
            response: Response = await call_next(request)
        except Exception:
            logger.exception(
                "request.failed", method=request.method, path=request.url.path
            )
            raise
        logger.info(
            "request.completed",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
