"""Request context middleware: X-Request-Id plus a per-request log line.

Endpoint tokens travel in the URL path, so the path is logged with the
token segment replaced.
"""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger()


def redact_path(path: str) -> str:
    """``/getCurrency/<token>`` -> ``/getCurrency/***``."""
    parts = path.split("/")
    if len(parts) > 2 and parts[2]:
        parts[2] = "***"
    return "/".join(parts)


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Ensure every request has a unique X-Request-Id header and one access log entry."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get("X-Request-Id", str(uuid.uuid4()))
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        started = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "request_completed",
            method=request.method,
            path=redact_path(request.url.path),
            status=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )

        response.headers["X-Request-Id"] = request_id
        return response
