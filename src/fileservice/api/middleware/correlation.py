"""Request context middleware.

Binds request and correlation IDs to the logging context for the lifetime of
a request and writes one access log line per request. Azure-style
``x-ms-client-request-id`` headers are accepted as the request ID so that a
caller's ID flows through to our logs.
"""

from __future__ import annotations

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from fileservice.observability.logging import correlation_id_var, request_id_var, user_id_var

logger = logging.getLogger("fileservice.access")

REQUEST_ID_HEADERS = ("x-request-id", "x-ms-client-request-id")
CORRELATION_ID_HEADER = "x-correlation-id"

# Probes are polled constantly and would drown the access log
_QUIET_PATHS = frozenset({"/health", "/health/live", "/health/ready"})


def _first_header(request: Request, names: tuple[str, ...]) -> str | None:
    for name in names:
        value = request.headers.get(name)
        if value:
            return value
    return None


class CorrelationMiddleware(BaseHTTPMiddleware):
    """Propagate correlation context and log each request.

    Response headers:
    - x-request-id: the caller's request ID, or a generated UUID
    - x-correlation-id: passed through, defaulting to the request ID
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = _first_header(request, REQUEST_ID_HEADERS) or str(uuid.uuid4())
        correlation_id = request.headers.get(CORRELATION_ID_HEADER) or request_id

        tokens = (
            (request_id_var, request_id_var.set(request_id)),
            (correlation_id_var, correlation_id_var.set(correlation_id)),
            (user_id_var, user_id_var.set("")),
        )
        request.state.request_id = request_id
        request.state.correlation_id = correlation_id
        start = time.perf_counter()

        try:
            response = await call_next(request)
            response.headers["x-request-id"] = request_id
            response.headers[CORRELATION_ID_HEADER] = correlation_id

            if request.url.path not in _QUIET_PATHS:
                user = getattr(request.state, "user", None)
                logger.info(
                    f"{request.method} {request.url.path} -> {response.status_code}",
                    extra={
                        "method": request.method,
                        "path": request.url.path,
                        "status_code": response.status_code,
                        "duration_ms": round((time.perf_counter() - start) * 1000, 2),
                        "caller": getattr(user, "sub", None),
                    },
                )
            return response
        finally:
            for var, token in reversed(tokens):
                var.reset(token)
