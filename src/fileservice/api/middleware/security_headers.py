"""Security headers middleware.

Every response gets the OWASP baseline for a JSON API. Responses under the
SAS routes carry bearer-equivalent URLs, so they are additionally marked as
non-cacheable.
"""

from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

BASELINE_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
}

NO_STORE_HEADERS = {
    "Cache-Control": "no-store",
    "Pragma": "no-cache",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses.

    Args:
        app: The ASGI application
        enable_hsts: Add Strict-Transport-Security (only behind HTTPS)
        hsts_max_age: Max-age for HSTS in seconds
        no_store_prefixes: Path prefixes whose responses must never be cached
    """

    def __init__(
        self,
        app: ASGIApp,
        enable_hsts: bool = True,
        hsts_max_age: int = 31536000,
        no_store_prefixes: tuple[str, ...] = ("/v1/sas",),
    ) -> None:
        super().__init__(app)
        self._headers = dict(BASELINE_HEADERS)
        if enable_hsts:
            self._headers["Strict-Transport-Security"] = (
                f"max-age={hsts_max_age}; includeSubDomains"
            )
        self._no_store_prefixes = no_store_prefixes

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)

        response.headers.update(self._headers)
        if request.url.path.startswith(self._no_store_prefixes):
            response.headers.update(NO_STORE_HEADERS)

        return response
