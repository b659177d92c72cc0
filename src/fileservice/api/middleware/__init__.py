"""Middleware for the File Service API.

- Correlation context for request tracing
- Security headers (HSTS, X-Frame-Options, etc.)
"""

from fileservice.api.middleware.correlation import CorrelationMiddleware
from fileservice.api.middleware.security_headers import SecurityHeadersMiddleware

__all__ = [
    "CorrelationMiddleware",
    "SecurityHeadersMiddleware",
]
