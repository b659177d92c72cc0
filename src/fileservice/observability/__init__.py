"""Observability module for the File Service API.

JSON structured logging with request and correlation IDs.
"""

from fileservice.observability.logging import (
    configure_logging,
    correlation_id_var,
    request_id_var,
    user_id_var,
)

__all__ = [
    "configure_logging",
    "correlation_id_var",
    "request_id_var",
    "user_id_var",
]
