"""Security façade for rate limiting and the headers middleware."""

from nomasoft.middleware.security import SecurityHeadersMiddleware  # noqa: F401

from .rate_limit import (  # noqa: F401
    CONTACT_CONFIG_LIMIT,
    CONTACT_SUBMIT_LIMIT,
    limiter,
)

__all__ = [
    "CONTACT_CONFIG_LIMIT",
    "CONTACT_SUBMIT_LIMIT",
    "SecurityHeadersMiddleware",
    "limiter",
]
