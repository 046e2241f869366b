"""
Middleware module for FastAPI application.
"""

from app.middleware.security import (
    SecurityHeadersMiddleware,
    RequestSizeLimitMiddleware,
    RateLimitMiddleware,
    RequestLoggingMiddleware,
    get_request_size_limit,
    get_rate_limits,
)

__all__ = [
    "SecurityHeadersMiddleware",
    "RequestSizeLimitMiddleware",
    "RateLimitMiddleware",
    "RequestLoggingMiddleware",
    "get_request_size_limit",
    "get_rate_limits",
]
