"""
HTTP middleware for the feedback desk API.

- Security headers on every response
- Request body size cap (feedback forms carry JSON answers only)
- Per-client rate limits, stricter for endpoints that call Claude
- Request logging with credentials redacted

Authentication is not a middleware; routes depend on
app.api.deps.get_current_user, which verifies Supabase bearer tokens.
"""

import time
import logging
from typing import Callable, Deque, Dict, Tuple
from collections import defaultdict, deque

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.datastructures import Headers

from app.config import settings

logger = logging.getLogger(__name__)

UNTRACKED_PATHS = {"/", "/health", "/docs", "/redoc", "/openapi.json"}


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add OWASP recommended headers. HSTS only in production."""

    CSP = "; ".join([
        "default-src 'self'",
        "img-src 'self' data: https:",
        "style-src 'self' 'unsafe-inline'",
        "connect-src 'self'",
        "frame-ancestors 'none'",
        "base-uri 'self'",
    ])

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Content-Security-Policy"] = self.CSP
        response.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"

        if settings.ENVIRONMENT == "production":
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject bodies whose Content-Length exceeds max_size bytes."""

    def __init__(self, app, max_size: int = 1024 * 1024):
        super().__init__(app)
        self.max_size = max_size

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        content_length = request.headers.get("content-length")

        if content_length and content_length.isdigit() and int(content_length) > self.max_size:
            logger.warning(
                f"Rejected {content_length} byte body on {request.url.path} "
                f"from {_client_ip(request)}"
            )
            return JSONResponse(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                content={"detail": f"Request body too large. Maximum size: {self.max_size} bytes"}
            )

        return await call_next(request)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Sliding one-minute window per client IP, kept in memory.

    Requests that reach Claude (feedback analysis, ticket creation with
    title suggestion) count against the strict limit; everything else
    against the general one.
    """

    WINDOW_SECONDS = 60
    STRICT_PREFIXES: Tuple[str, ...] = ("/api/ai/",)
    STRICT_ROUTES = {("POST", "/api/tickets")}

    def __init__(
        self,
        app,
        strict_requests_per_minute: int = 10,
        general_requests_per_minute: int = 100,
    ):
        super().__init__(app)
        self.limits = {
            "strict": strict_requests_per_minute,
            "general": general_requests_per_minute,
        }
        # {(ip, bucket): timestamps}
        self.history: Dict[Tuple[str, str], Deque[float]] = defaultdict(deque)

    def bucket_for(self, method: str, path: str) -> str:
        if (method, path.rstrip("/")) in self.STRICT_ROUTES:
            return "strict"
        if path.startswith(self.STRICT_PREFIXES):
            return "strict"
        return "general"

    def prune(self, now: float) -> None:
        """Drop timestamps outside the window, and keys left with none."""
        for key in list(self.history):
            timestamps = self.history[key]
            while timestamps and now - timestamps[0] > self.WINDOW_SECONDS:
                timestamps.popleft()
            if not timestamps:
                del self.history[key]

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        if path in UNTRACKED_PATHS or request.method == "OPTIONS":
            return await call_next(request)

        bucket = self.bucket_for(request.method, path)
        limit = self.limits[bucket]
        key = (_client_ip(request), bucket)

        now = time.monotonic()
        self.prune(now)
        timestamps = self.history[key]

        if len(timestamps) >= limit:
            logger.warning(f"Rate limit exceeded for {key[0]} ({bucket}) on {path}")
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"detail": f"Rate limit exceeded. Maximum {limit} requests per minute."},
                headers={
                    "Retry-After": str(self.WINDOW_SECONDS),
                    "X-RateLimit-Limit": str(limit),
                    "X-RateLimit-Remaining": "0",
                }
            )

        timestamps.append(now)
        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(limit)
        response.headers["X-RateLimit-Remaining"] = str(max(0, limit - len(timestamps)))
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log method, path, status and duration. Credentials are never logged."""

    SENSITIVE_HEADERS = {"authorization", "apikey", "cookie", "x-api-key"}

    def sanitize_headers(self, headers: Headers) -> Dict[str, str]:
        return {
            key: "***REDACTED***" if key.lower() in self.SENSITIVE_HEADERS else value
            for key, value in headers.items()
        }

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        if path in UNTRACKED_PATHS:
            return await call_next(request)

        start = time.time()
        method = request.method
        logger.info(f"Request: {method} {path} from {_client_ip(request)}")
        logger.debug(f"Headers: {self.sanitize_headers(request.headers)}")

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.time() - start) * 1000
            logger.error(f"Error: {method} {path} -> {type(e).__name__}: {e} ({duration_ms:.2f}ms)")
            raise

        duration_ms = (time.time() - start) * 1000
        logger.info(f"Response: {method} {path} -> {response.status_code} ({duration_ms:.2f}ms)")
        response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"
        return response


def get_request_size_limit() -> int:
    return settings.MAX_REQUEST_SIZE


def get_rate_limits() -> Dict[str, int]:
    """Per-minute limits from settings, keyed for RateLimitMiddleware."""
    return {
        "strict_requests_per_minute": settings.AI_RATE_LIMIT,
        "general_requests_per_minute": settings.GENERAL_RATE_LIMIT,
    }
