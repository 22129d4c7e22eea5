"""
Middleware configuration for the application.
Includes Correlation ID setup, request logging, security headers,
HTTPS enforcement and request body size limits.
"""

import time
from typing import Callable

import structlog
from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import Request, Response, status
from fastapi.responses import RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware

from securepay.config import Settings
from securepay.core.exceptions import error_response

logger = structlog.get_logger(__name__)


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs one line per request with status, timing and the caller's user id."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        started = time.perf_counter()
        log = logger.bind(
            method=request.method,
            path=request.url.path,
            client_ip=request.client.host if request.client else "unknown",
        )

        try:
            response = await call_next(request)
        except Exception:
            log.exception("Request failed", process_time_ms=_elapsed_ms(started))
            raise

        # Set by the auth dependency on authenticated routes
        principal = getattr(request.state, "principal", None) or {}
        log.info(
            "Request completed",
            status_code=response.status_code,
            user_id=principal.get("id"),
            process_time_ms=_elapsed_ms(started),
        )
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds hardening headers to every response."""

    def __init__(self, app, hsts: bool = False):
        super().__init__(app)
        self.hsts = hsts

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "no-referrer"
        if request.url.path.startswith("/api/"):
            response.headers["Cache-Control"] = "no-store, max-age=0"
        if self.hsts:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains; preload"
        return response


class HTTPSRedirectMiddleware(BaseHTTPMiddleware):
    """Redirects plain HTTP requests seen by the reverse proxy to HTTPS."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        forwarded_proto = request.headers.get("x-forwarded-proto")
        if forwarded_proto and forwarded_proto != "https":
            url = request.url.replace(scheme="https")
            return RedirectResponse(str(url), status_code=status.HTTP_301_MOVED_PERMANENTLY)
        return await call_next(request)


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    """Rejects requests whose declared Content-Length exceeds the limit."""

    def __init__(self, app, max_bytes: int):
        super().__init__(app)
        self.max_bytes = max_bytes

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        content_length = request.headers.get("content-length")
        if content_length is not None:
            try:
                declared = int(content_length)
            except ValueError:
                return error_response(status.HTTP_400_BAD_REQUEST, "Invalid Content-Length header")
            if declared > self.max_bytes:
                return error_response(status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, "Request body too large")
        return await call_next(request)


def setup_middleware(app, settings: Settings):
    """Setup all middleware for the application.

    Starlette runs the last added middleware first, so they are added
    innermost first.
    """
    app.add_middleware(SecurityHeadersMiddleware, hsts=settings.is_production)
    app.add_middleware(BodySizeLimitMiddleware, max_bytes=settings.JSON_BODY_LIMIT)

    if settings.is_production:
        app.add_middleware(HTTPSRedirectMiddleware)

    app.add_middleware(RequestLoggingMiddleware)

    # Correlation ID must wrap everything so the id is bound for all logs
    app.add_middleware(
        CorrelationIdMiddleware,
        header_name="X-Request-ID",
        update_request_header=True,
    )
