"""
HTTP middleware: request logging, security headers, body size limit, suspicious payload
detection and the general per-client rate limit.

Pure ASGI classes except request logging, so request bodies can be inspected and replayed
without consuming them.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from app.api.errors import error_response
from app.core.observability import RequestMeta, SecurityLogger, find_suspicious_patterns
from app.core.rate_limit import FixedWindowRateLimiter, get_client_ip

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains; preload",
    "Content-Security-Policy": (
        "default-src 'self'; style-src 'self' 'unsafe-inline'; "
        "script-src 'self'; img-src 'self' data: https:"
    ),
    "Referrer-Policy": "no-referrer",
}

# Paths never rate limited (health checks and API docs).
RATE_LIMIT_EXCLUDED_PATHS = frozenset({"/health", "/docs", "/redoc", "/openapi.json"})


def request_meta(request: Request) -> RequestMeta:
    return RequestMeta(
        path=request.url.path,
        method=request.method,
        ip=get_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every request with method, path, client address, status and latency."""

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "%s %s",
            request.method,
            request.url.path,
            extra={
                "ip": get_client_ip(request),
                "user_agent": request.headers.get("user-agent"),
                "status_code": response.status_code,
                "latency_ms": round((time.perf_counter() - start) * 1000, 2),
            },
        )
        return response


class SecurityHeadersMiddleware:
    """Add hardening headers to every response and drop the Server header."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = [
                    (k, v) for k, v in message.get("headers", []) if k.lower() != b"server"
                ]
                existing = {k.lower() for k, _ in headers}
                for name, value in SECURITY_HEADERS.items():
                    key = name.lower().encode()
                    if key not in existing:
                        headers.append((key, value.encode()))
                message = {**message, "headers": headers}
            await send(message)

        await self.app(scope, receive, send_with_headers)


class BodyGuardMiddleware:
    """
    Reject bodies larger than max_body_bytes (413) and log suspicious payloads.

    The body is buffered once and replayed to the application unchanged.
    """

    def __init__(
        self, app: ASGIApp, max_body_bytes: int, security_log: SecurityLogger
    ) -> None:
        self.app = app
        self.max_body_bytes = max_body_bytes
        self.security_log = security_log

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope.get("method") in ("GET", "HEAD", "OPTIONS"):
            await self.app(scope, receive, send)
            return

        request = Request(scope)
        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit():
            if int(content_length) > self.max_body_bytes:
                await self._too_large(request, scope, receive, send)
                return

        chunks: list[bytes] = []
        size = 0
        more_body = True
        while more_body:
            message = await receive()
            if message["type"] == "http.disconnect":
                return
            chunk = message.get("body", b"")
            size += len(chunk)
            if size > self.max_body_bytes:
                await self._too_large(request, scope, receive, send)
                return
            chunks.append(chunk)
            more_body = message.get("more_body", False)
        body = b"".join(chunks)

        patterns = find_suspicious_patterns(body)
        if patterns:
            self.security_log.suspicious_activity(request_meta(request), patterns)

        replayed = False

        async def replay() -> Message:
            nonlocal replayed
            if not replayed:
                replayed = True
                return {"type": "http.request", "body": body, "more_body": False}
            return await receive()

        await self.app(scope, replay, send)

    async def _too_large(
        self, request: Request, scope: Scope, receive: Receive, send: Send
    ) -> None:
        logger.warning(
            "Request body too large",
            extra={"path": request.url.path, "max_bytes": self.max_body_bytes},
        )
        response = error_response(
            413, f"Request body too large. Maximum size: {self.max_body_bytes} bytes"
        )
        await response(scope, receive, send)


class RateLimitMiddleware:
    """General limit for everything under the API prefix; adds X-RateLimit-* headers."""

    def __init__(
        self,
        app: ASGIApp,
        limiter: FixedWindowRateLimiter,
        prefix: str,
        security_log: SecurityLogger,
    ) -> None:
        self.app = app
        self.limiter = limiter
        self.prefix = prefix
        self.security_log = security_log

    def _applies_to(self, path: str) -> bool:
        if path in RATE_LIMIT_EXCLUDED_PATHS:
            return False
        return path == self.prefix or path.startswith(self.prefix + "/")

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or not self._applies_to(scope.get("path", "")):
            await self.app(scope, receive, send)
            return

        request = Request(scope)
        result = self.limiter.hit(f"ip:{get_client_ip(request)}")
        if not result.allowed:
            self.security_log.rate_limited(request_meta(request))
            response = error_response(
                429,
                self.limiter.message,
                headers={
                    "Retry-After": str(result.retry_after),
                    "X-RateLimit-Limit": str(result.limit),
                    "X-RateLimit-Remaining": "0",
                },
            )
            await response(scope, receive, send)
            return

        async def send_with_headers(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = list(message.get("headers", []))
                headers.append((b"x-ratelimit-limit", str(result.limit).encode()))
                headers.append((b"x-ratelimit-remaining", str(result.remaining).encode()))
                message = {**message, "headers": headers}
            await send(message)

        await self.app(scope, receive, send_with_headers)
