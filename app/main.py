"""FastAPI application entrypoint. No business logic; only wiring and middleware."""

from dotenv import load_dotenv

load_dotenv()

import logging
import time
from datetime import UTC, datetime
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse

from app.api import health
from app.api import router as api_router
from app.api.deps import LOGIN_LIMITER, REGISTER_LIMITER
from app.api.errors import register_exception_handlers
from app.api.middleware import (
    BodyGuardMiddleware,
    RateLimitMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
)
from app.core.config import Settings, get_settings
from app.core.observability import SecurityLogger, configure_logging
from app.core.rate_limit import FixedWindowRateLimiter

APP_TITLE = "Accounts API"
APP_VERSION = "0.1.0"
LANDING_PAGE = Path(__file__).resolve().parent / "static" / "index.html"

logger = logging.getLogger(__name__)


def _build_rate_limiters(settings: Settings) -> dict[str, FixedWindowRateLimiter]:
    return {
        LOGIN_LIMITER: FixedWindowRateLimiter(
            settings.LOGIN_RATE_LIMIT_MAX,
            settings.LOGIN_RATE_LIMIT_WINDOW_SECONDS,
            "Too many authentication attempts, please try again later.",
        ),
        REGISTER_LIMITER: FixedWindowRateLimiter(
            settings.REGISTER_RATE_LIMIT_MAX,
            settings.REGISTER_RATE_LIMIT_WINDOW_SECONDS,
            "Too many registration attempts, please try again later.",
        ),
    }


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application: settings, security logger, limiters, middleware, routes."""
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)
    if settings.JWT_SECRET is None:
        logger.warning("JWT_SECRET is not set; login and registration will fail until it is")

    app = FastAPI(
        title=APP_TITLE,
        version=APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings
    app.state.started_at = time.monotonic()
    app.state.security_logger = SecurityLogger(logging.getLogger("app.security"))
    app.state.rate_limiters = _build_rate_limiters(settings)

    register_exception_handlers(app)

    # Added innermost first; RequestLoggingMiddleware ends up outermost.
    app.add_middleware(
        BodyGuardMiddleware,
        max_body_bytes=settings.MAX_BODY_BYTES,
        security_log=app.state.security_logger,
    )
    if settings.RATE_LIMIT_ENABLED:
        app.add_middleware(
            RateLimitMiddleware,
            limiter=FixedWindowRateLimiter(
                settings.RATE_LIMIT_MAX_REQUESTS,
                settings.RATE_LIMIT_WINDOW_SECONDS,
                "Too many requests from this IP, please try again later.",
            ),
            prefix=settings.API_PREFIX,
            security_log=app.state.security_logger,
        )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.APP_ENV == "dev" else settings.CORS_ORIGINS,
        allow_credentials=settings.APP_ENV != "dev",
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(api_router, prefix=settings.API_PREFIX)
    app.include_router(health.router, prefix="/health", tags=["health"])

    @app.get("/", include_in_schema=False)
    def root():
        """Landing page; JSON description when the page is not packaged."""
        if LANDING_PAGE.is_file():
            return HTMLResponse(LANDING_PAGE.read_text(encoding="utf-8"))
        return JSONResponse(
            {
                "success": True,
                "data": {
                    "message": APP_TITLE,
                    "version": APP_VERSION,
                    "timestamp": datetime.now(UTC).isoformat(),
                },
            }
        )

    return app


app = create_app()
