"""Request dependencies: settings, security logger, the access control gate and per-route rate limits."""

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session, defer

from app.api.middleware import request_meta
from app.core.config import Settings
from app.core.database import get_db
from app.core.errors import (
    ACCOUNT_INACTIVE,
    AUTH_REQUIRED,
    OWNERSHIP_REQUIRED,
    USER_NOT_FOUND,
    ForbiddenError,
    InvalidTokenError,
    NotFoundError,
    TokenExpiredError,
    TooManyRequestsError,
    UnauthorizedError,
)
from app.core.observability import RequestMeta, SecurityLogger
from app.core.rate_limit import FixedWindowRateLimiter, get_client_ip
from app.core.security import USER_ID_CLAIM, decode_access_token
from app.models.user import ROLE_ADMIN, User

security = HTTPBearer(auto_error=False)

LOGIN_LIMITER = "login"
REGISTER_LIMITER = "register"


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_security_logger(request: Request) -> SecurityLogger:
    return request.app.state.security_logger


def get_request_meta(request: Request) -> RequestMeta:
    return request_meta(request)


SettingsDep = Annotated[Settings, Depends(get_app_settings)]
SecurityLogDep = Annotated[SecurityLogger, Depends(get_security_logger)]
MetaDep = Annotated[RequestMeta, Depends(get_request_meta)]
DbDep = Annotated[Session, Depends(get_db)]


def get_current_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: DbDep,
    settings: SettingsDep,
    security_log: SecurityLogDep,
    meta: MetaDep,
) -> User:
    """
    Resolve the bearer token to an active user and attach it to request.state.user.

    401 when the header is missing or the token is invalid/expired, 404 when the user
    no longer exists, 403 when the account is inactive.
    """
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError(AUTH_REQUIRED, headers={"WWW-Authenticate": "Bearer"})
    try:
        payload = decode_access_token(credentials.credentials, settings)
    except (InvalidTokenError, TokenExpiredError) as e:
        security_log.invalid_token(meta, e.reason)
        e.headers = {"WWW-Authenticate": "Bearer"}
        raise
    user = db.get(
        User, payload[USER_ID_CLAIM], options=[defer(User.password_hash)]
    )
    if user is None:
        raise NotFoundError(USER_NOT_FOUND)
    if not user.is_active:
        raise ForbiddenError(ACCOUNT_INACTIVE)
    request.state.user = user
    return user


CurrentUserDep = Annotated[User, Depends(get_current_user)]


def require_roles(*roles: str) -> Callable[..., User]:
    """Dependency factory: the authenticated user must hold one of roles, else 403."""
    allowed = frozenset(roles)

    def dependency(
        current_user: CurrentUserDep,
        security_log: SecurityLogDep,
        meta: MetaDep,
    ) -> User:
        if current_user.role not in allowed:
            security_log.unauthorized_access(
                meta, current_user.id, details={"required_roles": sorted(allowed)}
            )
            raise ForbiddenError(f"Access denied. Required role: {' or '.join(roles)}")
        return current_user

    return dependency


AdminDep = Annotated[User, Depends(require_roles(ROLE_ADMIN))]


def require_owner_or_admin(
    target: User,
    current_user: User,
    security_log: SecurityLogger,
    meta: RequestMeta,
) -> None:
    """
    Allow the request only if current_user owns target or is an admin.

    target must be the resource loaded from the store; its owner is read from it
    rather than taken from the request.
    """
    if current_user.role == ROLE_ADMIN or target.id == current_user.id:
        return
    security_log.unauthorized_access(
        meta, current_user.id, details={"target_user_id": target.id}
    )
    raise ForbiddenError(OWNERSHIP_REQUIRED)


class RateLimitTicket:
    """Handle for one counted hit; refund() un-counts it (e.g. after a successful login)."""

    def __init__(self, limiter: FixedWindowRateLimiter | None, key: str) -> None:
        self.limiter = limiter
        self.key = key

    def refund(self) -> None:
        if self.limiter is not None:
            self.limiter.refund(self.key)


def route_rate_limit(name: str) -> Callable[..., RateLimitTicket]:
    """Dependency factory applying the named per-route limiter from app.state.rate_limiters."""

    def dependency(
        request: Request,
        settings: SettingsDep,
        security_log: SecurityLogDep,
        meta: MetaDep,
    ) -> RateLimitTicket:
        key = f"ip:{get_client_ip(request)}"
        if not settings.RATE_LIMIT_ENABLED:
            return RateLimitTicket(None, key)
        limiter: FixedWindowRateLimiter = request.app.state.rate_limiters[name]
        result = limiter.hit(key)
        if not result.allowed:
            security_log.rate_limited(meta)
            raise TooManyRequestsError(
                limiter.message,
                headers={
                    "Retry-After": str(result.retry_after),
                    "X-RateLimit-Limit": str(result.limit),
                    "X-RateLimit-Remaining": "0",
                },
            )
        return RateLimitTicket(limiter, key)

    return dependency
