"""Registration and login flows on top of the user store, lockout policy and token issuer."""

import logging
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from app.core.errors import (
    ACCOUNT_INACTIVE,
    ACCOUNT_LOCKED,
    INVALID_CREDENTIALS,
    ForbiddenError,
    TokenConfigurationError,
    UnauthorizedError,
)
from app.core.observability import RequestMeta, SecurityLogger
from app.core.security import create_access_token
from app.models.user import ROLE_ADMIN, User
from app.schemas.auth import LoginRequest
from app.schemas.user import UserCreate
from app.services.lockout import is_locked, register_failed_attempt, reset_attempts
from app.services.users import create_user, get_user_by_email

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

SELF_ASSIGNED_ADMIN_REFUSED = "Access denied. Registration cannot grant the admin role."


def register_user(
    db: Session,
    data: UserCreate,
    settings: "Settings",
    security_log: SecurityLogger,
    meta: RequestMeta,
) -> tuple[User, str]:
    """
    Create an account and issue its first token.

    A requested admin role is refused unless ALLOW_SELF_ASSIGNED_ADMIN is set; admins
    are otherwise created through the admin-only user endpoint.
    """
    if data.role == ROLE_ADMIN and not settings.ALLOW_SELF_ASSIGNED_ADMIN:
        security_log.unauthorized_access(
            meta, user_id=None, details={"email": data.email, "requested_role": data.role}
        )
        raise ForbiddenError(SELF_ASSIGNED_ADMIN_REFUSED)
    if settings.JWT_SECRET is None:
        raise TokenConfigurationError()

    user = create_user(db, data)
    token = create_access_token(user.id, settings)
    logger.info("New user registered", extra={"user_id": user.id, "email": user.email})
    return user, token


def login_user(
    db: Session,
    data: LoginRequest,
    settings: "Settings",
    security_log: SecurityLogger,
    meta: RequestMeta,
) -> tuple[User, str]:
    """
    Check credentials and return (user, token).

    Unknown email and wrong password both answer "Invalid email or password"; only the
    wrong-password path touches the lockout counter. A locked account is refused before
    the password is compared, and the failure that reaches the attempt limit already
    answers as locked.
    """
    user = get_user_by_email(db, data.email)
    if user is None:
        security_log.auth_failure(meta, data.email, details={"reason": "unknown_email"})
        raise UnauthorizedError(INVALID_CREDENTIALS)

    if is_locked(user):
        security_log.account_locked(meta, data.email)
        raise ForbiddenError(ACCOUNT_LOCKED)

    if not user.check_password(data.password):
        register_failed_attempt(db, user)
        security_log.auth_failure(
            meta, data.email, details={"attempts": user.login_attempts}
        )
        if is_locked(user):
            security_log.account_locked(meta, data.email)
            raise ForbiddenError(ACCOUNT_LOCKED)
        raise UnauthorizedError(INVALID_CREDENTIALS)

    if not user.is_active:
        raise ForbiddenError(ACCOUNT_INACTIVE)

    reset_attempts(db, user)
    token = create_access_token(user.id, settings)
    security_log.auth_success(meta, user.id, user.email)
    logger.info("User logged in", extra={"user_id": user.id})
    return user, token
