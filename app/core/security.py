"""Password hashing and JWT creation/verification for authentication."""

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

import bcrypt
import jwt

from app.core.errors import InvalidTokenError, TokenConfigurationError, TokenExpiredError

if TYPE_CHECKING:
    from app.core.config import Settings

# Bcrypt cost (rounds); 12 is a good default for security vs speed.
BCRYPT_ROUNDS = 12

# bcrypt only looks at the first 72 bytes of the password.
BCRYPT_MAX_BYTES = 72

# Claim carrying the user id in the token payload.
USER_ID_CLAIM = "userId"


def _password_bytes(plain_password: str) -> bytes:
    return plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(plain_password: str) -> str:
    """Hash a plain-text password for storage. Each call uses a fresh salt."""
    return bcrypt.hashpw(
        _password_bytes(plain_password), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    ).decode("utf-8")


def verify_password(plain_password: str, hashed: str | None) -> bool:
    """Verify a plain password against a stored hash. Returns False on mismatch or bad hash."""
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(_password_bytes(plain_password), hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def _resolve_settings(settings: "Settings | None") -> "Settings":
    if settings is None:
        from app.core.config import get_settings

        return get_settings()
    return settings


def _signing_secret(settings: "Settings") -> str:
    if settings.JWT_SECRET is None:
        raise TokenConfigurationError()
    return settings.JWT_SECRET.get_secret_value()


def create_access_token(
    user_id: str,
    settings: "Settings | None" = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a JWT access token carrying userId, iat and exp."""
    settings = _resolve_settings(settings)
    secret = _signing_secret(settings)
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.JWT_EXPIRE_MINUTES)
    now = datetime.now(UTC)
    payload: dict[str, Any] = {
        USER_ID_CLAIM: str(user_id),
        "iat": now,
        "exp": now + expires_delta,
    }
    return jwt.encode(payload, secret, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str, settings: "Settings | None" = None) -> dict[str, Any]:
    """
    Decode and validate a JWT; return its payload.

    Raises TokenExpiredError when exp has passed and InvalidTokenError for anything
    else wrong with the token (signature, format, missing userId).
    """
    settings = _resolve_settings(settings)
    secret = _signing_secret(settings)
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[settings.JWT_ALGORITHM],
            options={"require": ["exp"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise TokenExpiredError() from e
    except jwt.PyJWTError as e:
        raise InvalidTokenError() from e
    user_id = payload.get(USER_ID_CLAIM)
    if not user_id or not isinstance(user_id, str):
        raise InvalidTokenError()
    return payload
