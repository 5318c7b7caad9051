"""Application errors. Services raise these; app.api.errors turns them into the response envelope."""

from typing import Any

# Messages shared by services, gates and handlers.
AUTH_REQUIRED = "Authentication required. Please provide a valid token."
INVALID_TOKEN = "Invalid token"
TOKEN_EXPIRED = "Token expired"
INVALID_CREDENTIALS = "Invalid email or password"
ACCOUNT_INACTIVE = "Account is inactive. Please contact administrator."
ACCOUNT_LOCKED = (
    "Account is temporarily locked due to multiple failed login attempts. "
    "Please try again later."
)
JWT_SECRET_MISSING = "JWT secret not configured"
USER_NOT_FOUND = "User not found"
EMAIL_EXISTS = "User with this email already exists"
EMAIL_IN_USE = "Email already in use"
CANNOT_DELETE_SELF = "You cannot delete your own account"
INVALID_USER_ID = "Invalid user ID format"
OWNERSHIP_REQUIRED = "Access denied. You can only access your own resources."
INTERNAL_ERROR = "Internal Server Error"
ROUTE_NOT_FOUND = "Route not found"
VALIDATION_FAILED = "Validation failed"


class ApiError(Exception):
    """Base error carrying an HTTP status and a client-facing message."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        headers: dict[str, str] | None = None,
        data: Any = None,
    ) -> None:
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.headers = headers
        self.data = data
        super().__init__(message)


class BadRequestError(ApiError):
    status_code = 400


class UnauthorizedError(ApiError):
    status_code = 401


class ForbiddenError(ApiError):
    status_code = 403


class NotFoundError(ApiError):
    status_code = 404


class ConflictError(ApiError):
    status_code = 409


class TooManyRequestsError(ApiError):
    status_code = 429


class InvalidTokenError(UnauthorizedError):
    """Token is malformed, has a bad signature, or lacks a user id."""

    reason = "invalid"

    def __init__(self, message: str = INVALID_TOKEN) -> None:
        super().__init__(message)


class TokenExpiredError(UnauthorizedError):
    """Token signature is valid but exp has passed."""

    reason = "expired"

    def __init__(self, message: str = TOKEN_EXPIRED) -> None:
        super().__init__(message)


class TokenConfigurationError(ApiError):
    """Raised when tokens are issued or verified without JWT_SECRET configured."""

    status_code = 500

    def __init__(self, message: str = JWT_SECRET_MISSING) -> None:
        super().__init__(message)
