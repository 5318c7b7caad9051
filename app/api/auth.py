"""Auth endpoints: register, login and the current user."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from app.api.deps import (
    LOGIN_LIMITER,
    REGISTER_LIMITER,
    CurrentUserDep,
    DbDep,
    MetaDep,
    RateLimitTicket,
    SecurityLogDep,
    SettingsDep,
    route_rate_limit,
)
from app.schemas.auth import AuthData, LoginRequest
from app.schemas.common import ApiResponse
from app.schemas.user import UserCreate, UserData, UserPublic
from app.services.auth import login_user, register_user
from app.services.users import require_user

router = APIRouter()


@router.post(
    "/register",
    response_model=ApiResponse[AuthData],
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
def register(
    body: UserCreate,
    db: DbDep,
    settings: SettingsDep,
    security_log: SecurityLogDep,
    meta: MetaDep,
    _limit: Annotated[RateLimitTicket, Depends(route_rate_limit(REGISTER_LIMITER))],
) -> ApiResponse[AuthData]:
    """
    Create an account and return it with a bearer token.

    409 if the email is already registered. Requesting role=admin is refused (403)
    unless self-assigned admin is enabled in configuration.
    """
    user, token = register_user(db, body, settings, security_log, meta)
    return ApiResponse(data=AuthData(user=UserPublic.model_validate(user), token=token))


@router.post("/login", response_model=ApiResponse[AuthData], response_model_exclude_none=True)
def login(
    body: LoginRequest,
    db: DbDep,
    settings: SettingsDep,
    security_log: SecurityLogDep,
    meta: MetaDep,
    limit: Annotated[RateLimitTicket, Depends(route_rate_limit(LOGIN_LIMITER))],
) -> ApiResponse[AuthData]:
    """
    Authenticate with email and password; returns the user and a JWT.
    Include the token in the Authorization header as: Bearer <token>

    Five consecutive wrong passwords lock the account for two hours (403).
    Only failed attempts count against the login rate limit.
    """
    user, token = login_user(db, body, settings, security_log, meta)
    limit.refund()
    return ApiResponse(data=AuthData(user=UserPublic.model_validate(user), token=token))


@router.get("/me", response_model=ApiResponse[UserData], response_model_exclude_none=True)
def me(current_user: CurrentUserDep, db: DbDep) -> ApiResponse[UserData]:
    """Return the authenticated user."""
    user = require_user(db, current_user.id)
    return ApiResponse(data=UserData(user=UserPublic.model_validate(user)))
