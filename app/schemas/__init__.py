"""Pydantic request/response schemas."""

from app.schemas.auth import AuthData, LoginRequest
from app.schemas.common import ApiResponse, ErrorBody, FieldError, MessageData, Pagination
from app.schemas.health import HealthData
from app.schemas.user import UserCreate, UserData, UserPublic, UserUpdate

__all__ = [
    "ApiResponse",
    "AuthData",
    "ErrorBody",
    "FieldError",
    "HealthData",
    "LoginRequest",
    "MessageData",
    "Pagination",
    "UserCreate",
    "UserData",
    "UserPublic",
    "UserUpdate",
]
