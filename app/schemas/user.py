"""Request/response schemas for user accounts."""

import re
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from app.models.user import ensure_utc

NAME_MIN_LEN = 2
NAME_MAX_LEN = 50
PASSWORD_MIN_LEN = 6
PASSWORD_MAX_LEN = 128

# At least one lowercase letter, one uppercase letter and one digit.
PASSWORD_STRENGTH_RE = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)")
EMAIL_SHAPE_RE = re.compile(r"^\S+@\S+\.\S+$")

NAME_LENGTH_MESSAGE = f"Name must be between {NAME_MIN_LEN} and {NAME_MAX_LEN} characters"
INVALID_EMAIL_MESSAGE = "Please provide a valid email address"
PASSWORD_TOO_SHORT_MESSAGE = f"Password must be at least {PASSWORD_MIN_LEN} characters long"
PASSWORD_WEAK_MESSAGE = (
    "Password must contain at least one uppercase letter, one lowercase letter, and one number"
)

Role = Literal["user", "admin"]


def normalize_name(value: str) -> str:
    name = value.strip()
    if not (NAME_MIN_LEN <= len(name) <= NAME_MAX_LEN):
        raise ValueError(NAME_LENGTH_MESSAGE)
    return name


def normalize_email(value: str) -> str:
    email = value.strip().lower()
    if not EMAIL_SHAPE_RE.match(email):
        raise ValueError(INVALID_EMAIL_MESSAGE)
    return email


def check_password_strength(value: str) -> str:
    if len(value) < PASSWORD_MIN_LEN:
        raise ValueError(PASSWORD_TOO_SHORT_MESSAGE)
    if len(value) > PASSWORD_MAX_LEN:
        raise ValueError(f"Password must be at most {PASSWORD_MAX_LEN} characters long")
    if not PASSWORD_STRENGTH_RE.match(value):
        raise ValueError(PASSWORD_WEAK_MESSAGE)
    return value


class CamelModel(BaseModel):
    """Accept and emit camelCase keys (isActive, createdAt) while using snake_case in code."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserCreate(CamelModel):
    """Body for registration and admin user creation."""

    name: str = Field(..., description="Display name (2-50 chars)")
    email: EmailStr = Field(..., description="Email address; stored lowercase")
    password: str = Field(..., description="At least 6 chars with upper, lower and digit")
    role: Role | None = Field(default=None, description="'user' (default) or 'admin'")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return normalize_name(v)

    @field_validator("email", mode="after")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return normalize_email(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return check_password_strength(v)


class UserUpdate(CamelModel):
    """Partial update; role and isActive are applied only for admins."""

    name: str | None = None
    email: EmailStr | None = None
    password: str | None = None
    role: Role | None = None
    is_active: bool | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        return None if v is None else normalize_name(v)

    @field_validator("email", mode="after")
    @classmethod
    def validate_email(cls, v: str | None) -> str | None:
        return None if v is None else normalize_email(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str | None) -> str | None:
        return None if v is None else check_password_strength(v)


class UserPublic(CamelModel):
    """User as returned by the API (never includes the password hash)."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )

    id: str
    name: str
    email: str
    role: Role
    is_active: bool
    last_login: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("last_login", "created_at", "updated_at")
    @classmethod
    def as_utc(cls, v: datetime | None) -> datetime | None:
        return ensure_utc(v)


class UserData(BaseModel):
    user: UserPublic
