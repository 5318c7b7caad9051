"""Request/response schemas for auth endpoints."""

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.schemas.user import UserPublic, normalize_email


class LoginRequest(BaseModel):
    """Credentials for login."""

    email: EmailStr = Field(..., description="Account email")
    password: str = Field(..., min_length=1, max_length=128, description="Password")

    @field_validator("email", mode="after")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return normalize_email(v)


class AuthData(BaseModel):
    """Body of a successful register or login: the user and a bearer token."""

    user: UserPublic
    token: str = Field(..., description="JWT; send as Authorization: Bearer <token>")
