"""ORM model for user accounts (auth, lockout bookkeeping and RBAC)."""

import uuid
from datetime import UTC, datetime

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Index, Integer, String

from app.core.security import hash_password, verify_password
from app.models.base import Base

ROLE_USER = "user"
ROLE_ADMIN = "admin"


def new_user_id() -> str:
    """Opaque identifier for a new account (UUID4 as 32 hex chars)."""
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(UTC)


def ensure_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes (SQLite returns them without tzinfo)."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


class User(Base):
    """
    User account.

    role: 'admin' or 'user'. Deleting a user sets is_active to False; rows are never removed.
    Assigning `password` hashes it immediately; the plaintext is never kept.
    """

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("role IN ('user', 'admin')", name="role"),
        CheckConstraint("login_attempts >= 0", name="login_attempts"),
        Index("ix_users_active_created", "is_active", "created_at"),
    )

    id = Column(String(32), primary_key=True, default=new_user_id)
    name = Column(String(50), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(32), nullable=False, default=ROLE_USER)
    is_active = Column(Boolean, nullable=False, default=True)
    login_attempts = Column(Integer, nullable=False, default=0)
    lock_until = Column(DateTime(timezone=True), nullable=True)
    last_login = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    @property
    def password(self) -> str:
        raise AttributeError("password is write-only; compare with check_password()")

    @password.setter
    def password(self, plain_password: str) -> None:
        self.password_hash = hash_password(plain_password)

    def check_password(self, plain_password: str) -> bool:
        return verify_password(plain_password, self.password_hash)

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email} role={self.role}>"
