"""User management: lookup, listing, creation, partial update and soft delete."""

import logging
import re

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import (
    CANNOT_DELETE_SELF,
    EMAIL_EXISTS,
    EMAIL_IN_USE,
    INVALID_USER_ID,
    USER_NOT_FOUND,
    BadRequestError,
    ConflictError,
    NotFoundError,
)
from app.models.user import ROLE_ADMIN, ROLE_USER, User
from app.schemas.user import UserCreate, UserUpdate

logger = logging.getLogger(__name__)

# 32 hex chars, optionally in the dashed 8-4-4-4-12 form.
USER_ID_RE = re.compile(
    r"^[0-9a-f]{8}-?[0-9a-f]{4}-?[0-9a-f]{4}-?[0-9a-f]{4}-?[0-9a-f]{12}$"
)


def parse_user_id(raw: str) -> str:
    """Validate a user id from the path and return its canonical (undashed, lowercase) form."""
    value = (raw or "").strip().lower()
    if not USER_ID_RE.match(value):
        raise BadRequestError(INVALID_USER_ID)
    return value.replace("-", "")


def get_user_by_id(db: Session, user_id: str) -> User | None:
    return db.get(User, user_id)


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.execute(select(User).where(User.email == email)).scalar_one_or_none()


def require_user(db: Session, user_id: str) -> User:
    user = get_user_by_id(db, user_id)
    if user is None:
        raise NotFoundError(USER_NOT_FOUND)
    return user


def list_active_users(db: Session, skip: int, limit: int) -> tuple[list[User], int]:
    """Active users, newest first, plus the total active count."""
    users = (
        db.execute(
            select(User)
            .where(User.is_active.is_(True))
            .order_by(User.created_at.desc(), User.id)
            .offset(skip)
            .limit(limit)
        )
        .scalars()
        .all()
    )
    total = db.execute(
        select(func.count()).select_from(User).where(User.is_active.is_(True))
    ).scalar_one()
    return list(users), total


def create_user(db: Session, data: UserCreate, conflict_message: str = EMAIL_EXISTS) -> User:
    """Insert a new user; the password is hashed by the model. Duplicate email -> ConflictError."""
    if get_user_by_email(db, data.email) is not None:
        raise ConflictError(conflict_message)
    user = User(
        name=data.name,
        email=data.email,
        password=data.password,
        role=data.role or ROLE_USER,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as e:
        # Lost a race with a concurrent insert of the same email.
        db.rollback()
        raise ConflictError(conflict_message) from e
    db.refresh(user)
    return user


def update_user(db: Session, target: User, data: UserUpdate, actor: User) -> User:
    """
    Apply a partial update to target.

    name, email and password may be changed by whoever is allowed to edit target;
    role and is_active are applied only when actor is an admin and ignored otherwise.
    """
    if data.email is not None and data.email != target.email:
        if get_user_by_email(db, data.email) is not None:
            raise ConflictError(EMAIL_IN_USE)
        target.email = data.email
    if data.name is not None:
        target.name = data.name
    if data.password is not None:
        target.password = data.password
    if actor.role == ROLE_ADMIN:
        if data.role is not None:
            target.role = data.role
        if data.is_active is not None:
            target.is_active = data.is_active
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError(EMAIL_IN_USE) from e
    db.refresh(target)
    logger.info("User updated", extra={"user_id": target.id})
    return target


def deactivate_user(db: Session, user_id: str, actor: User) -> User:
    """Soft delete: mark the user inactive. Admins cannot deactivate themselves."""
    if user_id == actor.id:
        raise BadRequestError(CANNOT_DELETE_SELF)
    user = require_user(db, user_id)
    user.is_active = False
    db.commit()
    db.refresh(user)
    logger.info("User deactivated", extra={"user_id": user.id})
    return user
