"""User management endpoints (all require authentication; create/delete are admin only)."""

import logging

from fastapi import APIRouter, status

from app.api.deps import (
    AdminDep,
    CurrentUserDep,
    DbDep,
    MetaDep,
    SecurityLogDep,
    require_owner_or_admin,
)
from app.schemas.common import ApiResponse, MessageData, Pagination
from app.schemas.user import UserCreate, UserData, UserPublic, UserUpdate
from app.services.pagination import resolve_page_params
from app.services.users import (
    create_user,
    deactivate_user,
    list_active_users,
    parse_user_id,
    require_user,
    update_user,
)

logger = logging.getLogger(__name__)
router = APIRouter()

USER_DEACTIVATED = "User deactivated successfully"


@router.get("", response_model=ApiResponse[list[UserPublic]], response_model_exclude_none=True)
def list_users(
    _user: CurrentUserDep,
    db: DbDep,
    page: str | None = None,
    limit: str | None = None,
) -> ApiResponse[list[UserPublic]]:
    """
    List active users, newest first.

    page and limit default to 1 and 10; invalid or non-positive values fall back to the
    defaults and limit is capped at 100.
    """
    page_num, limit_num, skip = resolve_page_params(page, limit)
    users, total = list_active_users(db, skip, limit_num)
    return ApiResponse(
        data=[UserPublic.model_validate(u) for u in users],
        pagination=Pagination.build(page_num, limit_num, total),
    )


@router.get("/{user_id}", response_model=ApiResponse[UserData], response_model_exclude_none=True)
def get_user(user_id: str, _user: CurrentUserDep, db: DbDep) -> ApiResponse[UserData]:
    """Return one user by id (400 for a malformed id, 404 if missing)."""
    user = require_user(db, parse_user_id(user_id))
    return ApiResponse(data=UserData(user=UserPublic.model_validate(user)))


@router.post(
    "",
    response_model=ApiResponse[UserData],
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
def create(body: UserCreate, admin: AdminDep, db: DbDep) -> ApiResponse[UserData]:
    """Create a user with any role (admin only)."""
    user = create_user(db, body)
    logger.info(
        "New user created by admin",
        extra={"user_id": user.id, "admin_id": admin.id},
    )
    return ApiResponse(data=UserData(user=UserPublic.model_validate(user)))


@router.put("/{user_id}", response_model=ApiResponse[UserData], response_model_exclude_none=True)
def update(
    user_id: str,
    body: UserUpdate,
    current_user: CurrentUserDep,
    db: DbDep,
    security_log: SecurityLogDep,
    meta: MetaDep,
) -> ApiResponse[UserData]:
    """
    Update a user. Owners may change name, email and password; admins may also change
    role and isActive (ignored for everyone else).
    """
    target = require_user(db, parse_user_id(user_id))
    require_owner_or_admin(target, current_user, security_log, meta)
    user = update_user(db, target, body, current_user)
    return ApiResponse(data=UserData(user=UserPublic.model_validate(user)))


@router.delete("/{user_id}", response_model=ApiResponse[MessageData], response_model_exclude_none=True)
def delete(user_id: str, admin: AdminDep, db: DbDep) -> ApiResponse[MessageData]:
    """Soft delete (deactivate) a user. Admins cannot delete themselves."""
    deactivate_user(db, parse_user_id(user_id), admin)
    return ApiResponse(data=MessageData(message=USER_DEACTIVATED))
