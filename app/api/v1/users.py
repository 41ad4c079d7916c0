"""User management endpoints: admins manage all accounts, users read and edit their own."""

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Request

from app.api.v1.auth import get_current_user, get_user_service, require_admin
from app.core.errors import AuthorizationError, UserNotFoundError
from app.core.security import create_user_profile
from app.schemas.auth import CurrentUser
from app.services import policy
from app.services.users import UserService
from app.services.validation import parse_create_user, parse_id, parse_update_user, validate_pagination

router = APIRouter()

USER_ID_LABEL = "user ID"


@router.get("")
def list_users(
    request: Request,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    users: Annotated[UserService, Depends(get_user_service)],
) -> dict[str, Any]:
    """List all users (admin only)."""
    pagination = validate_pagination(dict(request.query_params))
    rows, page_info = users.list_users(pagination)
    return {
        "ok": True,
        "data": [create_user_profile(row) for row in rows],
        "pagination": page_info,
    }


@router.post("", status_code=201)
def create_user(
    body: Annotated[dict[str, Any], Body()],
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    users: Annotated[UserService, Depends(get_user_service)],
) -> dict[str, Any]:
    """Create an account with any role (admin only)."""
    user = users.register(parse_create_user(body))
    return {"ok": True, "data": create_user_profile(user)}


@router.get("/{user_id}")
def get_user(
    user_id: str,
    actor: Annotated[CurrentUser, Depends(get_current_user)],
    users: Annotated[UserService, Depends(get_user_service)],
) -> dict[str, Any]:
    uid = parse_id(user_id, USER_ID_LABEL)
    if not policy.can_view_user(actor, uid):
        raise AuthorizationError("You can only view your own profile")
    user = users.get_user(uid)
    if user is None:
        raise UserNotFoundError()
    return {"ok": True, "data": create_user_profile(user)}


@router.put("/{user_id}")
def update_user(
    user_id: str,
    body: Annotated[dict[str, Any], Body()],
    actor: Annotated[CurrentUser, Depends(get_current_user)],
    users: Annotated[UserService, Depends(get_user_service)],
) -> dict[str, Any]:
    """Self or admin. Changing a role is an admin action."""
    uid = parse_id(user_id, USER_ID_LABEL)
    if not policy.can_modify_user(actor, uid):
        raise AuthorizationError("You can only update your own profile")
    if body.get("role") is not None and not policy.can_manage_users(actor):
        raise AuthorizationError("Only admins can change roles")
    user = users.update_user(uid, parse_update_user(body))
    if user is None:
        raise UserNotFoundError()
    return {"ok": True, "data": create_user_profile(user)}


@router.delete("/{user_id}")
def delete_user(
    user_id: str,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    users: Annotated[UserService, Depends(get_user_service)],
) -> dict[str, Any]:
    uid = parse_id(user_id, USER_ID_LABEL)
    if not users.delete_user(uid):
        raise UserNotFoundError()
    return {"ok": True, "message": "User deleted successfully"}
