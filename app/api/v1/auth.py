"""Register/login/me endpoints and auth dependencies (get_current_user, get_optional_user, require_admin)."""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.database import Database, get_db
from app.core.errors import (
    AppError,
    AuthenticationError,
    AuthorizationError,
    InternalError,
    UserNotFoundError,
    ValidationError,
)
from app.core.security import create_user_profile, generate_token, verify_token
from app.schemas.auth import CurrentUser
from app.services import policy
from app.services.users import UserService
from app.services.validation import parse_create_user

logger = logging.getLogger(__name__)

router = APIRouter()
security = HTTPBearer(auto_error=False)


def get_user_service(db: Annotated[Database, Depends(get_db)]) -> UserService:
    return UserService(db)


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> CurrentUser:
    """Dependency: require a valid Bearer token. Expired, forged and malformed tokens give 401."""
    if credentials is None:
        raise AuthenticationError("Authentication required")
    payload = verify_token(credentials.credentials)
    return CurrentUser(id=payload.sub, email=payload.email, role=payload.role)


def get_optional_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> CurrentUser | None:
    """Dependency for public routes: the actor if a usable token is sent, else anonymous."""
    if credentials is None:
        return None
    try:
        payload = verify_token(credentials.credentials)
    except AuthenticationError as e:
        logger.debug("Ignoring unusable token on public route: %s", e.message)
        return None
    return CurrentUser(id=payload.sub, email=payload.email, role=payload.role)


def require_admin(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> CurrentUser:
    """Dependency: require authenticated user with role 'admin'. Raises 403 for non-admin."""
    if not policy.can_manage_users(current_user):
        raise AuthorizationError("Admin access required")
    return current_user


@router.post("/register", status_code=201)
def register(
    body: Annotated[dict[str, Any], Body()],
    users: Annotated[UserService, Depends(get_user_service)],
) -> dict[str, Any]:
    """Create an account and return its profile with an access token."""
    data = parse_create_user(body)
    try:
        user = users.register(data)
        token = generate_token(user)
    except AppError:
        raise
    except Exception as e:
        logger.exception("Registration failed")
        raise InternalError("Registration failed") from e
    return {
        "ok": True,
        "message": "User registered successfully",
        "user": create_user_profile(user),
        "token": token,
    }


@router.post("/login")
def login(
    body: Annotated[dict[str, Any], Body()],
    users: Annotated[UserService, Depends(get_user_service)],
) -> dict[str, Any]:
    """
    Authenticate with email and password; returns the profile and an access token.
    Include the token in the Authorization header as: Bearer <token>
    """
    email = body.get("email")
    password = body.get("password")
    if not isinstance(email, str) or not email or not isinstance(password, str) or not password:
        raise ValidationError("Email and password are required")
    try:
        user = users.authenticate(email, password)
        token = generate_token(user)
    except AppError:
        raise
    except Exception as e:
        logger.exception("Login failed")
        raise InternalError("Login failed") from e
    return {
        "ok": True,
        "message": "Login successful",
        "user": create_user_profile(user),
        "token": token,
    }


@router.get("/me")
def me(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    users: Annotated[UserService, Depends(get_user_service)],
) -> dict[str, Any]:
    """Profile of the authenticated user."""
    try:
        user = users.get_user(current_user.id)
    except Exception as e:
        logger.exception("Failed to get user profile")
        raise InternalError("Failed to get user profile") from e
    if user is None:
        raise UserNotFoundError()
    return {"ok": True, "user": create_user_profile(user)}
