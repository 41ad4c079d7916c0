"""Pydantic request/response schemas."""

from app.schemas.auth import CurrentUser, Role, TokenPayload, UserProfile
from app.schemas.common import FieldError, PageInfo, Pagination, ValidationResult
from app.schemas.course import (
    CourseCreate,
    CourseFilters,
    CourseList,
    CourseOverview,
    CourseUpdate,
)
from app.schemas.health import HealthResponse
from app.schemas.user import UserCreate, UserUpdate

__all__ = [
    "CourseCreate",
    "CourseFilters",
    "CourseList",
    "CourseOverview",
    "CourseUpdate",
    "CurrentUser",
    "FieldError",
    "HealthResponse",
    "PageInfo",
    "Pagination",
    "Role",
    "TokenPayload",
    "UserCreate",
    "UserProfile",
    "UserUpdate",
    "ValidationResult",
]
