"""Course endpoints: role-scoped listing and visibility, owner/admin writes, admin delete."""

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Request

from app.api.v1.auth import get_current_user, get_optional_user
from app.core.database import Database, get_db
from app.core.errors import AuthorizationError, CourseNotFoundError
from app.schemas.auth import CurrentUser
from app.schemas.course import CourseFilters
from app.services import policy
from app.services.courses import CourseService
from app.services.validation import (
    parse_create_course,
    parse_id,
    parse_update_course,
    sanitize_search,
    validate_pagination,
)

router = APIRouter()

COURSE_ID_LABEL = "course ID"


def get_course_service(db: Annotated[Database, Depends(get_db)]) -> CourseService:
    return CourseService(db)


def _require_modify(courses: CourseService, course_id: int, actor: CurrentUser) -> None:
    if not courses.can_modify_course(course_id, actor.id, actor.role):
        raise AuthorizationError("You do not have permission to modify this course")


@router.get("")
def list_courses(
    request: Request,
    courses: Annotated[CourseService, Depends(get_course_service)],
    actor: Annotated[CurrentUser | None, Depends(get_optional_user)],
) -> dict[str, Any]:
    """
    List courses visible to the caller: everything for admins, own courses for
    instructors, published courses for everyone else. Supports q, page and limit.
    """
    query = dict(request.query_params)
    pagination = validate_pagination(query)
    filters: dict[str, Any] = {"page": pagination.page, "limit": pagination.limit}
    filters.update(policy.course_listing_scope(actor))
    search = sanitize_search(query.get("q"))
    if search is not None:
        filters["search"] = search

    result = courses.list_courses(CourseFilters(**filters))
    return {"ok": True, "data": result.courses, "pagination": result.pagination}


@router.post("", status_code=201)
def create_course(
    body: Annotated[dict[str, Any], Body()],
    courses: Annotated[CourseService, Depends(get_course_service)],
    actor: Annotated[CurrentUser, Depends(get_current_user)],
) -> dict[str, Any]:
    data = parse_create_course(body)
    course = courses.create_course(data, actor.id, actor.role)
    return {"ok": True, "data": course}


@router.get("/{course_id}")
def get_course(
    course_id: str,
    courses: Annotated[CourseService, Depends(get_course_service)],
    actor: Annotated[CurrentUser | None, Depends(get_optional_user)],
) -> dict[str, Any]:
    """Course detail. Unpublished courses answer 404 to anyone but their owner and admins."""
    cid = parse_id(course_id, COURSE_ID_LABEL)
    course = courses.get_course_by_id(cid, include_instructor=True)
    if course is None or not policy.can_view_course(actor, course):
        raise CourseNotFoundError()
    return {"ok": True, "data": course}


@router.put("/{course_id}")
def update_course(
    course_id: str,
    body: Annotated[dict[str, Any], Body()],
    courses: Annotated[CourseService, Depends(get_course_service)],
    actor: Annotated[CurrentUser, Depends(get_current_user)],
) -> dict[str, Any]:
    """Owner or admin update. instructor_id is ignored unless the caller is an admin."""
    cid = parse_id(course_id, COURSE_ID_LABEL)
    _require_modify(courses, cid, actor)
    updates = parse_update_course(policy.filter_course_updates(body, actor.role))
    course = courses.update_course(cid, updates)
    if course is None:
        raise CourseNotFoundError()
    return {"ok": True, "data": course}


@router.delete("/{course_id}")
def delete_course(
    course_id: str,
    courses: Annotated[CourseService, Depends(get_course_service)],
    actor: Annotated[CurrentUser | None, Depends(get_optional_user)],
) -> dict[str, Any]:
    """Admin only."""
    if not policy.can_delete_course(actor):
        raise AuthorizationError("Only admins can delete courses")
    cid = parse_id(course_id, COURSE_ID_LABEL)
    if not courses.delete_course(cid):
        raise CourseNotFoundError()
    return {"ok": True, "message": "Course deleted successfully"}


def _set_published(courses: CourseService, course_id: str, actor: CurrentUser, publish: bool) -> dict[str, Any]:
    cid = parse_id(course_id, COURSE_ID_LABEL)
    _require_modify(courses, cid, actor)
    course = courses.toggle_published(cid, publish)
    if course is None:
        raise CourseNotFoundError()
    return {"ok": True, "data": course}


@router.post("/{course_id}/publish")
def publish_course(
    course_id: str,
    courses: Annotated[CourseService, Depends(get_course_service)],
    actor: Annotated[CurrentUser, Depends(get_current_user)],
) -> dict[str, Any]:
    return _set_published(courses, course_id, actor, True)


@router.post("/{course_id}/unpublish")
def unpublish_course(
    course_id: str,
    courses: Annotated[CourseService, Depends(get_course_service)],
    actor: Annotated[CurrentUser, Depends(get_current_user)],
) -> dict[str, Any]:
    return _set_published(courses, course_id, actor, False)


@router.get("/{course_id}/overview")
def get_course_overview(
    course_id: str,
    courses: Annotated[CourseService, Depends(get_course_service)],
    actor: Annotated[CurrentUser | None, Depends(get_optional_user)],
) -> dict[str, Any]:
    """Lesson, enrollment, progress, quiz and certificate figures; same visibility as detail."""
    cid = parse_id(course_id, COURSE_ID_LABEL)
    course = courses.get_overview_course(cid)
    if course is None or not policy.can_view_course(actor, course):
        raise CourseNotFoundError()
    return {"ok": True, "data": courses.build_overview(course)}
