"""
Role-based authorization decisions.

Every function here is pure: it decides from the actor and the resource row it
is given and never touches storage. Anonymous actors are passed as None.
"""

from collections.abc import Mapping
from typing import Any

from app.schemas.auth import CurrentUser, Role


def _as_role(role: Role | str) -> Role:
    return role if isinstance(role, Role) else Role(role)


def can_view_course(actor: CurrentUser | None, course: Mapping[str, Any]) -> bool:
    """
    Published courses are public. Unpublished ones are visible to admins and the owner.

    A False here must be reported as not found, so hidden courses do not leak.
    """
    if course.get("published") is True:
        return True
    if actor is None:
        return False
    match actor.role:
        case Role.ADMIN:
            return True
        case Role.INSTRUCTOR | Role.STUDENT:
            return actor.id == course.get("instructor_id")


def can_modify_course(
    actor_role: Role | str,
    actor_id: int,
    course_instructor_id: int | None,
) -> bool:
    """Admins modify any course; instructors only their own; students never."""
    match _as_role(actor_role):
        case Role.ADMIN:
            return True
        case Role.INSTRUCTOR:
            return course_instructor_id is not None and actor_id == course_instructor_id
        case Role.STUDENT:
            return False


def can_create_course(actor_role: Role | str) -> bool:
    match _as_role(actor_role):
        case Role.ADMIN | Role.INSTRUCTOR:
            return True
        case Role.STUDENT:
            return False


def can_delete_course(actor: CurrentUser | None) -> bool:
    """Deletion is admin-only, whoever owns the course."""
    if actor is None:
        return False
    match actor.role:
        case Role.ADMIN:
            return True
        case Role.INSTRUCTOR | Role.STUDENT:
            return False


def can_assign_instructor(actor_role: Role | str) -> bool:
    """Only admins may choose or change a course's instructor."""
    match _as_role(actor_role):
        case Role.ADMIN:
            return True
        case Role.INSTRUCTOR | Role.STUDENT:
            return False


def filter_course_updates(updates: Mapping[str, Any], actor_role: Role | str) -> dict[str, Any]:
    """Drop instructor_id from an update unless the actor is an admin. Ignored, not rejected."""
    allowed = dict(updates)
    if not can_assign_instructor(actor_role):
        allowed.pop("instructor_id", None)
    return allowed


def course_listing_scope(actor: CurrentUser | None) -> dict[str, Any]:
    """List filters implied by who is asking: all rows, own rows, or published rows."""
    if actor is None:
        return {"published_only": True}
    match actor.role:
        case Role.ADMIN:
            return {}
        case Role.INSTRUCTOR:
            return {"instructor_id": actor.id}
        case Role.STUDENT:
            return {"published_only": True}


def can_view_user(actor: CurrentUser, user_id: int) -> bool:
    match actor.role:
        case Role.ADMIN:
            return True
        case Role.INSTRUCTOR | Role.STUDENT:
            return actor.id == user_id


def can_modify_user(actor: CurrentUser, user_id: int) -> bool:
    return can_view_user(actor, user_id)


def can_manage_users(actor: CurrentUser) -> bool:
    """Listing, creating and deleting accounts, and changing roles, are admin actions."""
    match actor.role:
        case Role.ADMIN:
            return True
        case Role.INSTRUCTOR | Role.STUDENT:
            return False
