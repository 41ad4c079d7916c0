"""Course persistence and business rules: create, read, update, publish, list, delete, overview."""

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from app.core.database import Database
from app.core.errors import AuthorizationError, ValidationError
from app.schemas.auth import Role
from app.schemas.common import PageInfo
from app.schemas.course import (
    CourseCreate,
    CourseFilters,
    CourseList,
    CourseOverview,
    CourseUpdate,
    EnrollmentStats,
    InstructorRef,
    QuizStats,
)
from app.services import policy

logger = logging.getLogger(__name__)

COURSE_COLUMNS = "id, title, description, price_cents, published, instructor_id, created_at, updated_at"
_JOINED_COURSE_COLUMNS = (
    "c.id, c.title, c.description, c.price_cents, c.published, c.instructor_id, "
    "c.created_at, c.updated_at, u.name AS instructor_name"
)
# Columns a partial update may touch, in the order they are written.
UPDATABLE_FIELDS = ("title", "description", "price_cents", "instructor_id")
UNKNOWN_INSTRUCTOR = "Unknown"

_LESSONS_SQL = "SELECT COUNT(*) AS total FROM lessons WHERE course_id = %s"
_ENROLLMENTS_SQL = (
    "SELECT COUNT(*) FILTER (WHERE status = 'active') AS active, "
    "COUNT(*) FILTER (WHERE status = 'completed') AS completed "
    "FROM enrollments WHERE course_id = %s"
)
# Per enrollment: completed lessons / lessons in course, as a percentage; then averaged.
_PROGRESS_SQL = (
    "SELECT AVG(progress) AS average_progress FROM ("
    "SELECT e.id, COALESCE(100.0 * COUNT(lp.id) FILTER (WHERE lp.completed) "
    "/ NULLIF((SELECT COUNT(*) FROM lessons l WHERE l.course_id = %s), 0), 0) AS progress "
    "FROM enrollments e LEFT JOIN lesson_progress lp ON lp.enrollment_id = e.id "
    "WHERE e.course_id = %s GROUP BY e.id"
    ") per_enrollment"
)
_QUIZZES_SQL = (
    "SELECT COUNT(DISTINCT q.id) AS total_quizzes, COUNT(qq.id) AS total_questions "
    "FROM quizzes q LEFT JOIN quiz_questions qq ON qq.quiz_id = q.id "
    "WHERE q.course_id = %s"
)
_CERTIFICATES_SQL = "SELECT COUNT(*) AS total FROM certificates WHERE course_id = %s"


def _count(row: dict[str, Any], key: str) -> int:
    """Aggregate value as int; drivers return counts as int, str or Decimal, or nothing at all."""
    value = row.get(key)
    if value is None:
        return 0
    try:
        return int(Decimal(str(value)))
    except (InvalidOperation, ValueError):
        return 0


def _rounded(row: dict[str, Any], key: str) -> int:
    value = row.get(key)
    if value is None:
        return 0
    try:
        return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    except (InvalidOperation, ValueError):
        return 0


def _with_instructor(row: dict[str, Any]) -> dict[str, Any]:
    course = dict(row)
    name = course.pop("instructor_name", None)
    course["instructor"] = {"id": course.get("instructor_id"), "name": name}
    return course


class CourseService:
    """Course operations over an injected Database."""

    def __init__(self, db: Database) -> None:
        self.db = db

    def _ensure_instructor(self, user_id: int) -> None:
        """Courses may only point at an existing instructor or admin account."""
        result = self.db.query("SELECT id, role FROM users WHERE id = %s", [user_id])
        if not result.rows or result.rows[0].get("role") not in (Role.INSTRUCTOR, Role.ADMIN):
            raise ValidationError.from_errors(
                [
                    {
                        "field": "instructor_id",
                        "message": "Instructor ID must reference an existing instructor or admin",
                    }
                ]
            )

    def create_course(self, data: CourseCreate, actor_id: int, actor_role: Role | str) -> dict[str, Any]:
        """Insert a course owned by the actor, or by data.instructor_id when an admin sets it."""
        if not policy.can_create_course(actor_role):
            raise AuthorizationError("Insufficient permissions to create course")

        instructor_id = actor_id
        if data.instructor_id is not None and policy.can_assign_instructor(actor_role):
            instructor_id = data.instructor_id
            if instructor_id != actor_id:
                self._ensure_instructor(instructor_id)

        result = self.db.query(
            f"INSERT INTO courses (title, description, price_cents, instructor_id) "
            f"VALUES (%s, %s, %s, %s) RETURNING {COURSE_COLUMNS}",
            [data.title, data.description, data.price_cents, instructor_id],
        )
        course = result.rows[0]
        logger.info("Course created: id=%s instructor_id=%s", course.get("id"), instructor_id)
        return course

    def get_course_by_id(self, course_id: int, include_instructor: bool = False) -> dict[str, Any] | None:
        if include_instructor:
            result = self.db.query(
                f"SELECT {_JOINED_COURSE_COLUMNS} FROM courses c "
                "LEFT JOIN users u ON u.id = c.instructor_id WHERE c.id = %s",
                [course_id],
            )
            return _with_instructor(result.rows[0]) if result.rows else None

        result = self.db.query(f"SELECT {COURSE_COLUMNS} FROM courses WHERE id = %s", [course_id])
        return result.rows[0] if result.rows else None

    def update_course(self, course_id: int, updates: CourseUpdate) -> dict[str, Any] | None:
        """
        Write only the fields set on updates. An empty update returns the current row.

        Returns None when no course has this id.
        """
        changes = updates.model_dump(exclude_unset=True)
        if "description" in changes and changes["description"] is not None:
            changes["description"] = changes["description"].strip() or None
        if changes.get("instructor_id") is not None:
            self._ensure_instructor(changes["instructor_id"])

        assignments: list[str] = []
        params: list[Any] = []
        for field in UPDATABLE_FIELDS:
            if field in changes:
                assignments.append(f"{field} = %s")
                params.append(changes[field])

        if not assignments:
            return self.get_course_by_id(course_id)

        params.append(course_id)
        result = self.db.query(
            f"UPDATE courses SET {', '.join(assignments)}, updated_at = NOW() "
            f"WHERE id = %s RETURNING {COURSE_COLUMNS}",
            params,
        )
        if not result.rows:
            return None
        logger.info("Course updated: id=%s fields=%s", course_id, sorted(changes))
        return result.rows[0]

    def toggle_published(self, course_id: int, publish: bool) -> dict[str, Any] | None:
        result = self.db.query(
            f"UPDATE courses SET published = %s, updated_at = NOW() "
            f"WHERE id = %s RETURNING {COURSE_COLUMNS}",
            [publish, course_id],
        )
        if not result.rows:
            return None
        logger.info("Course %s: id=%s", "published" if publish else "unpublished", course_id)
        return result.rows[0]

    def list_courses(self, filters: CourseFilters | None = None) -> CourseList:
        """Filters combine with AND. Newest courses first."""
        filters = filters or CourseFilters()
        conditions: list[str] = []
        params: list[Any] = []

        if filters.search:
            conditions.append("c.title ILIKE %s")
            params.append(f"%{filters.search}%")
        if filters.published_only:
            conditions.append("c.published = true")
        if filters.instructor_id is not None:
            conditions.append("c.instructor_id = %s")
            params.append(filters.instructor_id)

        where = f" WHERE {' AND '.join(conditions)}" if conditions else ""

        count_result = self.db.query(f"SELECT COUNT(*) AS total FROM courses c{where}", params)
        total = _count(count_result.rows[0], "total") if count_result.rows else 0

        offset = (filters.page - 1) * filters.limit
        page_result = self.db.query(
            f"SELECT {_JOINED_COURSE_COLUMNS} FROM courses c "
            f"LEFT JOIN users u ON u.id = c.instructor_id{where} "
            "ORDER BY c.created_at DESC LIMIT %s OFFSET %s",
            [*params, filters.limit, offset],
        )

        return CourseList(
            courses=[_with_instructor(row) for row in page_result.rows],
            pagination=PageInfo(
                page=filters.page,
                limit=filters.limit,
                total=total,
                total_pages=math.ceil(total / filters.limit),
            ),
        )

    def can_modify_course(self, course_id: int, actor_id: int, actor_role: Role | str) -> bool:
        """False for a course that does not exist."""
        result = self.db.query("SELECT id, instructor_id FROM courses WHERE id = %s", [course_id])
        if not result.rows:
            return False
        return policy.can_modify_course(actor_role, actor_id, result.rows[0].get("instructor_id"))

    def delete_course(self, course_id: int) -> bool:
        """True only when a row was actually removed."""
        result = self.db.query("DELETE FROM courses WHERE id = %s", [course_id])
        deleted = (result.row_count or 0) > 0
        if deleted:
            logger.info("Course deleted: id=%s", course_id)
        return deleted

    def get_overview_course(self, course_id: int) -> dict[str, Any] | None:
        """The course row an overview is built from; check visibility on it before aggregating."""
        result = self.db.query(
            "SELECT c.id, c.title, c.published, c.instructor_id, c.updated_at, "
            "u.name AS instructor_name FROM courses c "
            "LEFT JOIN users u ON u.id = c.instructor_id WHERE c.id = %s",
            [course_id],
        )
        return result.rows[0] if result.rows else None

    def get_course_overview(self, course_id: int) -> CourseOverview | None:
        course = self.get_overview_course(course_id)
        if course is None:
            return None
        return self.build_overview(course)

    def build_overview(self, course: dict[str, Any]) -> CourseOverview:
        """
        Course plus lesson, enrollment, progress, quiz and certificate figures.

        The five aggregate reads run concurrently; any failing read fails the whole call.
        """
        course_id = course["id"]
        reads = {
            "lessons": (_LESSONS_SQL, [course_id]),
            "enrollments": (_ENROLLMENTS_SQL, [course_id]),
            "progress": (_PROGRESS_SQL, [course_id, course_id]),
            "quizzes": (_QUIZZES_SQL, [course_id]),
            "certificates": (_CERTIFICATES_SQL, [course_id]),
        }
        with ThreadPoolExecutor(max_workers=len(reads)) as pool:
            futures = {name: pool.submit(self.db.query, sql, params) for name, (sql, params) in reads.items()}
            rows = {name: (future.result().rows or [{}])[0] for name, future in futures.items()}

        return CourseOverview(
            id=course["id"],
            title=course["title"],
            published=bool(course.get("published")),
            instructor=InstructorRef(
                id=course["instructor_id"],
                name=course.get("instructor_name") or UNKNOWN_INSTRUCTOR,
            ),
            total_lessons=_count(rows["lessons"], "total"),
            enrollments=EnrollmentStats(
                active=_count(rows["enrollments"], "active"),
                completed=_count(rows["enrollments"], "completed"),
            ),
            average_progress=_rounded(rows["progress"], "average_progress"),
            quizzes=QuizStats(
                total=_count(rows["quizzes"], "total_quizzes"),
                total_questions=_count(rows["quizzes"], "total_questions"),
            ),
            certificates_issued=_count(rows["certificates"], "total"),
            updated_at=course.get("updated_at"),
        )
