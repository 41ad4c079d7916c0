"""Unit tests for CourseService with a mocked Database."""

import unittest
from datetime import datetime
from decimal import Decimal
from unittest.mock import MagicMock

from app.core.database import QueryResult
from app.core.errors import AuthorizationError, ValidationError
from app.schemas.auth import Role
from app.schemas.course import CourseCreate, CourseFilters, CourseUpdate
from app.services.courses import CourseService

COURSE_ROW = {
    "id": 5,
    "title": "Intro",
    "description": None,
    "price_cents": 4999,
    "published": False,
    "instructor_id": 2,
    "created_at": datetime(2025, 1, 1),
    "updated_at": datetime(2025, 1, 2),
}


def _db(*results: QueryResult) -> MagicMock:
    db = MagicMock()
    db.query.side_effect = list(results)
    return db


class TestCreateCourse(unittest.TestCase):
    def test_student_cannot_create(self) -> None:
        db = _db()
        with self.assertRaises(AuthorizationError) as ctx:
            CourseService(db).create_course(CourseCreate(title="Intro", price_cents=0), 4, Role.STUDENT)
        self.assertEqual(ctx.exception.message, "Insufficient permissions to create course")
        db.query.assert_not_called()

    def test_instructor_owns_own_course(self) -> None:
        db = _db(QueryResult(rows=[COURSE_ROW], row_count=1))
        data = CourseCreate(title="Intro", price_cents=4999, instructor_id=99)
        course = CourseService(db).create_course(data, 2, Role.INSTRUCTOR)
        self.assertEqual(course["id"], 5)
        sql, params = db.query.call_args.args
        self.assertTrue(sql.startswith("INSERT INTO courses"))
        # instructor_id from a non-admin is ignored
        self.assertEqual(params, ["Intro", None, 4999, 2])

    def test_admin_assigns_existing_instructor(self) -> None:
        db = _db(
            QueryResult(rows=[{"id": 9, "role": "instructor"}], row_count=1),
            QueryResult(rows=[{**COURSE_ROW, "instructor_id": 9}], row_count=1),
        )
        data = CourseCreate(title="Intro", price_cents=4999, instructor_id=9)
        CourseService(db).create_course(data, 1, Role.ADMIN)
        self.assertEqual(db.query.call_count, 2)
        self.assertEqual(db.query.call_args.args[1], ["Intro", None, 4999, 9])

    def test_admin_assigning_student_fails(self) -> None:
        db = _db(QueryResult(rows=[{"id": 4, "role": "student"}], row_count=1))
        data = CourseCreate(title="Intro", price_cents=4999, instructor_id=4)
        with self.assertRaises(ValidationError) as ctx:
            CourseService(db).create_course(data, 1, Role.ADMIN)
        self.assertEqual(ctx.exception.details[0]["field"], "instructor_id")
        self.assertEqual(db.query.call_count, 1)

    def test_admin_without_instructor_id_owns_course(self) -> None:
        db = _db(QueryResult(rows=[{**COURSE_ROW, "instructor_id": 1}], row_count=1))
        CourseService(db).create_course(CourseCreate(title="Intro", price_cents=0), 1, Role.ADMIN)
        self.assertEqual(db.query.call_args.args[1][-1], 1)


class TestGetCourse(unittest.TestCase):
    def test_missing_returns_none(self) -> None:
        db = _db(QueryResult(rows=[], row_count=0))
        self.assertIsNone(CourseService(db).get_course_by_id(5))

    def test_includes_instructor(self) -> None:
        db = _db(QueryResult(rows=[{**COURSE_ROW, "instructor_name": "Ann"}], row_count=1))
        course = CourseService(db).get_course_by_id(5, include_instructor=True)
        self.assertEqual(course["instructor"], {"id": 2, "name": "Ann"})
        self.assertNotIn("instructor_name", course)
        self.assertIn("LEFT JOIN users", db.query.call_args.args[0])


class TestUpdateCourse(unittest.TestCase):
    def test_empty_update_returns_current_row(self) -> None:
        db = _db(QueryResult(rows=[COURSE_ROW], row_count=1))
        course = CourseService(db).update_course(5, CourseUpdate())
        self.assertEqual(course, COURSE_ROW)
        self.assertTrue(db.query.call_args.args[0].startswith("SELECT"))

    def test_writes_only_set_fields(self) -> None:
        db = _db(QueryResult(rows=[{**COURSE_ROW, "title": "New"}], row_count=1))
        CourseService(db).update_course(5, CourseUpdate(title="New", description="  "))
        sql, params = db.query.call_args.args
        self.assertIn("title = %s, description = %s, updated_at = NOW()", sql)
        self.assertNotIn("price_cents = %s", sql)
        self.assertEqual(params, ["New", None, 5])

    def test_missing_course_returns_none(self) -> None:
        db = _db(QueryResult(rows=[], row_count=0))
        self.assertIsNone(CourseService(db).update_course(5, CourseUpdate(price_cents=100)))

    def test_reassignment_checks_instructor(self) -> None:
        db = _db(QueryResult(rows=[], row_count=0))
        with self.assertRaises(ValidationError):
            CourseService(db).update_course(5, CourseUpdate(instructor_id=77))


class TestPublishAndDelete(unittest.TestCase):
    def test_toggle_published(self) -> None:
        db = _db(QueryResult(rows=[{**COURSE_ROW, "published": True}], row_count=1))
        course = CourseService(db).toggle_published(5, True)
        self.assertTrue(course["published"])
        self.assertEqual(db.query.call_args.args[1], [True, 5])

    def test_toggle_missing(self) -> None:
        db = _db(QueryResult(rows=[], row_count=0))
        self.assertIsNone(CourseService(db).toggle_published(5, False))

    def test_delete_reports_row_count(self) -> None:
        for row_count, expected in ((1, True), (0, False), (None, False)):
            with self.subTest(row_count=row_count):
                db = _db(QueryResult(rows=[], row_count=row_count))
                self.assertIs(CourseService(db).delete_course(5), expected)

    def test_can_modify_course(self) -> None:
        service = CourseService(_db(QueryResult(rows=[{"id": 5, "instructor_id": 2}])))
        self.assertTrue(service.can_modify_course(5, 2, Role.INSTRUCTOR))
        service = CourseService(_db(QueryResult(rows=[{"id": 5, "instructor_id": 2}])))
        self.assertFalse(service.can_modify_course(5, 3, Role.INSTRUCTOR))
        service = CourseService(_db(QueryResult(rows=[])))
        self.assertFalse(service.can_modify_course(5, 1, Role.ADMIN))


class TestListCourses(unittest.TestCase):
    def test_filters_and_pagination(self) -> None:
        db = _db(
            QueryResult(rows=[{"total": 21}], row_count=1),
            QueryResult(rows=[{**COURSE_ROW, "instructor_name": "Ann"}], row_count=1),
        )
        result = CourseService(db).list_courses(
            CourseFilters(page=3, limit=10, search="py", published_only=True, instructor_id=2)
        )
        count_call, page_call = db.query.call_args_list
        self.assertIn("c.title ILIKE %s AND c.published = true AND c.instructor_id = %s", count_call.args[0])
        self.assertEqual(count_call.args[1], ["%py%", 2])
        self.assertEqual(page_call.args[1], ["%py%", 2, 10, 20])
        self.assertIn("ORDER BY c.created_at DESC", page_call.args[0])
        self.assertEqual(result.pagination.total, 21)
        self.assertEqual(result.pagination.total_pages, 3)
        self.assertEqual(result.courses[0]["instructor"]["name"], "Ann")

    def test_no_filters(self) -> None:
        db = _db(QueryResult(rows=[{"total": 0}]), QueryResult(rows=[]))
        result = CourseService(db).list_courses()
        self.assertNotIn("WHERE", db.query.call_args_list[0].args[0])
        self.assertEqual(result.courses, [])
        self.assertEqual(result.pagination.total_pages, 0)


class TestCourseOverview(unittest.TestCase):
    def _db(self, course_row: dict | None, aggregates: dict[str, list[dict]]) -> MagicMock:
        """Dispatch on SQL text: the aggregate reads run concurrently in no fixed order."""

        def query(sql: str, params=()) -> QueryResult:
            if sql.startswith("SELECT c.id"):
                return QueryResult(rows=[course_row] if course_row else [])
            if "AVG(progress)" in sql:
                return QueryResult(rows=aggregates.get("progress", []))
            if "FROM enrollments" in sql:
                return QueryResult(rows=aggregates.get("enrollments", []))
            if "FROM quizzes" in sql:
                return QueryResult(rows=aggregates.get("quizzes", []))
            if "FROM certificates" in sql:
                return QueryResult(rows=aggregates.get("certificates", []))
            if "FROM lessons" in sql:
                return QueryResult(rows=aggregates.get("lessons", []))
            raise AssertionError(f"unexpected query: {sql}")

        db = MagicMock()
        db.query.side_effect = query
        return db

    def test_missing_course(self) -> None:
        db = self._db(None, {})
        self.assertIsNone(CourseService(db).get_course_overview(5))
        self.assertEqual(db.query.call_count, 1)

    def test_aggregates(self) -> None:
        course = {
            "id": 5,
            "title": "Intro",
            "published": True,
            "instructor_id": 2,
            "instructor_name": "Ann",
            "updated_at": datetime(2025, 1, 2),
        }
        db = self._db(
            course,
            {
                "lessons": [{"total": 12}],
                "enrollments": [{"active": "3", "completed": 4}],
                "progress": [{"average_progress": Decimal("65.5")}],
                "quizzes": [{"total_quizzes": 2, "total_questions": 9}],
                "certificates": [{"total": 4}],
            },
        )
        overview = CourseService(db).get_course_overview(5)
        self.assertEqual(db.query.call_count, 6)
        self.assertEqual(overview.instructor.name, "Ann")
        self.assertEqual(overview.total_lessons, 12)
        self.assertEqual((overview.enrollments.active, overview.enrollments.completed), (3, 4))
        self.assertEqual(overview.average_progress, 66)
        self.assertEqual((overview.quizzes.total, overview.quizzes.total_questions), (2, 9))
        self.assertEqual(overview.certificates_issued, 4)
        dumped = overview.model_dump(by_alias=True)
        self.assertIn("totalLessons", dumped)
        self.assertIn("totalQuestions", dumped["quizzes"])

    def test_missing_aggregates_default_to_zero(self) -> None:
        course = {"id": 5, "title": "Intro", "published": False, "instructor_id": 2, "instructor_name": None}
        overview = CourseService(self._db(course, {"progress": [{"average_progress": None}]})).get_course_overview(5)
        self.assertEqual(overview.instructor.name, "Unknown")
        self.assertEqual(overview.total_lessons, 0)
        self.assertEqual(overview.enrollments.active, 0)
        self.assertEqual(overview.average_progress, 0)
        self.assertEqual(overview.quizzes.total, 0)
        self.assertEqual(overview.certificates_issued, 0)

    def test_failing_read_fails_overview(self) -> None:
        course = {"id": 5, "title": "Intro", "published": True, "instructor_id": 2, "instructor_name": "Ann"}
        db = self._db(course, {})
        original = db.query.side_effect

        def query(sql: str, params=()) -> QueryResult:
            if "FROM certificates" in sql:
                raise RuntimeError("connection lost")
            return original(sql, params)

        db.query.side_effect = query
        with self.assertRaises(RuntimeError):
            CourseService(db).get_course_overview(5)
