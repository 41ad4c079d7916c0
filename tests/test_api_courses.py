"""API tests for course endpoints: visibility, ownership, admin-only delete and id parsing."""

import unittest
from datetime import datetime
from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from app.core.database import QueryResult, get_db
from app.core.security import generate_token
from app.main import app

ADMIN = {"id": 1, "email": "admin@example.com", "role": "admin"}
OWNER = {"id": 2, "email": "owner@example.com", "role": "instructor"}
OTHER = {"id": 3, "email": "other@example.com", "role": "instructor"}
STUDENT = {"id": 4, "email": "student@example.com", "role": "student"}

DRAFT = {
    "id": 5,
    "title": "Intro",
    "description": None,
    "price_cents": 4999,
    "published": False,
    "instructor_id": 2,
    "created_at": datetime(2025, 1, 1),
    "updated_at": datetime(2025, 1, 2),
}


def _auth(user: dict) -> dict[str, str]:
    return {"Authorization": f"Bearer {generate_token(user)}"}


class CourseApiTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.db = MagicMock()
        app.dependency_overrides[get_db] = lambda: self.db
        self.client = TestClient(app, raise_server_exceptions=False)

    def tearDown(self) -> None:
        app.dependency_overrides.clear()

    def assertError(self, response, status: int, code: str) -> None:
        self.assertEqual(response.status_code, status, response.text)
        self.assertEqual(response.json()["error"]["code"], code)


class TestListCourses(CourseApiTestCase):
    def test_anonymous_sees_published_only(self) -> None:
        self.db.query.side_effect = [
            QueryResult(rows=[{"total": 1}]),
            QueryResult(rows=[{**DRAFT, "published": True, "instructor_name": "Owner"}]),
        ]
        response = self.client.get("/api/v1/courses", params={"q": "  intro ", "page": "1", "limit": "5"})
        self.assertEqual(response.status_code, 200, response.text)
        body = response.json()
        self.assertEqual(body["pagination"], {"page": 1, "limit": 5, "total": 1, "totalPages": 1})
        self.assertEqual(body["data"][0]["instructor"], {"id": 2, "name": "Owner"})
        count_sql, count_params = self.db.query.call_args_list[0].args
        self.assertIn("c.published = true", count_sql)
        self.assertEqual(count_params, ["%intro%"])

    def test_instructor_sees_own_courses(self) -> None:
        self.db.query.side_effect = [QueryResult(rows=[{"total": 0}]), QueryResult(rows=[])]
        self.client.get("/api/v1/courses", headers=_auth(OWNER))
        count_sql, count_params = self.db.query.call_args_list[0].args
        self.assertIn("c.instructor_id = %s", count_sql)
        self.assertNotIn("c.published", count_sql)
        self.assertEqual(count_params, [2])

    def test_bad_token_is_treated_as_anonymous(self) -> None:
        self.db.query.side_effect = [QueryResult(rows=[{"total": 0}]), QueryResult(rows=[])]
        response = self.client.get("/api/v1/courses", headers={"Authorization": "Bearer garbage"})
        self.assertEqual(response.status_code, 200)
        self.assertIn("c.published = true", self.db.query.call_args_list[0].args[0])


class TestGetCourse(CourseApiTestCase):
    def test_invalid_id(self) -> None:
        self.assertError(self.client.get("/api/v1/courses/abc"), 400, "INVALID_ID")
        self.db.query.assert_not_called()

    def test_draft_hidden_from_anonymous_and_students(self) -> None:
        self.db.query.return_value = QueryResult(rows=[{**DRAFT, "instructor_name": "Owner"}])
        self.assertError(self.client.get("/api/v1/courses/5"), 404, "COURSE_NOT_FOUND")
        self.assertError(self.client.get("/api/v1/courses/5", headers=_auth(STUDENT)), 404, "COURSE_NOT_FOUND")

    def test_draft_visible_to_owner(self) -> None:
        self.db.query.return_value = QueryResult(rows=[{**DRAFT, "instructor_name": "Owner"}])
        response = self.client.get("/api/v1/courses/5", headers=_auth(OWNER))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["instructor"]["name"], "Owner")


class TestCreateCourse(CourseApiTestCase):
    def test_requires_authentication(self) -> None:
        response = self.client.post("/api/v1/courses", json={"title": "Intro", "price_cents": 100})
        self.assertError(response, 401, "UNAUTHORIZED")

    def test_student_forbidden(self) -> None:
        response = self.client.post(
            "/api/v1/courses", json={"title": "Intro", "price_cents": 100}, headers=_auth(STUDENT)
        )
        self.assertError(response, 403, "FORBIDDEN")

    def test_invalid_body(self) -> None:
        response = self.client.post(
            "/api/v1/courses", json={"title": "Intro", "price_cents": -1}, headers=_auth(OWNER)
        )
        self.assertError(response, 400, "VALIDATION_ERROR")

    def test_instructor_creates(self) -> None:
        self.db.query.return_value = QueryResult(rows=[DRAFT], row_count=1)
        response = self.client.post(
            "/api/v1/courses", json={"title": "Intro", "price_cents": "49.99"}, headers=_auth(OWNER)
        )
        self.assertEqual(response.status_code, 201, response.text)
        self.assertEqual(self.db.query.call_args.args[1], ["Intro", None, 4999, 2])


class TestUpdateCourse(CourseApiTestCase):
    def test_other_instructor_forbidden(self) -> None:
        self.db.query.return_value = QueryResult(rows=[{"id": 5, "instructor_id": 2}])
        response = self.client.put("/api/v1/courses/5", json={"title": "X"}, headers=_auth(OTHER))
        self.assertError(response, 403, "FORBIDDEN")

    def test_owner_cannot_reassign_instructor(self) -> None:
        self.db.query.side_effect = [
            QueryResult(rows=[{"id": 5, "instructor_id": 2}]),
            QueryResult(rows=[{**DRAFT, "title": "New"}], row_count=1),
        ]
        response = self.client.put(
            "/api/v1/courses/5", json={"title": "New", "instructor_id": 9}, headers=_auth(OWNER)
        )
        self.assertEqual(response.status_code, 200, response.text)
        sql, params = self.db.query.call_args.args
        self.assertNotIn("instructor_id = %s", sql.split("WHERE")[0])
        self.assertEqual(params, ["New", 5])

    def test_missing_course(self) -> None:
        self.db.query.return_value = QueryResult(rows=[])
        response = self.client.put("/api/v1/courses/5", json={"title": "X"}, headers=_auth(ADMIN))
        # Existence is checked together with permission.
        self.assertError(response, 403, "FORBIDDEN")


class TestDeleteCourse(CourseApiTestCase):
    def test_non_admins_forbidden(self) -> None:
        for headers in ({}, _auth(OWNER), _auth(STUDENT)):
            with self.subTest(headers=headers):
                self.assertError(self.client.delete("/api/v1/courses/5", headers=headers), 403, "FORBIDDEN")
        self.db.query.assert_not_called()

    def test_admin_deletes(self) -> None:
        self.db.query.return_value = QueryResult(row_count=1)
        response = self.client.delete("/api/v1/courses/5", headers=_auth(ADMIN))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["message"], "Course deleted successfully")

    def test_admin_missing_course(self) -> None:
        self.db.query.return_value = QueryResult(row_count=0)
        self.assertError(self.client.delete("/api/v1/courses/5", headers=_auth(ADMIN)), 404, "COURSE_NOT_FOUND")


class TestPublish(CourseApiTestCase):
    def test_owner_publishes(self) -> None:
        self.db.query.side_effect = [
            QueryResult(rows=[{"id": 5, "instructor_id": 2}]),
            QueryResult(rows=[{**DRAFT, "published": True}], row_count=1),
        ]
        response = self.client.post("/api/v1/courses/5/publish", headers=_auth(OWNER))
        self.assertEqual(response.status_code, 200, response.text)
        self.assertIs(response.json()["data"]["published"], True)
        self.assertEqual(self.db.query.call_args.args[1], [True, 5])

    def test_student_cannot_unpublish(self) -> None:
        self.db.query.return_value = QueryResult(rows=[{"id": 5, "instructor_id": 2}])
        response = self.client.post("/api/v1/courses/5/unpublish", headers=_auth(STUDENT))
        self.assertError(response, 403, "FORBIDDEN")


class TestOverview(CourseApiTestCase):
    def _query(self, published: bool):
        def query(sql: str, params=()) -> QueryResult:
            if sql.startswith("SELECT c.id"):
                return QueryResult(
                    rows=[{"id": 5, "title": "Intro", "published": published, "instructor_id": 2, "instructor_name": None}]
                )
            return QueryResult(rows=[])

        return query

    def test_published_overview(self) -> None:
        self.db.query.side_effect = self._query(True)
        response = self.client.get("/api/v1/courses/5/overview")
        self.assertEqual(response.status_code, 200, response.text)
        data = response.json()["data"]
        self.assertEqual(data["instructor"], {"id": 2, "name": "Unknown"})
        self.assertEqual(data["totalLessons"], 0)
        self.assertEqual(data["averageProgress"], 0)
        self.assertEqual(data["quizzes"], {"total": 0, "totalQuestions": 0})

    def test_draft_overview_hidden_before_aggregating(self) -> None:
        self.db.query.side_effect = self._query(False)
        for headers in ({}, _auth(STUDENT), _auth(OTHER)):
            with self.subTest(headers=headers):
                self.db.query.reset_mock()
                self.assertError(
                    self.client.get("/api/v1/courses/5/overview", headers=headers), 404, "COURSE_NOT_FOUND"
                )
                # Only the course row is read; no aggregate queries run.
                self.assertEqual(self.db.query.call_count, 1)

    def test_draft_overview_visible_to_owner(self) -> None:
        self.db.query.side_effect = self._query(False)
        response = self.client.get("/api/v1/courses/5/overview", headers=_auth(OWNER))
        self.assertEqual(response.status_code, 200, response.text)
        self.assertEqual(self.db.query.call_count, 6)
