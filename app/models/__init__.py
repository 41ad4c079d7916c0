"""SQLAlchemy ORM models. They define the schema for Alembic; services query with plain SQL."""

from app.models.base import Base
from app.models.course import Course, Lesson
from app.models.enrollment import Certificate, Enrollment, LessonProgress
from app.models.outbox import OutboxEvent
from app.models.quiz import Quiz, QuizQuestion, QuizSubmission
from app.models.user import User

__all__ = [
    "Base",
    "Certificate",
    "Course",
    "Enrollment",
    "Lesson",
    "LessonProgress",
    "OutboxEvent",
    "Quiz",
    "QuizQuestion",
    "QuizSubmission",
    "User",
]
