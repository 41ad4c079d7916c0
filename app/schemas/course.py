"""Course schemas: validated create/update structures, list filters and the overview aggregate."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.schemas.common import DEFAULT_LIMIT, DEFAULT_PAGE, MAX_LIMIT, PageInfo

TITLE_MAX_LEN = 255
# courses.price_cents is a 32-bit INTEGER column.
MAX_PRICE_CENTS = 2_147_483_647


class CourseCreate(BaseModel):
    """Course fields after validation and price normalization."""

    title: str = Field(..., min_length=1, max_length=TITLE_MAX_LEN)
    description: str | None = None
    price_cents: int = Field(..., ge=0, le=MAX_PRICE_CENTS)
    instructor_id: int | None = Field(default=None, gt=0)


class CourseUpdate(BaseModel):
    """Partial course update. Only explicitly set fields are written."""

    title: str | None = Field(default=None, min_length=1, max_length=TITLE_MAX_LEN)
    description: str | None = None
    price_cents: int | None = Field(default=None, ge=0, le=MAX_PRICE_CENTS)
    instructor_id: int | None = Field(default=None, gt=0)


class CourseFilters(BaseModel):
    """AND-combined list filters plus the page window."""

    page: int = Field(default=DEFAULT_PAGE, ge=1)
    limit: int = Field(default=DEFAULT_LIMIT, ge=1, le=MAX_LIMIT)
    search: str | None = None
    published_only: bool = False
    instructor_id: int | None = None


class CourseList(BaseModel):
    courses: list[dict[str, Any]]
    pagination: PageInfo


class InstructorRef(BaseModel):
    id: int
    name: str


class EnrollmentStats(BaseModel):
    active: int = 0
    completed: int = 0


class QuizStats(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total: int = 0
    total_questions: int = 0


class CourseOverview(BaseModel):
    """Course dashboard: content counts, enrollment figures and certificates."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int
    title: str
    published: bool
    instructor: InstructorRef
    total_lessons: int = 0
    enrollments: EnrollmentStats
    average_progress: int = 0
    quizzes: QuizStats
    certificates_issued: int = 0
    updated_at: datetime | None = None
