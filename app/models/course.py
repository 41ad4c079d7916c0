"""ORM models for courses and their lessons."""

from sqlalchemy import Boolean, CheckConstraint, Column, ForeignKey, Index, Integer, String, Text, false

from app.models.base import Base, timestamp_column


class Course(Base):
    """A priced course owned by an instructor (or admin). Deleting the owner deletes the course."""

    __tablename__ = "courses"
    __table_args__ = (CheckConstraint("price_cents >= 0", name="courses_price_cents_check"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    price_cents = Column(Integer, nullable=False)
    published = Column(Boolean, nullable=False, server_default=false(), index=True)
    instructor_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at = timestamp_column()
    updated_at = timestamp_column()


class Lesson(Base):
    __tablename__ = "lessons"
    __table_args__ = (Index("ix_lessons_course_id_position", "course_id", "position"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    course_id = Column(
        Integer,
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title = Column(String(255), nullable=False)
    content_md = Column(Text, nullable=True)
    video_url = Column(String(500), nullable=True)
    position = Column(Integer, nullable=False)
    created_at = timestamp_column()
    updated_at = timestamp_column()
