"""SQLAlchemy declarative Base and shared column helpers."""

from sqlalchemy import Column, DateTime, func
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""

    pass


def timestamp_column() -> Column:
    """Non-null timestamp defaulting to the database clock."""
    return Column(DateTime, nullable=False, server_default=func.current_timestamp())
