"""PostgreSQL access: one parameterized statement per call, plain dict rows back."""

import logging
from collections.abc import Generator, Sequence
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings

logger = logging.getLogger(__name__)


@dataclass
class QueryResult:
    """Rows returned by a statement plus the driver's affected-row count (may be None)."""

    rows: list[dict[str, Any]] = field(default_factory=list)
    row_count: int | None = None


class Database:
    """
    Thin storage-access wrapper handed to services at construction.

    SQL uses positional %s placeholders; values always travel separately to the
    driver, never formatted into the statement text.
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def query(self, sql: str, params: Sequence[Any] = ()) -> QueryResult:
        """Execute one statement in its own transaction and return its rows."""
        with self.engine.begin() as conn:
            result = conn.exec_driver_sql(sql, tuple(params))
            rows = [dict(row) for row in result.mappings()] if result.returns_rows else []
            return QueryResult(rows=rows, row_count=result.rowcount)

    def check_connected(self) -> bool:
        """Run a trivial query to verify the database is reachable."""
        try:
            self.query("SELECT 1")
            return True
        except SQLAlchemyError as e:
            logger.warning("Database connectivity check failed: %s", e)
            return False


engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    echo=settings.DEBUG,
)

database = Database(engine)


def get_db() -> Generator[Database, None, None]:
    """Dependency that yields the shared Database (override in tests)."""
    yield database
