"""Core app configuration, database access, security and errors."""

from app.core.config import get_settings, settings
from app.core.database import Database, QueryResult, get_db

__all__ = ["get_settings", "settings", "Database", "QueryResult", "get_db"]
