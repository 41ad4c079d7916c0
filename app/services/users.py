"""User accounts: registration, credential checks and admin management."""

import logging
import math
from typing import Any

from sqlalchemy.exc import IntegrityError

from app.core.database import Database, QueryResult
from app.core.errors import ConflictError, InvalidCredentialsError
from app.core.security import hash_password, verify_password
from app.schemas.common import PageInfo, Pagination
from app.schemas.user import UserCreate, UserUpdate

logger = logging.getLogger(__name__)

PUBLIC_COLUMNS = "id, email, name, role, created_at"


class UserService:
    """User operations over an injected Database. Emails are stored and matched lowercase."""

    def __init__(self, db: Database) -> None:
        self.db = db

    def _email_taken(self, email: str, exclude_id: int | None = None) -> bool:
        if exclude_id is None:
            result = self.db.query("SELECT id FROM users WHERE email = %s", [email])
        else:
            result = self.db.query(
                "SELECT id FROM users WHERE email = %s AND id <> %s", [email, exclude_id]
            )
        return bool(result.rows)

    def _write(self, sql: str, params: list[Any]) -> QueryResult:
        """
        Run an INSERT or UPDATE on users.

        The email check above is a separate read, so a concurrent writer can still win;
        the unique index on email is the only constraint user writes can violate.
        """
        try:
            return self.db.query(sql, params)
        except IntegrityError as e:
            logger.info("Email uniqueness violated on write")
            raise ConflictError("Email already registered") from e

    def register(self, data: UserCreate) -> dict[str, Any]:
        """Create an account. Raises ConflictError when the email is already registered."""
        email = data.email.strip().lower()
        if self._email_taken(email):
            raise ConflictError("Email already registered")

        password_hash = hash_password(data.password)
        result = self._write(
            "INSERT INTO users (email, password_hash, name, role) VALUES (%s, %s, %s, %s) "
            f"RETURNING {PUBLIC_COLUMNS}",
            [email, password_hash, data.name, data.role.value],
        )
        user = result.rows[0]
        logger.info("User registered: id=%s role=%s", user.get("id"), user.get("role"))
        return user

    def authenticate(self, email: str, password: str) -> dict[str, Any]:
        """
        Return the stored user for valid credentials.

        Unknown email and wrong password raise the same InvalidCredentialsError.
        """
        result = self.db.query(
            "SELECT id, email, password_hash, name, role, created_at FROM users WHERE email = %s",
            [email.strip().lower()],
        )
        user = result.rows[0] if result.rows else None
        if user is None or not verify_password(password, user.get("password_hash") or ""):
            logger.info("Failed login attempt")
            raise InvalidCredentialsError()
        return user

    def get_user(self, user_id: int) -> dict[str, Any] | None:
        result = self.db.query(f"SELECT {PUBLIC_COLUMNS} FROM users WHERE id = %s", [user_id])
        return result.rows[0] if result.rows else None

    def list_users(self, pagination: Pagination | None = None) -> tuple[list[dict[str, Any]], PageInfo]:
        pagination = pagination or Pagination()
        count_result = self.db.query("SELECT COUNT(*) AS total FROM users", [])
        total = int(count_result.rows[0]["total"]) if count_result.rows else 0
        result = self.db.query(
            f"SELECT {PUBLIC_COLUMNS} FROM users ORDER BY id LIMIT %s OFFSET %s",
            [pagination.limit, pagination.offset],
        )
        page_info = PageInfo(
            page=pagination.page,
            limit=pagination.limit,
            total=total,
            total_pages=math.ceil(total / pagination.limit),
        )
        return result.rows, page_info

    def update_user(self, user_id: int, updates: UserUpdate) -> dict[str, Any] | None:
        """Write only the fields set on updates; empty update returns the current row."""
        changes = updates.model_dump(exclude_unset=True, exclude_none=True)
        assignments: list[str] = []
        params: list[Any] = []

        if "email" in changes:
            email = changes["email"].strip().lower()
            if self._email_taken(email, exclude_id=user_id):
                raise ConflictError("Email already registered")
            assignments.append("email = %s")
            params.append(email)
        if "name" in changes:
            assignments.append("name = %s")
            params.append(changes["name"])
        if "password" in changes:
            assignments.append("password_hash = %s")
            params.append(hash_password(changes["password"]))
        if "role" in changes:
            assignments.append("role = %s")
            params.append(changes["role"].value)

        if not assignments:
            return self.get_user(user_id)

        params.append(user_id)
        result = self._write(
            f"UPDATE users SET {', '.join(assignments)}, updated_at = NOW() "
            f"WHERE id = %s RETURNING {PUBLIC_COLUMNS}",
            params,
        )
        if not result.rows:
            return None
        logger.info("User updated: id=%s", user_id)
        return result.rows[0]

    def delete_user(self, user_id: int) -> bool:
        """True only when a row was removed. The user's courses cascade in the database."""
        result = self.db.query("DELETE FROM users WHERE id = %s", [user_id])
        deleted = (result.row_count or 0) > 0
        if deleted:
            logger.info("User deleted: id=%s", user_id)
        return deleted
