"""ORM model for application users (auth and RBAC)."""

from sqlalchemy import CheckConstraint, Column, Integer, String

from app.models.base import Base, timestamp_column


class User(Base):
    """
    User account for JWT authentication and role-based access control.

    role: 'admin', 'instructor' or 'student'. email is stored lowercase.
    """

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("role IN ('admin', 'instructor', 'student')", name="users_role_check"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, server_default="student")
    created_at = timestamp_column()
    updated_at = timestamp_column()
