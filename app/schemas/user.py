"""User schemas: validated create/update structures."""

from pydantic import BaseModel, Field

from app.schemas.auth import Role

NAME_MAX_LEN = 255
PASSWORD_MIN_LEN = 6


class UserCreate(BaseModel):
    email: str = Field(..., min_length=3)
    name: str = Field(..., min_length=1, max_length=NAME_MAX_LEN)
    password: str = Field(..., min_length=PASSWORD_MIN_LEN)
    role: Role = Role.STUDENT


class UserUpdate(BaseModel):
    """Partial user update. Only explicitly set fields are written."""

    email: str | None = None
    name: str | None = Field(default=None, min_length=1, max_length=NAME_MAX_LEN)
    password: str | None = Field(default=None, min_length=PASSWORD_MIN_LEN)
    role: Role | None = None
