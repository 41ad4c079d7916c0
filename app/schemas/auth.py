"""Auth schemas: roles, the acting user, token payloads and the public user profile."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Role(StrEnum):
    """Closed set of account roles."""

    ADMIN = "admin"
    INSTRUCTOR = "instructor"
    STUDENT = "student"


ROLE_VALUES: tuple[str, ...] = tuple(r.value for r in Role)


class CurrentUser(BaseModel):
    """Authenticated actor (id, email, role) resolved from a verified token."""

    id: int
    email: str
    role: Role


class TokenPayload(BaseModel):
    """Claims of a verified access token. exp is always iat + 24h for tokens we issue."""

    sub: int = Field(..., description="User id")
    email: str
    role: Role
    iat: int
    exp: int


class UserProfile(BaseModel):
    """Public projection of a user record; never carries the password hash."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int
    email: str
    name: str
    role: Role
    created_at: datetime | None = None
