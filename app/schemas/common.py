"""Shared schemas: validation results and pagination."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


class FieldError(BaseModel):
    """One violated rule for one input field."""

    field: str
    message: str


class ValidationResult(BaseModel):
    """All violations found in an input, in the order the rules were checked."""

    errors: list[FieldError] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def add(self, field: str, message: str) -> None:
        self.errors.append(FieldError(field=field, message=message))

    def error_dicts(self) -> list[dict[str, str]]:
        return [e.model_dump() for e in self.errors]


class Pagination(BaseModel):
    """Requested page window, already clamped to sane values."""

    page: int = Field(default=DEFAULT_PAGE, ge=1)
    limit: int = Field(default=DEFAULT_LIMIT, ge=1, le=MAX_LIMIT)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class PageInfo(BaseModel):
    """Pagination block returned alongside a list."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    page: int
    limit: int
    total: int
    total_pages: int
