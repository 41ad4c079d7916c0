"""
Input validation and normalization for untrusted request data.

validate_* functions inspect a loosely-typed mapping and report every violated
rule in a ValidationResult; they never raise for bad input. parse_* helpers turn
a mapping that passed validation into the strict schema the services accept.
"""

import math
import re
from collections.abc import Mapping
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from app.core.errors import InvalidIdError, ValidationError
from app.schemas.auth import ROLE_VALUES
from app.schemas.common import DEFAULT_LIMIT, DEFAULT_PAGE, MAX_LIMIT, Pagination, ValidationResult
from app.schemas.course import MAX_PRICE_CENTS, TITLE_MAX_LEN, CourseCreate, CourseUpdate
from app.schemas.user import NAME_MAX_LEN, PASSWORD_MIN_LEN, UserCreate, UserUpdate

# One "@", non-empty local part, dotted domain, no whitespace.
_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
# Leading integer of a string, the way query strings are read ("20abc" -> 20).
_LEADING_INT_PATTERN = re.compile(r"^\s*([+-]?\d+)")
_ID_PATTERN = re.compile(r"^\d+$")
# Base-10 exponent bound for prices; well above MAX_PRICE_CENTS, far below costly int sizes.
_MAX_PRICE_DIGITS = 18

_ROLE_MESSAGE = "Role must be one of: " + ", ".join(ROLE_VALUES)


def is_valid_email(value: Any) -> bool:
    return isinstance(value, str) and bool(_EMAIL_PATTERN.match(value))


def _present(data: Mapping[str, Any], key: str) -> bool:
    return key in data and data[key] is not None


# --- users -----------------------------------------------------------------


def _check_name(result: ValidationResult, name: str) -> None:
    if not name.strip():
        result.add("name", "Name cannot be empty")
    elif len(name) > NAME_MAX_LEN:
        result.add("name", f"Name must be {NAME_MAX_LEN} characters or less")


def _check_password(result: ValidationResult, password: str) -> None:
    if len(password) < PASSWORD_MIN_LEN:
        result.add("password", f"Password must be at least {PASSWORD_MIN_LEN} characters long")


def _check_role(result: ValidationResult, data: Mapping[str, Any]) -> None:
    if _present(data, "role") and data["role"] not in ROLE_VALUES:
        result.add("role", _ROLE_MESSAGE)


def validate_create_user(data: Mapping[str, Any]) -> ValidationResult:
    result = ValidationResult()

    email = data.get("email")
    if not email or not isinstance(email, str):
        result.add("email", "Email is required and must be a string")
    elif not is_valid_email(email.strip()):
        result.add("email", "Invalid email format")

    name = data.get("name")
    if name is None or not isinstance(name, str):
        result.add("name", "Name is required and must be a string")
    else:
        _check_name(result, name)

    password = data.get("password")
    if not password or not isinstance(password, str):
        result.add("password", "Password is required and must be a string")
    else:
        _check_password(result, password)

    _check_role(result, data)
    return result


def validate_update_user(data: Mapping[str, Any]) -> ValidationResult:
    """Same rules as create, applied only to the fields that are present."""
    result = ValidationResult()

    if _present(data, "email"):
        if not isinstance(data["email"], str):
            result.add("email", "Email must be a string")
        elif not is_valid_email(data["email"].strip()):
            result.add("email", "Invalid email format")

    if _present(data, "name"):
        if not isinstance(data["name"], str):
            result.add("name", "Name must be a string")
        else:
            _check_name(result, data["name"])

    if _present(data, "password"):
        if not isinstance(data["password"], str):
            result.add("password", "Password must be a string")
        else:
            _check_password(result, data["password"])

    _check_role(result, data)
    return result


# --- courses ---------------------------------------------------------------


def normalize_price(value: Any) -> int | None:
    """
    Return a price as integer cents, or None when it is not a usable number.

    Whole values are taken as cents already (4999 -> 4999). Fractional values are
    currency amounts and are rounded half-up to the cent (49.995 -> 5000).
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        amount = Decimal(repr(value))
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            amount = Decimal(text)
        except InvalidOperation:
            return None
    elif isinstance(value, Decimal):
        amount = value
    else:
        return None

    if not amount.is_finite():
        return None
    # Reject huge exponents ("1e2000000") before any integer conversion.
    if amount.adjusted() > _MAX_PRICE_DIGITS:
        return None
    if amount == amount.to_integral_value():
        return int(amount)
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _check_price(result: ValidationResult, value: Any) -> None:
    cents = normalize_price(value)
    if cents is None:
        result.add("price_cents", "Price must be a valid number")
    elif cents < 0:
        result.add("price_cents", "Price cannot be negative")
    elif cents > MAX_PRICE_CENTS:
        result.add("price_cents", f"Price cannot exceed {MAX_PRICE_CENTS} cents")


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _check_instructor_id(result: ValidationResult, data: Mapping[str, Any]) -> None:
    if _present(data, "instructor_id") and not _is_positive_int(data["instructor_id"]):
        result.add("instructor_id", "Instructor ID must be a positive integer")


def _check_title_text(result: ValidationResult, title: str) -> None:
    if not title.strip():
        result.add("title", "Title cannot be empty")
    elif len(title) > TITLE_MAX_LEN:
        result.add("title", f"Title must be {TITLE_MAX_LEN} characters or less")


def _check_description(result: ValidationResult, data: Mapping[str, Any]) -> None:
    if _present(data, "description") and not isinstance(data["description"], str):
        result.add("description", "Description must be a string")


def validate_create_course(data: Mapping[str, Any]) -> ValidationResult:
    result = ValidationResult()

    title = data.get("title")
    if not title or not isinstance(title, str):
        result.add("title", "Title is required and must be a string")
    else:
        _check_title_text(result, title)

    _check_description(result, data)

    if not _present(data, "price_cents"):
        result.add("price_cents", "Price is required")
    else:
        _check_price(result, data["price_cents"])

    _check_instructor_id(result, data)
    return result


def validate_update_course(data: Mapping[str, Any]) -> ValidationResult:
    """Same rules as create for the fields that are present; an empty update is valid."""
    result = ValidationResult()

    if "title" in data:
        if not isinstance(data["title"], str):
            result.add("title", "Title must be a string")
        else:
            _check_title_text(result, data["title"])

    _check_description(result, data)

    if _present(data, "price_cents"):
        _check_price(result, data["price_cents"])

    _check_instructor_id(result, data)
    return result


# --- query parameters ------------------------------------------------------


def _parse_int(value: Any) -> int | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, str):
        match = _LEADING_INT_PATTERN.match(value)
        return int(match.group(1)) if match else None
    return None


def validate_pagination(params: Mapping[str, Any]) -> Pagination:
    """Read page/limit from raw query values. Never fails: bad values fall back to defaults."""
    page = _parse_int(params.get("page"))
    if page is None or page < 1:
        page = DEFAULT_PAGE

    limit = _parse_int(params.get("limit"))
    if limit is None or limit <= 0 or limit > MAX_LIMIT:
        limit = DEFAULT_LIMIT

    return Pagination(page=page, limit=limit)


def sanitize_search(value: Any) -> str | None:
    """Trimmed search text, or None for blank or non-string input."""
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    return trimmed or None


def parse_id(raw: Any, label: str = "ID") -> int:
    """Parse a path identifier; only positive decimal integers are accepted."""
    if isinstance(raw, int) and not isinstance(raw, bool):
        if raw > 0:
            return raw
    elif isinstance(raw, str) and _ID_PATTERN.match(raw) and int(raw) > 0:
        return int(raw)
    raise InvalidIdError(f"Invalid {label}")


# --- raw mapping -> strict schema ------------------------------------------


def _raise_if_invalid(result: ValidationResult) -> None:
    if not result.is_valid:
        raise ValidationError.from_errors(result.error_dicts())


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def parse_create_user(data: Mapping[str, Any]) -> UserCreate:
    _raise_if_invalid(validate_create_user(data))
    fields: dict[str, Any] = {
        "email": data["email"].strip().lower(),
        "name": data["name"].strip(),
        "password": data["password"],
    }
    if _present(data, "role"):
        fields["role"] = data["role"]
    return UserCreate(**fields)


def parse_update_user(data: Mapping[str, Any]) -> UserUpdate:
    _raise_if_invalid(validate_update_user(data))
    fields: dict[str, Any] = {}
    if _present(data, "email"):
        fields["email"] = data["email"].strip().lower()
    if _present(data, "name"):
        fields["name"] = data["name"].strip()
    if _present(data, "password"):
        fields["password"] = data["password"]
    if _present(data, "role"):
        fields["role"] = data["role"]
    return UserUpdate(**fields)


def parse_create_course(data: Mapping[str, Any]) -> CourseCreate:
    _raise_if_invalid(validate_create_course(data))
    return CourseCreate(
        title=data["title"].strip(),
        description=_blank_to_none(data.get("description")),
        price_cents=normalize_price(data["price_cents"]),
        instructor_id=data.get("instructor_id"),
    )


def parse_update_course(data: Mapping[str, Any]) -> CourseUpdate:
    _raise_if_invalid(validate_update_course(data))
    fields: dict[str, Any] = {}
    if "title" in data:
        fields["title"] = data["title"].strip()
    if "description" in data:
        fields["description"] = _blank_to_none(data["description"])
    if _present(data, "price_cents"):
        fields["price_cents"] = normalize_price(data["price_cents"])
    if _present(data, "instructor_id"):
        fields["instructor_id"] = data["instructor_id"]
    return CourseUpdate(**fields)
