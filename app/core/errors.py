"""Typed application errors. Each carries the HTTP status and stable error code it maps to."""

from typing import Any

GENERIC_INTERNAL_MESSAGE = "Internal server error"


class AppError(Exception):
    """Base for errors that the API layer turns into a failure envelope."""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, details: list[dict[str, Any]] | None = None) -> None:
        self.message = message
        self.details = details
        super().__init__(message)


class ValidationError(AppError):
    """Client input is malformed. details lists every violated rule as {field, message}."""

    status_code = 400
    code = "VALIDATION_ERROR"

    @classmethod
    def from_errors(cls, errors: list[dict[str, Any]]) -> "ValidationError":
        message = errors[0]["message"] if errors else "Invalid input"
        return cls(message, details=errors)


class InvalidIdError(AppError):
    status_code = 400
    code = "INVALID_ID"


class AuthenticationError(AppError):
    """Missing or unusable credentials."""

    status_code = 401
    code = "UNAUTHORIZED"


class TokenExpiredError(AuthenticationError):
    """Token was valid but its exp has passed; callers can ask the user to log in again."""

    def __init__(self, message: str = "Token has expired. Please log in again") -> None:
        super().__init__(message)


class TokenSignatureError(AuthenticationError):
    """Token signature does not match the server secret or algorithm."""

    def __init__(self, message: str = "Invalid token signature") -> None:
        super().__init__(message)


class MalformedTokenError(AuthenticationError):
    """Token is not a well-formed JWT or lacks required claims."""

    def __init__(self, message: str = "Malformed token") -> None:
        super().__init__(message)


class InvalidCredentialsError(AppError):
    status_code = 401
    code = "INVALID_CREDENTIALS"

    def __init__(self, message: str = "Invalid email or password") -> None:
        super().__init__(message)


class AuthorizationError(AppError):
    """Authenticated, but the actor's role or ownership does not allow the operation."""

    status_code = 403
    code = "FORBIDDEN"


class NotFoundError(AppError):
    """Resource is absent, or hidden from this actor."""

    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code


class CourseNotFoundError(NotFoundError):
    code = "COURSE_NOT_FOUND"

    def __init__(self, message: str = "Course not found") -> None:
        super().__init__(message)


class UserNotFoundError(NotFoundError):
    code = "USER_NOT_FOUND"

    def __init__(self, message: str = "User not found") -> None:
        super().__init__(message)


class ConflictError(AppError):
    status_code = 409
    code = "EMAIL_EXISTS"


class InternalError(AppError):
    """Unexpected failure. The message is fixed by the caller and never carries internal detail."""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str = GENERIC_INTERNAL_MESSAGE) -> None:
        super().__init__(message)
