"""Password hashing, JWT issuance/verification and the public user profile projection."""

from collections.abc import Mapping
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
import jwt

from app.core.config import get_settings
from app.core.errors import MalformedTokenError, TokenExpiredError, TokenSignatureError
from app.schemas.auth import TokenPayload, UserProfile

# Bcrypt cost (rounds).
BCRYPT_ROUNDS = 12
# bcrypt only looks at the first 72 bytes of input.
BCRYPT_MAX_BYTES = 72

JWT_ALGORITHM = "HS256"
TOKEN_TTL = timedelta(hours=24)
REQUIRED_CLAIMS = ["sub", "email", "role", "iat", "exp"]


def hash_password(plain_password: str) -> str:
    """Hash a plain-text password for storage. Each call uses a fresh random salt."""
    pw_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash."""
    pw_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def _field(user: Mapping[str, Any] | Any, name: str) -> Any:
    if isinstance(user, Mapping):
        return user.get(name)
    return getattr(user, name, None)


def generate_token(user: Mapping[str, Any] | Any) -> str:
    """Create a signed access token for user (id, email, role) valid for exactly 24 hours."""
    now = datetime.now(UTC).replace(microsecond=0)
    role = _field(user, "role")
    payload: dict[str, Any] = {
        # Registered claim: sub must be a string on the wire.
        "sub": str(_field(user, "id")),
        "email": _field(user, "email"),
        "role": str(role.value if hasattr(role, "value") else role),
        "iat": now,
        "exp": now + TOKEN_TTL,
    }
    secret = get_settings().JWT_SECRET.get_secret_value()
    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


def verify_token(token: str) -> TokenPayload:
    """
    Verify signature and expiry; return the payload with sub as the integer user id.

    Raises TokenExpiredError, TokenSignatureError or MalformedTokenError so callers
    can tell "log in again" apart from a rejected token.
    """
    secret = get_settings().JWT_SECRET.get_secret_value()
    try:
        claims = jwt.decode(
            token,
            secret,
            algorithms=[JWT_ALGORITHM],
            options={"require": REQUIRED_CLAIMS},
        )
    except jwt.ExpiredSignatureError as e:
        raise TokenExpiredError() from e
    except (jwt.InvalidSignatureError, jwt.InvalidAlgorithmError) as e:
        raise TokenSignatureError() from e
    except jwt.PyJWTError as e:
        raise MalformedTokenError() from e

    try:
        return TokenPayload(
            sub=int(claims["sub"]),
            email=claims["email"],
            role=claims["role"],
            iat=claims["iat"],
            exp=claims["exp"],
        )
    except (TypeError, ValueError) as e:
        raise MalformedTokenError("Invalid token payload") from e


def extract_bearer_token(authorization: str | None) -> str | None:
    """Return the token from an 'Authorization: Bearer <token>' value, or None."""
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def create_user_profile(user: Mapping[str, Any] | Any) -> UserProfile:
    """Project a stored user onto its public fields; the only sanctioned way to expose a user."""
    return UserProfile(
        id=_field(user, "id"),
        email=_field(user, "email"),
        name=_field(user, "name"),
        role=_field(user, "role"),
        created_at=_field(user, "created_at"),
    )
