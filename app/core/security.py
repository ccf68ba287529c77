"""Password hashing and JWT access/refresh token creation and verification."""

from datetime import UTC, datetime, timedelta
from typing import Any, TypedDict

import bcrypt
import jwt

from app.core.config import settings

# Min/max password lengths (input validation); bcrypt only looks at 72 bytes.
PASSWORD_MIN_LEN = 6
PASSWORD_MAX_LEN = 128


class TokenClaims(TypedDict):
    """Identity claims embedded in both access and refresh tokens."""

    id: int
    email: str
    role: str


def hash_password(plain_password: str) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    pw_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash."""
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def _encode(payload: dict[str, Any], secret: str, lifetime: timedelta) -> str:
    now = datetime.now(UTC)
    payload = {**payload, "iat": now, "exp": now + lifetime}
    return jwt.encode(payload, secret, algorithm=settings.JWT_ALGORITHM)


def create_access_token(claims: TokenClaims) -> str:
    """Create a short-lived access token carrying {id, email, role}."""
    return _encode(
        {"id": claims["id"], "email": claims["email"], "role": claims["role"]},
        settings.JWT_SECRET.get_secret_value(),
        timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )


def create_refresh_token(claims: TokenClaims, token_version: int) -> str:
    """
    Create a long-lived refresh token signed with the refresh secret.

    tv records the user's token_version at issuance; bumping the version on the
    user row invalidates every refresh token issued before.
    """
    return _encode(
        {
            "id": claims["id"],
            "email": claims["email"],
            "role": claims["role"],
            "tv": token_version,
        },
        settings.JWT_REFRESH_SECRET.get_secret_value(),
        timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
    )


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and validate an access token; return payload (id, email, role, exp, iat).
    Raises jwt.PyJWTError on invalid or expired token.
    """
    return jwt.decode(
        token,
        settings.JWT_SECRET.get_secret_value(),
        algorithms=[settings.JWT_ALGORITHM],
        options={"require": ["exp", "iat"]},
    )


def decode_refresh_token(token: str) -> dict[str, Any]:
    """
    Decode and validate a refresh token; return payload (id, email, role, tv, exp, iat).
    Raises jwt.PyJWTError on invalid or expired token.
    """
    return jwt.decode(
        token,
        settings.JWT_REFRESH_SECRET.get_secret_value(),
        algorithms=[settings.JWT_ALGORITHM],
        options={"require": ["exp", "iat"]},
    )
