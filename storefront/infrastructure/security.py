"""Password hashing and signed session tokens."""

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt

from storefront.domain.exceptions import AuthenticationError
from storefront.infrastructure.config import settings

JWT_ALGORITHM = "HS256"


@dataclass
class SessionClaims:
    """Identity carried by a session token."""

    user_id: str
    email: str
    role: str


def hash_password(password: str) -> str:
    """Hash a password with a fresh bcrypt salt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    """Check a password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def generate_token() -> str:
    """Random URL-safe token for verification and reset links."""
    return secrets.token_hex(32)


def create_session_token(user_id: str, email: str, role: str, ttl_hours: int | None = None) -> str:
    """Sign a session token.

    Args:
        user_id: Subject of the token.
        email: Account email.
        role: ADMIN or USER.
        ttl_hours: Lifetime; defaults to ``settings.session_ttl_hours``.

    Returns:
        Encoded JWT.
    """
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "email": email,
        "role": role,
        "iat": now,
        "exp": now + timedelta(hours=ttl_hours or settings.session_ttl_hours),
    }
    return jwt.encode(payload, settings.session_secret, algorithm=JWT_ALGORITHM)


def decode_session_token(token: str) -> SessionClaims:
    """Verify a session token and return its claims.

    Raises:
        AuthenticationError: If the token is expired or invalid.
    """
    try:
        payload = jwt.decode(token, settings.session_secret, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError as e:
        raise AuthenticationError("Session expired") from e
    except jwt.InvalidTokenError as e:
        raise AuthenticationError("Invalid session") from e

    return SessionClaims(
        user_id=str(payload.get("sub", "")),
        email=str(payload.get("email", "")),
        role=str(payload.get("role", "USER")),
    )
