"""JWT handling for Supabase-issued access tokens."""

import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from app.core.config import get_settings
from app.core.errors import AuthRequiredError


@dataclass(frozen=True, slots=True)
class CurrentUser:
    """Identity carried by a verified access token."""

    id: uuid.UUID
    email: str | None = None
    display_name: str | None = None


def create_access_token(
    subject: str, expires_delta: timedelta | None = None, **extra: Any
) -> str:
    """Create a JWT shaped like a Supabase access token (tests and local dev)."""
    settings = get_settings()
    if expires_delta is None:
        expires_delta = timedelta(minutes=60)
    expire = datetime.now(UTC) + expires_delta
    claims: dict[str, Any] = {"sub": subject, "exp": expire, "role": "authenticated"}
    if settings.jwt_audience:
        claims["aud"] = settings.jwt_audience
    claims.update(extra)
    return jwt.encode(
        claims, settings.supabase_jwt_secret, algorithm=settings.jwt_algorithm
    )


def decode_access_token(token: str) -> dict[str, Any]:
    """Decode a JWT token, raising JWTError on failure."""
    settings = get_settings()
    options = {"verify_aud": settings.jwt_audience is not None}
    return jwt.decode(
        token,
        settings.supabase_jwt_secret,
        algorithms=[settings.jwt_algorithm],
        audience=settings.jwt_audience,
        options=options,
    )


def user_from_token(token: str) -> CurrentUser:
    """Verify ``token`` and build the caller identity from its claims."""
    payload = decode_access_token(token)
    subject = payload.get("sub")
    if subject is None:
        raise JWTError("Token has no subject")
    try:
        user_id = uuid.UUID(str(subject))
    except ValueError as exc:
        raise JWTError("Token subject is not a user id") from exc
    metadata = payload.get("user_metadata") or {}
    return CurrentUser(
        id=user_id,
        email=payload.get("email"),
        display_name=metadata.get("name") or metadata.get("full_name"),
    )


def require_user(user: CurrentUser | None) -> CurrentUser:
    """Guard for write paths: a missing identity is fatal."""
    if user is None:
        raise AuthRequiredError()
    return user
