"""
Credential service: password hashing, signed tokens and request identity.

Tokens are HS256 JWTs. The same signer is used for login tokens
(payload `{"sub": user_id}`) and ticket tokens (payload
`{"event_id", "user_id"}`); only the expiry differs.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import bcrypt
import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.exceptions import Forbidden, Unauthorized
from app.db.session import get_db
from app.models.user import User

settings = get_settings()

bearer_scheme = HTTPBearer(auto_error=False)

# Claims added by the signer, stripped again on verification
_REGISTERED_CLAIMS = ("exp", "iat", "jti")


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))


def sign_token(
    payload: dict[str, Any],
    expires_delta: Optional[timedelta] = None,
    expires_at: Optional[datetime] = None,
) -> str:
    """
    Sign `payload` into a JWT.

    Either an absolute `expires_at` or a relative `expires_delta` can be
    given; the login-token lifetime applies when neither is.
    Every token carries a random `jti`, so signing the same payload twice
    never yields the same token.
    """
    now = datetime.now(timezone.utc)
    if expires_at is None:
        expires_at = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))

    claims = dict(payload)
    claims.update({"exp": expires_at, "iat": now, "jti": uuid.uuid4().hex})
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def verify_token(token: str) -> dict[str, Any]:
    """
    Verify signature and expiry and return the original payload.
    Raises jwt.InvalidTokenError on any failure.
    """
    claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    return {key: value for key, value in claims.items() if key not in _REGISTERED_CLAIMS}


def create_access_token(data: dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    return sign_token(data, expires_delta=expires_delta)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Resolve the bearer token to an active user, or fail with 401."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise Unauthorized("You are not logged in! Please log in to get access.")

    try:
        payload = verify_token(credentials.credentials)
        user_id = int(payload["sub"])
    except (jwt.InvalidTokenError, KeyError, ValueError):
        raise Unauthorized("Invalid token. Please log in again.")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user or not user.is_active:
        raise Unauthorized("The user belonging to this token no longer exists.")
    return user


def require_role(*roles: str):
    """Dependency factory restricting a route to the given roles."""

    async def dependency(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            raise Forbidden()
        return user

    return dependency
