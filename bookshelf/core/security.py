"""Password hashing, access tokens and the current-user dependency."""

import logging
from datetime import datetime, timedelta, timezone

import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from werkzeug.security import check_password_hash, generate_password_hash

from bookshelf.core.config import get_settings
from bookshelf.core.database import get_db
from bookshelf.models.user import User

logger = logging.getLogger(__name__)

UNAUTHENTICATED_DETAIL = "برای دسترسی باید وارد حساب کاربری شوید"

bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    """Hash a plain-text password for storage."""
    return generate_password_hash(password)


def verify_password(password_hash: str | None, password: str) -> bool:
    """Check a plain-text password against a stored hash."""
    if not password_hash:
        return False
    return check_password_hash(password_hash, password)


def create_access_token(user_id: int, expires_in: int | None = None) -> str:
    """Create a signed access token whose subject is the user id.

    Args:
        user_id: The id of the authenticated user.
        expires_in: Lifetime in seconds. Defaults to the configured lifetime.

    Returns:
        The encoded JWT.
    """
    settings = get_settings()
    if expires_in is None:
        expires_in = settings.access_token_expire_seconds

    now = datetime.now(tz=timezone.utc)
    payload = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + timedelta(seconds=expires_in),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str | None) -> int | None:
    """Verify a token and return the user id it was issued for.

    Returns None for every kind of failure (missing, malformed, forged or
    expired token) so callers cannot tell the reasons apart.
    """
    if not token:
        return None

    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp"]},
        )
        return int(payload["sub"])
    except (jwt.PyJWTError, ValueError, TypeError):
        return None


async def get_current_user_id(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> int:
    """Dependency that resolves the caller's user id.

    The token is read from the auth cookie, falling back to an
    ``Authorization: Bearer`` header. A token whose user no longer
    exists is rejected like an invalid one.
    """
    token = request.cookies.get(get_settings().auth_cookie_name)
    if not token and credentials is not None:
        token = credentials.credentials

    user_id = decode_access_token(token)
    if user_id is None:
        logger.debug(f"Rejected request to {request.url.path}: missing or invalid token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=UNAUTHENTICATED_DETAIL,
        )

    result = await db.execute(select(User.id).where(User.id == user_id))
    if result.scalar_one_or_none() is None:
        logger.info(f"Rejected request to {request.url.path}: user {user_id} no longer exists")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=UNAUTHENTICATED_DETAIL,
        )
    return user_id
