"""Registration, login and current-user routes."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bookshelf.api.schemas import (
    CurrentUserResponse,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    RegisterResponse,
    UserResponse,
)
from bookshelf.core.config import get_settings
from bookshelf.core.database import get_db
from bookshelf.core.security import (
    UNAUTHENTICATED_DETAIL,
    create_access_token,
    get_current_user_id,
    hash_password,
    verify_password,
)
from bookshelf.models.user import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=RegisterResponse)
async def register(
    data: RegisterRequest,
    db: AsyncSession = Depends(get_db),
) -> RegisterResponse:
    """Create a user account."""
    existing = await db.execute(select(User.id).where(User.email == data.email))
    if existing.scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="کاربری با این ایمیل وجود دارد",
        )

    user = User(
        email=data.email,
        name=data.name,
        password_hash=hash_password(data.password),
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)

    logger.info(f"Registered user {user.id}")

    return RegisterResponse(message="ثبت‌نام موفق", user=UserResponse.model_validate(user))


@router.post("/login", response_model=MessageResponse)
async def login(
    data: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Check credentials and set the auth cookie."""
    result = await db.execute(select(User).where(User.email == data.email))
    user = result.scalar_one_or_none()

    # Same answer for unknown email and wrong password
    if user is None or not verify_password(user.password_hash, data.password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="ایمیل یا رمز عبور اشتباه است",
        )

    settings = get_settings()
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=create_access_token(user.id),
        max_age=settings.access_token_expire_seconds,
        path="/",
        httponly=True,
        samesite="strict",
        secure=settings.cookie_secure,
    )

    return MessageResponse(message="ورود موفق")


@router.post("/logout", response_model=MessageResponse)
async def logout(response: Response) -> MessageResponse:
    """Clear the auth cookie."""
    response.delete_cookie(key=get_settings().auth_cookie_name, path="/")
    return MessageResponse(message="خروج موفق")


@router.get("/me", response_model=CurrentUserResponse)
async def me(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> CurrentUserResponse:
    """Return the logged-in user."""
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    # A valid token for a deleted user is still unauthenticated
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=UNAUTHENTICATED_DETAIL,
        )

    return CurrentUserResponse(user=UserResponse.model_validate(user))
