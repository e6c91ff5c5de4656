"""Auth API router — signup, login, refresh, logout, me.

Tokens are returned in the body and also set as an httpOnly cookie, which
``resolve_caller`` reads before falling back to the bearer header.
"""

import logging

from fastapi import APIRouter, Depends, Response, status
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bookhaven.api.deps import get_current_user, get_db
from bookhaven.auth.jwt import create_token_pair, subject_from_token
from bookhaven.auth.passwords import (
    PASSWORD_POLICY_MESSAGE,
    hash_password,
    password_meets_policy,
    verify_password,
)
from bookhaven.config import settings
from bookhaven.models.user import User
from bookhaven.schemas.auth import (
    AuthResponse,
    LoginRequest,
    MessageResponse,
    RefreshRequest,
    SignupRequest,
    TokenResponse,
    UserResponse,
)
from bookhaven.services.errors import InvalidArgument, Unauthorized
from bookhaven.services.user_store import get_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


def _set_auth_cookie(response: Response, access_token: str) -> None:
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=access_token,
        httponly=True,
        secure=settings.auth_cookie_secure or settings.is_production,
        samesite="lax",
        max_age=settings.jwt_access_token_expire_minutes * 60,
    )


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def signup(body: SignupRequest, response: Response, db: AsyncSession = Depends(get_db)) -> AuthResponse:
    """Register a guest account with email and password."""
    if not password_meets_policy(body.password):
        raise InvalidArgument(PASSWORD_POLICY_MESSAGE)

    result = await db.execute(select(User).where(User.email == body.email))
    if result.scalar_one_or_none() is not None:
        raise InvalidArgument("User already exists")

    user = User(
        username=body.username,
        email=body.email,
        hashed_password=hash_password(body.password),
        role="user",
        bookings=[],
        reviews_given=[],
        notifications=[],
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)

    tokens = create_token_pair(str(user.id), role=user.role)
    _set_auth_cookie(response, tokens["access_token"])
    logger.info("New user %s signed up", user.id)

    return AuthResponse(
        message="Signup successful",
        user=UserResponse.model_validate(user),
        tokens=TokenResponse(**tokens),
    )


@router.post("/login", response_model=AuthResponse)
async def login(body: LoginRequest, response: Response, db: AsyncSession = Depends(get_db)) -> AuthResponse:
    """Authenticate with email and password."""
    result = await db.execute(select(User).where(User.email == body.email.strip().lower()))
    user = result.scalar_one_or_none()

    if user is None or user.hashed_password is None or not verify_password(body.password, user.hashed_password):
        raise Unauthorized("Invalid credentials")
    if not user.is_active:
        raise Unauthorized("User account is inactive")

    tokens = create_token_pair(str(user.id), role=user.role)
    _set_auth_cookie(response, tokens["access_token"])

    return AuthResponse(
        message="Login successful",
        user=UserResponse.model_validate(user),
        tokens=TokenResponse(**tokens),
    )


@router.post("/refresh", response_model=TokenResponse)
async def refresh(body: RefreshRequest, response: Response, db: AsyncSession = Depends(get_db)) -> TokenResponse:
    """Exchange a valid refresh token for a new token pair."""
    try:
        user_id = subject_from_token(body.refresh_token, expected_type="refresh")
    except JWTError:
        raise Unauthorized("Invalid or expired refresh token") from None

    user = await get_user(db, user_id)
    if user is None or not user.is_active:
        raise Unauthorized("User not found or inactive")

    tokens = create_token_pair(str(user.id), role=user.role)
    _set_auth_cookie(response, tokens["access_token"])
    return TokenResponse(**tokens)


@router.post("/logout", response_model=MessageResponse)
async def logout(response: Response) -> MessageResponse:
    response.delete_cookie(settings.auth_cookie_name, httponly=True, samesite="lax")
    return MessageResponse(message="Logout successful")


@router.get("/me", response_model=UserResponse)
async def me(current_user: User = Depends(get_current_user)) -> UserResponse:
    """Return the authenticated user's profile."""
    return UserResponse.model_validate(current_user)
