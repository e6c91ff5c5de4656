"""Identity resolution and FastAPI authentication dependencies.

``resolve_caller`` is the capability check: it reads the access token from the
session cookie or the ``Authorization: Bearer`` header and returns an
:class:`AuthResult` without raising. The dependencies below turn a failed
result into ``Unauthorized``.
"""

import uuid
from dataclasses import dataclass

from fastapi import Depends, Request
from jose import JWTError
from jose.exceptions import ExpiredSignatureError
from sqlalchemy.ext.asyncio import AsyncSession

from bookhaven.auth.jwt import subject_from_token
from bookhaven.config import settings
from bookhaven.database import get_db
from bookhaven.models.user import User
from bookhaven.services.errors import Forbidden, Unauthorized
from bookhaven.services.user_store import get_user


@dataclass(frozen=True)
class AuthResult:
    """Outcome of resolving the caller: a user id or an error message."""

    user_id: uuid.UUID | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.user_id is not None


def extract_token(request: Request) -> str | None:
    """Return the raw token from the session cookie, else the bearer header."""
    token = request.cookies.get(settings.auth_cookie_name)
    if token:
        return token
    scheme, _, credentials = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return None


def resolve_caller(request: Request) -> AuthResult:
    """Verify the request credential and return the embedded user id."""
    token = extract_token(request)
    if token is None:
        return AuthResult(error="Unauthorized - No token provided")
    try:
        return AuthResult(user_id=subject_from_token(token))
    except ExpiredSignatureError:
        return AuthResult(error="Session expired. Please log in again.")
    except JWTError:
        return AuthResult(error="Unauthorized - Invalid token")


async def get_caller_id(request: Request) -> uuid.UUID:
    """Return the verified caller id or raise ``Unauthorized`` (401)."""
    result = resolve_caller(request)
    if not result.ok:
        raise Unauthorized(result.error)
    return result.user_id  # type: ignore[return-value]


async def get_optional_caller_id(request: Request) -> uuid.UUID | None:
    """Return the caller id when a valid token is present, otherwise ``None``."""
    return resolve_caller(request).user_id


async def get_current_user(
    caller_id: uuid.UUID = Depends(get_caller_id),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Load the authenticated user.

    Raises:
        Unauthorized: If the user no longer exists or the account is inactive.
    """
    user = await get_user(db, caller_id)
    if user is None:
        raise Unauthorized("Unauthorized")
    if not user.is_active:
        raise Unauthorized("User account is inactive")
    return user


async def get_current_vendor(user: User = Depends(get_current_user)) -> User:
    """Return the current user only if they may manage listings.

    Raises:
        Forbidden: If the user is neither a vendor nor an admin.
    """
    if user.role not in ("vendor", "admin"):
        raise Forbidden("Vendor access required")
    return user
