"""Resolve the acting user from the bearer token."""

from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from recon.database import get_db
from recon.models import User
from recon.security import TokenRejectedError, token_subject

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def _resolve_user_id(token: str, db: AsyncSession) -> UUID:
    try:
        user_uuid = token_subject(token)
    except TokenRejectedError as exc:
        raise _unauthorized(exc.detail) from exc

    result = await db.execute(select(User.id).where(User.id == user_uuid))
    if result.scalar_one_or_none() is None:
        raise _unauthorized("User not found")

    return user_uuid


async def get_current_user_id(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> UUID:
    """Resolve the current user ID from JWT token."""
    return await _resolve_user_id(token, db)


async def get_optional_user_id(
    token: str | None = Depends(optional_oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> UUID | None:
    """Like get_current_user_id, but an absent or unusable token yields None.

    Used where the service itself reports the unauthenticated outcome.
    """
    if not token:
        return None
    try:
        return await _resolve_user_id(token, db)
    except HTTPException:
        return None
