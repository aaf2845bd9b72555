"""Common FastAPI dependencies for consistent type annotations.

Usage:
    from recon.deps import CurrentUserId, DbSession

    async def my_endpoint(db: DbSession, user_id: CurrentUserId):
        ...
"""

from typing import Annotated
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from recon.auth import get_current_user_id, get_optional_user_id
from recon.database import get_db

DbSession = Annotated[AsyncSession, Depends(get_db)]
CurrentUserId = Annotated[UUID, Depends(get_current_user_id)]
OptionalUserId = Annotated[UUID | None, Depends(get_optional_user_id)]

__all__ = ["CurrentUserId", "DbSession", "OptionalUserId"]
