"""
Request dependencies: database session and authenticated principal.
"""
from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from ballotcore.db.base import get_db
from ballotcore.core.errors import UnauthenticatedError
from ballotcore.core.permissions import Principal
from ballotcore.core.security import verify_token
from ballotcore.models.user import User

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db)
) -> User:
    """Resolve the bearer token to an active user, 401 otherwise."""
    if credentials is None:
        raise UnauthenticatedError("User not authenticated")

    user_id = verify_token(credentials.credentials)
    if user_id is None:
        raise UnauthenticatedError()

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if user is None or not user.is_active:
        raise UnauthenticatedError()

    return user


async def get_current_principal(
    user: User = Depends(get_current_user)
) -> Principal:
    return Principal.from_user(user)
