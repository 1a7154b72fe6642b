"""FastAPI dependencies."""

from typing import Annotated
from uuid import UUID

import structlog
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.permissions import is_admin, is_guide
from app.core.redis_client import CacheManager, get_redis_client
from app.core.security import decode_access_token
from app.database import get_db
from app.services.user_service import UserService

logger = structlog.get_logger(__name__)

# Security
security = HTTPBearer()


async def get_current_user_id(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
) -> UUID:
    """
    Extract and validate user ID from JWT token.

    Args:
        credentials: Bearer token credentials

    Returns:
        User ID from token

    Raises:
        HTTPException: If token is invalid or expired
    """
    payload = decode_access_token(credentials.credentials)

    user_id_str = payload.get("sub") if payload else None
    if not isinstance(user_id_str, str):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return UUID(user_id_str)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user ID format",
            headers={"WWW-Authenticate": "Bearer"},
        )


async def get_current_user(
    user_id: Annotated[UUID, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    """
    Get current user from database.

    Read uncached so role and guide status changes apply immediately.

    Raises:
        HTTPException: If the account no longer exists
    """
    user = await UserService().get_user_by_id(db, user_id)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user


async def get_admin_user(user: Annotated[dict, Depends(get_current_user)]) -> dict:
    """Require the admin role."""
    if not is_admin(user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return user


async def get_guide_user(user: Annotated[dict, Depends(get_current_user)]) -> dict:
    """Require a guide account."""
    if not is_guide(user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only guides can perform this action",
        )
    return user


def get_cache_manager() -> CacheManager | None:
    """
    Cache manager over the shared Redis client.

    Returns None when Redis is unavailable; callers then run uncached.
    """
    try:
        client = get_redis_client()
        client.ping()
    except Exception as e:
        logger.warning("redis_unavailable", error=str(e))
        return None
    return CacheManager(client)


# Type aliases for dependency injection
DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
CurrentUserId = Annotated[UUID, Depends(get_current_user_id)]
CurrentUser = Annotated[dict, Depends(get_current_user)]
AdminUser = Annotated[dict, Depends(get_admin_user)]
GuideUser = Annotated[dict, Depends(get_guide_user)]
CacheManagerDep = Annotated[CacheManager | None, Depends(get_cache_manager)]
