"""Favorite trail endpoints."""

from uuid import UUID

from fastapi import APIRouter, status

from app.dependencies import CurrentUser, DatabaseSession
from app.schemas.trails import TrailResponse
from app.services.favorite_service import FavoriteService

router = APIRouter(prefix="/favorites", tags=["Favorites"])


@router.get("", response_model=list[TrailResponse])
async def list_favorites(db: DatabaseSession, current_user: CurrentUser) -> list[TrailResponse]:
    """Current user's favorite trails."""
    return await FavoriteService(db).list_favorites(current_user["id"])


@router.put("/{trail_id}", status_code=status.HTTP_204_NO_CONTENT)
async def add_favorite(trail_id: UUID, db: DatabaseSession, current_user: CurrentUser) -> None:
    """Add a trail to favorites (idempotent)."""
    await FavoriteService(db).add_favorite(current_user["id"], trail_id)


@router.delete("/{trail_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_favorite(trail_id: UUID, db: DatabaseSession, current_user: CurrentUser) -> None:
    """Remove a trail from favorites."""
    await FavoriteService(db).remove_favorite(current_user["id"], trail_id)


@router.get("/{trail_id}", response_model=dict[str, bool])
async def check_favorite(
    trail_id: UUID, db: DatabaseSession, current_user: CurrentUser
) -> dict[str, bool]:
    """Whether a trail is among the current user's favorites."""
    return {"is_favorite": await FavoriteService(db).is_favorite(current_user["id"], trail_id)}
