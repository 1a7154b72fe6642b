"""Favorite trails service."""

from uuid import UUID

from sqlalchemy import and_, delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundException
from app.database import upsert
from app.models.favorites import favorites
from app.models.trails import trails
from app.schemas.trails import TrailResponse


class FavoriteService:
    """Service for a user's favorite trails."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def list_favorites(self, user_id: UUID | str) -> list[TrailResponse]:
        """Favorite trails of a user, most recently added first."""
        stmt = (
            select(trails)
            .select_from(favorites.join(trails, trails.c.id == favorites.c.trail_id))
            .where(favorites.c.user_id == UUID(str(user_id)))
            .order_by(favorites.c.created_at.desc(), trails.c.name)
        )
        result = await self.db.execute(stmt)
        return [TrailResponse.model_validate(dict(row._mapping)) for row in result.fetchall()]

    async def add_favorite(self, user_id: UUID | str, trail_id: UUID) -> None:
        """
        Mark a trail as favorite. Adding an existing favorite is a no-op.

        Raises:
            NotFoundException: If trail not found
        """
        trail = await self.db.execute(select(trails.c.id).where(trails.c.id == trail_id))
        if not trail.first():
            raise NotFoundException("Trail not found")

        stmt = (
            upsert(self.db, favorites)
            .values(user_id=UUID(str(user_id)), trail_id=trail_id)
            .on_conflict_do_nothing(index_elements=[favorites.c.user_id, favorites.c.trail_id])
        )
        await self.db.execute(stmt)
        await self.db.commit()

    async def remove_favorite(self, user_id: UUID | str, trail_id: UUID) -> bool:
        """Remove a favorite; returns whether one existed."""
        stmt = delete(favorites).where(
            and_(favorites.c.user_id == UUID(str(user_id)), favorites.c.trail_id == trail_id)
        )
        result = await self.db.execute(stmt)
        await self.db.commit()
        return result.rowcount > 0  # type: ignore[attr-defined]

    async def is_favorite(self, user_id: UUID | str, trail_id: UUID) -> bool:
        """Whether the trail is among the user's favorites."""
        stmt = select(favorites.c.id).where(
            and_(favorites.c.user_id == UUID(str(user_id)), favorites.c.trail_id == trail_id)
        )
        result = await self.db.execute(stmt)
        return result.first() is not None
