"""Trail service."""

from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundException
from app.models.expeditions import expeditions
from app.models.trails import trails
from app.schemas.admin import EventType
from app.schemas.expeditions import OPEN_STATUSES, ExpeditionResponse
from app.schemas.trails import TrailCreate, TrailFilters, TrailListResponse, TrailResponse
from app.services.event_service import EventService
from app.services.expedition_service import to_expedition_response

logger = structlog.get_logger(__name__)


class TrailService:
    """Service for trail catalogue operations."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def list_trails(self, filters: TrailFilters) -> TrailListResponse:
        """
        List trails with filtering and pagination.

        Args:
            filters: Search text, state, difficulty and distance filters

        Returns:
            Paginated trails ordered by name
        """
        conditions: list[Any] = []

        if filters.search:
            pattern = f"%{filters.search.strip()}%"
            conditions.append(trails.c.name.ilike(pattern) | trails.c.park.ilike(pattern))

        if filters.uf:
            conditions.append(trails.c.uf == filters.uf.upper())

        if filters.difficulty:
            conditions.append(trails.c.difficulty == filters.difficulty.value)

        if filters.max_distance_km is not None:
            conditions.append(trails.c.distance_km <= filters.max_distance_km)

        count_stmt = select(func.count()).select_from(trails).where(*conditions)
        total = (await self.db.execute(count_stmt)).scalar() or 0

        stmt = (
            select(trails)
            .where(*conditions)
            .order_by(trails.c.name, trails.c.id)
            .limit(filters.page_size)
            .offset((filters.page - 1) * filters.page_size)
        )
        result = await self.db.execute(stmt)

        return TrailListResponse(
            total=total,
            page=filters.page,
            page_size=filters.page_size,
            items=[TrailResponse.model_validate(dict(row._mapping)) for row in result.fetchall()],
        )

    async def get_trail(self, trail_id: UUID) -> TrailResponse:
        """
        Get trail by ID.

        Raises:
            NotFoundException: If trail not found
        """
        result = await self.db.execute(select(trails).where(trails.c.id == trail_id))
        row = result.fetchone()
        if not row:
            raise NotFoundException("Trail not found")
        return TrailResponse.model_validate(dict(row._mapping))

    async def list_open_expeditions(self, trail_id: UUID) -> list[ExpeditionResponse]:
        """Open expeditions on a trail, soonest first."""
        stmt = (
            select(expeditions)
            .where(expeditions.c.trail_id == trail_id, expeditions.c.status.in_(OPEN_STATUSES))
            .order_by(expeditions.c.start_date, expeditions.c.id)
        )
        result = await self.db.execute(stmt)
        return [to_expedition_response(row) for row in result.fetchall()]

    async def list_ufs(self) -> list[str]:
        """Distinct states that have trails."""
        result = await self.db.execute(select(trails.c.uf).distinct().order_by(trails.c.uf))
        return [row.uf for row in result.fetchall()]

    async def list_cities(self, uf: str | None = None) -> list[str]:
        """Distinct cities that have trails, optionally within one state."""
        stmt = select(trails.c.city).where(trails.c.city.is_not(None)).distinct()
        if uf:
            stmt = stmt.where(trails.c.uf == uf.upper())
        result = await self.db.execute(stmt.order_by(trails.c.city))
        return [row.city for row in result.fetchall()]

    async def create_trail(self, data: TrailCreate, admin: dict[str, Any]) -> TrailResponse:
        """Add a trail to the catalogue."""
        values = data.model_dump()
        if values.get("difficulty") is not None:
            values["difficulty"] = data.difficulty.value

        stmt = insert(trails).values(**values).returning(trails)
        result = await self.db.execute(stmt)
        await self.db.commit()
        row = result.fetchone()

        logger.info("trail_created", trail_id=str(row.id))
        await EventService(self.db).record(
            EventType.TRAIL_CREATED,
            f"Trail {row.name} created",
            actor_id=admin["id"],
            metadata={"trail_id": str(row.id), "uf": row.uf},
        )
        return TrailResponse.model_validate(dict(row._mapping))
