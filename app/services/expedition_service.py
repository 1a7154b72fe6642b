"""Expedition service for business logic."""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import and_, delete, func, insert, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import BadRequestException, ForbiddenException, NotFoundException
from app.core.permissions import owns_expedition
from app.models.expeditions import expeditions
from app.models.trails import trails
from app.models.users import users
from app.schemas.admin import EventSeverity, EventType
from app.schemas.expeditions import (
    OPEN_STATUSES,
    AdminExpeditionUpdate,
    ExpeditionCreate,
    ExpeditionDetailResponse,
    ExpeditionFilters,
    ExpeditionListResponse,
    ExpeditionResponse,
    ExpeditionStatus,
    ExpeditionUpdate,
)
from app.schemas.trails import TrailResponse
from app.schemas.users import UserSummary
from app.services.event_service import EventService

logger = structlog.get_logger(__name__)


def effective_status(stored_status: str, enrolled_count: int, capacity: int) -> str:
    """
    Status shown to users.

    An open expedition with no spots left reads as ``full``; every other
    status is shown as stored.
    """
    if stored_status in OPEN_STATUSES and enrolled_count >= capacity:
        return ExpeditionStatus.FULL.value
    return stored_status


def available_spots(enrolled_count: int, capacity: int) -> int:
    """Remaining spots, never negative."""
    return max(capacity - enrolled_count, 0)


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def to_expedition_response(row: Any) -> ExpeditionResponse:
    """Build a response from an expedition row, adding derived fields."""
    data = dict(row._mapping) if hasattr(row, "_mapping") else dict(row)
    data["available_spots"] = available_spots(data["enrolled_count"], data["capacity"])
    data["effective_status"] = effective_status(
        data["status"], data["enrolled_count"], data["capacity"]
    )
    return ExpeditionResponse.model_validate(data)


class ExpeditionService:
    """Service for managing expeditions."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def _get_row(self, expedition_id: UUID) -> Any:
        result = await self.db.execute(select(expeditions).where(expeditions.c.id == expedition_id))
        row = result.fetchone()
        if not row:
            raise NotFoundException("Expedition not found")
        return row

    async def _get_owned_row(self, expedition_id: UUID, user: dict[str, Any]) -> Any:
        row = await self._get_row(expedition_id)
        if not owns_expedition(user, dict(row._mapping)):
            raise ForbiddenException("Only the expedition guide can change this expedition")
        return row

    async def create_expedition(
        self, guide: dict[str, Any], data: ExpeditionCreate
    ) -> ExpeditionResponse:
        """
        Create a new expedition led by the given guide.

        Args:
            guide: Guide account
            data: Expedition creation data

        Returns:
            Created expedition

        Raises:
            NotFoundException: If the trail does not exist
        """
        trail = await self.db.execute(select(trails.c.id).where(trails.c.id == data.trail_id))
        if not trail.first():
            raise NotFoundException("Trail not found")

        values = {
            "guide_id": UUID(str(guide["id"])),
            "trail_id": data.trail_id,
            "title": data.title,
            "start_date": data.start_date,
            "end_date": data.end_date,
            "capacity": data.capacity,
            "enrolled_count": 0,
            "price": data.price,
            "meeting_point": data.meeting_point,
            "notes": data.notes,
            "status": data.status.value,
        }

        stmt = insert(expeditions).values(**values).returning(expeditions)
        result = await self.db.execute(stmt)
        await self.db.commit()
        row = result.fetchone()

        logger.info("expedition_created", expedition_id=str(row.id), guide_id=str(guide["id"]))
        await EventService(self.db).record(
            EventType.EXPEDITION_CREATED,
            f"Expedition created by {guide.get('name') or guide.get('email')}",
            actor_id=guide["id"],
            metadata={"expedition_id": str(row.id), "trail_id": str(data.trail_id)},
        )

        return to_expedition_response(row)

    async def get_expedition(self, expedition_id: UUID) -> ExpeditionResponse:
        """
        Get expedition by ID.

        Raises:
            NotFoundException: If expedition not found
        """
        return to_expedition_response(await self._get_row(expedition_id))

    async def get_expedition_detail(self, expedition_id: UUID) -> ExpeditionDetailResponse:
        """Get expedition with its trail and guide summary."""
        row = await self._get_row(expedition_id)

        trail_result = await self.db.execute(select(trails).where(trails.c.id == row.trail_id))
        trail = trail_result.fetchone()

        guide_result = await self.db.execute(
            select(users.c.id, users.c.name, users.c.photo_url, users.c.user_type).where(
                users.c.id == row.guide_id
            )
        )
        guide = guide_result.fetchone()

        return ExpeditionDetailResponse(
            expedition=to_expedition_response(row),
            trail=TrailResponse.model_validate(dict(trail._mapping)) if trail else None,
            guide=UserSummary.model_validate(dict(guide._mapping)) if guide else None,
        )

    async def list_expeditions(self, filters: ExpeditionFilters) -> ExpeditionListResponse:
        """
        List expeditions with filtering and pagination.

        Without a status filter only open expeditions are listed, unless
        ``include_all_statuses`` is set.

        Args:
            filters: Filter and pagination parameters

        Returns:
            Paginated list of expeditions, soonest first
        """
        conditions: list[Any] = []

        if filters.status:
            conditions.append(expeditions.c.status == filters.status.value)
        elif not filters.include_all_statuses:
            conditions.append(expeditions.c.status.in_(OPEN_STATUSES))

        if filters.guide_id:
            conditions.append(expeditions.c.guide_id == filters.guide_id)

        if filters.trail_id:
            conditions.append(expeditions.c.trail_id == filters.trail_id)

        if filters.uf:
            conditions.append(trails.c.uf == filters.uf.upper())

        if filters.search:
            pattern = f"%{filters.search.strip()}%"
            conditions.append(or_(expeditions.c.title.ilike(pattern), trails.c.name.ilike(pattern)))

        if filters.from_date:
            conditions.append(expeditions.c.start_date >= filters.from_date)

        if filters.to_date:
            conditions.append(expeditions.c.start_date <= filters.to_date)

        source = expeditions.join(trails, trails.c.id == expeditions.c.trail_id)

        count_stmt = select(func.count()).select_from(source).where(*conditions)
        total = (await self.db.execute(count_stmt)).scalar() or 0

        offset = (filters.page - 1) * filters.page_size
        stmt = (
            select(expeditions)
            .select_from(source)
            .where(*conditions)
            .order_by(expeditions.c.start_date, expeditions.c.id)
            .limit(filters.page_size)
            .offset(offset)
        )
        result = await self.db.execute(stmt)

        return ExpeditionListResponse(
            total=total,
            page=filters.page,
            page_size=filters.page_size,
            items=[to_expedition_response(row) for row in result.fetchall()],
        )

    async def list_guide_expeditions(self, guide_id: UUID | str) -> list[ExpeditionResponse]:
        """All expeditions of a guide, any status, soonest first."""
        stmt = (
            select(expeditions)
            .where(expeditions.c.guide_id == UUID(str(guide_id)))
            .order_by(expeditions.c.start_date, expeditions.c.id)
        )
        result = await self.db.execute(stmt)
        return [to_expedition_response(row) for row in result.fetchall()]

    async def update_expedition(
        self, expedition_id: UUID, user: dict[str, Any], data: ExpeditionUpdate
    ) -> ExpeditionResponse:
        """
        Update an expedition owned by the requesting guide.

        Args:
            expedition_id: Expedition ID
            user: Requesting account
            data: Fields to change

        Returns:
            Updated expedition

        Raises:
            NotFoundException: If expedition not found
            ForbiddenException: If the requester is not the guide
            BadRequestException: If capacity would drop below enrolled count
        """
        row = await self._get_owned_row(expedition_id, user)

        update_data = data.model_dump(exclude_unset=True)
        if not update_data:
            return to_expedition_response(row)

        if "status" in update_data and update_data["status"] is not None:
            update_data["status"] = update_data["status"].value

        end_date = _as_utc(update_data.get("end_date", row.end_date))
        start_date = _as_utc(update_data.get("start_date", row.start_date))
        if end_date and start_date and end_date <= start_date:
            raise BadRequestException("End date must be after start date")

        update_data["updated_at"] = datetime.now(UTC)

        conditions = [expeditions.c.id == expedition_id]
        if update_data.get("capacity") is not None:
            # Re-checked in the statement so a concurrent enrollment cannot slip past
            conditions.append(expeditions.c.enrolled_count <= update_data["capacity"])

        stmt = (
            update(expeditions)
            .where(and_(*conditions))
            .values(**update_data)
            .returning(expeditions)
        )
        result = await self.db.execute(stmt)
        updated = result.fetchone()

        if not updated:
            await self.db.rollback()
            raise BadRequestException(
                "Capacity cannot be lower than the number of enrolled participants",
                details={"enrolled_count": row.enrolled_count},
            )

        await self.db.commit()
        logger.info("expedition_updated", expedition_id=str(expedition_id))
        return to_expedition_response(updated)

    async def delete_expedition(self, expedition_id: UUID, user: dict[str, Any]) -> None:
        """
        Delete an expedition owned by the requesting guide.

        Raises:
            NotFoundException: If expedition not found
            ForbiddenException: If the requester is not the guide
        """
        await self._get_owned_row(expedition_id, user)

        await self.db.execute(delete(expeditions).where(expeditions.c.id == expedition_id))
        await self.db.commit()
        logger.info("expedition_deleted", expedition_id=str(expedition_id))

    async def admin_update_status(
        self, expedition_id: UUID, admin: dict[str, Any], data: AdminExpeditionUpdate
    ) -> ExpeditionResponse:
        """Change an expedition's status on behalf of an admin."""
        row = await self._get_row(expedition_id)

        stmt = (
            update(expeditions)
            .where(expeditions.c.id == expedition_id)
            .values(status=data.status.value, updated_at=datetime.now(UTC))
            .returning(expeditions)
        )
        result = await self.db.execute(stmt)
        updated = result.fetchone()
        if not updated:
            await self.db.rollback()
            raise NotFoundException("Expedition not found")
        await self.db.commit()

        await EventService(self.db).record(
            EventType.EXPEDITION_UPDATED,
            f"Expedition status changed from {row.status} to {data.status.value}",
            actor_id=admin["id"],
            metadata={"expedition_id": str(expedition_id), "status": data.status.value},
        )
        return to_expedition_response(updated)

    async def admin_delete(self, expedition_id: UUID, admin: dict[str, Any]) -> None:
        """Delete any expedition on behalf of an admin."""
        row = await self._get_row(expedition_id)

        await self.db.execute(delete(expeditions).where(expeditions.c.id == expedition_id))
        await self.db.commit()

        await EventService(self.db).record(
            EventType.EXPEDITION_DELETED,
            f"Expedition {row.title or row.id} deleted by admin",
            actor_id=admin["id"],
            metadata={"expedition_id": str(expedition_id)},
            severity=EventSeverity.WARNING,
        )

    async def admin_list(self, page: int = 1, page_size: int = 20) -> tuple[list[dict], int]:
        """All expeditions with trail and guide names, newest first."""
        total = (await self.db.execute(select(func.count()).select_from(expeditions))).scalar() or 0

        stmt = (
            select(
                expeditions,
                trails.c.name.label("trail_name"),
                users.c.name.label("guide_name"),
            )
            .select_from(
                expeditions.join(trails, trails.c.id == expeditions.c.trail_id).join(
                    users, users.c.id == expeditions.c.guide_id
                )
            )
            .order_by(expeditions.c.created_at.desc(), expeditions.c.id)
            .limit(page_size)
            .offset((page - 1) * page_size)
        )
        result = await self.db.execute(stmt)

        items = []
        for row in result.fetchall():
            item = dict(row._mapping)
            item["available_spots"] = available_spots(item["enrolled_count"], item["capacity"])
            item["effective_status"] = effective_status(
                item["status"], item["enrolled_count"], item["capacity"]
            )
            items.append(item)
        return items, total
