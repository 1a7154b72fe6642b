"""Admin service for dashboard metrics."""

from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.permissions import GUIDE_TYPE
from app.models.expedition_participants import expedition_participants
from app.models.expeditions import expeditions
from app.models.trails import trails
from app.models.users import users
from app.schemas.admin import AdminMetricsResponse
from app.schemas.enrollment import ParticipantStatus
from app.schemas.expeditions import OPEN_STATUSES, ExpeditionStatus


class AdminService:
    """Service for admin-only aggregate reads."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def _count(self, table, *conditions) -> int:
        stmt = select(func.count()).select_from(table).where(*conditions)
        return (await self.db.execute(stmt)).scalar() or 0

    async def get_metrics(self) -> AdminMetricsResponse:
        """
        Platform-wide counters.

        Returns:
            Trail, expedition, guide and reservation counts plus revenue
            (sum of prices of completed expeditions)
        """
        revenue_stmt = select(func.coalesce(func.sum(expeditions.c.price), 0)).where(
            expeditions.c.status == ExpeditionStatus.COMPLETED.value
        )
        revenue = (await self.db.execute(revenue_stmt)).scalar() or 0

        return AdminMetricsResponse(
            total_trails=await self._count(trails),
            open_expeditions=await self._count(
                expeditions, expeditions.c.status.in_(OPEN_STATUSES)
            ),
            draft_expeditions=await self._count(
                expeditions, expeditions.c.status == ExpeditionStatus.DRAFT.value
            ),
            total_guides=await self._count(users, users.c.user_type == GUIDE_TYPE),
            active_reservations=await self._count(
                expedition_participants,
                expedition_participants.c.status != ParticipantStatus.CANCELLED.value,
            ),
            revenue=Decimal(str(revenue)),
        )
