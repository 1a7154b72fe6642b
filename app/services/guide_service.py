"""Guide directory service."""

from uuid import UUID

from sqlalchemy import and_, exists, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundException
from app.core.permissions import GUIDE_TYPE
from app.models.guide_profiles import guide_profiles
from app.models.registry import cadastur_registry
from app.models.users import users
from app.schemas.guides import GuideDetailResponse
from app.schemas.registry import RegistryGuideListItem, RegistryGuideListResponse
from app.schemas.users import GuideProfileResponse, UserSummary
from app.services.expedition_service import ExpeditionService


class GuideService:
    """Service for browsing certified guides."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def list_directory(
        self,
        uf: str | None = None,
        search: str | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> RegistryGuideListResponse:
        """
        List registry guides, flagging those with a platform account.

        Args:
            uf: Optional state filter
            search: Optional name search
            page: Page number
            page_size: Items per page

        Returns:
            Paginated directory
        """
        conditions = []
        if uf:
            conditions.append(cadastur_registry.c.uf == uf.upper())
        if search:
            conditions.append(cadastur_registry.c.full_name.ilike(f"%{search.strip()}%"))

        is_verified = (
            exists()
            .where(
                and_(
                    users.c.certificate_number == cadastur_registry.c.certificate_number,
                    users.c.certificate_validated.is_(True),
                )
            )
            .label("is_verified")
        )

        count_stmt = select(func.count()).select_from(cadastur_registry).where(*conditions)
        total = (await self.db.execute(count_stmt)).scalar() or 0

        stmt = (
            select(cadastur_registry, is_verified)
            .where(*conditions)
            .order_by(cadastur_registry.c.full_name, cadastur_registry.c.id)
            .limit(page_size)
            .offset((page - 1) * page_size)
        )
        result = await self.db.execute(stmt)

        return RegistryGuideListResponse(
            total=total,
            page=page,
            page_size=page_size,
            items=[
                RegistryGuideListItem.model_validate(dict(row._mapping))
                for row in result.fetchall()
            ],
        )

    async def get_guide(self, guide_id: UUID) -> GuideDetailResponse:
        """
        Get a platform guide with profile and expeditions.

        Raises:
            NotFoundException: If no guide account has this ID
        """
        result = await self.db.execute(
            select(users.c.id, users.c.name, users.c.photo_url, users.c.user_type).where(
                and_(users.c.id == guide_id, users.c.user_type == GUIDE_TYPE)
            )
        )
        guide = result.fetchone()
        if not guide:
            raise NotFoundException("Guide not found")

        profile_result = await self.db.execute(
            select(guide_profiles).where(guide_profiles.c.user_id == guide_id)
        )
        profile = profile_result.fetchone()

        return GuideDetailResponse(
            guide=UserSummary.model_validate(dict(guide._mapping)),
            profile=(
                GuideProfileResponse.model_validate(dict(profile._mapping)) if profile else None
            ),
            expeditions=await ExpeditionService(self.db).list_guide_expeditions(guide_id),
        )
