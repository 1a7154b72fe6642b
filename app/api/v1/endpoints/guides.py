"""Guide directory endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query

from app.dependencies import DatabaseSession
from app.schemas.guides import GuideDetailResponse
from app.schemas.registry import RegistryGuideListResponse
from app.services.guide_service import GuideService

router = APIRouter(prefix="/guides", tags=["Guides"])


@router.get("", response_model=RegistryGuideListResponse)
async def list_guides(
    db: DatabaseSession,
    uf: str | None = Query(None, min_length=2, max_length=2),
    search: str | None = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(12, ge=1, le=100),
) -> RegistryGuideListResponse:
    """Browse certified guides; ``is_verified`` marks guides with an account here."""
    return await GuideService(db).list_directory(
        uf=uf, search=search, page=page, page_size=page_size
    )


@router.get("/{guide_id}", response_model=GuideDetailResponse)
async def get_guide(guide_id: UUID, db: DatabaseSession) -> GuideDetailResponse:
    """Guide profile and expeditions."""
    return await GuideService(db).get_guide(guide_id)
