"""Expedition and enrollment endpoints."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Query, status

from app.dependencies import CurrentUser, DatabaseSession, GuideUser
from app.schemas.enrollment import EnrollmentResult, EnrollmentStatusResponse, ParticipantResponse
from app.schemas.expeditions import (
    ExpeditionCreate,
    ExpeditionDetailResponse,
    ExpeditionFilters,
    ExpeditionListResponse,
    ExpeditionResponse,
    ExpeditionStatus,
    ExpeditionUpdate,
)
from app.services.enrollment_service import EnrollmentService
from app.services.expedition_service import ExpeditionService

router = APIRouter(prefix="/expeditions", tags=["Expeditions"])


@router.get("", response_model=ExpeditionListResponse)
async def list_expeditions(
    db: DatabaseSession,
    guide_id: UUID | None = None,
    trail_id: UUID | None = None,
    status_filter: ExpeditionStatus | None = Query(None, alias="status"),
    uf: str | None = Query(None, min_length=2, max_length=2),
    search: str | None = None,
    from_date: datetime | None = None,
    to_date: datetime | None = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(12, ge=1, le=100),
) -> ExpeditionListResponse:
    """
    List expeditions.

    Without a ``status`` filter only expeditions open for enrollment are
    returned.
    """
    filters = ExpeditionFilters(
        guide_id=guide_id,
        trail_id=trail_id,
        status=status_filter,
        uf=uf,
        search=search,
        from_date=from_date,
        to_date=to_date,
        page=page,
        page_size=page_size,
    )
    return await ExpeditionService(db).list_expeditions(filters)


@router.post("", response_model=ExpeditionResponse, status_code=status.HTTP_201_CREATED)
async def create_expedition(
    data: ExpeditionCreate,
    db: DatabaseSession,
    current_user: GuideUser,
) -> ExpeditionResponse:
    """Create an expedition led by the current guide."""
    return await ExpeditionService(db).create_expedition(current_user, data)


@router.get("/mine", response_model=list[ExpeditionResponse])
async def list_my_expeditions(
    db: DatabaseSession,
    current_user: GuideUser,
) -> list[ExpeditionResponse]:
    """All expeditions of the current guide, any status."""
    return await ExpeditionService(db).list_guide_expeditions(current_user["id"])


@router.get("/{expedition_id}", response_model=ExpeditionDetailResponse)
async def get_expedition(expedition_id: UUID, db: DatabaseSession) -> ExpeditionDetailResponse:
    """Expedition with trail, guide, effective status and available spots."""
    return await ExpeditionService(db).get_expedition_detail(expedition_id)


@router.patch("/{expedition_id}", response_model=ExpeditionResponse)
async def update_expedition(
    expedition_id: UUID,
    data: ExpeditionUpdate,
    db: DatabaseSession,
    current_user: GuideUser,
) -> ExpeditionResponse:
    """Update an expedition of the current guide."""
    return await ExpeditionService(db).update_expedition(expedition_id, current_user, data)


@router.delete("/{expedition_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_expedition(
    expedition_id: UUID,
    db: DatabaseSession,
    current_user: GuideUser,
) -> None:
    """Delete an expedition of the current guide."""
    await ExpeditionService(db).delete_expedition(expedition_id, current_user)


@router.post("/{expedition_id}/enrollment", response_model=EnrollmentResult)
async def enroll(
    expedition_id: UUID,
    db: DatabaseSession,
    current_user: CurrentUser,
) -> EnrollmentResult:
    """
    Enroll the current user.

    Business failures (not found, not open, full, already enrolled) come back
    as ``success: false`` with a reason, not as HTTP errors.
    """
    return await EnrollmentService(db).enroll(expedition_id, current_user["id"])


@router.delete("/{expedition_id}/enrollment", response_model=EnrollmentResult)
async def cancel_enrollment(
    expedition_id: UUID,
    db: DatabaseSession,
    current_user: CurrentUser,
) -> EnrollmentResult:
    """Cancel the current user's enrollment."""
    return await EnrollmentService(db).cancel(expedition_id, current_user["id"])


@router.get("/{expedition_id}/enrollment", response_model=EnrollmentStatusResponse)
async def get_enrollment_status(
    expedition_id: UUID,
    db: DatabaseSession,
    current_user: CurrentUser,
) -> EnrollmentStatusResponse:
    """Whether the current user is enrolled."""
    enrolled = await EnrollmentService(db).is_enrolled(expedition_id, current_user["id"])
    return EnrollmentStatusResponse(enrolled=enrolled)


@router.get("/{expedition_id}/participants", response_model=list[ParticipantResponse])
async def list_participants(
    expedition_id: UUID,
    db: DatabaseSession,
    current_user: CurrentUser,
) -> list[ParticipantResponse]:
    """Active participants; only the expedition's guide or an admin may see them."""
    return await EnrollmentService(db).list_participants(expedition_id, current_user)
