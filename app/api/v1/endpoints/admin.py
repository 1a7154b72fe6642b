"""Admin-only endpoints for platform management."""

import math
from uuid import UUID

from fastapi import APIRouter, Query, Request, status

from app.core.exceptions import BadRequestException
from app.dependencies import AdminUser, CacheManagerDep, DatabaseSession
from app.schemas.admin import (
    AdminExpeditionListResponse,
    AdminMetricsResponse,
    EventType,
    SystemEventResponse,
)
from app.schemas.expeditions import AdminExpeditionUpdate, ExpeditionResponse
from app.schemas.registry import RegistryImportResult, RegistryStatsResponse
from app.schemas.trails import TrailCreate, TrailResponse
from app.services.admin_service import AdminService
from app.services.event_service import EventService
from app.services.expedition_service import ExpeditionService
from app.services.registry_service import RegistryService
from app.services.trail_service import TrailService

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get(
    "/metrics",
    response_model=AdminMetricsResponse,
    summary="Platform metrics (admin only)",
)
async def get_metrics(db: DatabaseSession, admin_user: AdminUser) -> AdminMetricsResponse:
    """
    Dashboard counters.

    Returns:
        Trails, open and draft expeditions, guides, active reservations and
        revenue from completed expeditions
    """
    return await AdminService(db).get_metrics()


@router.get(
    "/events",
    response_model=list[SystemEventResponse],
    summary="Recent system events (admin only)",
)
async def list_events(
    db: DatabaseSession,
    admin_user: AdminUser,
    limit: int = Query(50, ge=1, le=500, description="Number of events"),
) -> list[SystemEventResponse]:
    """Latest system events, newest first."""
    return await EventService(db).list_recent(limit)


@router.get(
    "/expeditions",
    response_model=AdminExpeditionListResponse,
    summary="List all expeditions (admin only)",
)
async def list_all_expeditions(
    db: DatabaseSession,
    admin_user: AdminUser,
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Items per page"),
) -> AdminExpeditionListResponse:
    """Every expedition in any status, with trail and guide names."""
    items, total = await ExpeditionService(db).admin_list(page, page_size)
    return AdminExpeditionListResponse(
        expeditions=items,
        total=total,
        page=page,
        page_size=page_size,
        total_pages=math.ceil(total / page_size) if total > 0 else 0,
    )


@router.patch(
    "/expeditions/{expedition_id}",
    response_model=ExpeditionResponse,
    summary="Change expedition status (admin only)",
)
async def update_expedition_status(
    expedition_id: UUID,
    data: AdminExpeditionUpdate,
    db: DatabaseSession,
    admin_user: AdminUser,
) -> ExpeditionResponse:
    """Set an expedition's status, including ``completed``."""
    return await ExpeditionService(db).admin_update_status(expedition_id, admin_user, data)


@router.delete(
    "/expeditions/{expedition_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete expedition (admin only)",
)
async def delete_expedition(
    expedition_id: UUID,
    db: DatabaseSession,
    admin_user: AdminUser,
) -> None:
    """Delete any expedition."""
    await ExpeditionService(db).admin_delete(expedition_id, admin_user)


@router.post(
    "/trails",
    response_model=TrailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create trail (admin only)",
)
async def create_trail(
    data: TrailCreate,
    db: DatabaseSession,
    admin_user: AdminUser,
) -> TrailResponse:
    """Add a trail to the catalogue."""
    return await TrailService(db).create_trail(data, admin_user)


@router.get(
    "/registry/stats",
    response_model=RegistryStatsResponse,
    summary="Registry statistics (admin only)",
)
async def registry_stats(db: DatabaseSession, admin_user: AdminUser) -> RegistryStatsResponse:
    """Registry size overall and per state."""
    return await RegistryService(db).stats()


@router.post(
    "/registry/import",
    response_model=RegistryImportResult,
    summary="Replace the CADASTUR registry (admin only)",
)
async def import_registry(
    request: Request,
    db: DatabaseSession,
    cache_manager: CacheManagerDep,
    admin_user: AdminUser,
) -> RegistryImportResult:
    """
    Replace the registry with a CADASTUR export.

    The request body is the raw semicolon-separated export, header line
    included.
    """
    body = await request.body()
    try:
        content = body.decode("utf-8-sig")
    except UnicodeDecodeError:
        content = body.decode("latin-1")

    if not content.strip():
        raise BadRequestException("Registry export is empty")

    result = await RegistryService(db, cache_manager).import_batch(content.splitlines())

    await EventService(db).record(
        EventType.REGISTRY_IMPORTED,
        f"CADASTUR registry imported: {result.imported} entries",
        actor_id=admin_user["id"],
        metadata=result.model_dump(),
    )
    return result
