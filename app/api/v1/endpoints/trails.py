"""Trail endpoints."""

from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Query

from app.dependencies import DatabaseSession
from app.schemas.expeditions import TrailDetailResponse
from app.schemas.trails import TrailDifficulty, TrailFilters, TrailListResponse
from app.services.trail_service import TrailService

router = APIRouter(prefix="/trails", tags=["Trails"])


@router.get("", response_model=TrailListResponse)
async def list_trails(
    db: DatabaseSession,
    search: str | None = None,
    uf: str | None = Query(None, min_length=2, max_length=2),
    difficulty: TrailDifficulty | None = None,
    max_distance_km: Decimal | None = Query(None, ge=0),
    page: int = Query(1, ge=1),
    page_size: int = Query(12, ge=1, le=100),
) -> TrailListResponse:
    """List trails with optional filters."""
    filters = TrailFilters(
        search=search,
        uf=uf,
        difficulty=difficulty,
        max_distance_km=max_distance_km,
        page=page,
        page_size=page_size,
    )
    return await TrailService(db).list_trails(filters)


@router.get("/ufs", response_model=list[str])
async def list_trail_ufs(db: DatabaseSession) -> list[str]:
    """States that have trails."""
    return await TrailService(db).list_ufs()


@router.get("/cities", response_model=list[str])
async def list_trail_cities(
    db: DatabaseSession,
    uf: str | None = Query(None, min_length=2, max_length=2),
) -> list[str]:
    """Cities that have trails."""
    return await TrailService(db).list_cities(uf)


@router.get("/{trail_id}", response_model=TrailDetailResponse)
async def get_trail(trail_id: UUID, db: DatabaseSession) -> TrailDetailResponse:
    """Trail with its open expeditions."""
    service = TrailService(db)
    trail = await service.get_trail(trail_id)
    return TrailDetailResponse(
        trail=trail,
        expeditions=await service.list_open_expeditions(trail_id),
    )
