"""CADASTUR registry endpoints."""

from fastapi import APIRouter, Query

from app.dependencies import CacheManagerDep, DatabaseSession
from app.schemas.registry import (
    CertificateValidationRequest,
    CertificateValidationResponse,
    RegistryRecord,
)
from app.services.registry_service import RegistryService, normalize_certificate_number
from app.services.user_service import UserService

router = APIRouter(prefix="/registry", tags=["Registry"])


@router.post("/validate", response_model=CertificateValidationResponse)
async def validate_certificate(
    request: CertificateValidationRequest,
    db: DatabaseSession,
    cache_manager: CacheManagerDep,
) -> CertificateValidationResponse:
    """
    Check a CADASTUR number before signup.

    Returns the registry profile used to pre-fill the guide form. Fails with
    404 when the number is unknown, 400 (with the record) when expired and
    409 when another account already holds it.
    """
    normalized = normalize_certificate_number(request.certificate_number)
    await UserService(cache_manager).check_certificate_available(db, normalized)
    record = await RegistryService(db, cache_manager).validate(normalized)
    return CertificateValidationResponse(certificate_number=normalized, guide=record)


@router.get("/search", response_model=list[RegistryRecord])
async def search_registry(
    db: DatabaseSession,
    name: str = Query(..., min_length=2),
    limit: int = Query(20, ge=1, le=100),
) -> list[RegistryRecord]:
    """Search registry entries by name."""
    return await RegistryService(db).search_by_name(name, limit)
