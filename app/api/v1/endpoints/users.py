"""User endpoints."""

from fastapi import APIRouter, HTTPException, status

from app.dependencies import CacheManagerDep, CurrentUser, DatabaseSession, GuideUser
from app.schemas.users import (
    BecomeGuideRequest,
    GuideProfileResponse,
    GuideProfileUpdate,
    UserProfileResponse,
    UserResponse,
    UserUpdate,
)
from app.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me", response_model=UserProfileResponse)
async def get_current_user_profile(
    cache_manager: CacheManagerDep,
    db: DatabaseSession,
    current_user: CurrentUser,
):
    """Get current user's profile, with guide detail for guides."""
    return await UserService(cache_manager).get_profile(db, current_user)


@router.patch("/me", response_model=UserResponse)
async def update_current_user_profile(
    user_data: UserUpdate,
    cache_manager: CacheManagerDep,
    db: DatabaseSession,
    current_user: CurrentUser,
):
    """Update current user's profile (certificate and account type are not editable here)."""
    user = await UserService(cache_manager).update_user(db, current_user["id"], user_data)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )

    return UserResponse.model_validate(user)


@router.post("/me/become-guide", response_model=UserResponse)
async def become_guide(
    request: BecomeGuideRequest,
    cache_manager: CacheManagerDep,
    db: DatabaseSession,
    current_user: CurrentUser,
):
    """Upgrade the current account to a guide with a valid CADASTUR certificate."""
    user = await UserService(cache_manager).become_guide(
        db, current_user, request.certificate_number
    )
    return UserResponse.model_validate(user)


@router.patch("/me/guide-profile", response_model=GuideProfileResponse)
async def update_guide_profile(
    data: GuideProfileUpdate,
    cache_manager: CacheManagerDep,
    db: DatabaseSession,
    current_user: GuideUser,
):
    """Update contact and region details of the current guide."""
    return await UserService(cache_manager).update_guide_profile(db, current_user, data)
