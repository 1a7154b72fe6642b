"""API v1 router configuration."""

from fastapi import APIRouter

from app.api.v1.endpoints import (
    admin,
    auth,
    expeditions,
    favorites,
    guides,
    health,
    registry,
    trails,
    users,
)

api_router = APIRouter()

# Include routers
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(registry.router)
api_router.include_router(users.router)
api_router.include_router(guides.router)
api_router.include_router(trails.router)
api_router.include_router(expeditions.router)
api_router.include_router(favorites.router)
api_router.include_router(admin.router)
