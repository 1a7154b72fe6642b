"""Database models."""

from app.models.base import metadata
from app.models.expedition_participants import expedition_participants
from app.models.expeditions import expeditions
from app.models.favorites import favorites
from app.models.guide_profiles import guide_profiles
from app.models.registry import cadastur_registry
from app.models.system_events import system_events
from app.models.trails import trails
from app.models.users import users

__all__ = [
    "cadastur_registry",
    "expedition_participants",
    "expeditions",
    "favorites",
    "guide_profiles",
    "metadata",
    "system_events",
    "trails",
    "users",
]
