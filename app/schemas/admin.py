"""Admin-specific schemas."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class EventSeverity(str, Enum):
    """System event severity."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class EventType(str, Enum):
    """Known system event types."""

    USER_REGISTERED = "USER_REGISTERED"
    GUIDE_REGISTERED = "GUIDE_REGISTERED"
    GUIDE_PROMOTED = "GUIDE_PROMOTED"
    EXPEDITION_CREATED = "EXPEDITION_CREATED"
    EXPEDITION_UPDATED = "EXPEDITION_UPDATED"
    EXPEDITION_DELETED = "EXPEDITION_DELETED"
    EXPEDITION_ENROLLMENT = "EXPEDITION_ENROLLMENT"
    EXPEDITION_ENROLLMENT_CANCELLED = "EXPEDITION_ENROLLMENT_CANCELLED"
    TRAIL_CREATED = "TRAIL_CREATED"
    REGISTRY_IMPORTED = "REGISTRY_IMPORTED"


class AdminMetricsResponse(BaseModel):
    """Response schema for admin metrics."""

    total_trails: int = Field(..., json_schema_extra={"example": 120})
    open_expeditions: int = Field(..., json_schema_extra={"example": 14})
    draft_expeditions: int = Field(..., json_schema_extra={"example": 3})
    total_guides: int = Field(..., json_schema_extra={"example": 42})
    active_reservations: int = Field(..., json_schema_extra={"example": 87})
    revenue: Decimal = Field(
        ...,
        description="Sum of prices of completed expeditions",
        json_schema_extra={"example": "1500.00"},
    )

    model_config = ConfigDict(from_attributes=True)


class SystemEventResponse(BaseModel):
    """System event entry."""

    id: UUID
    type: str
    message: str
    severity: EventSeverity
    actor_id: UUID | None = None
    metadata: dict[str, Any] | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AdminExpeditionListResponse(BaseModel):
    """Response schema for admin expedition listing."""

    expeditions: list[dict[str, Any]]
    total: int
    page: int
    page_size: int
    total_pages: int
