"""Expedition schemas for request/response validation."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from app.schemas.trails import TrailResponse
from app.schemas.users import UserSummary


class ExpeditionStatus(str, Enum):
    """Expedition status enumeration."""

    DRAFT = "draft"
    PUBLISHED = "published"
    ACTIVE = "active"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    CLOSED = "closed"
    FULL = "full"


# Statuses that accept enrollments
OPEN_STATUSES: frozenset[str] = frozenset(
    {ExpeditionStatus.PUBLISHED.value, ExpeditionStatus.ACTIVE.value}
)

# Statuses a guide may set on their own expedition
GUIDE_SETTABLE_STATUSES: frozenset[ExpeditionStatus] = frozenset(
    {ExpeditionStatus.DRAFT, ExpeditionStatus.PUBLISHED, ExpeditionStatus.CANCELLED}
)

# Statuses an admin may set
ADMIN_SETTABLE_STATUSES: frozenset[ExpeditionStatus] = GUIDE_SETTABLE_STATUSES | {
    ExpeditionStatus.COMPLETED
}

# NOT NULL columns a guide may change but not clear
REQUIRED_ON_UPDATE = ("start_date", "capacity", "status")


class ExpeditionBase(BaseModel):
    """Base expedition schema with common fields."""

    title: str | None = Field(None, max_length=256)
    start_date: datetime
    end_date: datetime | None = None
    price: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)
    meeting_point: str | None = Field(None, max_length=1000)
    notes: str | None = Field(None, max_length=2000)

    @field_validator("end_date")
    @classmethod
    def validate_end_date(cls, v: datetime | None, info: Any) -> datetime | None:
        """Validate end date is after start date."""
        if v and "start_date" in info.data and v <= info.data["start_date"]:
            raise ValueError("End date must be after start date")
        return v


class ExpeditionCreate(ExpeditionBase):
    """Schema for creating a new expedition."""

    trail_id: UUID
    capacity: int = Field(default=10, ge=1, le=500)
    status: ExpeditionStatus = ExpeditionStatus.PUBLISHED

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: ExpeditionStatus) -> ExpeditionStatus:
        """New expeditions start as draft or published."""
        if v not in (ExpeditionStatus.DRAFT, ExpeditionStatus.PUBLISHED):
            raise ValueError("New expeditions must be draft or published")
        return v


class ExpeditionUpdate(BaseModel):
    """Schema for a guide updating their expedition."""

    title: str | None = Field(None, max_length=256)
    start_date: datetime | None = None
    end_date: datetime | None = None
    capacity: int | None = Field(None, ge=1, le=500)
    price: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)
    meeting_point: str | None = Field(None, max_length=1000)
    notes: str | None = Field(None, max_length=2000)
    status: ExpeditionStatus | None = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: ExpeditionStatus | None) -> ExpeditionStatus | None:
        """Guides may only draft, publish or cancel."""
        if v is not None and v not in GUIDE_SETTABLE_STATUSES:
            raise ValueError("Status must be draft, published or cancelled")
        return v

    @model_validator(mode="after")
    def required_fields_not_null(self) -> "ExpeditionUpdate":
        """start_date, capacity and status can be changed but never cleared."""
        cleared = [
            name
            for name in REQUIRED_ON_UPDATE
            if name in self.model_fields_set and getattr(self, name) is None
        ]
        if cleared:
            raise ValueError(f"{', '.join(cleared)} cannot be null")
        return self


class AdminExpeditionUpdate(BaseModel):
    """Schema for an admin changing an expedition's status."""

    status: ExpeditionStatus

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: ExpeditionStatus) -> ExpeditionStatus:
        """Admins may additionally mark expeditions completed."""
        if v not in ADMIN_SETTABLE_STATUSES:
            raise ValueError("Status must be draft, published, cancelled or completed")
        return v


class ExpeditionResponse(ExpeditionBase):
    """Schema for expedition response."""

    id: UUID
    guide_id: UUID
    trail_id: UUID
    capacity: int
    enrolled_count: int
    available_spots: int
    status: ExpeditionStatus
    effective_status: ExpeditionStatus
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ExpeditionListResponse(BaseModel):
    """Schema for paginated expedition list response."""

    total: int
    page: int
    page_size: int
    items: list[ExpeditionResponse]


class ExpeditionDetailResponse(BaseModel):
    """Expedition with its trail and guide."""

    expedition: ExpeditionResponse
    trail: TrailResponse | None = None
    guide: UserSummary | None = None


class ExpeditionFilters(BaseModel):
    """Schema for expedition filtering."""

    guide_id: UUID | None = None
    trail_id: UUID | None = None
    status: ExpeditionStatus | None = None
    uf: str | None = Field(None, min_length=2, max_length=2)
    search: str | None = None
    from_date: datetime | None = None
    to_date: datetime | None = None
    # When False and no status filter is given, only open expeditions are listed
    include_all_statuses: bool = False
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=12, ge=1, le=100)


class TrailDetailResponse(BaseModel):
    """Trail with its open expeditions."""

    trail: TrailResponse
    expeditions: list[ExpeditionResponse]
