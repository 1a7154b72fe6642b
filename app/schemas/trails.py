"""Trail schemas."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class TrailDifficulty(str, Enum):
    """Trail difficulty enumeration."""

    EASY = "easy"
    MODERATE = "moderate"
    HARD = "hard"
    EXPERT = "expert"


class TrailBase(BaseModel):
    """Base trail schema."""

    name: str = Field(..., min_length=1, max_length=256)
    uf: str = Field(..., min_length=2, max_length=2)
    city: str | None = Field(None, max_length=128)
    region: str | None = Field(None, max_length=256)
    park: str | None = Field(None, max_length=256)
    distance_km: Decimal | None = Field(None, ge=0, max_digits=8, decimal_places=2)
    elevation_gain: int | None = Field(None, ge=0)
    difficulty: TrailDifficulty | None = TrailDifficulty.MODERATE
    description: str | None = None
    image_url: str | None = None
    images: list[str] | None = None
    source: str | None = Field(None, max_length=128)

    @field_validator("uf")
    @classmethod
    def upper_uf(cls, v: str) -> str:
        """State codes are stored upper-case."""
        return v.upper()


class TrailCreate(TrailBase):
    """Schema for creating a trail."""


class TrailResponse(TrailBase):
    """Schema for trail response."""

    id: UUID
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TrailListResponse(BaseModel):
    """Paginated trail list."""

    total: int
    page: int
    page_size: int
    items: list[TrailResponse]


class TrailFilters(BaseModel):
    """Trail list filters."""

    search: str | None = None
    uf: str | None = Field(None, min_length=2, max_length=2)
    difficulty: TrailDifficulty | None = None
    max_distance_km: Decimal | None = Field(None, ge=0)
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=12, ge=1, le=100)
