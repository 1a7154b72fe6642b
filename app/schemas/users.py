"""User schemas for request/response validation."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


class UserRole(str, Enum):
    """Authorization role."""

    USER = "user"
    ADMIN = "admin"


class UserType(str, Enum):
    """Kind of account."""

    TREKKER = "trekker"
    GUIDE = "guide"


class UserUpdate(BaseModel):
    """
    Schema for updating user profile.

    Certificate number and user type are deliberately absent: becoming a
    guide goes through the CADASTUR validation flow.
    """

    name: str | None = Field(None, min_length=1, max_length=200)
    email: EmailStr | None = None
    bio: str | None = Field(None, max_length=2000)
    photo_url: str | None = None


class UserResponse(BaseModel):
    """User schema for API responses."""

    id: UUID
    name: str | None = None
    email: str | None = None
    role: UserRole
    user_type: UserType
    bio: str | None = None
    photo_url: str | None = None
    certificate_number: str | None = None
    certificate_validated: bool = False
    login_method: str | None = None
    created_at: datetime
    updated_at: datetime
    last_signed_in_at: datetime | None = None

    model_config = {"from_attributes": True}


class UserSummary(BaseModel):
    """Public account summary."""

    id: UUID
    name: str | None = None
    photo_url: str | None = None
    user_type: UserType

    model_config = {"from_attributes": True}


class GuideProfileResponse(BaseModel):
    """Certification detail copied from the registry at validation time."""

    user_id: UUID
    certificate_number: str
    validated_at: datetime | None = None
    expires_at: datetime | None = None
    uf: str | None = None
    city: str | None = None
    categories: list[str] | None = None
    languages: list[str] | None = None
    contact_phone: str | None = None
    contact_email: str | None = None
    website: str | None = None

    model_config = {"from_attributes": True}


class GuideProfileUpdate(BaseModel):
    """Editable guide profile fields (certificate fields are not editable)."""

    uf: str | None = Field(None, pattern=r"^[A-Za-z]{2}$")
    city: str | None = Field(None, max_length=128)
    categories: list[str] | None = None
    languages: list[str] | None = None
    contact_phone: str | None = Field(None, max_length=64)
    contact_email: EmailStr | None = None
    website: str | None = None


class UserProfileResponse(BaseModel):
    """Own profile with guide detail when applicable."""

    user: UserResponse
    guide_profile: GuideProfileResponse | None = None


class BecomeGuideRequest(BaseModel):
    """Upgrade an existing account to a guide."""

    certificate_number: str = Field(..., min_length=1, max_length=64)
