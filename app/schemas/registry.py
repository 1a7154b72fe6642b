"""CADASTUR registry schemas."""

from datetime import date

from pydantic import BaseModel, Field, field_validator


class RegistryRecord(BaseModel):
    """A certified guide as published by the CADASTUR registry."""

    certificate_number: str
    full_name: str
    activity_type: str | None = None
    uf: str
    city: str | None = None
    phone: str | None = None
    email: str | None = None
    website: str | None = None
    valid_until: date | None = None
    languages: list[str] | None = None
    operating_cities: list[str] | None = None
    categories: list[str] | None = None
    segments: list[str] | None = None
    is_driver_guide: bool = False

    model_config = {"from_attributes": True}


class RegistryImportRow(BaseModel):
    """One parsed registry row, validated before it is written."""

    certificate_number: str = Field(..., min_length=1, max_length=64)
    full_name: str = Field(..., min_length=1)
    activity_type: str | None = Field(None, max_length=128)
    uf: str = Field(..., pattern=r"^[A-Z]{2}$")
    city: str | None = Field(None, max_length=128)
    phone: str | None = Field(None, max_length=64)
    email: str | None = Field(None, max_length=320)
    website: str | None = None
    valid_until: date | None = None
    languages: list[str] | None = None
    operating_cities: list[str] | None = None
    categories: list[str] | None = None
    segments: list[str] | None = None
    is_driver_guide: bool = False

    @field_validator("uf", mode="before")
    @classmethod
    def normalize_uf(cls, v: str) -> str:
        """State codes are stored upper-case."""
        return v.strip().upper() if isinstance(v, str) else v


class RegistryImportResult(BaseModel):
    """Counters reported by a registry import."""

    read: int = 0
    imported: int = 0
    skipped: int = 0
    errored: int = 0


class CertificateValidationRequest(BaseModel):
    """Certificate number as typed by the user."""

    certificate_number: str = Field(..., min_length=1, max_length=64)


class CertificateValidationResponse(BaseModel):
    """Successful validation with the registry data used to pre-fill signup."""

    valid: bool = True
    certificate_number: str
    guide: RegistryRecord


class UFCount(BaseModel):
    """Number of registry entries in a state."""

    uf: str
    count: int


class RegistryStatsResponse(BaseModel):
    """Registry size overall and per state."""

    total: int
    by_uf: list[UFCount]


class RegistryGuideListItem(RegistryRecord):
    """Registry entry in the public guide directory."""

    is_verified: bool = False


class RegistryGuideListResponse(BaseModel):
    """Paginated guide directory."""

    total: int
    page: int
    page_size: int
    items: list[RegistryGuideListItem]
