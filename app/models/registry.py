"""CADASTUR registry table model using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    String,
    Table,
    Text,
    Uuid,
    false,
    func,
)

from app.models.base import metadata

# Externally sourced; replaced wholesale by the registry import
cadastur_registry = Table(
    "cadastur_registry",
    metadata,
    Column("id", Uuid(as_uuid=True), primary_key=True, default=uuid4),
    # Natural key, normalized (upper-case, no whitespace)
    Column("certificate_number", String(64), nullable=False, unique=True, index=True),
    Column("full_name", Text, nullable=False),
    Column("activity_type", String(128)),
    Column("uf", String(2), nullable=False, index=True),
    Column("city", String(128)),
    # Contact
    Column("phone", String(64)),
    Column("email", String(320)),
    Column("website", Text),
    # NULL means no known expiry
    Column("valid_until", Date),
    # List fields; NULL means absent (not an empty list)
    Column("languages", JSON),
    Column("operating_cities", JSON),
    Column("categories", JSON),
    Column("segments", JSON),
    Column("is_driver_guide", Boolean, nullable=False, server_default=false()),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)
