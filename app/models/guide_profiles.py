"""Guide profile model definition using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import JSON, Column, DateTime, ForeignKey, String, Table, Text, Uuid, func

from app.models.base import metadata

guide_profiles = Table(
    "guide_profiles",
    metadata,
    Column("id", Uuid(as_uuid=True), primary_key=True, default=uuid4),
    Column(
        "user_id",
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    ),
    # Snapshot of the registry record at validation time (not a live join)
    Column("certificate_number", String(64), nullable=False),
    Column("validated_at", DateTime(timezone=True)),
    Column("expires_at", DateTime(timezone=True)),
    Column("uf", String(2)),
    Column("city", String(128)),
    Column("categories", JSON),
    Column("languages", JSON),
    Column("contact_phone", String(64)),
    Column("contact_email", String(320)),
    Column("website", Text),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)
