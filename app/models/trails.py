"""Trails table model using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    DateTime,
    Integer,
    Numeric,
    String,
    Table,
    Text,
    Uuid,
    func,
    text,
)

from app.models.base import metadata

trails = Table(
    "trails",
    metadata,
    Column("id", Uuid(as_uuid=True), primary_key=True, default=uuid4),
    Column("name", String(256), nullable=False, index=True),
    # Location
    Column("uf", String(2), nullable=False, index=True),
    Column("city", String(128)),
    Column("region", String(256)),
    Column("park", String(256)),
    # Route details
    Column("distance_km", Numeric(8, 2)),
    Column("elevation_gain", Integer),
    Column("difficulty", String(16), server_default=text("'moderate'")),
    Column("description", Text),
    # Media
    Column("image_url", Text),
    Column("images", JSON),
    Column("source", String(128)),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    CheckConstraint(
        "difficulty IN ('easy', 'moderate', 'hard', 'expert')",
        name="difficulty",
    ),
)
