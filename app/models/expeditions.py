"""Expeditions table model using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
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

expeditions = Table(
    "expeditions",
    metadata,
    Column("id", Uuid(as_uuid=True), primary_key=True, default=uuid4),
    # Ownership / references
    Column(
        "guide_id",
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column(
        "trail_id",
        Uuid(as_uuid=True),
        ForeignKey("trails.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    # Schedule
    Column("title", String(256)),
    Column("start_date", DateTime(timezone=True), nullable=False, index=True),
    Column("end_date", DateTime(timezone=True)),
    # Capacity control; enrolled_count is written only by the enrollment service
    Column("capacity", Integer, nullable=False, server_default=text("10")),
    Column("enrolled_count", Integer, nullable=False, server_default=text("0")),
    Column("price", Numeric(10, 2)),
    Column("meeting_point", Text),
    Column("notes", Text),
    Column("status", String(16), nullable=False, server_default=text("'draft'"), index=True),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    # Constraints
    CheckConstraint("capacity > 0", name="capacity_positive"),
    CheckConstraint(
        "enrolled_count >= 0 AND enrolled_count <= capacity",
        name="enrolled_within_capacity",
    ),
    CheckConstraint(
        "status IN ('draft', 'published', 'active', 'cancelled', 'completed', 'closed', 'full')",
        name="status",
    ),
)
