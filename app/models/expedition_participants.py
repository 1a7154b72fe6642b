"""Expedition participants table model using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    String,
    Table,
    UniqueConstraint,
    Uuid,
    func,
    text,
)

from app.models.base import metadata

expedition_participants = Table(
    "expedition_participants",
    metadata,
    Column("id", Uuid(as_uuid=True), primary_key=True, default=uuid4),
    Column(
        "expedition_id",
        Uuid(as_uuid=True),
        ForeignKey("expeditions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column(
        "user_id",
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    # Cancellation is a status flip, the row is kept as history
    Column("status", String(16), nullable=False, server_default=text("'interested'")),
    Column("enrolled_at", DateTime(timezone=True)),
    Column("cancelled_at", DateTime(timezone=True)),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    # One row per (expedition, user); re-enrollment re-activates it
    UniqueConstraint("expedition_id", "user_id", name="uq_expedition_participant"),
    CheckConstraint(
        "status IN ('interested', 'confirmed', 'cancelled')",
        name="status",
    ),
)
