"""System events table model using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    DateTime,
    String,
    Table,
    Text,
    Uuid,
    func,
    text,
)

from app.models.base import metadata

# Informational audit trail shown on the admin dashboard
system_events = Table(
    "system_events",
    metadata,
    Column("id", Uuid(as_uuid=True), primary_key=True, default=uuid4),
    Column("type", String(64), nullable=False, index=True),
    Column("message", Text, nullable=False),
    Column("severity", String(16), nullable=False, server_default=text("'info'")),
    # No FK: events outlive the accounts that caused them
    Column("actor_id", Uuid(as_uuid=True)),
    Column("metadata", JSON),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    CheckConstraint("severity IN ('info', 'warning', 'error')", name="severity"),
)
