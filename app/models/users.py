"""User (account) model definition using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    String,
    Table,
    Text,
    Uuid,
    false,
    func,
    text,
)

from app.models.base import metadata

users = Table(
    "users",
    metadata,
    Column("id", Uuid(as_uuid=True), primary_key=True, default=uuid4),
    # External identity (Firebase uid, or a generated id for password accounts)
    Column("external_id", String(64), nullable=False, unique=True, index=True),
    # Profile info (mutable)
    Column("name", Text),
    Column("email", String(320), unique=True, index=True),
    Column("password_hash", Text),
    Column("login_method", String(64)),
    Column("bio", Text),
    Column("photo_url", Text),
    # Authorization
    Column("role", String(16), nullable=False, server_default=text("'user'")),
    Column("user_type", String(16), nullable=False, server_default=text("'trekker'")),
    # CADASTUR certificate, stored normalized; one account per certificate
    Column("certificate_number", String(64), unique=True, index=True),
    Column("certificate_validated", Boolean, nullable=False, server_default=false()),
    # Audit
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("last_signed_in_at", DateTime(timezone=True)),
    CheckConstraint("role IN ('user', 'admin')", name="role"),
    CheckConstraint("user_type IN ('trekker', 'guide')", name="user_type"),
)
