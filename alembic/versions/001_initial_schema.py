"""Initial schema - accounts, registry, trails, expeditions.

Revision ID: 001
Revises:
Create Date: 2026-01-12 00:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id_column() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        server_default=sa.text("gen_random_uuid()"),
        nullable=False,
    )


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Create all tables."""
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto"')

    op.create_table(
        "users",
        _id_column(),
        sa.Column("external_id", sa.String(64), nullable=False),
        sa.Column("name", sa.Text(), nullable=True),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column("password_hash", sa.Text(), nullable=True),
        sa.Column("login_method", sa.String(64), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("photo_url", sa.Text(), nullable=True),
        sa.Column("role", sa.String(16), server_default=sa.text("'user'"), nullable=False),
        sa.Column("user_type", sa.String(16), server_default=sa.text("'trekker'"), nullable=False),
        sa.Column("certificate_number", sa.String(64), nullable=True),
        sa.Column(
            "certificate_validated", sa.Boolean(), server_default=sa.text("false"), nullable=False
        ),
        *_timestamps(),
        sa.Column("last_signed_in_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.CheckConstraint("role IN ('user', 'admin')", name="ck_users_role"),
        sa.CheckConstraint("user_type IN ('trekker', 'guide')", name="ck_users_user_type"),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
    )
    op.create_index("ix_users_external_id", "users", ["external_id"], unique=True)
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_certificate_number", "users", ["certificate_number"], unique=True)

    op.create_table(
        "cadastur_registry",
        _id_column(),
        sa.Column("certificate_number", sa.String(64), nullable=False),
        sa.Column("full_name", sa.Text(), nullable=False),
        sa.Column("activity_type", sa.String(128), nullable=True),
        sa.Column("uf", sa.String(2), nullable=False),
        sa.Column("city", sa.String(128), nullable=True),
        sa.Column("phone", sa.String(64), nullable=True),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column("website", sa.Text(), nullable=True),
        sa.Column("valid_until", sa.Date(), nullable=True),
        sa.Column("languages", sa.JSON(), nullable=True),
        sa.Column("operating_cities", sa.JSON(), nullable=True),
        sa.Column("categories", sa.JSON(), nullable=True),
        sa.Column("segments", sa.JSON(), nullable=True),
        sa.Column("is_driver_guide", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_cadastur_registry"),
    )
    op.create_index(
        "ix_cadastur_registry_certificate_number",
        "cadastur_registry",
        ["certificate_number"],
        unique=True,
    )
    op.create_index("ix_cadastur_registry_uf", "cadastur_registry", ["uf"])

    op.create_table(
        "guide_profiles",
        _id_column(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("certificate_number", sa.String(64), nullable=False),
        sa.Column("validated_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("expires_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("uf", sa.String(2), nullable=True),
        sa.Column("city", sa.String(128), nullable=True),
        sa.Column("categories", sa.JSON(), nullable=True),
        sa.Column("languages", sa.JSON(), nullable=True),
        sa.Column("contact_phone", sa.String(64), nullable=True),
        sa.Column("contact_email", sa.String(320), nullable=True),
        sa.Column("website", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name="fk_guide_profiles_user_id_users",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_guide_profiles"),
    )
    op.create_index("ix_guide_profiles_user_id", "guide_profiles", ["user_id"], unique=True)

    op.create_table(
        "trails",
        _id_column(),
        sa.Column("name", sa.String(256), nullable=False),
        sa.Column("uf", sa.String(2), nullable=False),
        sa.Column("city", sa.String(128), nullable=True),
        sa.Column("region", sa.String(256), nullable=True),
        sa.Column("park", sa.String(256), nullable=True),
        sa.Column("distance_km", sa.Numeric(8, 2), nullable=True),
        sa.Column("elevation_gain", sa.Integer(), nullable=True),
        sa.Column("difficulty", sa.String(16), server_default=sa.text("'moderate'"), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("images", sa.JSON(), nullable=True),
        sa.Column("source", sa.String(128), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "difficulty IN ('easy', 'moderate', 'hard', 'expert')",
            name="ck_trails_difficulty",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_trails"),
    )
    op.create_index("ix_trails_name", "trails", ["name"])
    op.create_index("ix_trails_uf", "trails", ["uf"])

    op.create_table(
        "expeditions",
        _id_column(),
        sa.Column("guide_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("trail_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.String(256), nullable=True),
        sa.Column("start_date", postgresql.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("end_date", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("capacity", sa.Integer(), server_default=sa.text("10"), nullable=False),
        sa.Column("enrolled_count", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=True),
        sa.Column("meeting_point", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status", sa.String(16), server_default=sa.text("'draft'"), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("capacity > 0", name="ck_expeditions_capacity_positive"),
        sa.CheckConstraint(
            "enrolled_count >= 0 AND enrolled_count <= capacity",
            name="ck_expeditions_enrolled_within_capacity",
        ),
        sa.CheckConstraint(
            "status IN ('draft', 'published', 'active', 'cancelled', "
            "'completed', 'closed', 'full')",
            name="ck_expeditions_status",
        ),
        sa.ForeignKeyConstraint(
            ["guide_id"],
            ["users.id"],
            name="fk_expeditions_guide_id_users",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["trail_id"],
            ["trails.id"],
            name="fk_expeditions_trail_id_trails",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_expeditions"),
    )
    op.create_index("ix_expeditions_guide_id", "expeditions", ["guide_id"])
    op.create_index("ix_expeditions_trail_id", "expeditions", ["trail_id"])
    op.create_index("ix_expeditions_start_date", "expeditions", ["start_date"])
    op.create_index("ix_expeditions_status", "expeditions", ["status"])

    op.create_table(
        "expedition_participants",
        _id_column(),
        sa.Column("expedition_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("status", sa.String(16), server_default=sa.text("'interested'"), nullable=False),
        sa.Column("enrolled_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("cancelled_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('interested', 'confirmed', 'cancelled')",
            name="ck_expedition_participants_status",
        ),
        sa.UniqueConstraint("expedition_id", "user_id", name="uq_expedition_participant"),
        sa.ForeignKeyConstraint(
            ["expedition_id"],
            ["expeditions.id"],
            name="fk_expedition_participants_expedition_id_expeditions",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name="fk_expedition_participants_user_id_users",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_expedition_participants"),
    )
    op.create_index(
        "ix_expedition_participants_expedition_id", "expedition_participants", ["expedition_id"]
    )
    op.create_index("ix_expedition_participants_user_id", "expedition_participants", ["user_id"])

    op.create_table(
        "favorites",
        _id_column(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("trail_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.UniqueConstraint("user_id", "trail_id", name="uq_favorite_user_trail"),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], name="fk_favorites_user_id_users", ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["trail_id"], ["trails.id"], name="fk_favorites_trail_id_trails", ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id", name="pk_favorites"),
    )
    op.create_index("ix_favorites_user_id", "favorites", ["user_id"])

    op.create_table(
        "system_events",
        _id_column(),
        sa.Column("type", sa.String(64), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("severity", sa.String(16), server_default=sa.text("'info'"), nullable=False),
        sa.Column("actor_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.CheckConstraint(
            "severity IN ('info', 'warning', 'error')", name="ck_system_events_severity"
        ),
        sa.PrimaryKeyConstraint("id", name="pk_system_events"),
    )
    op.create_index("ix_system_events_type", "system_events", ["type"])
    op.create_index("ix_system_events_created_at", "system_events", ["created_at"])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("system_events")
    op.drop_table("favorites")
    op.drop_table("expedition_participants")
    op.drop_table("expeditions")
    op.drop_table("trails")
    op.drop_table("guide_profiles")
    op.drop_table("cadastur_registry")
    op.drop_table("users")
