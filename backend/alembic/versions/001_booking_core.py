# backend/alembic/versions/001_booking_core.py
"""Booking core - facilities, bookings, inventory, history, background jobs

Revision ID: 001_booking_core
Revises:
Create Date: 2026-10-18 00:00:00.000000

On PostgreSQL the bookings table also gets an exclusion constraint that
rejects two active bookings of one facility with overlapping windows.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB

# revision identifiers, used by Alembic.
revision: str = "001_booking_core"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _create_extension_prefer_extensions_schema(extension_name: str) -> None:
    """Create extension using extensions schema when available."""

    bind = op.get_bind()
    if bind is None or bind.dialect.name != "postgresql":
        return

    op.execute(
        f"""
        DO $$
        DECLARE
            extensions_schema_exists BOOLEAN;
            extension_installed BOOLEAN;
        BEGIN
            SELECT EXISTS (
                SELECT 1 FROM pg_namespace WHERE nspname = 'extensions'
            ) INTO extensions_schema_exists;

            SELECT EXISTS (
                SELECT 1 FROM pg_extension WHERE extname = '{extension_name}'
            ) INTO extension_installed;

            IF NOT extension_installed THEN
                IF extensions_schema_exists THEN
                    EXECUTE 'CREATE EXTENSION IF NOT EXISTS {extension_name} WITH SCHEMA extensions';
                ELSE
                    EXECUTE 'CREATE EXTENSION IF NOT EXISTS {extension_name}';
                END IF;
            END IF;
        END $$;
        """
    )


def upgrade() -> None:
    bind = op.get_bind()
    is_postgres = bind.dialect.name == "postgresql"
    json_type = JSONB() if is_postgres else sa.JSON()

    op.create_table(
        "facilities",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_facilities_id", "facilities", ["id"])

    op.create_table(
        "inventory_items",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("facility_id", sa.String(26), sa.ForeignKey("facilities.id"), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("quantity >= 0", name="ck_inventory_items_quantity"),
    )
    op.create_index("ix_inventory_items_id", "inventory_items", ["id"])
    op.create_index("ix_inventory_items_facility_id", "inventory_items", ["facility_id"])

    op.create_table(
        "inventory_history",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column(
            "item_id",
            sa.String(26),
            sa.ForeignKey("inventory_items.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("change", sa.Integer(), nullable=False),
        sa.Column("reason", sa.String(50), nullable=False),
        sa.Column("booking_id", sa.String(26), nullable=True),
        sa.Column("user_id", sa.String(64), nullable=True),
        sa.Column("condition", sa.String(20), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_inventory_history_item_id", "inventory_history", ["item_id"])
    op.create_index("ix_inventory_history_booking_id", "inventory_history", ["booking_id"])

    op.create_table(
        "bookings",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("facility_id", sa.String(26), sa.ForeignKey("facilities.id"), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_by", sa.String(64), nullable=True),
        sa.Column("cancellation_reason", sa.Text(), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("start_date < end_date", name="ck_bookings_interval_order"),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'completed', 'cancelled')",
            name="ck_bookings_status",
        ),
    )
    op.create_index("ix_bookings_id", "bookings", ["id"])
    op.create_index("ix_bookings_user_id", "bookings", ["user_id"])
    op.create_index("ix_bookings_status", "bookings", ["status"])
    op.create_index(
        "ix_bookings_facility_window", "bookings", ["facility_id", "start_date", "end_date"]
    )
    op.create_index("ix_bookings_user_start", "bookings", ["user_id", "start_date"])

    op.create_table(
        "booking_items",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column(
            "booking_id",
            sa.String(26),
            sa.ForeignKey("bookings.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "inventory_item_id",
            sa.String(26),
            sa.ForeignKey("inventory_items.id"),
            nullable=False,
        ),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("quantity >= 0", name="ck_booking_items_quantity"),
    )
    op.create_index("ix_booking_items_booking_id", "booking_items", ["booking_id"])
    op.create_index("ix_booking_items_inventory_item_id", "booking_items", ["inventory_item_id"])

    op.create_table(
        "background_jobs",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("payload", json_type, nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="queued"),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "available_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column("last_error", sa.Text(), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_background_jobs_id", "background_jobs", ["id"])
    op.create_index("ix_background_jobs_type", "background_jobs", ["type"])

    if is_postgres:
        _create_extension_prefer_extensions_schema("btree_gist")
        op.execute(
            """
            ALTER TABLE bookings
              ADD CONSTRAINT bookings_no_overlap_per_facility
              EXCLUDE USING gist (
                facility_id WITH =,
                tstzrange(start_date, end_date, '[)') WITH &&
              )
              WHERE (NOT is_deleted AND status IN ('pending', 'confirmed'))
            """
        )


def downgrade() -> None:
    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        op.execute(
            "ALTER TABLE bookings DROP CONSTRAINT IF EXISTS bookings_no_overlap_per_facility"
        )

    op.drop_table("background_jobs")
    op.drop_table("booking_items")
    op.drop_table("bookings")
    op.drop_table("inventory_history")
    op.drop_table("inventory_items")
    op.drop_table("facilities")
