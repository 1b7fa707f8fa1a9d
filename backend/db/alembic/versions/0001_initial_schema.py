"""Initial schema for events, staff, tickets, orders, media and users."""

from __future__ import annotations

from typing import Sequence
from typing import Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_ENUMS = {
    "staff_role": ("staff", "artist"),
    "flight_type": ("arrival", "departure", "return"),
    "discount_type": ("percentage", "fixed"),
    "order_status": ("pending", "paid", "failed", "cancelled"),
}


def _enum(name: str) -> postgresql.ENUM:
    return postgresql.ENUM(*_ENUMS[name], name=name, create_type=False)


def _id() -> sa.Column:
    return sa.Column("id", sa.BigInteger(), sa.Identity(), primary_key=True)


def _fk(name: str, target: str, nullable: bool = False, ondelete: str = "CASCADE") -> sa.Column:
    return sa.Column(
        name,
        sa.BigInteger(),
        sa.ForeignKey(target, ondelete=ondelete),
        nullable=nullable,
    )


def _timestamps(updated: bool = True) -> list[sa.Column]:
    columns = [
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        )
    ]
    if updated:
        columns.append(
            sa.Column(
                "updated_at",
                sa.TIMESTAMP(timezone=True),
                nullable=False,
                server_default=sa.text("now()"),
            )
        )
    return columns


def upgrade() -> None:
    """Create tables, enums and indexes."""
    bind = op.get_bind()
    for name in _ENUMS:
        _enum(name).create(bind, checkfirst=True)

    op.create_table(
        "users",
        sa.Column("cognito_sub", sa.String(64), primary_key=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("name", sa.String(200), nullable=True),
        sa.Column("nickname", sa.String(30), nullable=True, unique=True),
        sa.Column("photo_url", sa.String(1000), nullable=True),
        sa.Column("cover_photo_url", sa.String(1000), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("location", sa.String(200), nullable=True),
        sa.Column("dance_styles", sa.JSON(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"])

    op.create_table(
        "events",
        _id(),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("start_date", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("end_date", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("image_url", sa.String(500), nullable=True),
        sa.Column("cognito_sub", sa.String(64), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_events_start_date", "events", ["start_date"])
    op.create_index("ix_events_cognito_sub", "events", ["cognito_sub"])

    op.create_table(
        "event_staff",
        _id(),
        _fk("event_id", "events.id"),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column(
            "role",
            _enum("staff_role"),
            nullable=False,
            server_default="staff",
        ),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("image_url", sa.String(500), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("instagram_url", sa.String(500), nullable=True),
        sa.Column("tiktok_url", sa.String(500), nullable=True),
        sa.Column("youtube_url", sa.String(500), nullable=True),
        sa.Column("website_url", sa.String(500), nullable=True),
        sa.Column("country", sa.String(100), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("partner_name", sa.String(200), nullable=True),
        sa.Column("partner_id", sa.BigInteger(), nullable=True),
        sa.Column("styles", sa.JSON(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("idx_event_staff_event_role", "event_staff", ["event_id", "role"])

    op.create_table(
        "staff_flights",
        _id(),
        _fk("event_id", "events.id"),
        _fk("staff_id", "event_staff.id"),
        sa.Column("flight_number", sa.String(20), nullable=False),
        sa.Column("airline", sa.String(100), nullable=True),
        sa.Column(
            "flight_type",
            _enum("flight_type"),
            nullable=False,
            server_default="arrival",
        ),
        sa.Column("departure_airport", sa.String(100), nullable=True),
        sa.Column("arrival_airport", sa.String(100), nullable=True),
        sa.Column("departure_datetime", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("arrival_datetime", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_staff_flights_event_id", "staff_flights", ["event_id"])
    op.create_index("ix_staff_flights_staff_id", "staff_flights", ["staff_id"])

    op.create_table(
        "event_accommodations",
        _id(),
        _fk("event_id", "events.id"),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("address", sa.String(500), nullable=True),
        sa.Column("check_in_date", sa.Date(), nullable=True),
        sa.Column("check_out_date", sa.Date(), nullable=True),
        sa.Column("room_type", sa.String(100), nullable=True),
        sa.Column("max_guests", sa.Integer(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("booking_reference", sa.String(100), nullable=True),
        sa.Column("cost_per_night", sa.Numeric(10, 2), nullable=True),
        *_timestamps(),
    )
    op.create_index(
        "ix_event_accommodations_event_id",
        "event_accommodations",
        ["event_id"],
    )

    op.create_table(
        "staff_accommodations",
        _id(),
        _fk("accommodation_id", "event_accommodations.id"),
        _fk("staff_id", "event_staff.id"),
        sa.Column("check_in_date", sa.Date(), nullable=True),
        sa.Column("check_out_date", sa.Date(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(updated=False),
        sa.UniqueConstraint(
            "accommodation_id",
            "staff_id",
            name="uq_staff_accommodations_accommodation_staff",
        ),
    )
    op.create_index(
        "ix_staff_accommodations_accommodation_id",
        "staff_accommodations",
        ["accommodation_id"],
    )
    op.create_index(
        "ix_staff_accommodations_staff_id",
        "staff_accommodations",
        ["staff_id"],
    )

    op.create_table(
        "tickets",
        _id(),
        _fk("event_id", "events.id"),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("image_url", sa.String(500), nullable=True),
        sa.Column("max_quantity", sa.Integer(), nullable=True),
        sa.Column("sold_quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_tickets_event_id", "tickets", ["event_id"])

    op.create_table(
        "ticket_discounts",
        _id(),
        _fk("ticket_id", "tickets.id"),
        sa.Column("discount_type", _enum("discount_type"), nullable=False),
        sa.Column("discount_value", sa.Numeric(10, 2), nullable=False),
        sa.Column("valid_until", sa.Date(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(updated=False),
    )
    op.create_index("ix_ticket_discounts_ticket_id", "ticket_discounts", ["ticket_id"])

    op.create_table(
        "discount_codes",
        _id(),
        _fk("event_id", "events.id"),
        sa.Column("code", sa.String(50), nullable=False),
        sa.Column("discount_type", _enum("discount_type"), nullable=False),
        sa.Column("discount_value", sa.Numeric(10, 2), nullable=False),
        sa.Column("max_uses", sa.Integer(), nullable=True),
        sa.Column("used_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("valid_from", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("valid_until", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(updated=False),
        sa.UniqueConstraint("event_id", "code", name="uq_discount_codes_event_code"),
    )
    op.create_index("ix_discount_codes_event_id", "discount_codes", ["event_id"])

    op.create_table(
        "ticket_orders",
        _id(),
        _fk("event_id", "events.id"),
        _fk("ticket_id", "tickets.id"),
        sa.Column("cognito_sub", sa.String(64), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("discount_amount", sa.Numeric(10, 2), nullable=False, server_default="0"),
        _fk("discount_code_id", "discount_codes.id", nullable=True, ondelete="SET NULL"),
        sa.Column("total_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("stripe_checkout_session_id", sa.String(255), nullable=True),
        sa.Column("stripe_payment_intent_id", sa.String(255), nullable=True),
        sa.Column(
            "status",
            _enum("order_status"),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("validated", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index("ix_ticket_orders_event_id", "ticket_orders", ["event_id"])
    op.create_index("ix_ticket_orders_ticket_id", "ticket_orders", ["ticket_id"])
    op.create_index("ix_ticket_orders_cognito_sub", "ticket_orders", ["cognito_sub"])
    op.create_index(
        "ix_ticket_orders_stripe_checkout_session_id",
        "ticket_orders",
        ["stripe_checkout_session_id"],
    )

    op.create_table(
        "albums",
        _id(),
        _fk("event_id", "events.id"),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("album_date", sa.Date(), nullable=True),
        sa.Column("cognito_sub", sa.String(64), nullable=True),
        *_timestamps(updated=False),
        sa.UniqueConstraint(
            "event_id",
            "name",
            "album_date",
            name="uq_albums_event_name_date",
        ),
    )
    op.create_index("ix_albums_event_id", "albums", ["event_id"])

    op.create_table(
        "videos",
        _id(),
        _fk("event_id", "events.id", nullable=True),
        _fk("album_id", "albums.id", nullable=True, ondelete="SET NULL"),
        sa.Column("cognito_sub", sa.String(64), nullable=True),
        sa.Column("title", sa.String(255), nullable=True),
        sa.Column("video_url", sa.String(1000), nullable=False),
        sa.Column("s3_key", sa.String(500), nullable=True),
        sa.Column("thumbnail_url", sa.String(1000), nullable=True),
        sa.Column("category", sa.String(100), nullable=True),
        sa.Column("mime_type", sa.String(100), nullable=True),
        sa.Column("file_size", sa.BigInteger(), nullable=True),
        *_timestamps(updated=False),
    )
    op.create_index("ix_videos_event_id", "videos", ["event_id"])
    op.create_index("ix_videos_album_id", "videos", ["album_id"])
    op.create_index("ix_videos_cognito_sub", "videos", ["cognito_sub"])
    op.create_index("ix_videos_s3_key", "videos", ["s3_key"])


def downgrade() -> None:
    """Drop everything created by upgrade."""
    for table in (
        "videos",
        "albums",
        "ticket_orders",
        "discount_codes",
        "ticket_discounts",
        "tickets",
        "staff_accommodations",
        "event_accommodations",
        "staff_flights",
        "event_staff",
        "events",
        "users",
    ):
        op.drop_table(table)
    bind = op.get_bind()
    for name in reversed(list(_ENUMS)):
        _enum(name).drop(bind, checkfirst=True)
