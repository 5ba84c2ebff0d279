"""Initial booking schema.

Revision ID: 0001
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

QUOTE_STATUSES = ("draft", "submitted", "approved", "confirmed", "rejected")
SERVICE_TYPES = ("room", "car", "airport", "hotel", "rentcar", "tour")
RESERVATION_STATUSES = ("pending", "confirmed", "completed", "cancelled")
RESERVATION_TYPES = ("cruise", "airport", "vehicle", "hotel", "rentcar", "tour")


def _enum(name: str, values: tuple[str, ...]) -> sa.Enum:
    return sa.Enum(*values, name=name, native_enum=False, length=32)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def _price_table(name: str, code: str, *columns: sa.Column, windowed: bool = False) -> None:
    window = (
        [sa.Column("start_date", sa.Date()), sa.Column("end_date", sa.Date())]
        if windowed
        else []
    )
    op.create_table(
        name,
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(code, sa.String(length=64), nullable=False),
        *columns,
        sa.Column("price", sa.BigInteger(), nullable=False, server_default="0"),
        *window,
    )
    op.create_index(f"ix_{name}_{code}", name, [code])


def _service_record_table(name: str, *columns: sa.Column) -> None:
    op.create_table(
        name,
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        *columns,
        sa.Column("special_requests", sa.String(length=2048)),
        *_timestamps(),
    )


def _detail_table(name: str, *columns: sa.Column) -> None:
    op.create_table(
        name,
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "reservation_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("reservation.id", ondelete="CASCADE"),
            nullable=False,
        ),
        *columns,
        sa.Column("request_note", sa.String(length=2048)),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index(f"ix_{name}_reservation_id", name, ["reservation_id"])


def _money(name: str) -> sa.Column:
    return sa.Column(name, sa.BigInteger(), nullable=False, server_default="0")


def _count(name: str, default: int = 0) -> sa.Column:
    return sa.Column(name, sa.Integer(), nullable=False, server_default=str(default))


def upgrade() -> None:
    _price_table(
        "room_price",
        "room_code",
        sa.Column("schedule", sa.String(length=64)),
        sa.Column("cruise", sa.String(length=128)),
        sa.Column("payment", sa.String(length=64)),
        sa.Column("room_type", sa.String(length=128)),
        sa.Column("room_category", sa.String(length=128)),
        windowed=True,
    )
    _price_table(
        "car_price",
        "car_code",
        sa.Column("schedule", sa.String(length=64)),
        sa.Column("cruise", sa.String(length=128)),
        sa.Column("car_category", sa.String(length=128)),
        sa.Column("car_type", sa.String(length=128)),
    )
    _price_table(
        "airport_price",
        "airport_code",
        sa.Column("airport_category", sa.String(length=64)),
        sa.Column("airport_route", sa.String(length=128)),
        sa.Column("airport_car_type", sa.String(length=128)),
    )
    _price_table(
        "hotel_price",
        "hotel_code",
        sa.Column("hotel_name", sa.String(length=128)),
        sa.Column("room_name", sa.String(length=128)),
        sa.Column("room_type", sa.String(length=128)),
        sa.Column("weekday_type", sa.String(length=32)),
        windowed=True,
    )
    _price_table(
        "rent_price",
        "rent_code",
        sa.Column("rent_category", sa.String(length=64)),
        sa.Column("rent_route", sa.String(length=128)),
        sa.Column("rent_car_type", sa.String(length=128)),
    )
    _price_table(
        "tour_price",
        "tour_code",
        sa.Column("tour_name", sa.String(length=128)),
        sa.Column("tour_vehicle", sa.String(length=128)),
        sa.Column("tour_type", sa.String(length=64)),
        sa.Column("tour_capacity", sa.Integer()),
    )

    op.create_table(
        "quote",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("user_id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("status", _enum("quote_status", QUOTE_STATUSES), nullable=False),
        _money("total_price"),
        sa.Column("submitted_at", sa.DateTime(timezone=True)),
        *_timestamps(),
    )
    op.create_index("ix_quote_user_id", "quote", ["user_id"])

    op.create_table(
        "quote_item",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "quote_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("quote.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("service_type", _enum("service_type", SERVICE_TYPES), nullable=False),
        sa.Column("service_ref_id", sa.Uuid(as_uuid=True), nullable=False),
        _count("quantity", 1),
        _money("unit_price"),
        _money("total_price"),
        sa.Column("usage_date", sa.Date()),
        *_timestamps(),
    )
    op.create_index("ix_quote_item_quote_id", "quote_item", ["quote_id"])

    _service_record_table(
        "room",
        sa.Column("room_code", sa.String(length=64), nullable=False),
        _count("person_count"),
    )
    _service_record_table(
        "car",
        sa.Column("car_code", sa.String(length=64), nullable=False),
        _count("car_count"),
        _count("passenger_count"),
    )
    _service_record_table(
        "airport",
        sa.Column("airport_code", sa.String(length=64), nullable=False),
        _count("passenger_count", 1),
    )
    _service_record_table(
        "hotel",
        sa.Column("hotel_code", sa.String(length=64), nullable=False),
        sa.Column("checkin_date", sa.Date()),
        sa.Column("checkout_date", sa.Date()),
        _count("room_count", 1),
    )
    _service_record_table(
        "rentcar",
        sa.Column("rentcar_code", sa.String(length=64), nullable=False),
        _count("vehicle_count", 1),
    )
    _service_record_table(
        "tour",
        sa.Column("tour_code", sa.String(length=64), nullable=False),
        sa.Column("tour_date", sa.Date()),
        _count("participant_count", 1),
    )

    op.create_table(
        "reservation",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("user_id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column(
            "quote_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("quote.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "reservation_type",
            _enum("reservation_type", RESERVATION_TYPES),
            nullable=False,
        ),
        sa.Column(
            "status",
            _enum("reservation_status", RESERVATION_STATUSES),
            nullable=False,
        ),
        *_timestamps(),
        sa.UniqueConstraint(
            "user_id",
            "quote_id",
            "reservation_type",
            name="uq_reservation_user_quote_type",
        ),
    )
    op.create_index("ix_reservation_user_id", "reservation", ["user_id"])
    op.create_index("ix_reservation_quote_id", "reservation", ["quote_id"])

    _detail_table(
        "reservation_cruise",
        sa.Column("room_price_code", sa.String(length=64), nullable=False),
        sa.Column("checkin", sa.Date()),
        _count("guest_count"),
        _count("room_count", 1),
        _money("unit_price"),
        _money("room_total_price"),
    )
    _detail_table(
        "reservation_cruise_car",
        sa.Column("car_price_code", sa.String(length=64), nullable=False),
        _count("car_count"),
        _count("passenger_count"),
        sa.Column("pickup_datetime", sa.DateTime(timezone=True)),
        sa.Column("pickup_location", sa.String(length=255)),
        sa.Column("dropoff_location", sa.String(length=255)),
        _money("unit_price"),
        _money("car_total_price"),
    )
    _detail_table(
        "reservation_airport",
        sa.Column("airport_price_code", sa.String(length=64), nullable=False),
        sa.Column("way_type", sa.String(length=16), nullable=False),
        sa.Column("airport_location", sa.String(length=255)),
        sa.Column("flight_number", sa.String(length=32)),
        sa.Column("service_datetime", sa.DateTime(timezone=True)),
        sa.Column("stopover_location", sa.String(length=255)),
        _count("stopover_wait_minutes"),
        _count("car_count", 1),
        _count("passenger_count", 1),
        _count("luggage_count"),
        _money("unit_price"),
        _money("total_price"),
        sa.Column(
            "is_processed", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
    )
    _detail_table(
        "reservation_car_sht",
        sa.Column("vehicle_number", sa.String(length=64)),
        sa.Column("seat_number", sa.String(length=64)),
        sa.Column("color_label", sa.String(length=64)),
        sa.Column("sht_category", sa.String(length=64)),
        sa.Column("usage_date", sa.Date()),
    )
    _detail_table(
        "reservation_hotel",
        sa.Column("hotel_price_code", sa.String(length=64), nullable=False),
        sa.Column("checkin_date", sa.Date()),
        sa.Column("checkout_date", sa.Date()),
        _count("room_count", 1),
        _count("guest_count"),
        _money("unit_price"),
        _money("total_price"),
    )
    _detail_table(
        "reservation_rentcar",
        sa.Column("rentcar_price_code", sa.String(length=64), nullable=False),
        sa.Column("pickup_datetime", sa.DateTime(timezone=True)),
        sa.Column("pickup_location", sa.String(length=255)),
        sa.Column("destination", sa.String(length=255)),
        _count("vehicle_count", 1),
        _count("passenger_count"),
        _money("unit_price"),
        _money("total_price"),
    )
    _detail_table(
        "reservation_tour",
        sa.Column("tour_price_code", sa.String(length=64), nullable=False),
        sa.Column("usage_date", sa.Date()),
        _count("participant_count", 1),
        sa.Column("pickup_location", sa.String(length=255)),
        _money("unit_price"),
        _money("total_price"),
    )


def downgrade() -> None:
    for table in (
        "reservation_tour",
        "reservation_rentcar",
        "reservation_hotel",
        "reservation_car_sht",
        "reservation_airport",
        "reservation_cruise_car",
        "reservation_cruise",
        "reservation",
        "tour",
        "rentcar",
        "hotel",
        "airport",
        "car",
        "room",
        "quote_item",
        "quote",
        "tour_price",
        "rent_price",
        "hotel_price",
        "airport_price",
        "car_price",
        "room_price",
    ):
        op.drop_table(table)
