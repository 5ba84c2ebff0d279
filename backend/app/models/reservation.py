"""Reservation models."""
from __future__ import annotations

import datetime
import enum
import uuid
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    BigInteger,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.models.mixins import TimestampMixin, value_enum

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    from app.models.quote import Quote


class ReservationStatus(str, enum.Enum):
    """Lifecycle states for reservations."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ReservationType(str, enum.Enum):
    """Service types a reservation can be scoped to."""

    CRUISE = "cruise"
    AIRPORT = "airport"
    VEHICLE = "vehicle"
    HOTEL = "hotel"
    RENTCAR = "rentcar"
    TOUR = "tour"


class Reservation(TimestampMixin, Base):
    """Confirmed-intent booking derived from a quote, one per service type."""

    __tablename__ = "reservation"
    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "quote_id",
            "reservation_type",
            name="uq_reservation_user_quote_type",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(index=True, nullable=False)
    quote_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("quote.id", ondelete="CASCADE"), index=True, nullable=False
    )
    reservation_type: Mapped[ReservationType] = mapped_column(
        value_enum(ReservationType), nullable=False
    )
    status: Mapped[ReservationStatus] = mapped_column(
        value_enum(ReservationStatus), default=ReservationStatus.PENDING, nullable=False
    )

    quote: Mapped["Quote"] = relationship("Quote", back_populates="reservations")


class ReservationDetailMixin:
    """Columns shared by every reservation detail table."""

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    reservation_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("reservation.id", ondelete="CASCADE"), index=True, nullable=False
    )
    request_note: Mapped[str | None] = mapped_column(String(2048))
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.datetime.now(datetime.UTC),
    )


class ReservationCruise(ReservationDetailMixin, Base):
    """One cabin category booked under a cruise reservation."""

    __tablename__ = "reservation_cruise"

    room_price_code: Mapped[str] = mapped_column(String(64), nullable=False)
    checkin: Mapped[datetime.date | None] = mapped_column(Date)
    guest_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    room_count: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    unit_price: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    room_total_price: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)


class ReservationCruiseCar(ReservationDetailMixin, Base):
    """Transfer vehicle booked alongside a cruise."""

    __tablename__ = "reservation_cruise_car"

    car_price_code: Mapped[str] = mapped_column(String(64), nullable=False)
    car_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    passenger_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    pickup_datetime: Mapped[datetime.datetime | None] = mapped_column(
        DateTime(timezone=True)
    )
    pickup_location: Mapped[str | None] = mapped_column(String(255))
    dropoff_location: Mapped[str | None] = mapped_column(String(255))
    unit_price: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    car_total_price: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)


class ReservationAirport(ReservationDetailMixin, Base):
    """One leg (pickup or sending) of an airport transfer."""

    __tablename__ = "reservation_airport"

    airport_price_code: Mapped[str] = mapped_column(String(64), nullable=False)
    way_type: Mapped[str] = mapped_column(String(16), nullable=False)
    airport_location: Mapped[str | None] = mapped_column(String(255))
    flight_number: Mapped[str | None] = mapped_column(String(32))
    service_datetime: Mapped[datetime.datetime | None] = mapped_column(
        DateTime(timezone=True)
    )
    stopover_location: Mapped[str | None] = mapped_column(String(255))
    stopover_wait_minutes: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )
    car_count: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    passenger_count: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    luggage_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    unit_price: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    total_price: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    is_processed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


class ReservationCarSht(ReservationDetailMixin, Base):
    """Shuttle seat assignment."""

    __tablename__ = "reservation_car_sht"

    vehicle_number: Mapped[str | None] = mapped_column(String(64))
    seat_number: Mapped[str | None] = mapped_column(String(64))
    color_label: Mapped[str | None] = mapped_column(String(64))
    sht_category: Mapped[str | None] = mapped_column(String(64))
    usage_date: Mapped[datetime.date | None] = mapped_column(Date)


class ReservationHotel(ReservationDetailMixin, Base):
    __tablename__ = "reservation_hotel"

    hotel_price_code: Mapped[str] = mapped_column(String(64), nullable=False)
    checkin_date: Mapped[datetime.date | None] = mapped_column(Date)
    checkout_date: Mapped[datetime.date | None] = mapped_column(Date)
    room_count: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    guest_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    unit_price: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    total_price: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)


class ReservationRentcar(ReservationDetailMixin, Base):
    __tablename__ = "reservation_rentcar"

    rentcar_price_code: Mapped[str] = mapped_column(String(64), nullable=False)
    pickup_datetime: Mapped[datetime.datetime | None] = mapped_column(
        DateTime(timezone=True)
    )
    pickup_location: Mapped[str | None] = mapped_column(String(255))
    destination: Mapped[str | None] = mapped_column(String(255))
    vehicle_count: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    passenger_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    unit_price: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    total_price: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)


class ReservationTour(ReservationDetailMixin, Base):
    __tablename__ = "reservation_tour"

    tour_price_code: Mapped[str] = mapped_column(String(64), nullable=False)
    usage_date: Mapped[datetime.date | None] = mapped_column(Date)
    participant_count: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    pickup_location: Mapped[str | None] = mapped_column(String(255))
    unit_price: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    total_price: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)


RESERVATION_DETAIL_MODELS: dict[ReservationType, tuple[Any, ...]] = {
    ReservationType.CRUISE: (ReservationCruise, ReservationCruiseCar),
    ReservationType.AIRPORT: (ReservationAirport,),
    ReservationType.VEHICLE: (ReservationCarSht,),
    ReservationType.HOTEL: (ReservationHotel,),
    ReservationType.RENTCAR: (ReservationRentcar,),
    ReservationType.TOUR: (ReservationTour,),
}

# Detail table -> (price catalog, column holding the catalog code).
DETAIL_PRICE_CODES: dict[Any, tuple[str, str]] = {
    ReservationCruise: ("room", "room_price_code"),
    ReservationCruiseCar: ("car", "car_price_code"),
    ReservationAirport: ("airport", "airport_price_code"),
    ReservationHotel: ("hotel", "hotel_price_code"),
    ReservationRentcar: ("rentcar", "rentcar_price_code"),
    ReservationTour: ("tour", "tour_price_code"),
}
