"""Price catalog models (read-only from the booking core)."""

from __future__ import annotations

import datetime
import uuid

from sqlalchemy import BigInteger, Date, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class PriceCatalogMixin:
    """Columns shared by every price table."""

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    price: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)


class ValidityWindowMixin:
    """Inclusive date range during which a price row applies."""

    start_date: Mapped[datetime.date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[datetime.date | None] = mapped_column(Date, nullable=True)


class RoomPrice(PriceCatalogMixin, ValidityWindowMixin, Base):
    """Cruise cabin prices by schedule, cruise, payment method and cabin."""

    __tablename__ = "room_price"

    room_code: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    schedule: Mapped[str | None] = mapped_column(String(64))
    cruise: Mapped[str | None] = mapped_column(String(128))
    payment: Mapped[str | None] = mapped_column(String(64))
    room_type: Mapped[str | None] = mapped_column(String(128))
    room_category: Mapped[str | None] = mapped_column(String(128))


class CarPrice(PriceCatalogMixin, Base):
    """Cruise transfer vehicle prices."""

    __tablename__ = "car_price"

    car_code: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    schedule: Mapped[str | None] = mapped_column(String(64))
    cruise: Mapped[str | None] = mapped_column(String(128))
    car_category: Mapped[str | None] = mapped_column(String(128))
    car_type: Mapped[str | None] = mapped_column(String(128))


class AirportPrice(PriceCatalogMixin, Base):
    """Airport pickup / sending transfer prices."""

    __tablename__ = "airport_price"

    airport_code: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    airport_category: Mapped[str | None] = mapped_column(String(64))
    airport_route: Mapped[str | None] = mapped_column(String(128))
    airport_car_type: Mapped[str | None] = mapped_column(String(128))


class HotelPrice(PriceCatalogMixin, ValidityWindowMixin, Base):
    """Hotel room prices by hotel, room and rate type."""

    __tablename__ = "hotel_price"

    hotel_code: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    hotel_name: Mapped[str | None] = mapped_column(String(128))
    room_name: Mapped[str | None] = mapped_column(String(128))
    room_type: Mapped[str | None] = mapped_column(String(128))
    weekday_type: Mapped[str | None] = mapped_column(String(32))


class RentPrice(PriceCatalogMixin, Base):
    """Rent-car prices."""

    __tablename__ = "rent_price"

    rent_code: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    rent_category: Mapped[str | None] = mapped_column(String(64))
    rent_route: Mapped[str | None] = mapped_column(String(128))
    rent_car_type: Mapped[str | None] = mapped_column(String(128))


class TourPrice(PriceCatalogMixin, Base):
    """Tour prices by tour, vehicle, type and group capacity."""

    __tablename__ = "tour_price"

    tour_code: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    tour_name: Mapped[str | None] = mapped_column(String(128))
    tour_vehicle: Mapped[str | None] = mapped_column(String(128))
    tour_type: Mapped[str | None] = mapped_column(String(64))
    tour_capacity: Mapped[int | None] = mapped_column(Integer)
