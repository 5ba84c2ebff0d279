"""Per-service detail rows referenced by quote items."""

from __future__ import annotations

import datetime
import uuid
from typing import Any, ClassVar

from sqlalchemy import Date, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.models.mixins import TimestampMixin
from app.models.quote import ServiceType


class ServiceRecordMixin(TimestampMixin):
    """Columns shared by every service record table."""

    catalog_name: ClassVar[str]
    code_attr: ClassVar[str]

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    special_requests: Mapped[str | None] = mapped_column(String(2048))

    @property
    def price_code(self) -> str:
        return getattr(self, self.code_attr)


class RoomService(ServiceRecordMixin, Base):
    __tablename__ = "room"
    catalog_name = "room"
    code_attr = "room_code"

    room_code: Mapped[str] = mapped_column(String(64), nullable=False)
    person_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class CarService(ServiceRecordMixin, Base):
    __tablename__ = "car"
    catalog_name = "car"
    code_attr = "car_code"

    car_code: Mapped[str] = mapped_column(String(64), nullable=False)
    car_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    passenger_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class AirportService(ServiceRecordMixin, Base):
    __tablename__ = "airport"
    catalog_name = "airport"
    code_attr = "airport_code"

    airport_code: Mapped[str] = mapped_column(String(64), nullable=False)
    passenger_count: Mapped[int] = mapped_column(Integer, default=1, nullable=False)


class HotelService(ServiceRecordMixin, Base):
    __tablename__ = "hotel"
    catalog_name = "hotel"
    code_attr = "hotel_code"

    hotel_code: Mapped[str] = mapped_column(String(64), nullable=False)
    checkin_date: Mapped[datetime.date | None] = mapped_column(Date)
    checkout_date: Mapped[datetime.date | None] = mapped_column(Date)
    room_count: Mapped[int] = mapped_column(Integer, default=1, nullable=False)


class RentcarService(ServiceRecordMixin, Base):
    __tablename__ = "rentcar"
    catalog_name = "rentcar"
    code_attr = "rentcar_code"

    rentcar_code: Mapped[str] = mapped_column(String(64), nullable=False)
    vehicle_count: Mapped[int] = mapped_column(Integer, default=1, nullable=False)


class TourService(ServiceRecordMixin, Base):
    __tablename__ = "tour"
    catalog_name = "tour"
    code_attr = "tour_code"

    tour_code: Mapped[str] = mapped_column(String(64), nullable=False)
    tour_date: Mapped[datetime.date | None] = mapped_column(Date)
    participant_count: Mapped[int] = mapped_column(Integer, default=1, nullable=False)


SERVICE_RECORD_MODELS: dict[ServiceType, Any] = {
    ServiceType.ROOM: RoomService,
    ServiceType.CAR: CarService,
    ServiceType.AIRPORT: AirportService,
    ServiceType.HOTEL: HotelService,
    ServiceType.RENTCAR: RentcarService,
    ServiceType.TOUR: TourService,
}
